"""Root conftest - shared fixtures for the signed wiki API tests."""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add project src to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from auth.models import SessionAssertion  # noqa: E402
from auth.signing import request_signature  # noqa: E402
from core.settings import Settings  # noqa: E402
from main import create_app  # noqa: E402

SECRET = "test"
SESSION_TIMEOUT = 30 * 60


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        auth_secret_key=SECRET,
        auth_session_timeout=SESSION_TIMEOUT,
        auth_admin_user_id="test",
        auth_admin_password="test",
        auth_allow_origins="*",
        data_dir=str(tmp_path / "data"),
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def session(client) -> SessionAssertion:
    """A freshly issued session for user "test"."""
    response = client.get("/sessionsignature", auth=("test", "test"))
    assert response.status_code == 200, response.text
    data = response.json()
    return SessionAssertion(username=data["username"], timestamp=data["timestamp"], signature=data["signature"])


def signed_headers(assertion: SessionAssertion, method: str, path: str, body: bytes = b"") -> dict[str, str]:
    """Headers a client sends for a signed request."""
    return {
        "Username": assertion.username,
        "Timestamp": str(assertion.timestamp),
        "Authorization": f"HMAC {request_signature(assertion.signature, method, path, body)}",
    }
