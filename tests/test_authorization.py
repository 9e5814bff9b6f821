"""
Tests for signed request verification.

Verifies that:
1. A freshly issued session authorizes GET /page and echoes auth headers
2. Each missing/invalid header yields its own 403 error
3. Expiry is enforced at the timestamp (or timestamp + timeout in legacy mode)
4. Any change to method, path or body breaks the signature
5. The wrapped handler still sees the request body
"""

import asyncio
import time

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient
from starlette.datastructures import Headers

from auth import AuthContext, AuthError, auth_error_handler, install_auth, require_signature
from auth.authenticator import RequestAuthenticator, extract_assertion
from auth.errors import (
    InvalidTimestampHeader,
    NoAuthorizationHeader,
    NoTimestampHeader,
    NoUsernameHeader,
    SignatureExpired,
    SignatureMismatch,
)
from auth.models import AuthConfig, PresentedAssertion, SessionAssertion
from auth.signing import request_signature, session_signature
from conftest import SECRET, SESSION_TIMEOUT, signed_headers
from main import create_app


def check_auth_headers(response, assertion: SessionAssertion):
    assert response.headers["Username"] == assertion.username
    timestamp = int(response.headers["Timestamp"])
    assert timestamp == assertion.timestamp
    assert timestamp != 0
    assert response.headers["Signature"] == session_signature(SECRET, assertion.username, timestamp)
    assert response.headers["Signature"] == assertion.signature


def session_at(timestamp: int, username: str = "test") -> SessionAssertion:
    return SessionAssertion(
        username=username, timestamp=timestamp, signature=session_signature(SECRET, username, timestamp)
    )


def test_fresh_session_authorizes_page_list(client, session):
    response = client.get("/page", headers=signed_headers(session, "GET", "/page"))
    assert response.status_code == 200, response.text
    check_auth_headers(response, session)
    assert response.json() == {"items": []}


def test_no_headers(client):
    response = client.get("/page")
    assert response.status_code == 403
    assert response.json() == {"errors": ["No Authorization header provided"]}


def test_missing_username(client, session):
    headers = signed_headers(session, "GET", "/page")
    del headers["Username"]
    response = client.get("/page", headers=headers)
    assert response.status_code == 403
    assert response.json() == {"errors": ["No Username header provided"]}


def test_missing_timestamp(client, session):
    headers = signed_headers(session, "GET", "/page")
    del headers["Timestamp"]
    response = client.get("/page", headers=headers)
    assert response.status_code == 403
    assert response.json() == {"errors": ["No Timestamp header provided"]}


def test_unparsable_timestamp(client, session):
    headers = signed_headers(session, "GET", "/page")
    headers["Timestamp"] = "tomorrow"
    response = client.get("/page", headers=headers)
    assert response.status_code == 403
    assert response.json() == {"errors": ["Invalid Timestamp header"]}


def test_non_hmac_authorization_scheme(client, session):
    headers = signed_headers(session, "GET", "/page")
    headers["Authorization"] = headers["Authorization"].replace("HMAC ", "Bearer ")
    response = client.get("/page", headers=headers)
    assert response.status_code == 403
    assert response.json() == {"errors": ["No Authorization header provided"]}


def test_expired_session_is_rejected(client):
    expired = session_at(int(time.time()) - 1)
    response = client.get("/page", headers=signed_headers(expired, "GET", "/page"))
    assert response.status_code == 403
    assert response.json() == {"errors": ["Signature has expired"]}


def test_full_lifetime_session_is_accepted(client):
    fresh = session_at(int(time.time()) + SESSION_TIMEOUT)
    response = client.get("/page", headers=signed_headers(fresh, "GET", "/page"))
    assert response.status_code == 200


def test_method_swap_is_rejected(client, session, caplog):
    headers = signed_headers(session, "GET", "/page/TestPage")
    with caplog.at_level("WARNING"):
        response = client.delete("/page/TestPage", headers=headers)
    assert response.status_code == 403
    assert response.json() == {"errors": ["Authorization does not match request"]}
    # Canonical string goes to the server log only
    assert r"DELETE\n/page/TestPage\n" in caplog.text
    assert "DELETE" not in response.text


def test_body_tamper_is_rejected(client, session):
    headers = signed_headers(session, "POST", "/page/TestPage", b'{"body": "signed"}')
    response = client.post("/page/TestPage", content=b'{"body": "forged"}', headers=headers)
    assert response.status_code == 403
    assert response.json()["errors"] == ["Authorization does not match request"]


def test_path_tamper_is_rejected(client, session):
    headers = signed_headers(session, "GET", "/page/Alpha")
    response = client.get("/page/Beta", headers=headers)
    assert response.status_code == 403


def test_forged_session_signature_is_rejected(client):
    timestamp = int(time.time()) + 60
    forged = SessionAssertion(username="test", timestamp=timestamp, signature="not-the-session-key")
    response = client.get("/page", headers=signed_headers(forged, "GET", "/page"))
    assert response.status_code == 403
    assert response.json()["errors"] == ["Authorization does not match request"]


def test_failure_keeps_cors_headers(client):
    response = client.get("/page")
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.headers["Access-Control-Allow-Methods"] == "GET, OPTIONS"
    assert "Signature" not in response.headers


def test_options_skips_authentication(client):
    response = client.options("/page/Anything")
    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["Access-Control-Allow-Methods"] == "GET, OPTIONS, POST, DELETE"


def test_handler_still_reads_body():
    """The wrapped handler must see the bytes the signature was checked against."""
    config = AuthConfig(secret=SECRET, session_lifetime=60, allow_origin="*", verify_credentials=lambda u, p: True)
    app = FastAPI()
    install_auth(app, config)
    app.add_exception_handler(AuthError, auth_error_handler)
    seen = {}

    @app.post("/echo")
    async def echo(request: Request, auth: AuthContext = Depends(require_signature("POST, OPTIONS"))):
        seen["body"] = await request.body()
        seen["user"] = auth.username
        return {"ok": True}

    session = session_at(int(time.time()) + 30)
    body = b"payload bytes"
    response = TestClient(app).post("/echo", content=body, headers=signed_headers(session, "POST", "/echo", body))
    assert response.status_code == 200, response.text
    assert seen == {"body": body, "user": "test"}


# ─── Unit level ─────────────────────────────────────────────────

NOW = 1_700_000_000


def make_authenticator(legacy: bool = False) -> RequestAuthenticator:
    config = AuthConfig(
        secret=SECRET,
        session_lifetime=100,
        allow_origin="*",
        verify_credentials=lambda u, p: True,
        legacy_expiry_window=legacy,
    )
    return RequestAuthenticator(config, clock=lambda: NOW)


def presented_for(timestamp: int, method: str = "GET", path: str = "/page", body: bytes = b"") -> PresentedAssertion:
    session = session_at(timestamp)
    return PresentedAssertion(
        username="test",
        timestamp=timestamp,
        authorization=request_signature(session.signature, method, path, body),
    )


def test_extract_assertion_from_headers():
    headers = Headers({"Username": "test", "Timestamp": "123", "Authorization": "HMAC abc="})
    assert extract_assertion(headers) == PresentedAssertion(username="test", timestamp=123, authorization="abc=")
    assert extract_assertion(Headers({})) == PresentedAssertion()
    assert extract_assertion(Headers({"Timestamp": "-5"})).timestamp == -5
    assert extract_assertion(Headers({"Timestamp": str(2**63 - 1)})).timestamp == 2**63 - 1


@pytest.mark.parametrize(
    "raw",
    ["12x", "1_792_361_979", "+1792361979", " 1792361979 ", "0x10", "9" * 30, str(2**63), str(-(2**63) - 1)],
)
def test_extract_assertion_rejects_non_int64_timestamps(raw):
    with pytest.raises(InvalidTimestampHeader):
        extract_assertion(Headers({"Timestamp": raw}))


def test_extract_assertion_decodes_utf8_username():
    # Starlette hands header bytes over as latin-1 text
    raw = [(b"username", "josé".encode("utf-8"))]
    assert extract_assertion(Headers(raw=raw)).username == "josé"
    # Bytes that are not UTF-8 are kept as decoded
    assert extract_assertion(Headers(raw=[(b"username", b"\xe9t\xe9")])).username == "\xe9t\xe9"


def test_verification_order():
    authenticator = make_authenticator()
    with pytest.raises(NoAuthorizationHeader):
        authenticator.verify(PresentedAssertion(), "GET", "/page", b"")
    with pytest.raises(NoUsernameHeader):
        authenticator.verify(PresentedAssertion(authorization="x"), "GET", "/page", b"")
    with pytest.raises(NoTimestampHeader):
        authenticator.verify(PresentedAssertion(username="u", authorization="x"), "GET", "/page", b"")


def test_expiry_boundary():
    authenticator = make_authenticator()
    assert authenticator.verify(presented_for(NOW), "GET", "/page", b"").username == "test"
    with pytest.raises(SignatureExpired):
        authenticator.verify(presented_for(NOW - 1), "GET", "/page", b"")


def test_legacy_expiry_window_adds_session_lifetime():
    authenticator = make_authenticator(legacy=True)
    assert authenticator.verify(presented_for(NOW - 100), "GET", "/page", b"").timestamp == NOW - 100
    with pytest.raises(SignatureExpired):
        authenticator.verify(presented_for(NOW - 101), "GET", "/page", b"")


def test_verify_returns_session_signature():
    authenticator = make_authenticator()
    context = authenticator.verify(presented_for(NOW + 5, "POST", "/page/A", b"x"), "POST", "/page/A", b"x")
    assert context.signature == session_signature(SECRET, "test", NOW + 5)
    assert context.response_headers() == {
        "Username": "test",
        "Timestamp": str(NOW + 5),
        "Signature": context.signature,
    }


def test_verify_mismatch():
    authenticator = make_authenticator()
    with pytest.raises(SignatureMismatch):
        authenticator.verify(presented_for(NOW + 5, "GET"), "DELETE", "/page", b"")


def test_authorize_reads_request():
    authenticator = make_authenticator()
    body = b'{"body": "hi"}'
    presented = presented_for(NOW + 5, "POST", "/page/Home", body)
    headers = [
        (b"username", b"test"),
        (b"timestamp", str(presented.timestamp).encode()),
        (b"authorization", f"HMAC {presented.authorization}".encode()),
    ]

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {"type": "http", "method": "POST", "path": "/page/Home", "headers": headers, "query_string": b""}
    context = asyncio.run(authenticator.authorize(Request(scope, receive)))
    assert context.username == "test"


def test_authorize_checks_expiry_once():
    calls = []

    def clock():
        calls.append(1)
        return NOW

    config = AuthConfig(secret=SECRET, session_lifetime=100, allow_origin="*", verify_credentials=lambda u, p: True)
    authenticator = RequestAuthenticator(config, clock=clock)
    presented = presented_for(NOW + 5)
    headers = [
        (b"username", b"test"),
        (b"timestamp", str(presented.timestamp).encode()),
        (b"authorization", f"HMAC {presented.authorization}".encode()),
    ]

    async def receive():
        return {"type": "http.request", "body": b"", "more_body": False}

    scope = {"type": "http", "method": "GET", "path": "/page", "headers": headers, "query_string": b""}
    asyncio.run(authenticator.authorize(Request(scope, receive)))
    assert len(calls) == 1


@pytest.mark.parametrize("raw", ["+{ts}", "{ts}_0", "{ts}.0"])
def test_signed_request_with_malformed_timestamp(client, session, raw):
    headers = signed_headers(session, "GET", "/page")
    headers["Timestamp"] = raw.format(ts=session.timestamp)
    response = client.get("/page", headers=headers)
    assert response.status_code == 403
    assert response.json() == {"errors": ["Invalid Timestamp header"]}


def test_non_ascii_username_round_trip(settings):
    app = create_app(settings, verify_credentials=lambda u, p: (u, p) == ("josé", "pw"))
    client = TestClient(app)

    issued = client.post("/sessionsignature", json={"username": "josé", "password": "pw"})
    assert issued.status_code == 200, issued.text
    data = issued.json()
    assert data["username"] == "josé"
    assertion = SessionAssertion(username="josé", timestamp=data["timestamp"], signature=data["signature"])

    headers = signed_headers(assertion, "GET", "/page")
    headers["Username"] = "josé".encode("utf-8")
    response = client.get("/page", headers=headers)
    assert response.status_code == 200, response.text
    assert dict(response.headers.raw)[b"username"] == "josé".encode("utf-8")
    assert response.headers["Signature"] == assertion.signature


def test_echoed_username_outside_latin1():
    context = AuthContext(username="Željko", timestamp=1, signature="s")
    value = context.response_headers()["Username"]
    assert value.encode("latin-1") == "Željko".encode("utf-8")
