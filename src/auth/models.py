"""
Auth value types

Nothing here is stored server side. A SessionAssertion is handed to the
client and comes back piecewise in the headers of every protected request.
"""

from collections.abc import Callable
from dataclasses import dataclass

CredentialVerifier = Callable[[str, str], bool]


def header_text(value: str) -> str:
    """
    Recover UTF-8 text from a header value Starlette decoded as latin-1

    Values that are not valid UTF-8 are returned unchanged.
    """
    try:
        return value.encode("latin-1").decode("utf-8")
    except UnicodeError:
        return value


def header_value(text: str) -> str:
    """Inverse of header_text: a str whose latin-1 encoding is the UTF-8 bytes of text."""
    return text.encode("utf-8").decode("latin-1")


@dataclass(frozen=True)
class AuthConfig:
    """Read-only auth configuration shared by the issuer and authenticator"""

    secret: str
    session_lifetime: int
    allow_origin: str
    verify_credentials: CredentialVerifier
    # timestamp + session_lifetime is the deadline instead of timestamp itself
    legacy_expiry_window: bool = False


@dataclass(frozen=True)
class BasicAuthCredentials:
    username: str
    password: str


@dataclass(frozen=True)
class JsonBodyCredentials:
    username: str
    password: str


CredentialSource = BasicAuthCredentials | JsonBodyCredentials


@dataclass(frozen=True)
class SessionAssertion:
    """Issued session: username, expiry timestamp and session signature"""

    username: str
    timestamp: int
    signature: str

    def to_dict(self) -> dict:
        return {"username": self.username, "timestamp": self.timestamp, "signature": self.signature}


@dataclass(frozen=True)
class PresentedAssertion:
    """What a protected request carries in its headers (empty/zero when absent)"""

    username: str = ""
    timestamp: int = 0
    authorization: str = ""


@dataclass(frozen=True)
class AuthContext:
    """Result of a successful authorization"""

    username: str
    timestamp: int
    signature: str

    def response_headers(self) -> dict[str, str]:
        return {
            "Username": header_value(self.username),
            "Timestamp": str(self.timestamp),
            "Signature": self.signature,
        }
