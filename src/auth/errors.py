"""Error Hierarchy - typed failures for issuance, authorization and page storage.

Invariants:
    - Every error carries a list of human-readable messages and an HTTP status
    - to_response() produces the {"errors": [...]} envelope used by every endpoint
    - Credential and signature failures are 403; I/O and parse failures are 500
    - Messages never include signing material or the canonical request string
"""


class AuthError(Exception):
    """Base exception for all API failures rendered as an error list."""

    status_code: int = 403

    def __init__(self, *messages: str):
        super().__init__("; ".join(messages))
        self.messages = list(messages)

    def to_response(self) -> dict:
        return {"errors": self.messages}


# ─── Issuance (403) ─────────────────────────────────────────────


class MissingCredentials(AuthError):
    """Username and/or password were empty. Holds one message per missing field."""


class InvalidCredentials(AuthError):
    def __init__(self):
        super().__init__("Invalid username or password")


# ─── Authorization (403) ────────────────────────────────────────


class NoAuthorizationHeader(AuthError):
    def __init__(self):
        super().__init__("No Authorization header provided")


class NoUsernameHeader(AuthError):
    def __init__(self):
        super().__init__("No Username header provided")


class NoTimestampHeader(AuthError):
    def __init__(self):
        super().__init__("No Timestamp header provided")


class InvalidTimestampHeader(AuthError):
    def __init__(self):
        super().__init__("Invalid Timestamp header")


class SignatureExpired(AuthError):
    def __init__(self):
        super().__init__("Signature has expired")


class SignatureMismatch(AuthError):
    def __init__(self):
        super().__init__("Authorization does not match request")


# ─── Infrastructure (500) ───────────────────────────────────────


class IOFailure(AuthError):
    status_code = 500


class SerializationFailure(AuthError):
    status_code = 500


# ─── Resources (404) ────────────────────────────────────────────


class PageNotFound(AuthError):
    status_code = 404

    def __init__(self, title: str):
        super().__init__(f"Page not found: {title}")
        self.title = title
