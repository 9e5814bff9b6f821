"""
Signing HTTP Client

httpx authentication flow for the signed wiki API:

    with httpx.Client(base_url="http://localhost:8080", auth=HmacSessionAuth("admin", "admin")) as client:
        client.get("/page")

The first request fetches a session from /sessionsignature with Basic auth;
every request is then signed with the session signature. A session whose
expiry timestamp has passed is replaced before the next request.
"""

import base64
import time
from collections.abc import Callable, Generator

import httpx

from auth.models import SessionAssertion
from auth.signing import request_signature


def sign_request(request: httpx.Request, assertion: SessionAssertion) -> httpx.Request:
    """Set Username, Timestamp and Authorization headers on a built request."""
    signature = request_signature(assertion.signature, request.method, request.url.path, request.content)
    request.headers["Username"] = assertion.username
    request.headers["Timestamp"] = str(assertion.timestamp)
    request.headers["Authorization"] = f"HMAC {signature}"
    return request


class HmacSessionAuth(httpx.Auth):
    requires_request_body = True
    requires_response_body = True

    def __init__(
        self,
        username: str = "",
        password: str = "",
        session_path: str = "/sessionsignature",
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize signing auth

        Args:
            username: Account used to obtain sessions
            password: Password for that account
            session_path: Issuance endpoint, relative to the request's host
            clock: Source of the current Unix time
        """
        self.username = username
        self.password = password
        self.session_path = session_path
        self.clock = clock
        self.assertion: SessionAssertion | None = None

    @classmethod
    def from_assertion(cls, assertion: SessionAssertion) -> "HmacSessionAuth":
        """Sign with an already issued session; no credentials are kept."""
        auth = cls(username=assertion.username)
        auth.assertion = assertion
        return auth

    def _session_request(self, request: httpx.Request) -> httpx.Request:
        token = base64.b64encode(f"{self.username}:{self.password}".encode("utf-8")).decode("ascii")
        return httpx.Request(
            "GET",
            request.url.join(self.session_path),
            headers={"Authorization": f"Basic {token}"},
        )

    def _needs_session(self) -> bool:
        return self.assertion is None or self.assertion.timestamp < int(self.clock())

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        if self._needs_session():
            if not self.password:
                raise ValueError("No valid session and no password to obtain one")
            response = yield self._session_request(request)
            response.raise_for_status()
            data = response.json()
            self.assertion = SessionAssertion(
                username=data["username"],
                timestamp=int(data["timestamp"]),
                signature=data["signature"],
            )

        yield sign_request(request, self.assertion)
