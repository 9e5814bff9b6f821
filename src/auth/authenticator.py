"""
Request Authenticator

Verifies the per-request signature carried by protected requests:

    Username: <username>
    Timestamp: <expiry timestamp from issuance>
    Authorization: HMAC <base64 request signature>

The session signature is recomputed from the server secret, so the server
keeps no session table. The request signature must equal
HMAC-SHA256(method + "\\n" + path + "\\n" + md5hex(body), session_signature).
"""

import re
import time
from collections.abc import Callable

from fastapi import Request
from starlette.datastructures import Headers
from starlette.requests import ClientDisconnect

from core.logger import get_logger

from .errors import (
    InvalidTimestampHeader,
    IOFailure,
    NoAuthorizationHeader,
    NoTimestampHeader,
    NoUsernameHeader,
    SignatureExpired,
    SignatureMismatch,
)
from .models import AuthConfig, AuthContext, PresentedAssertion, header_text
from .signing import body_hash, canonical_message, session_signature, sign, signatures_match

logger = get_logger(__name__)

AUTHORIZATION_PREFIX = "HMAC "

# Decimal int64, no sign other than "-", no spaces or separators
TIMESTAMP_PATTERN = re.compile(r"-?[0-9]+")
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


async def read_body(request: Request) -> bytes:
    """
    Read the request body

    Starlette caches the bytes on the request, so handlers further down
    the chain can read the body again.
    """
    try:
        return await request.body()
    except ClientDisconnect as e:
        raise IOFailure("Client disconnected while sending the request body") from e


def extract_assertion(headers: Headers) -> PresentedAssertion:
    """
    Build the presented assertion from request headers only

    Missing headers leave empty/zero fields; verification reports them.

    Raises:
        InvalidTimestampHeader: Timestamp header present but not an integer
    """
    timestamp = 0
    raw_timestamp = headers.get("timestamp")
    if raw_timestamp:
        if not TIMESTAMP_PATTERN.fullmatch(raw_timestamp):
            raise InvalidTimestampHeader()
        timestamp = int(raw_timestamp)
        if not INT64_MIN <= timestamp <= INT64_MAX:
            raise InvalidTimestampHeader()

    authorization = ""
    raw_authorization = headers.get("authorization")
    if raw_authorization and raw_authorization.startswith(AUTHORIZATION_PREFIX):
        authorization = raw_authorization[len(AUTHORIZATION_PREFIX) :]

    return PresentedAssertion(
        username=header_text(headers.get("username") or ""),
        timestamp=timestamp,
        authorization=authorization,
    )


class RequestAuthenticator:
    def __init__(self, config: AuthConfig, clock: Callable[[], float] = time.time):
        """
        Initialize Request Authenticator

        Args:
            config: Shared read-only auth configuration
            clock: Source of the current Unix time
        """
        self.config = config
        self.clock = clock

    def is_expired(self, timestamp: int) -> bool:
        deadline = timestamp
        if self.config.legacy_expiry_window:
            deadline += self.config.session_lifetime
        return deadline < int(self.clock())

    def check_presented(self, presented: PresentedAssertion) -> None:
        """Header presence and freshness checks, first failure wins."""
        if not presented.authorization:
            raise NoAuthorizationHeader()
        if not presented.username:
            raise NoUsernameHeader()
        if presented.timestamp == 0:
            raise NoTimestampHeader()
        if self.is_expired(presented.timestamp):
            raise SignatureExpired()

    def verify(self, presented: PresentedAssertion, method: str, path: str, body: bytes | None) -> AuthContext:
        """
        Verify a presented assertion against one request

        Raises:
            NoAuthorizationHeader, NoUsernameHeader, NoTimestampHeader,
            SignatureExpired, SignatureMismatch
        """
        self.check_presented(presented)
        return self._verify_signature(presented, method, path, body)

    def _verify_signature(
        self, presented: PresentedAssertion, method: str, path: str, body: bytes | None
    ) -> AuthContext:
        session_sig = session_signature(self.config.secret, presented.username, presented.timestamp)
        message = canonical_message(method, path, body_hash(body))
        expected = sign(message, session_sig)

        if not signatures_match(expected, presented.authorization):
            logger.warning(f"Invalid authorization for {presented.username!r}; string to sign: {message!r}")
            raise SignatureMismatch()

        return AuthContext(username=presented.username, timestamp=presented.timestamp, signature=session_sig)

    async def authorize(self, request: Request) -> AuthContext:
        presented = extract_assertion(request.headers)
        # Header checks run before the body is touched
        self.check_presented(presented)
        body = await read_body(request)
        return self._verify_signature(presented, request.method, request.url.path, body)
