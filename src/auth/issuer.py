"""
Credential Issuer

Trades a username/password pair for a signed, time-bounded session:

    timestamp = now + session_lifetime          (expiry instant)
    signature = HMAC-SHA256(username + "\\n" + timestamp, server_secret)

Credentials arrive either as HTTP Basic auth or as a JSON body
{"username": ..., "password": ...}. Nothing is remembered afterwards.
"""

import base64
import binascii
import time
from collections.abc import Callable

import orjson
from fastapi import Request

from core.logger import get_logger

from .authenticator import read_body
from .errors import InvalidCredentials, MissingCredentials, SerializationFailure
from .models import AuthConfig, BasicAuthCredentials, CredentialSource, JsonBodyCredentials, SessionAssertion
from .signing import session_signature

logger = get_logger(__name__)


def parse_basic_auth(header: str | None) -> BasicAuthCredentials | None:
    """
    Decode an "Authorization: Basic <base64(user:pass)>" header

    Returns:
        Credentials, or None when the header is absent or not valid Basic auth
    """
    if not header:
        return None

    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic":
        return None

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (ValueError, binascii.Error):
        return None

    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return BasicAuthCredentials(username=username, password=password)


def parse_json_credentials(body: bytes) -> JsonBodyCredentials:
    """Read {"username", "password"} from a JSON body; extra keys are ignored."""
    try:
        data = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise SerializationFailure(f"Invalid JSON body: {e!s}") from e

    if not isinstance(data, dict):
        raise SerializationFailure("Invalid JSON body: expected an object")

    username = data.get("username")
    password = data.get("password")
    if not isinstance(username, str | None) or not isinstance(password, str | None):
        raise SerializationFailure("Invalid JSON body: username and password must be strings")

    return JsonBodyCredentials(username=username or "", password=password or "")


class CredentialIssuer:
    def __init__(self, config: AuthConfig, clock: Callable[[], float] = time.time):
        """
        Initialize Credential Issuer

        Args:
            config: Shared read-only auth configuration
            clock: Source of the current Unix time
        """
        self.config = config
        self.clock = clock

    async def resolve_credentials(self, request: Request) -> CredentialSource:
        """Pick the credential channel once: Basic auth wins, then a JSON body."""
        basic = parse_basic_auth(request.headers.get("authorization"))
        if basic is not None:
            return basic

        body = await read_body(request)
        if body:
            return parse_json_credentials(body)

        return JsonBodyCredentials(username="", password="")

    def authenticate(self, credentials: CredentialSource) -> SessionAssertion:
        """
        Check credentials and mint a session assertion

        Raises:
            MissingCredentials: username and/or password empty (all reported)
            InvalidCredentials: verification predicate rejected the pair
        """
        missing = []
        if not credentials.username:
            missing.append("No username provided")
        if not credentials.password:
            missing.append("No password provided")
        if missing:
            raise MissingCredentials(*missing)

        if not self.config.verify_credentials(credentials.username, credentials.password):
            logger.warning(f"Rejected credentials for user {credentials.username!r}")
            raise InvalidCredentials()

        timestamp = int(self.clock()) + self.config.session_lifetime
        return SessionAssertion(
            username=credentials.username,
            timestamp=timestamp,
            signature=session_signature(self.config.secret, credentials.username, timestamp),
        )

    async def issue(self, request: Request) -> SessionAssertion:
        credentials = await self.resolve_credentials(request)
        assertion = self.authenticate(credentials)
        logger.info(
            f"Issued session for {assertion.username!r} via {type(credentials).__name__}, "
            f"expires at {assertion.timestamp}"
        )
        return assertion
