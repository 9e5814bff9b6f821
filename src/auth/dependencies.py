import hmac

from fastapi import FastAPI, Request, Response

from core.logger import get_logger
from core.settings import Settings

from .authenticator import RequestAuthenticator
from .issuer import CredentialIssuer
from .models import AuthConfig, AuthContext, CredentialVerifier
from .responses import cors_headers

logger = get_logger(__name__)


def admin_credentials_verifier(user_id: str, password: str) -> CredentialVerifier:
    """Accept exactly one configured user/password pair."""
    expected_user = user_id.encode("utf-8")
    expected_password = password.encode("utf-8")

    def verify(username: str, candidate: str) -> bool:
        user_ok = hmac.compare_digest(username.encode("utf-8"), expected_user)
        password_ok = hmac.compare_digest(candidate.encode("utf-8"), expected_password)
        return user_ok and password_ok

    return verify


def build_auth_config(settings: Settings, verify_credentials: CredentialVerifier | None = None) -> AuthConfig:
    """
    Freeze the auth-relevant settings into an AuthConfig.

    Args:
        settings: Application settings
        verify_credentials: Credential predicate; defaults to the admin pair from settings
    """
    if settings.auth_secret_key == "secret":
        logger.warning("AUTH_SECRET_KEY is the default value (not suitable for production)")

    return AuthConfig(
        secret=settings.auth_secret_key,
        session_lifetime=settings.auth_session_timeout,
        allow_origin=settings.auth_allow_origins,
        verify_credentials=verify_credentials
        or admin_credentials_verifier(settings.auth_admin_user_id, settings.auth_admin_password),
        legacy_expiry_window=settings.auth_legacy_expiry_window,
    )


def install_auth(app: FastAPI, config: AuthConfig) -> None:
    """Attach the shared issuer and authenticator to the application."""
    app.state.auth_config = config
    app.state.credential_issuer = CredentialIssuer(config)
    app.state.request_authenticator = RequestAuthenticator(config)


def get_auth_config(request: Request) -> AuthConfig:
    return request.app.state.auth_config


def get_credential_issuer(request: Request) -> CredentialIssuer:
    return request.app.state.credential_issuer


def get_request_authenticator(request: Request) -> RequestAuthenticator:
    return request.app.state.request_authenticator


def with_cors(methods: str):
    """
    Dependency factory: set CORS headers on the response

    The headers are also recorded on request.state so error replies get them.
    """

    async def dependency(request: Request, response: Response) -> dict[str, str]:
        headers = cors_headers(methods, get_auth_config(request).allow_origin)
        request.state.cors_headers = headers
        response.headers.update(headers)
        return headers

    return dependency


def require_signature(methods: str):
    """
    Dependency factory wrapping a protected route

    Verifies the HMAC request signature before the handler runs. On success
    the Username, Timestamp and Signature headers are echoed on the response;
    on failure an AuthError propagates and the handler never runs.

    Args:
        methods: Value for Access-Control-Allow-Methods on this route
    """
    set_cors = with_cors(methods)

    async def dependency(request: Request, response: Response) -> AuthContext:
        await set_cors(request, response)
        context = await get_request_authenticator(request).authorize(request)
        response.headers.update(context.response_headers())
        return context

    return dependency
