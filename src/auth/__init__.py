"""
Authentication Module

Stateless HMAC session scheme:
1. Credential Issuer - trades username/password for a signed, expiring session
2. Request Authenticator - verifies the per-request HMAC signature
3. Signing - the shared HMAC-SHA256/base64 primitive
4. Responses - CORS headers and {"errors": [...]} bodies
"""

from .authenticator import RequestAuthenticator
from .dependencies import (
    build_auth_config,
    get_auth_config,
    get_credential_issuer,
    get_request_authenticator,
    install_auth,
    require_signature,
    with_cors,
)
from .errors import AuthError
from .issuer import CredentialIssuer
from .models import AuthConfig, AuthContext, SessionAssertion
from .responses import auth_error_handler, cors_headers, preflight_response
from .signing import sign

__all__ = [
    "AuthConfig",
    "AuthContext",
    "AuthError",
    "CredentialIssuer",
    "RequestAuthenticator",
    "SessionAssertion",
    "auth_error_handler",
    "build_auth_config",
    "cors_headers",
    "get_auth_config",
    "get_credential_issuer",
    "get_request_authenticator",
    "install_auth",
    "preflight_response",
    "require_signature",
    "sign",
    "with_cors",
]
