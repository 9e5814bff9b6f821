from fastapi import APIRouter, Depends, Request, Response

from auth import AuthConfig, CredentialIssuer, get_auth_config, get_credential_issuer, preflight_response, with_cors

SESSION_METHODS = "GET, OPTIONS, POST"

session_router = APIRouter(tags=["session"])


@session_router.options("/sessionsignature")
async def session_signature_preflight(config: AuthConfig = Depends(get_auth_config)) -> Response:
    return preflight_response(SESSION_METHODS, config.allow_origin)


@session_router.api_route(
    "/sessionsignature",
    methods=["GET", "POST"],
    dependencies=[Depends(with_cors(SESSION_METHODS))],
)
async def session_signature(
    request: Request,
    issuer: CredentialIssuer = Depends(get_credential_issuer),
) -> dict:
    """
    Issue a session signature.

    Credentials come from HTTP Basic auth (GET) or a JSON body
    {"username": ..., "password": ...} (POST).

    Returns:
        {"username": str, "timestamp": int, "signature": str}
        where timestamp is the Unix time at which the session expires

    Raises:
        403: Missing or invalid credentials
        500: Malformed JSON body
    """
    assertion = await issuer.issue(request)
    return assertion.to_dict()
