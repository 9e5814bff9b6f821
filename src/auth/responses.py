"""
Response marshaling shared by every endpoint

- CORS headers (set on every response, sole content of OPTIONS replies)
- {"errors": [...]} bodies for AuthError and its subclasses
"""

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from core.logger import get_logger

from .errors import AuthError

logger = get_logger(__name__)

ALLOW_HEADERS = "Accept, Content-Type, Content-Length, Accept-Encoding, X-CSRF-Token, Timestamp, Username, Authorization"


def cors_headers(methods: str, allow_origin: str) -> dict[str, str]:
    return {
        "Access-Control-Allow-Methods": methods,
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
    }


def preflight_response(methods: str, allow_origin: str) -> Response:
    """Reply to OPTIONS with CORS headers and no body."""
    return Response(status_code=200, headers=cors_headers(methods, allow_origin))


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """
    Render any AuthError as {"errors": [...]}

    CORS headers recorded on request.state by the route are kept, so error
    replies carry the same CORS headers as successful ones.
    """
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")

    headers = getattr(request.state, "cors_headers", None)
    return JSONResponse(status_code=exc.status_code, content=exc.to_response(), headers=headers)
