"""
Signed Wiki API Server

FastAPI application serving wiki pages behind a stateless HMAC session scheme.

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8080 --reload

Or run directly:
    python main.py
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from auth import AuthError, auth_error_handler, build_auth_config, install_auth
from auth.models import CredentialVerifier
from core.logger import get_logger, setup_logging
from core.settings import Settings, get_settings
from routers import page_router, session_router
from services import PageStore

logger = get_logger(__name__)


def create_app(settings: Settings | None = None, verify_credentials: CredentialVerifier | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (defaults to the cached environment settings)
        verify_credentials: Credential predicate (defaults to the configured admin pair)
    """
    settings = settings or get_settings()
    auth_config = build_auth_config(settings, verify_credentials)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Logs the effective configuration; the secret is never logged.
        """
        setup_logging(settings)

        logger.info("=" * 60)
        logger.info("Signed Wiki API Starting")
        logger.info("=" * 60)
        logger.info(f"Listening on: http://{settings.server_host}:{settings.server_port}")
        logger.info(f"Session timeout: {settings.auth_session_timeout}s")
        logger.info(f"Legacy expiry window: {settings.auth_legacy_expiry_window}")
        logger.info(f"Allow origins: {settings.auth_allow_origins}")
        logger.info(f"Data directory: {settings.resolved_data_dir}")
        logger.info(f"Debug: {settings.debug}")
        logger.info("=" * 60)

        yield

        logger.info("Shutting down...")

    app = FastAPI(
        title="Signed Wiki API",
        description="""
    Wiki page API protected by HMAC-signed sessions.

    ## Session

    `GET /sessionsignature` with Basic auth, or `POST /sessionsignature`
    with `{"username": "...", "password": "..."}`, returns
    `{"username", "timestamp", "signature"}`. The timestamp is the expiry instant.

    ## Signed requests

    Every `/page` request carries:

    - `Username: <username>`
    - `Timestamp: <timestamp>`
    - `Authorization: HMAC <base64 HMAC-SHA256(METHOD\\nPATH\\nmd5hex(body), signature)>`
    """,
        version="1.0.0",
        lifespan=lifespan,
    )

    install_auth(app, auth_config)
    app.state.page_store = PageStore(settings.resolved_data_dir)
    app.add_exception_handler(AuthError, auth_error_handler)

    app.include_router(session_router)
    app.include_router(page_router)

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()

    # Configure logging BEFORE uvicorn starts
    setup_logging(settings)

    uvicorn.run(
        app,
        host=settings.server_host,
        port=settings.server_port,
        reload=False,
        log_level="debug" if settings.debug else "info",
        log_config=None,  # Prevent uvicorn from overwriting our logging config
    )
