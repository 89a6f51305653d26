"""
FastAPI application for the STT relay.

Wires configuration, the credential and speech capabilities, and the relay
routes into a single app.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stt_relay import __version__
from stt_relay.api.routes import relay
from stt_relay.config import RelayConfig, get_config, resolve_recognition_config
from stt_relay.core.credentials import GoogleServiceAccountTokenProvider, TokenProvider
from stt_relay.core.speech_client import GoogleSpeechClient, SpeechRecognizer
from stt_relay.logging import get_logger, setup_logging

logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    config = app.state.config
    setup_logging(config.logging)
    logger.info("STT relay starting...")

    # Credentials are resolved per request; only warn here.
    if not config.get_service_credentials():
        logger.warning(
            "No service credentials configured; POST requests will fail until "
            "the credential secret is set"
        )

    logger.info(f"Relaying to {config.speech_api_url}")
    yield
    logger.info("STT relay shut down")


def create_app(
    config_path: Path | None = None,
    token_provider: TokenProvider | None = None,
    speech_client: SpeechRecognizer | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config_path: Optional path to configuration file
        token_provider: Credential exchange capability (google-auth by default)
        speech_client: Speech recognition capability (Google REST API by default)

    Returns:
        Configured FastAPI application
    """
    config = RelayConfig(config_path) if config_path else get_config()

    app = FastAPI(
        title="STT Relay",
        description="Relay audio uploads to Google Cloud Speech-to-Text",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.token_provider = token_provider or GoogleServiceAccountTokenProvider(
        scope=config.token_scope
    )
    app.state.speech_client = speech_client or GoogleSpeechClient(
        api_url=config.speech_api_url,
        recognition_config=resolve_recognition_config(config),
        timeout=config.speech_timeout,
    )

    app.include_router(relay.router, tags=["Relay"])

    # Methods outside relay.ALL_METHODS never reach a route handler; Starlette
    # raises 405 for them instead.
    @app.exception_handler(StarletteHTTPException)
    async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code != 405:
            return await http_exception_handler(request, exc)
        if request.url.path == relay.FAVICON_PATH:
            return RedirectResponse(url=request.app.state.config.icon_url, status_code=302)
        return PlainTextResponse(relay.METHOD_NOT_ALLOWED_MESSAGE, status_code=405)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app


app = create_app()
