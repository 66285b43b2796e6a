"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
error rendering and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.chat import router as chat_router
from src.api.middleware import RelayCORSMiddleware
from src.models.schemas import ErrorResponse
from src.relay.config import RelayConfig
from src.relay.errors import RelayError
from src.relay.service import ChatRelay

logger = logging.getLogger(__name__)


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Render a RelayError as ``{"error": message}`` with its status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(),
    )


def create_app(
    config: RelayConfig | None = None,
    relay: ChatRelay | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The relay, and with it the upstream credential, is resolved once here.

    Args:
        config: Relay configuration. Loads from environment if not provided.
        relay: Prebuilt relay, e.g. one wired to a fake gateway in tests.

    Returns:
        Configured FastAPI application instance.
    """
    chat_relay = relay or ChatRelay(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        # Startup
        logger.info("Starting chat relay...")
        if not chat_relay.config.has_api_key:
            logger.warning(
                "Upstream API key is not configured; every chat request will fail "
                "until LOVABLE_API_KEY is set"
            )
        yield
        # Shutdown
        logger.info("Shutting down chat relay...")
        await chat_relay.aclose()

    application = FastAPI(
        title="Artificial Chat Relay",
        description=(
            "Edge relay for the Artificial chat assistant. Forwards conversations "
            "to a hosted LLM gateway and streams server-sent events back unmodified."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.relay = chat_relay

    application.add_middleware(
        RelayCORSMiddleware,
        allow_headers=chat_relay.config.allow_headers,
    )
    application.add_exception_handler(RelayError, relay_error_handler)

    application.include_router(chat_router)

    @application.get("/health")
    async def health_check() -> dict[str, str | bool]:
        """Check service health status."""
        return {
            "status": "healthy",
            "service": "chat-relay",
            "credential_configured": chat_relay.config.has_api_key,
        }

    return application

