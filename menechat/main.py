"""
FastAPI application entry point.

Initializes FastAPI app, registers routers, adds middleware, and configures lifespan.

Dependencies: fastapi, menechat.api, menechat.observability, menechat.configs
System role: Application initialization and configuration
"""

from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from menechat.configs import get_settings
from menechat.api import api_router
from menechat.api.deps import get_service_cache
from menechat.api.routers import chat_stream_router
from menechat.core.exceptions import ConfigurationError
from menechat.observability.logger import configure_logging
from menechat.observability.middleware import (
    RequestLoggingMiddleware,
    CorrelationMiddleware,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    Ensures the schema exists and warms the store and completion client.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Application startup: logging configured")

    cache = get_service_cache()
    try:
        await cache.store.create_tables()
        logger.info("Database tables ensured")
    except Exception as e:
        logger.exception(
            "Failed to initialize chat store",
            extra={"error": str(e)},
        )
        raise

    try:
        _ = cache.completion_client
        logger.info("Completion client initialized")
    except ConfigurationError:
        # Surfaced per request as 503 / WS error events.
        logger.warning("Starting without a completion client")

    yield

    await cache.close()
    logger.info("Application shutdown")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="MeneChat API",
        description="Multi-session chat with a Gemini-backed assistant",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Added first = last to execute
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")
    app.include_router(chat_stream_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "menechat.main:app",
        host="localhost",
        port=8082,
        reload=True,
    )
