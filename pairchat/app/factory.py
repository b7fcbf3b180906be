"""
FastAPI application factory for the PairChat server.

This module handles FastAPI app creation, middleware configuration,
and router registration.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..api.health import health_router
from ..api.real_time import realtime_router
from ..config import AppConfig, get_config
from ..structured_logging.enhanced_logging_config import get_logger
from .lifespan import lifespan

logger = get_logger(__name__)


def create_app(config: AppConfig | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Configuration to build the app from; loaded with get_config()
            when omitted

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    if config is None:
        config = get_config()

    app = FastAPI(
        title="PairChat API",
        description="Anonymous one-on-one chat matchmaking over WebSockets",
        version=__version__,
        lifespan=lifespan,
    )
    # The lifespan builds the session services from this
    app.state.config = config

    cors = config.cors
    logger.info(
        "CORS configuration",
        allow_origins=cors.allow_origins,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
        allow_credentials=cors.allow_credentials,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.allow_origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
    )

    app.include_router(health_router)
    app.include_router(realtime_router)

    return app
