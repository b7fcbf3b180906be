"""Application lifecycle management for the PairChat server.

Builds the session services on startup and stores them on ``app.state``;
on shutdown every connection writer is stopped.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..config import AppConfig, get_config
from ..exceptions import ConfigurationError
from ..realtime.identity_policy import SuffixIdentityPolicy
from ..realtime.message_validator import WebSocketMessageValidator
from ..realtime.session_coordinator import SessionCoordinator
from ..realtime.websocket_transport import WebSocketTransport
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger("pairchat.lifespan")

__all__ = ["lifespan", "initialize_session_services"]


def initialize_session_services(app: FastAPI, config: AppConfig) -> None:
    """Create transport, coordinator and validator and attach them to app.state."""
    matchmaking = config.matchmaking
    try:
        identity_policy = SuffixIdentityPolicy(matchmaking.accepted_identity_suffixes)
    except ValueError as e:
        raise ConfigurationError(str(e), config_key="matchmaking.accepted_identity_suffixes") from e

    transport = WebSocketTransport()
    app.state.transport = transport
    app.state.coordinator = SessionCoordinator(
        transport,
        identity_policy,
        matchmaking.attribute_values,
        notify_displaced=matchmaking.notify_displaced,
    )
    app.state.message_validator = WebSocketMessageValidator(
        max_message_size=matchmaking.max_message_size,
        max_json_depth=matchmaking.max_json_depth,
        max_string_length=matchmaking.max_string_length,
    )
    logger.info(
        "Session services initialized",
        identity_policy=identity_policy.description,
        attribute_values=matchmaking.attribute_values,
        notify_displaced=matchmaking.notify_displaced,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    The coordinator lives exactly as long as the application: all session
    state is in memory and is gone after shutdown.
    """
    logger.info("Starting PairChat server...")
    config = getattr(app.state, "config", None) or get_config()
    initialize_session_services(app, config)

    try:
        yield
    finally:
        logger.info("Shutting down PairChat server...")
        transport = getattr(app.state, "transport", None)
        if transport is not None:
            await transport.shutdown()
        app.state.coordinator = None
        app.state.transport = None
        app.state.message_validator = None
        logger.info("PairChat server shutdown complete")
