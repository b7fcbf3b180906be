"""
Real-time communication API endpoints for the PairChat server.

This module handles the WebSocket connection clients chat over.
"""

from fastapi import APIRouter, WebSocket

from ..error_types import ErrorMessages, ErrorType, create_websocket_error_response
from ..realtime.envelope import build_event
from ..realtime.transport import EVENT_ERROR
from ..realtime.websocket_handler import handle_websocket_connection
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

realtime_router = APIRouter(tags=["realtime"])


@realtime_router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for chat sessions.

    Clients register, exchange messages and request a new partner over this
    connection. No authentication: the identity is supplied in the register
    frame and checked against the identity policy.
    """
    state = websocket.app.state
    coordinator = getattr(state, "coordinator", None)
    transport = getattr(state, "transport", None)
    validator = getattr(state, "message_validator", None)

    if coordinator is None or transport is None or validator is None:
        logger.error("WebSocket connection refused, session services not initialized")
        await websocket.accept()
        await websocket.send_json(
            build_event(
                EVENT_ERROR,
                create_websocket_error_response(
                    ErrorType.SERVICE_UNAVAILABLE,
                    "Session services not initialized",
                    ErrorMessages.SERVICE_UNAVAILABLE,
                ),
            )
        )
        await websocket.close(code=1013)
        return

    await handle_websocket_connection(websocket, coordinator, transport, validator)
