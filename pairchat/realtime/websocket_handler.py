"""
WebSocket handler for PairChat real-time communication.

Reads client frames, validates them and hands them to the session
coordinator. Everything sent back to the client goes through the transport
queue so it stays ordered with events produced by other connections.
"""

import uuid

from fastapi import WebSocket

from ..error_types import ErrorMessages, ErrorType, create_websocket_error_response
from ..exceptions import InboundMessageError
from ..structured_logging.enhanced_logging_config import get_logger
from .message_validator import WebSocketMessageValidator
from .session_coordinator import SessionCoordinator
from .transport import EVENT_ERROR
from .websocket_transport import WebSocketTransport

logger = get_logger(__name__)

_REASON_TO_ERROR_TYPE = {
    "size_limit_exceeded": (ErrorType.MESSAGE_TOO_LARGE, ErrorMessages.MESSAGE_TOO_LARGE),
    "json_parse_error": (ErrorType.INVALID_FORMAT, ErrorMessages.INVALID_FORMAT),
    "depth_limit_exceeded": (ErrorType.INVALID_FORMAT, ErrorMessages.INVALID_FORMAT),
    "invalid_type": (ErrorType.INVALID_FORMAT, ErrorMessages.INVALID_FORMAT),
    "string_length_exceeded": (ErrorType.MESSAGE_TOO_LARGE, ErrorMessages.MESSAGE_TOO_LARGE),
    "invalid_encoding": (ErrorType.INVALID_FORMAT, ErrorMessages.INVALID_FORMAT),
    "schema_validation_failed": (ErrorType.INVALID_INPUT, ErrorMessages.INVALID_INPUT),
}


def _report_invalid_frame(transport: WebSocketTransport, connection_id: str, error: InboundMessageError) -> None:
    error_type, user_friendly = _REASON_TO_ERROR_TYPE.get(
        error.reason, (ErrorType.INVALID_INPUT, ErrorMessages.INVALID_INPUT)
    )
    transport.send(
        connection_id,
        EVENT_ERROR,
        create_websocket_error_response(error_type, error.message, user_friendly, {"reason": error.reason}),
    )


async def _handle_websocket_message_loop(
    websocket: WebSocket,
    connection_id: str,
    coordinator: SessionCoordinator,
    transport: WebSocketTransport,
    validator: WebSocketMessageValidator,
) -> None:
    """Handle the main WebSocket message loop until the client goes away."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            logger.info("WebSocket disconnected", connection_id=connection_id, code=message.get("code"))
            break

        data = message.get("text")
        if data is None:
            _report_invalid_frame(
                transport,
                connection_id,
                InboundMessageError("Only text frames are supported", reason="invalid_type"),
            )
            continue

        try:
            frame = validator.parse_and_validate(data, connection_id)
        except InboundMessageError as e:
            _report_invalid_frame(transport, connection_id, e)
            continue

        try:
            coordinator.on_event(connection_id, frame.type, frame.data)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: one bad event must not kill the connection loop
            logger.error(
                "Error handling WebSocket event",
                connection_id=connection_id,
                event_type=frame.type,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            transport.send(
                connection_id,
                EVENT_ERROR,
                create_websocket_error_response(
                    ErrorType.INTERNAL_ERROR,
                    f"Internal server error: {type(e).__name__}",
                    ErrorMessages.INTERNAL_ERROR,
                ),
            )


async def handle_websocket_connection(
    websocket: WebSocket,
    coordinator: SessionCoordinator,
    transport: WebSocketTransport,
    validator: WebSocketMessageValidator,
) -> str:
    """
    Run one WebSocket connection from accept to cleanup.

    Args:
        websocket: The not-yet-accepted WebSocket
        coordinator: Session coordinator owning all participant state
        transport: Transport the connection's writer is attached to
        validator: Inbound frame validator

    Returns:
        The connection id assigned to this WebSocket
    """
    await websocket.accept()
    connection_id = str(uuid.uuid4())
    transport.attach(connection_id, websocket)
    coordinator.on_connect(connection_id)

    try:
        await _handle_websocket_message_loop(websocket, connection_id, coordinator, transport, validator)
    except RuntimeError as e:
        # Raised by Starlette when receiving on a socket the server already closed
        logger.warning("WebSocket connection lost", connection_id=connection_id, error=str(e))
    finally:
        coordinator.on_disconnect(connection_id)
        await transport.detach(connection_id)

    return connection_id
