"""
WebSocket frame validation for PairChat.

Raw text frames are checked for size, parsed as JSON, checked for nesting
depth and string contents, and finally validated against the InboundFrame
schema. Anything that fails raises InboundMessageError and never reaches the
coordinator.
"""

import json
from typing import Any

from pydantic import ValidationError

from ..exceptions import ErrorContext, InboundMessageError
from ..structured_logging.enhanced_logging_config import get_logger
from .inbound_models import InboundFrame

logger = get_logger(__name__)


class WebSocketMessageValidator:
    """
    Validates inbound WebSocket frames.

    Implements:
    - Frame size limits
    - JSON depth limits
    - String length limits and UTF-8 encodability
    - Schema validation
    """

    MAX_MESSAGE_SIZE = 10 * 1024
    MAX_JSON_DEPTH = 10
    MAX_JSON_STRING_LENGTH = 4096  # Maximum string length in JSON, keys included

    def __init__(
        self,
        max_message_size: int | None = None,
        max_json_depth: int | None = None,
        max_string_length: int | None = None,
    ):
        """
        Initialize the message validator.

        Args:
            max_message_size: Maximum frame size in bytes (default: 10KB)
            max_json_depth: Maximum JSON nesting depth (default: 10)
            max_string_length: Maximum length of any JSON string (default: 4096)
        """
        self.max_message_size = max_message_size or self.MAX_MESSAGE_SIZE
        self.max_json_depth = max_json_depth or self.MAX_JSON_DEPTH
        self.max_string_length = max_string_length or self.MAX_JSON_STRING_LENGTH

    def validate_size(self, data: str, connection_id: str | None = None) -> None:
        size = len(data.encode("utf-8", errors="surrogatepass"))
        if size > self.max_message_size:
            raise InboundMessageError(
                f"Message size {size} bytes exceeds maximum {self.max_message_size} bytes",
                ErrorContext(connection_id=connection_id),
                reason="size_limit_exceeded",
            )

    def _calculate_depth(self, obj: Any, current_depth: int = 0) -> int:
        if current_depth > self.max_json_depth:
            return current_depth
        if isinstance(obj, dict):
            if not obj:
                return current_depth
            return max(self._calculate_depth(v, current_depth + 1) for v in obj.values())
        if isinstance(obj, list):
            if not obj:
                return current_depth
            return max(self._calculate_depth(item, current_depth + 1) for item in obj)
        return current_depth

    def _validate_string(self, value: str, what: str, connection_id: str | None) -> None:
        if len(value) > self.max_string_length:
            raise InboundMessageError(
                f"{what} length {len(value)} exceeds maximum {self.max_string_length}",
                ErrorContext(connection_id=connection_id),
                reason="string_length_exceeded",
            )
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            # Lone surrogates decode from JSON escapes but cannot be sent on a text frame
            raise InboundMessageError(
                f"{what} is not valid UTF-8: {e.reason}",
                ErrorContext(connection_id=connection_id),
                reason="invalid_encoding",
            ) from e

    def _validate_strings(self, obj: Any, connection_id: str | None = None) -> None:
        """
        Validate every string in the JSON structure, keys included.

        Raises:
            InboundMessageError: If a string is too long or not encodable as UTF-8
        """
        if isinstance(obj, dict):
            for key, value in obj.items():
                self._validate_string(key, "String key", connection_id)
                self._validate_strings(value, connection_id)
        elif isinstance(obj, list):
            for item in obj:
                self._validate_strings(item, connection_id)
        elif isinstance(obj, str):
            self._validate_string(obj, "String", connection_id)

    def parse_and_validate(self, data: str, connection_id: str | None = None) -> InboundFrame:
        """
        Parse and validate a complete WebSocket frame.

        Args:
            data: Raw frame text
            connection_id: Connection the frame arrived on, for error context

        Returns:
            InboundFrame: the validated frame

        Raises:
            InboundMessageError: If validation fails at any stage
        """
        self.validate_size(data, connection_id)

        try:
            message = json.loads(data)
        except json.JSONDecodeError as e:
            raise InboundMessageError(
                f"Invalid JSON: {e}",
                ErrorContext(connection_id=connection_id),
                reason="json_parse_error",
            ) from e
        except RecursionError as e:
            # Nesting deep enough to exhaust the decoder fits easily under the size limit
            raise InboundMessageError(
                f"JSON nesting exceeds maximum {self.max_json_depth}",
                ErrorContext(connection_id=connection_id),
                reason="depth_limit_exceeded",
            ) from e

        depth = self._calculate_depth(message)
        if depth > self.max_json_depth:
            raise InboundMessageError(
                f"JSON depth {depth} exceeds maximum {self.max_json_depth}",
                ErrorContext(connection_id=connection_id),
                reason="depth_limit_exceeded",
            )

        if not isinstance(message, dict):
            raise InboundMessageError(
                "Message must be a JSON object",
                ErrorContext(connection_id=connection_id),
                reason="invalid_type",
            )

        self._validate_strings(message, connection_id)

        try:
            frame = InboundFrame.model_validate(message)
        except ValidationError as e:
            raise InboundMessageError(
                f"Schema validation failed: {e.error_count()} error(s)",
                ErrorContext(connection_id=connection_id),
                reason="schema_validation_failed",
            ) from e

        logger.debug("Message validation successful", connection_id=connection_id, message_type=frame.type)
        return frame
