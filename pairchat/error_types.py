"""
Centralized error types and constants for PairChat.

This module defines standardized error types and constants so that every
error event sent to a client carries the same shape.
"""

from enum import Enum
from typing import Any


class ErrorType(Enum):
    """Standardized error types for consistent categorization."""

    # Registration
    INVALID_IDENTITY = "invalid_identity"
    INVALID_ATTRIBUTE = "invalid_attribute"

    # Inbound frames
    INVALID_INPUT = "invalid_input"
    INVALID_FORMAT = "invalid_format"
    MESSAGE_TOO_LARGE = "message_too_large"
    UNKNOWN_EVENT = "unknown_event"

    # System
    INTERNAL_ERROR = "internal_error"
    SERVICE_UNAVAILABLE = "service_unavailable"


def create_websocket_error_response(
    error_type: ErrorType,
    message: str,
    user_friendly: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create the data payload of a standardized ``error`` event.

    Args:
        error_type: The type of error
        message: Technical error message
        user_friendly: User-friendly error message (optional)
        details: Additional error details (optional)

    Returns:
        Error payload dictionary
    """
    return {
        "error_type": error_type.value,
        "message": message,
        "user_friendly": user_friendly or message,
        "details": details or {},
    }


class ErrorMessages:
    """Common error messages for consistent user experience."""

    # Registration
    INVALID_IDENTITY = "Please use a valid college email"
    INVALID_ATTRIBUTE = "Please choose one of the offered options"

    # Inbound frames
    INVALID_INPUT = "Invalid input provided"
    INVALID_FORMAT = "Invalid format provided"
    MESSAGE_TOO_LARGE = "Message is too large"
    UNKNOWN_EVENT = "Unsupported action"

    # System
    INTERNAL_ERROR = "An internal error occurred"
    SERVICE_UNAVAILABLE = "Chat is temporarily unavailable, please try again shortly"
