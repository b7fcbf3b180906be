"""
Exception hierarchy for the PairChat server.

This module defines the exceptions raised by the session core and the
transport shell, together with the structured context that accompanies
them into the logs.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """
    Contextual information for error handling.

    Carried by every PairChatError so that log entries can be correlated with
    the connection and event that produced them.
    """

    connection_id: str | None = None
    event_type: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging."""
        return {
            "connection_id": self.connection_id,
            "event_type": self.event_type,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class PairChatError(Exception):
    """
    Base exception for all PairChat errors.

    Provides structured error handling with context and metadata
    for proper error categorization and debugging.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
        user_friendly: str | None = None,
    ):
        """
        Initialize PairChat error.

        Args:
            message: Technical error message
            context: Error context information
            details: Additional error details
            user_friendly: Message safe to show to the connected client
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.user_friendly = user_friendly or message
        self.timestamp = datetime.now()

        self._log_error()

    def _log_error(self):
        """Log the error with structured context."""
        logger.warning(
            "PairChat error occurred",
            error_type=self.__class__.__name__,
            message=self.message,
            context=self.context.to_dict(),
            details=self.details,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "user_friendly": self.user_friendly,
            "context": self.context.to_dict(),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class IdentityValidationError(PairChatError):
    """Identity or attribute rejected by the registration policy."""

    def __init__(self, message: str, context: ErrorContext | None = None, field_name: str = "identity", **kwargs):
        super().__init__(message, context, **kwargs)
        self.field_name = field_name
        self.details["field"] = field_name


class InboundMessageError(PairChatError):
    """A client frame could not be parsed or failed validation."""

    def __init__(self, message: str, context: ErrorContext | None = None, reason: str = "validation_error", **kwargs):
        super().__init__(message, context, **kwargs)
        self.reason = reason
        self.details["reason"] = reason


class SessionInvariantError(PairChatError):
    """
    The registry, identity index and pools disagree with each other.

    Only raised by consistency checks; the coordinator never catches it.
    """

    def __init__(self, message: str, context: ErrorContext | None = None, invariant: str = "unknown", **kwargs):
        # Set before the base initializer logs
        self.invariant = invariant
        details = kwargs.pop("details", None) or {}
        details["invariant"] = invariant
        super().__init__(message, context, details=details, **kwargs)

    def _log_error(self):
        logger.critical(
            "Session invariant violated",
            invariant=self.invariant,
            message=self.message,
            details=self.details,
        )


class ConfigurationError(PairChatError):
    """Configuration-related errors."""

    def __init__(self, message: str, context: ErrorContext | None = None, config_key: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.config_key = config_key
        if config_key:
            self.details["config_key"] = config_key
