"""
Logging processors for structlog event processing.

This module provides processors for redacting sensitive fields and masking
participant identities before log entries reach any handler.
"""

import re
from typing import Any

_SENSITIVE_PATTERNS = [
    r"\bpassword\b",
    r"\btoken\b",
    r"\bsecret\b",
    r"_key\b",
    r"\bcredential\b",
    r"\bauthorization\b",
]

_EMAIL_PATTERN = re.compile(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+)")


def mask_identity(value: str) -> str:
    """
    Mask the local part of every email-like identity in a string.

    ``alice@uni.edu`` becomes ``a***@uni.edu``; the domain is kept because it
    is what the identity policy checks.
    """
    return _EMAIL_PATTERN.sub(r"\1***@\2", value)


def _mask_value(value: Any) -> Any:
    if isinstance(value, str):
        return mask_identity(value)
    if isinstance(value, dict):
        return {k: _mask_value(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_mask_value(item) for item in value]
    return value


def sanitize_sensitive_data(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Remove sensitive data from log entries.

    Args:
        _logger: Logger instance (unused)
        _name: Logger name (unused)
        event_dict: Event dictionary to sanitize

    Returns:
        Sanitized event dictionary
    """

    def sanitize_dict(d: dict[str, Any]) -> dict[str, Any]:
        sanitized: dict[str, Any] = {}
        for key, value in d.items():
            if isinstance(value, dict):
                sanitized[key] = sanitize_dict(value)
            elif any(re.search(pattern, str(key).lower()) for pattern in _SENSITIVE_PATTERNS):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = value
        return sanitized

    return sanitize_dict(event_dict)


def mask_identities(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Mask participant identities in every field of a log entry.

    Participants are anonymous to each other and the logs must not undo
    that; this processor runs before any renderer sees the event.
    """
    return {key: _mask_value(value) for key, value in event_dict.items()}
