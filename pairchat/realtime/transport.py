"""
Outbound boundary between the session core and the network.

The coordinator only ever talks to a Transport: it never awaits, never sees a
socket, and treats every send as fire-and-forget.
"""

from typing import Any, Protocol

# Outbound event names
EVENT_ERROR = "error"
EVENT_WAITING = "waiting"
EVENT_CHAT_START = "chatStart"
EVENT_MESSAGE = "message"
EVENT_PARTNER_LEFT = "partnerLeft"
EVENT_DISPLACED = "displaced"


class Transport(Protocol):
    """Addressable, non-blocking send primitive for live connections."""

    def send(self, connection_id: str, event_type: str, data: dict[str, Any] | None = None) -> None:
        """Queue an event for delivery. Unknown connections are ignored."""

    def force_close(self, connection_id: str, reason: str = "") -> None:
        """Close a connection from the server side."""
