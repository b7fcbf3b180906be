"""
Test configuration and fixtures for the PairChat test suite.

Environment variables are set before any pairchat module is imported so that
module-level configuration loading sees the test values.
"""

import os
from typing import Any

import pytest

os.environ.setdefault("LOGGING_ENVIRONMENT", "unit_test")
os.environ.setdefault("LOGGING_LEVEL", "DEBUG")
os.environ.setdefault("LOGGING_FORMAT", "human")
os.environ.setdefault("SERVER_HOST", "127.0.0.1")
os.environ.setdefault("SERVER_PORT", "54731")

from pairchat.realtime.identity_policy import SuffixIdentityPolicy  # noqa: E402
from pairchat.realtime.session_coordinator import SessionCoordinator  # noqa: E402


class RecordingTransport:
    """Transport double that records every outbound event and forced close."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, dict[str, Any] | None]] = []
        self.closed: list[tuple[str, str]] = []

    def send(self, connection_id: str, event_type: str, data: dict[str, Any] | None = None) -> None:
        self.sent.append((connection_id, event_type, data))

    def force_close(self, connection_id: str, reason: str = "") -> None:
        self.closed.append((connection_id, reason))

    def events_for(self, connection_id: str) -> list[tuple[str, dict[str, Any] | None]]:
        return [(event, data) for cid, event, data in self.sent if cid == connection_id]

    def event_types_for(self, connection_id: str) -> list[str]:
        return [event for cid, event, _ in self.sent if cid == connection_id]

    def clear(self) -> None:
        self.sent.clear()
        self.closed.clear()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def identity_policy() -> SuffixIdentityPolicy:
    return SuffixIdentityPolicy([".edu", ".ac.in", ".edu.in"])


@pytest.fixture
def coordinator(transport: RecordingTransport, identity_policy: SuffixIdentityPolicy) -> SessionCoordinator:
    return SessionCoordinator(transport, identity_policy, ("male", "female"))


@pytest.fixture
def connect(coordinator: SessionCoordinator):
    """Open connections on the coordinator: ``connect("a", "b")``."""

    def _connect(*connection_ids: str) -> None:
        for connection_id in connection_ids:
            coordinator.on_connect(connection_id)

    return _connect
