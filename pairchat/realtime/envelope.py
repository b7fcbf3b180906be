"""
Event envelope utilities for PairChat real-time messages.

Every outbound event has the same schema:
- event_type: str
- timestamp: ISO 8601 UTC with 'Z'
- sequence_number: int (monotonic per transport)
- data: dict payload
"""

from __future__ import annotations

import itertools
import threading
from datetime import UTC, datetime
from typing import Any

_global_sequence = itertools.count(1)
_sequence_lock = threading.Lock()


def _get_next_global_sequence() -> int:
    with _sequence_lock:
        return next(_global_sequence)


def utc_now_z() -> str:
    """Return current UTC time in ISO 8601 format with 'Z' suffix."""
    return datetime.now(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


def build_event(
    event_type: str,
    data: dict[str, Any] | None = None,
    *,
    sequence_number: int | None = None,
) -> dict[str, Any]:
    """
    Create a normalized event envelope.

    Args:
        event_type: Type of event
        data: Event data payload
        sequence_number: Optional explicit sequence number; a process-wide
            counter is used otherwise
    """
    seq = sequence_number if sequence_number is not None else _get_next_global_sequence()
    return {
        "event_type": event_type,
        "timestamp": utc_now_z(),
        "sequence_number": seq,
        "data": data or {},
    }
