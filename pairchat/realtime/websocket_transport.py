"""
WebSocket implementation of the Transport boundary.

Each attached connection gets an outbound asyncio.Queue drained by its own
writer task. send() and force_close() only enqueue, so the session core never
waits on a slow client; ordering per connection is preserved by the queue.
Calls made from a thread other than the connection's event loop are handed
to that loop with call_soon_threadsafe.
"""

import asyncio
import contextlib
import itertools
from dataclasses import dataclass, field
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from ..structured_logging.enhanced_logging_config import get_logger
from .envelope import build_event

logger = get_logger(__name__)


@dataclass
class _CloseRequest:
    reason: str
    code: int = 1000


@dataclass
class ConnectionChannel:
    """Outbound state of one attached WebSocket."""

    connection_id: str
    websocket: WebSocket
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    writer_task: asyncio.Task | None = None
    sent: int = 0
    skipped: int = 0


def _on_loop(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False


class WebSocketTransport:
    """Fire-and-forget delivery of envelopes to attached WebSockets."""

    def __init__(self) -> None:
        self._channels: dict[str, ConnectionChannel] = {}
        self._sequence = itertools.count(1)

    def attach(self, connection_id: str, websocket: WebSocket) -> ConnectionChannel:
        """Register an accepted WebSocket and start its writer. Must run on the event loop."""
        loop = asyncio.get_running_loop()
        channel = ConnectionChannel(connection_id=connection_id, websocket=websocket, loop=loop)
        channel.writer_task = loop.create_task(self._writer(channel), name=f"pairchat/writer/{connection_id}")
        self._channels[connection_id] = channel
        return channel

    async def detach(self, connection_id: str) -> None:
        """Stop the writer and forget the connection. Pending events are dropped."""
        channel = self._channels.pop(connection_id, None)
        if channel is None or channel.writer_task is None:
            return
        channel.writer_task.cancel()
        try:
            await channel.writer_task
        except asyncio.CancelledError:
            pass
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: a dead writer must not break cleanup
            logger.warning(
                "Writer task ended with an error",
                connection_id=connection_id,
                error=str(e),
                error_type=type(e).__name__,
            )
        logger.debug(
            "Connection detached from transport",
            connection_id=connection_id,
            events_sent=channel.sent,
            events_skipped=channel.skipped,
            events_dropped=channel.queue.qsize(),
        )

    def send(self, connection_id: str, event_type: str, data: dict[str, Any] | None = None) -> None:
        channel = self._channels.get(connection_id)
        if channel is None:
            logger.debug("Dropping event for unknown connection", connection_id=connection_id, event_type=event_type)
            return
        self._enqueue(channel, build_event(event_type, data, sequence_number=next(self._sequence)))

    def force_close(self, connection_id: str, reason: str = "") -> None:
        channel = self._channels.get(connection_id)
        if channel is None:
            return
        self._enqueue(channel, _CloseRequest(reason=reason))

    def is_attached(self, connection_id: str) -> bool:
        return connection_id in self._channels

    def connection_count(self) -> int:
        return len(self._channels)

    async def shutdown(self) -> None:
        for connection_id in list(self._channels):
            await self.detach(connection_id)

    @staticmethod
    def _enqueue(channel: ConnectionChannel, item: Any) -> None:
        # asyncio.Queue is not thread-safe
        if _on_loop(channel.loop):
            channel.queue.put_nowait(item)
        else:
            with contextlib.suppress(RuntimeError):  # loop already closed during shutdown
                channel.loop.call_soon_threadsafe(channel.queue.put_nowait, item)

    async def _writer(self, channel: ConnectionChannel) -> None:
        while True:
            item = await channel.queue.get()
            try:
                if isinstance(item, _CloseRequest):
                    logger.info(
                        "Closing WebSocket from server side",
                        connection_id=channel.connection_id,
                        reason=item.reason,
                    )
                    await channel.websocket.close(code=item.code, reason=item.reason)
                    return
                await channel.websocket.send_json(item)
                channel.sent += 1
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                # Socket already gone; the reader side reports the disconnect
                logger.debug(
                    "Writer stopped, WebSocket not writable",
                    connection_id=channel.connection_id,
                    error=str(e),
                )
                return
            except (TypeError, ValueError) as e:
                # Covers UnicodeEncodeError; one unsendable event must not silence the connection
                channel.skipped += 1
                logger.warning(
                    "Skipping event that cannot be sent",
                    connection_id=channel.connection_id,
                    event_type=item.get("event_type") if isinstance(item, dict) else None,
                    error=str(e),
                    error_type=type(e).__name__,
                )
