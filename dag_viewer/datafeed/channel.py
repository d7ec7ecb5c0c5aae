"""
Bounded single-producer / single-consumer channel between the feed task and
the UI.

Wraps asyncio.Queue and adds a receiver-side close(): once the UI is torn
down, pending and future sends raise ChannelClosed so the producer can stop.
"""

from __future__ import annotations

import asyncio

from ..errors import ChannelClosed
from ..types import DagEvent

# Pending events before the producer has to wait
CHANNEL_CAPACITY = 100


class EventChannel:
    """
    Bounded event queue with close semantics.

    Thread-safety: NOT thread-safe. Both ends must live on the same event loop.
    """

    __slots__ = ('_queue', '_closed')

    def __init__(self, capacity: int = CHANNEL_CAPACITY) -> None:
        self._queue: asyncio.Queue[DagEvent] = asyncio.Queue(maxsize=capacity)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def capacity(self) -> int:
        return self._queue.maxsize

    def qsize(self) -> int:
        return self._queue.qsize()

    async def send(self, event: DagEvent) -> None:
        """Queue an event, waiting while the channel is full.

        Raises ChannelClosed if the receiver closed the channel before or
        while we were waiting.
        """
        if self._closed:
            raise ChannelClosed("receiver closed")
        await self._queue.put(event)
        if self._closed:
            raise ChannelClosed("receiver closed")

    def try_recv(self) -> DagEvent | None:
        """Next queued event, or None if nothing is waiting. Never blocks."""
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def drain(self) -> list[DagEvent]:
        """All currently queued events, oldest first. Never blocks."""
        events: list[DagEvent] = []
        while True:
            event = self.try_recv()
            if event is None:
                return events
            events.append(event)

    def close(self) -> None:
        """Receiver side teardown. Wakes a producer blocked on a full queue."""
        self._closed = True
        # Freeing space lets a pending put() return and see the flag
        self.drain()
