"""
Relay Module
============

Bounded FIFO hop between two pipeline stages. Sending never blocks:
when the relay is full the item is dropped and logged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100

T = TypeVar("T")


class Relay(Generic[T]):
    """Fixed-capacity single-consumer queue with drop-on-full sends."""

    def __init__(self, name: str, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"Relay capacity must be positive, got {capacity}")
        self.name = name
        self.capacity = capacity
        self.sent = 0
        self.dropped = 0
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=capacity)

    def try_send(self, item: T) -> bool:
        """
        Enqueue an item without waiting.

        Returns:
            True if the item was enqueued, False if it was dropped.
        """
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(f"Relay '{self.name}' full ({self.capacity}), dropping item: {item!r}")
            return False
        self.sent += 1
        return True

    async def receive(self) -> T:
        """Wait for the next item."""
        return await self._queue.get()

    def task_done(self) -> None:
        """Mark the last received item as handled."""
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every enqueued item has been handled."""
        await self._queue.join()

    def qsize(self) -> int:
        return self._queue.qsize()

    def full(self) -> bool:
        return self._queue.full()

    def stats(self) -> dict[str, int]:
        """Counters for observability."""
        return {
            "capacity": self.capacity,
            "queued": self.qsize(),
            "sent": self.sent,
            "dropped": self.dropped,
        }
