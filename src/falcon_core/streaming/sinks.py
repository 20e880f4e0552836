"""Chunk sink implementations.

``QueueSink`` feeds an HTTP streaming response with encoded SSE frames.
``CollectSink`` gathers content in memory, for non-streaming callers such as
title generation.
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

from falcon_core.models.stream import encode_sse

__all__ = [
    "CollectSink",
    "QueueSink",
]


class QueueSink:
    """Sink that encodes events as SSE frames onto an asyncio queue.

    The producer side writes events and calls ``close()`` when finished; the
    consumer side iterates ``frames()`` until the queue is closed.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._closed = False

    async def write(self, event: dict[str, Any]) -> None:
        if self._closed:
            raise RuntimeError("QueueSink is closed")
        await self._queue.put(encode_sse(event))

    def close(self) -> None:
        """Mark the end of the stream. Idempotent."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    async def frames(self) -> AsyncIterator[str]:
        """Yield encoded frames until the sink is closed."""
        while True:
            item = await self._queue.get()
            if item is None:
                return
            yield item


class CollectSink:
    """Sink that concatenates content events into a string."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self.errors: list[str] = []

    async def write(self, event: dict[str, Any]) -> None:
        content = event.get("content")
        if isinstance(content, str):
            self._parts.append(content)
        error = event.get("error")
        if isinstance(error, str):
            self.errors.append(error)

    @property
    def text(self) -> str:
        return "".join(self._parts)
