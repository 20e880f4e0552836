"""Chunk sink interface for falcon_core.

Adapters and the chat orchestrator never touch an HTTP response directly.
They write stream events to a sink; the HTTP layer is one implementation,
an in-memory collector is another.
"""

from typing import Any, Protocol, runtime_checkable

__all__ = [
    "ChunkSink",
]


@runtime_checkable
class ChunkSink(Protocol):
    """Destination for stream events (``{"content": ...}``, ``{"error": ...}``, ...)."""

    async def write(self, event: dict[str, Any]) -> None:
        """Deliver one event, preserving call order."""
        ...
