"""SSE parsing and chunk sinks for falcon_core."""

from falcon_core.streaming.sinks import CollectSink, QueueSink
from falcon_core.streaming.sse_parser import SSEEvent, SSEParseError, SSEParser

__all__ = [
    "CollectSink",
    "QueueSink",
    "SSEEvent",
    "SSEParseError",
    "SSEParser",
]
