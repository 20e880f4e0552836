"""Buffered SSE line parser.

Network reads do not respect line boundaries: a ``data:`` line carrying JSON
may arrive split across two or more chunks. ``SSEParser`` keeps the trailing
partial line in a buffer and only parses a line once its terminating newline
has been seen.

The same parser is used for upstream provider streams and for the platform's
own stream on the client side.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

__all__ = [
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "SSEEvent",
    "SSEParseError",
    "SSEParser",
]

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class SSEEvent:
    """A parsed ``data:`` payload.

    Attributes:
        data: Decoded JSON value
        raw: Payload text as received (prefix stripped, trimmed)
    """

    data: Any
    raw: str


@dataclass(frozen=True)
class SSEParseError:
    """A ``data:`` payload that was not valid JSON."""

    raw: str
    error: Exception


class SSEParser:
    """Stateful parser turning text chunks into SSE events.

    Example:
        parser = SSEParser(on_error=lambda err: logger.warning("bad_line", raw=err.raw))
        async for text in response.aiter_text():
            for event in parser.feed(text):
                handle(event.data)
        for event in parser.flush():
            handle(event.data)
    """

    def __init__(
        self,
        on_event: Callable[[SSEEvent], None] | None = None,
        on_error: Callable[[SSEParseError], None] | None = None,
    ) -> None:
        self._on_event = on_event
        self._on_error = on_error
        self._buffer = ""

    @property
    def buffered(self) -> str:
        """Incomplete trailing text waiting for its newline."""
        return self._buffer

    def feed(self, chunk: str) -> list[SSEEvent]:
        """Feed a decoded chunk and return the events it completed.

        Args:
            chunk: Text as decoded from the byte stream

        Returns:
            Events for every line completed by this chunk, in order
        """
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split("\n")
        events: list[SSEEvent] = []
        for line in lines:
            event = self._process_line(line)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> list[SSEEvent]:
        """Process whatever is left in the buffer as a final line.

        Call once the underlying stream has ended.
        """
        remainder, self._buffer = self._buffer, ""
        if not remainder.strip():
            return []
        event = self._process_line(remainder)
        return [event] if event is not None else []

    def reset(self) -> None:
        """Drop buffered state (e.g. before reconnecting)."""
        self._buffer = ""

    def _process_line(self, line: str) -> SSEEvent | None:
        line = line.rstrip("\r")
        if not line.strip() or not line.startswith(DATA_PREFIX):
            return None

        raw = line[len(DATA_PREFIX) :].strip()
        if raw == DONE_SENTINEL:
            return None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            if self._on_error is not None:
                self._on_error(SSEParseError(raw=raw, error=e))
            return None

        event = SSEEvent(data=data, raw=raw)
        if self._on_event is not None:
            self._on_event(event)
        return event
