"""Wire-level stream models for falcon_core.

The server streams Server-Sent Events to the browser, one JSON object per
``data:`` line. Three shapes are used:

    data: {"content": "<incremental text>"}
    data: {"error": "<message>"}
    data: {"done": true, "usage": {"totalTokens": N, ...}}

No ``event:`` field is ever sent.
"""

import json
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

__all__ = [
    "TokenUsage",
    "StreamResult",
    "content_event",
    "error_event",
    "done_event",
    "encode_sse",
]


class TokenUsage(BaseModel):
    """Token accounting reported by a provider.

    Every field is optional; some providers report nothing at all.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_tokens: int | None = None
    prompt_tokens: int | None = None
    completion_tokens: int | None = None

    @property
    def is_empty(self) -> bool:
        """True when the provider reported no usage."""
        return (
            self.total_tokens is None
            and self.prompt_tokens is None
            and self.completion_tokens is None
        )

    def to_wire(self) -> dict[str, int]:
        """camelCase dict with absent fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass
class StreamResult:
    """Aggregated outcome of one provider stream.

    ``error`` is set when the stream failed and the failure was reported
    in-band instead of raised.
    """

    full_response: str = ""
    usage: TokenUsage = field(default_factory=TokenUsage)
    error: str | None = None


def content_event(text: str) -> dict[str, Any]:
    return {"content": text}


def error_event(message: str) -> dict[str, Any]:
    return {"error": message}


def done_event(usage: TokenUsage | None = None) -> dict[str, Any]:
    return {"done": True, "usage": usage.to_wire() if usage else {}}


def encode_sse(event: dict[str, Any]) -> str:
    """Encode an event as one SSE frame (``data: <json>`` + blank line)."""
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"
