"""Anthropic Messages API adapter.

Anthropic does not accept ``system`` as an in-list message, so system
messages are lifted into the top-level ``system`` field. The stream is made
of typed events; only three of them matter here:

- ``message_start``: ``message.usage.input_tokens`` (prompt tokens)
- ``content_block_delta``: ``delta.text`` (content)
- ``message_delta``: ``usage.output_tokens`` (completion tokens)
"""

from typing import Any

import httpx

from falcon_core.models.request import ProviderRequest
from falcon_core.models.stream import StreamResult
from falcon_core.providers.base import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
    SSEProviderAdapter,
)
from falcon_core.providers.errors import ProviderError

__all__ = [
    "AnthropicAdapter",
]


class AnthropicAdapter(SSEProviderAdapter):
    """Adapter for Anthropic's streaming Messages API."""

    provider_name = "anthropic"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        url: str,
        api_key: str,
        api_version: str = "2023-06-01",
    ) -> None:
        super().__init__(http_client, url, api_key)
        self._api_version = api_version

    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        messages = [
            {
                "role": "assistant" if m.role in ("model", "assistant") else "user",
                "content": m.content,
            }
            for m in request.messages
            if m.role != "system"
        ]
        payload: dict[str, Any] = {
            "model": request.model,
            "messages": messages,
            "max_tokens": self._or_default(request.max_tokens, DEFAULT_MAX_TOKENS),
            "temperature": self._or_default(request.temperature, DEFAULT_TEMPERATURE),
            "top_p": self._or_default(request.top_p, DEFAULT_TOP_P),
            "stream": True,
        }
        system = next((m.content for m in request.messages if m.role == "system"), None)
        if system:
            payload["system"] = system
        return payload

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self._api_key,
            "anthropic-version": self._api_version,
        }

    def handle_event(self, data: Any, result: StreamResult) -> str | None:
        event_type = data.get("type")

        if event_type == "content_block_delta":
            text = (data.get("delta") or {}).get("text")
            return text if isinstance(text, str) else None

        if event_type == "message_start":
            usage = (data.get("message") or {}).get("usage")
            if isinstance(usage, dict) and usage.get("input_tokens") is not None:
                result.usage.prompt_tokens = usage["input_tokens"]
        elif event_type == "message_delta":
            usage = data.get("usage")
            if isinstance(usage, dict) and usage.get("output_tokens") is not None:
                result.usage.completion_tokens = usage["output_tokens"]
        elif event_type == "error":
            error = data.get("error") or {}
            raise ProviderError(self.provider_name, None, str(error.get("message") or error))
        return None

    def finalize(self, result: StreamResult) -> None:
        # Total only when both halves arrived; a cut-short stream leaves it unset.
        usage = result.usage
        if usage.prompt_tokens is not None and usage.completion_tokens is not None:
            usage.total_tokens = usage.prompt_tokens + usage.completion_tokens
