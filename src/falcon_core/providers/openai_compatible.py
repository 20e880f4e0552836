"""OpenAI-compatible chat completions adapter.

Serves both OpenAI and OpenRouter, which share the chat completions
streaming format.
"""

from typing import Any

import httpx

from falcon_core.models.request import ProviderRequest
from falcon_core.models.stream import StreamResult, TokenUsage
from falcon_core.providers.base import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
    SSEProviderAdapter,
)
from falcon_core.providers.errors import ProviderError

__all__ = [
    "OpenAICompatibleAdapter",
]


class OpenAICompatibleAdapter(SSEProviderAdapter):
    """Adapter for ``/chat/completions`` streaming endpoints.

    Content comes from ``choices[0].delta.content``; usage arrives as
    cumulative ``usage`` totals, normally on the final chunk only.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        url: str,
        api_key: str,
        provider_name: str = "openai",
        extra_headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            http_client: Shared async HTTP client
            url: Chat completions endpoint
            api_key: Bearer token
            provider_name: Name used in errors and logs ("openai" or "openrouter")
            extra_headers: Additional headers (OpenRouter attribution)
        """
        super().__init__(http_client, url, api_key)
        self.provider_name = provider_name
        self._extra_headers = extra_headers or {}

    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        return {
            "model": request.model,
            "messages": [
                {
                    "role": "assistant" if m.role == "model" else m.role,
                    "content": m.content,
                }
                for m in request.messages
            ],
            "stream": True,
            "stream_options": {"include_usage": True},
            "temperature": self._or_default(request.temperature, DEFAULT_TEMPERATURE),
            "max_tokens": self._or_default(request.max_tokens, DEFAULT_MAX_TOKENS),
            "top_p": self._or_default(request.top_p, DEFAULT_TOP_P),
        }

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
            **self._extra_headers,
        }

    def handle_event(self, data: Any, result: StreamResult) -> str | None:
        error = data.get("error")
        if isinstance(error, dict):
            code = error.get("code")
            raise ProviderError(
                self.provider_name,
                code if isinstance(code, int) else None,
                str(error.get("message") or error),
            )

        usage = data.get("usage")
        if isinstance(usage, dict):
            result.usage = TokenUsage(
                total_tokens=usage.get("total_tokens"),
                prompt_tokens=usage.get("prompt_tokens"),
                completion_tokens=usage.get("completion_tokens"),
            )

        choices = data.get("choices") or []
        if not choices:
            return None
        delta = choices[0].get("delta") or {}
        content = delta.get("content")
        return content if isinstance(content, str) else None
