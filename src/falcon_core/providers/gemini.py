"""Gemini adapter using the google-genai SDK.

Unlike the other adapters this one does not parse SSE by hand; the SDK
yields response chunks as an async iterator. Token usage is not reported.
"""

from typing import Any

from falcon_core.interfaces.sink import ChunkSink
from falcon_core.logging import get_logger
from falcon_core.models.request import ProviderRequest
from falcon_core.models.stream import StreamResult, content_event
from falcon_core.providers.base import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE, DEFAULT_TOP_P
from falcon_core.providers.errors import ProviderError
from falcon_core.utils.lazy_import import lazy_import

__all__ = [
    "GeminiAdapter",
]

logger = get_logger(__name__)

get_genai_client = lazy_import("google.genai", "Client")
get_http_options = lazy_import("google.genai.types", "HttpOptions")
get_api_error = lazy_import("google.genai.errors", "APIError")


class GeminiAdapter:
    """Adapter streaming through ``client.aio.models.generate_content_stream``."""

    provider_name = "google"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: Gemini API key
            base_url: Optional API base URL override (proxies/integrations)
            client: Pre-built ``genai.Client``; created lazily when None
        """
        self._api_key = api_key
        self._base_url = base_url
        self._client = client

    @property
    def client(self) -> Any:
        """The google-genai client, created on first use."""
        if self._client is None:
            Client = get_genai_client()  # noqa: N806
            http_options = None
            if self._base_url:
                HttpOptions = get_http_options()  # noqa: N806
                http_options = HttpOptions(base_url=self._base_url)
            self._client = Client(api_key=self._api_key, http_options=http_options)
        return self._client

    @staticmethod
    def build_contents(request: ProviderRequest) -> tuple[list[dict[str, Any]], str | None]:
        """Map messages to Gemini contents, lifting system messages out.

        Returns:
            (contents, system_instruction)
        """
        system_parts = [m.content for m in request.messages if m.role == "system"]
        contents = [
            {
                "role": "model" if m.role == "assistant" else m.role,
                "parts": [{"text": m.content}],
            }
            for m in request.messages
            if m.role != "system"
        ]
        return contents, "\n\n".join(system_parts) or None

    def build_config(self, request: ProviderRequest, system_instruction: str | None) -> dict[str, Any]:
        config: dict[str, Any] = {
            "temperature": DEFAULT_TEMPERATURE if request.temperature is None else request.temperature,
            "max_output_tokens": DEFAULT_MAX_TOKENS if request.max_tokens is None else request.max_tokens,
            "top_p": DEFAULT_TOP_P if request.top_p is None else request.top_p,
        }
        if system_instruction:
            config["system_instruction"] = system_instruction
        return config

    async def stream(self, request: ProviderRequest, sink: ChunkSink) -> StreamResult:
        """Stream a completion from Gemini.

        Raises:
            ProviderError: If the SDK reports an API error
        """
        contents, system_instruction = self.build_contents(request)
        client = self.client
        result = StreamResult()
        APIError = get_api_error()  # noqa: N806

        try:
            stream = await client.aio.models.generate_content_stream(
                model=request.model or "gemini-2.5-flash",
                contents=contents,
                config=self.build_config(request, system_instruction),
            )
            async for chunk in stream:
                text = chunk.text or ""
                if text:
                    result.full_response += text
                    await sink.write(content_event(text))
        except APIError as e:
            raise ProviderError(self.provider_name, e.code, e.message or str(e)) from e

        logger.debug("gemini_stream_completed", model=request.model, chars=len(result.full_response))
        return result
