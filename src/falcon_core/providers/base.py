"""Shared machinery for SSE-based provider adapters.

This module provides the base class for adapters that POST a JSON request
and read the provider's Server-Sent Events response over httpx.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from falcon_core.interfaces.sink import ChunkSink
from falcon_core.logging import get_logger
from falcon_core.models.request import ProviderRequest
from falcon_core.models.stream import StreamResult, content_event
from falcon_core.providers.errors import ProviderError
from falcon_core.streaming.sse_parser import SSEParseError, SSEParser

__all__ = [
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",
    "DEFAULT_TOP_P",
    "SSEProviderAdapter",
]

logger = get_logger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TOP_P = 1.0


class SSEProviderAdapter(ABC):
    """Base class for adapters reading an upstream SSE stream.

    Subclasses build the request payload and headers, and translate each
    parsed upstream event into an optional content delta, updating usage on
    the result as a side effect.
    """

    provider_name: str = ""

    def __init__(self, http_client: httpx.AsyncClient, url: str, api_key: str) -> None:
        """Initialize the adapter.

        Args:
            http_client: Shared async HTTP client
            url: Streaming endpoint URL
            api_key: Provider API key
        """
        self._http = http_client
        self._url = url
        self._api_key = api_key

    @abstractmethod
    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        """Build the provider JSON body."""

    @abstractmethod
    def build_headers(self) -> dict[str, str]:
        """Build the provider request headers."""

    @abstractmethod
    def handle_event(self, data: Any, result: StreamResult) -> str | None:
        """Translate one upstream event.

        Returns:
            Content delta to forward, or None
        """

    def finalize(self, result: StreamResult) -> None:  # noqa: B027
        """Hook run once the upstream stream has drained."""

    async def stream(self, request: ProviderRequest, sink: ChunkSink) -> StreamResult:
        """Stream a completion, forwarding content deltas to ``sink``.

        Raises:
            ProviderError: On a non-2xx response (before anything is written)
                or an error event inside the stream
        """
        result = StreamResult()
        parser = SSEParser(on_error=self._log_parse_error)

        async with self._http.stream(
            "POST",
            self._url,
            json=self.build_payload(request),
            headers=self.build_headers(),
        ) as response:
            if not response.is_success:
                body = (await response.aread()).decode("utf-8", errors="replace")
                raise ProviderError(self.provider_name, response.status_code, body)

            logger.debug("provider_stream_opened", provider=self.provider_name, model=request.model)
            async for text in response.aiter_text():
                for event in parser.feed(text):
                    await self._forward(event.data, result, sink)
            for event in parser.flush():
                await self._forward(event.data, result, sink)

        self.finalize(result)
        return result

    async def _forward(self, data: Any, result: StreamResult, sink: ChunkSink) -> None:
        if not isinstance(data, dict):
            return
        delta = self.handle_event(data, result)
        if delta:
            result.full_response += delta
            await sink.write(content_event(delta))

    def _log_parse_error(self, err: SSEParseError) -> None:
        logger.warning(
            "upstream_sse_parse_error",
            provider=self.provider_name,
            raw=err.raw[:200],
            error=str(err.error),
        )

    @staticmethod
    def _or_default(value: Any, default: Any) -> Any:
        return default if value is None else value
