"""Server-side streaming orchestrator.

This module provides the ChatProxy, which routes one provider request to the
matching adapter and pipes its output into a chunk sink. Upstream failures
(missing key, auth errors, non-2xx responses, network errors) are reported
in-band as visible assistant content instead of breaking the stream.
"""

from typing import Any

from falcon_core.interfaces.sink import ChunkSink
from falcon_core.logging import get_logger
from falcon_core.models.request import ProviderRequest
from falcon_core.models.stream import StreamResult, content_event
from falcon_core.providers.factory import AdapterFactory
from falcon_core.providers.router import detect_provider

__all__ = [
    "SSE_HEADERS",
    "SSE_MEDIA_TYPE",
    "ChatProxy",
    "format_error_content",
]

logger = get_logger(__name__)

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_error_content(message: str) -> str:
    """Render an error as a markdown blockquote for the assistant bubble."""
    lines = str(message).strip().splitlines() or ["Unknown error"]
    quoted = "\n> ".join(lines)
    return f"\n\n> ⚠️ **Error:** {quoted}"


class _RecordingSink:
    """Pass-through sink remembering forwarded content."""

    def __init__(self, inner: ChunkSink) -> None:
        self._inner = inner
        self._parts: list[str] = []

    async def write(self, event: dict[str, Any]) -> None:
        content = event.get("content")
        if isinstance(content, str):
            self._parts.append(content)
        await self._inner.write(event)

    @property
    def text(self) -> str:
        return "".join(self._parts)


class ChatProxy:
    """Routes chat requests to provider adapters.

    Returns the same ``StreamResult`` contract whatever the provider, so
    callers stay provider-agnostic. Never touches storage.

    Example:
        proxy = ChatProxy(AdapterFactory(settings, http_client))
        result = await proxy.stream_chat_response(request, sink)
    """

    def __init__(self, adapters: AdapterFactory) -> None:
        """Initialize the proxy.

        Args:
            adapters: Factory building the adapter for a routed provider
        """
        self._adapters = adapters

    async def stream_chat_response(
        self,
        request: ProviderRequest,
        sink: ChunkSink,
    ) -> StreamResult:
        """Stream one completion to ``sink``.

        Content chunks are forwarded as they arrive. If the provider fails,
        one final content event carrying the error is written and the error
        text becomes part of ``full_response``.

        Args:
            request: Provider-agnostic request; ``model`` is the UI model id
            sink: Destination for stream events

        Returns:
            Aggregated text and usage (``error`` set on failure)
        """
        route = detect_provider(request.model)
        forwarded = request.model_copy(update={"model": route.model_id})
        log = logger.bind(provider=route.provider.value, model=route.model_id)
        recorder = _RecordingSink(sink)

        try:
            adapter = self._adapters.create(route.provider)
            result = await adapter.stream(forwarded, recorder)
        except Exception as e:
            log.error("chat_proxy_error", error=str(e), error_type=type(e).__name__)
            error_text = format_error_content(str(e))
            await sink.write(content_event(error_text))
            return StreamResult(full_response=recorder.text + error_text, error=str(e))

        log.info(
            "chat_proxy_completed",
            chars=len(result.full_response),
            **result.usage.model_dump(exclude_none=True),
        )
        return result
