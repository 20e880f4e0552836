"""Provider adapter interface for falcon_core.

This module defines the Protocol implemented by each upstream LLM adapter.
"""

from typing import Protocol, runtime_checkable

from falcon_core.interfaces.sink import ChunkSink
from falcon_core.models.request import ProviderRequest
from falcon_core.models.stream import StreamResult

__all__ = [
    "ProviderAdapter",
]


@runtime_checkable
class ProviderAdapter(Protocol):
    """Contract for a streaming provider adapter.

    An adapter translates one upstream streaming protocol into
    ``{"content": text}`` events written to a sink, in arrival order.
    """

    provider_name: str

    async def stream(self, request: ProviderRequest, sink: ChunkSink) -> StreamResult:
        """Stream a completion.

        Args:
            request: Provider-agnostic request (model id already rewritten)
            sink: Destination for content events

        Returns:
            Aggregated response text and token usage

        Raises:
            ProviderError: If the upstream rejects the request before streaming
        """
        ...
