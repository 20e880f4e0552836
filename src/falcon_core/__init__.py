"""falcon_core - Streaming chat core for Falcon Core AI.

This package provides:
- A chat proxy streaming replies from OpenAI, OpenRouter, Anthropic and Gemini
- One normalized Server-Sent Events format for the browser
- A buffered SSE parser tolerant of arbitrary chunk boundaries
- Conversation persistence in MongoDB
- A client orchestrator with retry, optimistic updates and cancellation

Example usage:
    from falcon_core import ChatRequestOptions, StreamingChatClient, create_app

    # Server
    app = create_app()

    # Client
    async with StreamingChatClient.from_settings(ClientSettings()) as chat:
        await chat.send_message(
            ChatRequestOptions(conversation_id=1, content="Hello", model="claude-sonnet-4")
        )
        print(chat.streaming_content)
"""

__version__ = "0.1.0"

from falcon_core.api.app import create_app
from falcon_core.client.cache import ConversationCache
from falcon_core.client.streaming_chat import (
    ChatInFlightError,
    StreamingChatClient,
    StreamingStatus,
)
from falcon_core.config import ClientSettings, FalconCoreConfig
from falcon_core.exceptions import ConversationNotFoundError
from falcon_core.infra.mongo.repositories import MongoConversationRepository
from falcon_core.interfaces.provider import ProviderAdapter
from falcon_core.interfaces.sink import ChunkSink
from falcon_core.interfaces.storage import ConversationStorageInterface
from falcon_core.models.request import ChatRequestOptions
from falcon_core.models.stream import TokenUsage
from falcon_core.providers.router import Provider, detect_provider
from falcon_core.services.chat_proxy import ChatProxy
from falcon_core.services.chat_service import ChatService
from falcon_core.streaming.sse_parser import SSEParser

__all__ = [  # noqa: RUF022
    # Server
    "create_app",
    "ChatProxy",
    "ChatService",
    "MongoConversationRepository",
    # Client
    "StreamingChatClient",
    "StreamingStatus",
    "ConversationCache",
    "ChatInFlightError",
    # Shared
    "ChatRequestOptions",
    "ClientSettings",
    "ConversationNotFoundError",
    "FalconCoreConfig",
    "Provider",
    "SSEParser",
    "TokenUsage",
    "detect_provider",
    # Interfaces
    "ChunkSink",
    "ConversationStorageInterface",
    "ProviderAdapter",
]
