"""Client-side streaming orchestration for falcon_core."""

from falcon_core.client.cache import (
    CONVERSATIONS_KEY,
    ConversationCache,
    conversation_key,
)
from falcon_core.client.streaming_chat import (
    ChatInFlightError,
    ChatRequestError,
    StreamAborted,
    StreamingChatClient,
    StreamingStatus,
    generate_temp_id,
)

__all__ = [
    "CONVERSATIONS_KEY",
    "ChatInFlightError",
    "ChatRequestError",
    "ConversationCache",
    "StreamAborted",
    "StreamingChatClient",
    "StreamingStatus",
    "conversation_key",
    "generate_temp_id",
]
