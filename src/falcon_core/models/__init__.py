"""Public DTO models for falcon_core.

This module exports all public data transfer objects.
"""

from falcon_core.models.chat import (
    ConversationDTO,
    ConversationWithMessagesDTO,
    MessageDTO,
    MessageRole,
)
from falcon_core.models.request import ChatRequestOptions, ProviderMessage, ProviderRequest
from falcon_core.models.stream import StreamResult, TokenUsage

__all__ = [
    "ChatRequestOptions",
    "ConversationDTO",
    "ConversationWithMessagesDTO",
    "MessageDTO",
    "MessageRole",
    "ProviderMessage",
    "ProviderRequest",
    "StreamResult",
    "TokenUsage",
]
