"""Conversation and message models for falcon_core.

These models represent persisted conversations and their messages.
They serialize with camelCase keys, which is what the browser client reads.
"""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "MessageRole",
    "ConversationDTO",
    "MessageDTO",
    "ConversationWithMessagesDTO",
    "utcnow",
]

MessageRole = Literal["user", "assistant", "system"]


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ConversationDTO(_CamelModel):
    """A chat conversation.

    Attributes:
        id: Store-assigned positive integer id
        title: Display title ("New Chat" until auto-titled)
        project_id: Owning project, if any; its system prompt applies to the chat
        created_at: Creation time (UTC)
    """

    id: int = Field(gt=0)
    title: str = "New Chat"
    project_id: int | None = None
    created_at: datetime = Field(default_factory=utcnow)


class MessageDTO(_CamelModel):
    """A single persisted conversation message.

    Messages are append-only. The assistant message for a turn only exists
    once its stream has completed.

    Attributes:
        id: Store-assigned positive integer id
        conversation_id: Parent conversation id
        role: Author role
        content: Message text
        attachments: Opaque attachment metadata supplied by the client
        created_at: Insertion time (UTC)
    """

    id: int = Field(gt=0)
    conversation_id: int
    role: MessageRole
    content: str
    attachments: list[Any] | None = None
    created_at: datetime = Field(default_factory=utcnow)


class ConversationWithMessagesDTO(ConversationDTO):
    """Conversation together with its ordered message history."""

    messages: list[MessageDTO] = Field(default_factory=list)
