"""Storage interface for falcon_core.

This module defines the Protocol for conversation persistence.
"""

from typing import Any, ClassVar, Protocol, runtime_checkable

from falcon_core.models.chat import ConversationDTO, MessageDTO, MessageRole

__all__ = [
    "ConversationStorageInterface",
]


@runtime_checkable
class ConversationStorageInterface(Protocol):
    """Contract for conversation and message storage.

    Messages are append-only; ids are positive integers assigned by the store.
    """

    config_class: ClassVar[type | None] = None

    # Conversation operations
    async def create_conversation(
        self,
        title: str = "New Chat",
        project_id: int | None = None,
    ) -> ConversationDTO:
        """Create a conversation.

        Args:
            title: Initial title
            project_id: Owning project, if any

        Returns:
            The stored conversation
        """
        ...

    async def get_conversation(self, conversation_id: int) -> ConversationDTO | None:
        """Get a conversation by id, or None if it does not exist."""
        ...

    async def list_conversations(self) -> list[ConversationDTO]:
        """List all conversations, newest first."""
        ...

    async def update_conversation_title(self, conversation_id: int, title: str) -> None:
        """Set a conversation's title."""
        ...

    async def delete_conversation(self, conversation_id: int) -> None:
        """Delete a conversation and all of its messages."""
        ...

    # Message operations
    async def add_message(
        self,
        conversation_id: int,
        role: MessageRole,
        content: str,
        attachments: list[Any] | None = None,
    ) -> MessageDTO:
        """Append a message to a conversation.

        Args:
            conversation_id: Parent conversation id
            role: Author role
            content: Message text
            attachments: Opaque attachment metadata

        Returns:
            The stored message
        """
        ...

    async def get_messages(self, conversation_id: int) -> list[MessageDTO]:
        """Get a conversation's messages in insertion order."""
        ...

    # Project prompt lookup (projects themselves are managed elsewhere)
    async def get_project_system_prompt(self, project_id: int) -> str | None:
        """Get the system prompt configured on a project, if any."""
        ...
