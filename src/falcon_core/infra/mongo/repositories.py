"""MongoDB repositories for falcon_core.

This module provides the conversation repository implementation for MongoDB.
"""

from typing import Any, Self

from falcon_core.config import MongoSettings
from falcon_core.infra.mongo.client import MongoClient
from falcon_core.interfaces.storage import ConversationStorageInterface
from falcon_core.logging import get_logger
from falcon_core.models.chat import ConversationDTO, MessageDTO, MessageRole, utcnow

__all__ = [
    "MongoConversationRepository",
]

logger = get_logger(__name__)


class MongoConversationRepository(ConversationStorageInterface):
    """MongoDB implementation of ConversationStorageInterface.

    Conversations and messages carry integer ids allocated from the
    ``counters`` collection, so they are always positive and increasing.
    """

    config_class = MongoSettings

    def __init__(self, client: MongoClient) -> None:
        """Wrap an already connected MongoClient (not closed by ``close()``)."""
        self._client = client
        self._owns_client = False

    @classmethod
    async def from_config(cls, config: MongoSettings) -> Self:
        """Connect to MongoDB, ensure indexes and return a repository owning the connection."""
        client = MongoClient(config)
        await client.connect()
        await client.create_indexes()

        instance = cls(client)
        instance._owns_client = True
        return instance

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Same as ``from_config`` for a plain dict of MongoSettings fields."""
        settings = MongoSettings(**config)
        return await cls.from_config(settings)

    async def close(self) -> None:
        """Disconnect if this repository opened the connection."""
        if self._owns_client and self._client:
            await self._client.disconnect()

    # Conversation operations
    async def create_conversation(
        self,
        title: str = "New Chat",
        project_id: int | None = None,
    ) -> ConversationDTO:
        """Create a conversation."""
        conversation = ConversationDTO(
            id=await self._client.next_id("conversations"),
            title=title,
            project_id=project_id,
        )
        await self._client.conversations.insert_one(conversation.model_dump())
        logger.debug("conversation_created", conversation_id=conversation.id)
        return conversation

    async def get_conversation(self, conversation_id: int) -> ConversationDTO | None:
        """Get a conversation by id."""
        doc = await self._client.conversations.find_one({"id": conversation_id})
        return self._doc_to_conversation(doc) if doc else None

    async def list_conversations(self) -> list[ConversationDTO]:
        """List conversations, newest first."""
        cursor = self._client.conversations.find({}).sort("id", -1)
        return [self._doc_to_conversation(doc) async for doc in cursor]

    async def update_conversation_title(self, conversation_id: int, title: str) -> None:
        """Set a conversation's title."""
        await self._client.conversations.update_one(
            {"id": conversation_id},
            {"$set": {"title": title}},
        )

    async def delete_conversation(self, conversation_id: int) -> None:
        """Delete a conversation and its messages."""
        await self._client.messages.delete_many({"conversation_id": conversation_id})
        await self._client.conversations.delete_one({"id": conversation_id})
        logger.debug("conversation_deleted", conversation_id=conversation_id)

    # Message operations
    async def add_message(
        self,
        conversation_id: int,
        role: MessageRole,
        content: str,
        attachments: list[Any] | None = None,
    ) -> MessageDTO:
        """Append a message."""
        message = MessageDTO(
            id=await self._client.next_id("messages"),
            conversation_id=conversation_id,
            role=role,
            content=content,
            attachments=attachments,
            created_at=utcnow(),
        )
        await self._client.messages.insert_one(message.model_dump())
        return message

    async def get_messages(self, conversation_id: int) -> list[MessageDTO]:
        """Get messages in insertion order."""
        cursor = self._client.messages.find({"conversation_id": conversation_id}).sort("id", 1)
        return [self._doc_to_message(doc) async for doc in cursor]

    async def get_project_system_prompt(self, project_id: int) -> str | None:
        """Get a project's system prompt."""
        doc = await self._client.projects.find_one({"id": project_id})
        if not doc:
            return None
        return doc.get("system_prompt") or None

    # Conversion helpers
    @staticmethod
    def _doc_to_conversation(doc: dict[str, Any]) -> ConversationDTO:
        return ConversationDTO(
            id=doc["id"],
            title=doc.get("title", "New Chat"),
            project_id=doc.get("project_id"),
            created_at=doc["created_at"],
        )

    @staticmethod
    def _doc_to_message(doc: dict[str, Any]) -> MessageDTO:
        return MessageDTO(
            id=doc["id"],
            conversation_id=doc["conversation_id"],
            role=doc["role"],
            content=doc["content"],
            attachments=doc.get("attachments"),
            created_at=doc["created_at"],
        )
