"""Unit tests for the MongoDB conversation repository."""

import pytest

from falcon_core.infra.mongo.repositories import MongoConversationRepository
from falcon_core.interfaces.storage import ConversationStorageInterface
from tests.mocks.mock_mongo import MockMongoClient


class TestMongoConversationRepository:
    """Tests for MongoConversationRepository against the in-memory mock."""

    def test_implements_interface(self, repository: MongoConversationRepository) -> None:
        assert isinstance(repository, ConversationStorageInterface)

    @pytest.mark.asyncio
    async def test_create_and_get(self, repository: MongoConversationRepository) -> None:
        created = await repository.create_conversation(project_id=3)

        assert created.id == 1
        assert created.title == "New Chat"
        fetched = await repository.get_conversation(created.id)
        assert fetched == created

    @pytest.mark.asyncio
    async def test_ids_increase(self, repository: MongoConversationRepository) -> None:
        first = await repository.create_conversation()
        second = await repository.create_conversation()
        message = await repository.add_message(first.id, "user", "Hi")

        assert (first.id, second.id) == (1, 2)
        assert message.id == 1

    @pytest.mark.asyncio
    async def test_get_missing(self, repository: MongoConversationRepository) -> None:
        assert await repository.get_conversation(404) is None

    @pytest.mark.asyncio
    async def test_list_newest_first(self, repository: MongoConversationRepository) -> None:
        for title in ("a", "b", "c"):
            await repository.create_conversation(title=title)

        conversations = await repository.list_conversations()

        assert [c.title for c in conversations] == ["c", "b", "a"]

    @pytest.mark.asyncio
    async def test_messages_in_order(self, repository: MongoConversationRepository) -> None:
        conversation = await repository.create_conversation()
        other = await repository.create_conversation()
        await repository.add_message(conversation.id, "user", "Hi", [{"name": "a.txt"}])
        await repository.add_message(other.id, "user", "Elsewhere")
        await repository.add_message(conversation.id, "assistant", "Hello!")

        messages = await repository.get_messages(conversation.id)

        assert [(m.role, m.content) for m in messages] == [("user", "Hi"), ("assistant", "Hello!")]
        assert messages[0].attachments == [{"name": "a.txt"}]
        assert messages[0].id < messages[1].id

    @pytest.mark.asyncio
    async def test_update_title(self, repository: MongoConversationRepository) -> None:
        conversation = await repository.create_conversation()

        await repository.update_conversation_title(conversation.id, "Async Python")

        fetched = await repository.get_conversation(conversation.id)
        assert fetched is not None
        assert fetched.title == "Async Python"

    @pytest.mark.asyncio
    async def test_delete_removes_messages(self, repository: MongoConversationRepository) -> None:
        conversation = await repository.create_conversation()
        await repository.add_message(conversation.id, "user", "Hi")

        await repository.delete_conversation(conversation.id)

        assert await repository.get_conversation(conversation.id) is None
        assert await repository.get_messages(conversation.id) == []

    @pytest.mark.asyncio
    async def test_project_system_prompt(
        self,
        repository: MongoConversationRepository,
        mongo_client: MockMongoClient,
    ) -> None:
        await mongo_client.projects.insert_one({"id": 5, "system_prompt": "Project rules"})
        await mongo_client.projects.insert_one({"id": 6, "system_prompt": ""})

        assert await repository.get_project_system_prompt(5) == "Project rules"
        assert await repository.get_project_system_prompt(6) is None
        assert await repository.get_project_system_prompt(7) is None

    @pytest.mark.asyncio
    async def test_create_indexes(self, mongo_client: MockMongoClient) -> None:
        await mongo_client.create_indexes()
        assert "id" in mongo_client.conversations.indexes
        assert "id" in mongo_client.messages.indexes
