"""Shared test fixtures for falcon_core.

This module provides pytest fixtures used across all tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from falcon_core.config import ChatSettings, ClientSettings, ProviderSettings
from falcon_core.infra.mongo.repositories import MongoConversationRepository
from falcon_core.interfaces.storage import ConversationStorageInterface
from falcon_core.models.chat import ConversationDTO, MessageDTO
from falcon_core.models.stream import StreamResult, TokenUsage
from tests.mocks.mock_mongo import MockMongoClient

CREATED_AT = datetime(2024, 1, 1, tzinfo=UTC)


# Sample data fixtures
@pytest.fixture
def sample_conversation() -> ConversationDTO:
    """Create sample ConversationDTO."""
    return ConversationDTO(id=1, title="New Chat", created_at=CREATED_AT)


@pytest.fixture
def sample_project_conversation() -> ConversationDTO:
    """Create sample ConversationDTO belonging to a project."""
    return ConversationDTO(id=2, title="Project chat", project_id=5, created_at=CREATED_AT)


@pytest.fixture
def sample_messages() -> list[MessageDTO]:
    """Create a first exchange plus a follow-up question."""
    return [
        MessageDTO(
            id=1,
            conversation_id=1,
            role="user",
            content="How do I write async code in Python?",
            created_at=CREATED_AT,
        ),
        MessageDTO(
            id=2,
            conversation_id=1,
            role="assistant",
            content="You can use async/await syntax with asyncio...",
            created_at=CREATED_AT,
        ),
        MessageDTO(
            id=3,
            conversation_id=1,
            role="user",
            content="Can you show me an example?",
            created_at=CREATED_AT,
        ),
    ]


# Mock fixtures
@pytest.fixture
def mock_storage(
    sample_conversation: ConversationDTO,
    sample_messages: list[MessageDTO],
) -> AsyncMock:
    """Create mock storage interface."""
    storage = AsyncMock(spec=ConversationStorageInterface)
    storage.get_conversation.return_value = sample_conversation
    storage.get_messages.return_value = sample_messages
    storage.get_project_system_prompt.return_value = None
    storage.list_conversations.return_value = [sample_conversation]
    storage.create_conversation.return_value = sample_conversation
    storage.add_message.side_effect = lambda conversation_id, role, content, attachments=None: (
        MessageDTO(
            id=100,
            conversation_id=conversation_id,
            role=role,
            content=content,
            attachments=attachments,
            created_at=CREATED_AT,
        )
    )
    return storage


@pytest.fixture
def mock_proxy() -> AsyncMock:
    """Create mock ChatProxy returning a short successful reply."""
    proxy = AsyncMock()
    proxy.stream_chat_response.return_value = StreamResult(
        full_response="Hello there",
        usage=TokenUsage(total_tokens=12, prompt_tokens=8, completion_tokens=4),
    )
    return proxy


@pytest.fixture
def mock_sink() -> AsyncMock:
    """Create mock chunk sink."""
    return AsyncMock()


# Settings fixtures
@pytest.fixture
def chat_settings() -> ChatSettings:
    return ChatSettings(default_model="gpt-4o", title_model="gemini-2.5-flash")


@pytest.fixture
def provider_settings() -> ProviderSettings:
    return ProviderSettings(
        openai_api_key="sk-openai",
        openrouter_api_key="sk-openrouter",
        anthropic_api_key="sk-anthropic",
        gemini_api_key="gemini-key",
    )


@pytest.fixture
def client_settings() -> ClientSettings:
    return ClientSettings(base_url="http://falcon.test", max_retries=2, base_delay=1.0)


# Storage fixtures
@pytest.fixture
def mongo_client() -> MockMongoClient:
    return MockMongoClient()


@pytest.fixture
def repository(mongo_client: MockMongoClient) -> MongoConversationRepository:
    return MongoConversationRepository(mongo_client)
