"""FastAPI application factory for falcon_core.

The lifespan wires storage, the provider HTTP client, the adapter factory,
the ChatProxy and the ChatService onto ``app.state``. Pre-built storage or
service instances may be injected instead (tests, embedding).
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from falcon_core.api.routes import router
from falcon_core.config import FalconCoreConfig
from falcon_core.infra.mongo.repositories import MongoConversationRepository
from falcon_core.interfaces.storage import ConversationStorageInterface
from falcon_core.logging import configure_logging, get_logger
from falcon_core.providers.factory import AdapterFactory, create_http_client
from falcon_core.services.chat_proxy import ChatProxy
from falcon_core.services.chat_service import ChatService

__all__ = [
    "create_app",
]

logger = get_logger(__name__)


def create_app(
    config: FalconCoreConfig | None = None,
    *,
    storage: ConversationStorageInterface | None = None,
    chat_service: ChatService | None = None,
) -> FastAPI:
    """Build the falcon_core API application.

    Args:
        config: Configuration (loaded from environment if None)
        storage: Conversation storage to use instead of MongoDB
        chat_service: Chat service to use instead of building one

    Returns:
        Configured FastAPI app
    """
    config = config or FalconCoreConfig()
    configure_logging(level=config.log_level, json_output=config.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned_storage: MongoConversationRepository | None = None
        http_client = None

        if app.state.storage is None:
            owned_storage = await MongoConversationRepository.from_config(config.mongo)
            app.state.storage = owned_storage

        if app.state.chat_service is None:
            http_client = create_http_client(config.providers)
            proxy = ChatProxy(AdapterFactory(config.providers, http_client))
            app.state.chat_service = ChatService(app.state.storage, proxy, config.chat)

        logger.info("falcon_core_started")
        try:
            yield
        finally:
            if http_client is not None:
                await http_client.aclose()
            if owned_storage is not None:
                await owned_storage.close()
            logger.info("falcon_core_stopped")

    app = FastAPI(title="Falcon Core AI", lifespan=lifespan)
    app.state.config = config
    app.state.storage = storage
    app.state.chat_service = chat_service

    if config.server.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.server.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
