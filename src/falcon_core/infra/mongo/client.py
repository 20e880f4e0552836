"""Motor connection holder for the falcon_core database.

Owns the Motor client, exposes the four collections the chat core touches
and allocates integer ids from a ``counters`` collection.
"""

from typing import TYPE_CHECKING, Any

from falcon_core.config import MongoSettings
from falcon_core.logging import get_logger
from falcon_core.utils.lazy_import import lazy_import

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

__all__ = [
    "MongoClient",
]

logger = get_logger(__name__)

get_async_motor = lazy_import("motor.motor_asyncio", "AsyncIOMotorClient")
get_return_document = lazy_import("pymongo", "ReturnDocument")


class MongoClient:
    """Connection to the falcon_core MongoDB database.

    Example:
        async with MongoClient(MongoSettings()) as mongo:
            message_id = await mongo.next_id("messages")
            await mongo.messages.insert_one({"id": message_id, ...})
    """

    def __init__(self, settings: MongoSettings) -> None:
        self._settings = settings
        self._motor: Any = None
        self._database: Any = None

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    async def connect(self) -> None:
        """Open the Motor client and check the server answers. No-op if open."""
        if self._motor is not None:
            return
        AsyncIOMotorClient = get_async_motor()  # noqa: N806

        self._motor = AsyncIOMotorClient(
            self._settings.uri.get_secret_value(),
            tz_aware=True,
            serverSelectionTimeoutMS=self._settings.server_selection_timeout_ms,
        )
        self._database = self._motor[self._settings.database]
        await self._motor.admin.command("ping")
        logger.info("mongodb_connected", database=self._settings.database)

    async def disconnect(self) -> None:
        if self._motor is None:
            return
        self._motor.close()
        self._motor = None
        self._database = None
        logger.info("mongodb_disconnected")

    @property
    def db(self) -> "AsyncIOMotorDatabase[dict[str, Any]]":
        """The database handle.

        Raises:
            RuntimeError: If ``connect()`` has not been awaited
        """
        if self._database is None:
            raise RuntimeError("MongoClient is not connected; await connect() first")
        return self._database

    def _collection(self, name: str) -> "AsyncIOMotorCollection[dict[str, Any]]":
        return self.db[self._settings.collection_prefix + name]

    @property
    def conversations(self) -> "AsyncIOMotorCollection[dict[str, Any]]":
        return self._collection("conversations")

    @property
    def messages(self) -> "AsyncIOMotorCollection[dict[str, Any]]":
        return self._collection("messages")

    @property
    def projects(self) -> "AsyncIOMotorCollection[dict[str, Any]]":
        """Projects owned by the wider platform; read here for system prompts."""
        return self._collection("projects")

    @property
    def counters(self) -> "AsyncIOMotorCollection[dict[str, Any]]":
        return self._collection("counters")

    async def next_id(self, sequence: str) -> int:
        """Atomically allocate the next id of ``sequence``, starting at 1."""
        ReturnDocument = get_return_document()  # noqa: N806
        counter = await self.counters.find_one_and_update(
            {"_id": sequence},
            {"$inc": {"value": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(counter["value"])

    async def create_indexes(self) -> None:
        """Ensure the unique id indexes and the per-conversation message index."""
        await self.conversations.create_index("id", unique=True)
        await self.conversations.create_index("created_at")
        await self.messages.create_index("id", unique=True)
        await self.messages.create_index([("conversation_id", 1), ("id", 1)])
        logger.info("mongodb_indexes_ready")

    async def __aenter__(self) -> "MongoClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()
