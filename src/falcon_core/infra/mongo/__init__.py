"""MongoDB storage for falcon_core."""

from falcon_core.infra.mongo.client import MongoClient
from falcon_core.infra.mongo.repositories import MongoConversationRepository

__all__ = ["MongoClient", "MongoConversationRepository"]
