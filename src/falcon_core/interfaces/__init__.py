"""Interface contracts for falcon_core.

This module exports all Protocol-based interfaces for dependency injection.
"""

from falcon_core.interfaces.provider import ProviderAdapter
from falcon_core.interfaces.sink import ChunkSink
from falcon_core.interfaces.storage import ConversationStorageInterface

__all__ = [
    "ChunkSink",
    "ConversationStorageInterface",
    "ProviderAdapter",
]
