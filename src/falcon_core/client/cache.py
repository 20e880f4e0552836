"""Client-side query cache for conversation data.

Entries are keyed by tuples, ``("conversations",)`` for the list and
``("conversations", id)`` for one conversation. Values are the JSON bodies
returned by the API, so optimistic entries (negative temp ids) can live next
to server data without validation.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from falcon_core.logging import get_logger

__all__ = [
    "CONVERSATIONS_KEY",
    "CacheKey",
    "ConversationCache",
    "conversation_key",
]

logger = get_logger(__name__)

CacheKey = tuple[Any, ...]

CONVERSATIONS_KEY: CacheKey = ("conversations",)


def conversation_key(conversation_id: int) -> CacheKey:
    """Cache key for a single conversation."""
    return ("conversations", conversation_id)


class ConversationCache:
    """Small key/value cache with invalidation listeners.

    Example:
        cache = ConversationCache()
        cache.subscribe(lambda key: print("stale", key))
        data = await cache.get_or_fetch(conversation_key(7), load_conversation)
        cache.invalidate(conversation_key(7))
    """

    def __init__(self) -> None:
        self._data: dict[CacheKey, Any] = {}
        self._listeners: list[Callable[[CacheKey], None]] = []

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._data

    def get(self, key: CacheKey, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set_query_data(self, key: CacheKey, updater: Callable[[Any], Any]) -> Any:
        """Replace an entry with ``updater(current)``.

        ``current`` is None when the key is not cached. Returning None leaves
        the cache untouched.
        """
        value = updater(self._data.get(key))
        if value is not None:
            self._data[key] = value
        return value

    def invalidate(self, key: CacheKey) -> None:
        """Drop an entry and notify listeners so they can refetch."""
        self._data.pop(key, None)
        for listener in list(self._listeners):
            listener(key)
        logger.debug("cache_invalidated", key=key)

    def subscribe(self, listener: Callable[[CacheKey], None]) -> Callable[[], None]:
        """Register an invalidation listener.

        Returns:
            Callable removing the listener
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def get_or_fetch(
        self,
        key: CacheKey,
        loader: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Return the cached value, loading and storing it on a miss."""
        if key in self._data:
            return self._data[key]
        value = await loader()
        self._data[key] = value
        return value
