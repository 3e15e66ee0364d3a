"""Cache store interface and in-process implementations.

Cache stores are best-effort: they never raise to their callers. Values are
JSON-compatible structured data; reading a value back yields plain data that
callers rehydrate into domain objects.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from ..domain import Customer, SortOrder

LOGGER = logging.getLogger(__name__)

ENTITY_PREFIX = "entity:"
COLLECTION_PREFIX = "collection:sorted:"
SORT_ORDERS: tuple[SortOrder, ...] = ("asc", "desc")


def entity_key(entity_id: str) -> str:
    return f"{ENTITY_PREFIX}{entity_id}"


def collection_key(sort_field: str, order: SortOrder) -> str:
    return f"{COLLECTION_PREFIX}{sort_field}:{order}"


def all_collection_keys() -> list[str]:
    """Every collection key a sorted listing can be cached under.

    Listings are only cached for validated sort parameters, so this finite
    set covers every collection entry any process may have written.
    """
    return [
        collection_key(field, order)
        for field in Customer.SORTABLE_FIELDS
        for order in SORT_ORDERS
    ]


class CacheStore(ABC):
    """Narrow key/value cache with per-entry TTL.

    All operations are async to support remote cache services like Redis.
    Implementations must treat transport failures as soft: log them and
    behave like a miss (reads) or a no-op (writes).
    """

    @staticmethod
    def null() -> "CacheStore":
        return NullCacheStore()

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value stored under key, or None on miss or failure."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store a value. `ttl_seconds=None` uses the store's default TTL."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None: ...

    @abstractmethod
    async def flush(self) -> None: ...

    @abstractmethod
    async def shutdown(self) -> None: ...


class NullCacheStore(CacheStore):
    async def get(self, key: str) -> Any | None:
        return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        pass

    async def delete(self, key: str) -> None:
        pass

    async def flush(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass


class InMemoryCacheStore(CacheStore):
    """Process-local cache store for tests and single-process runs.

    Values are kept as JSON text so that reads return plain data, exactly as
    a remote cache would. Expiry is evaluated lazily on read against an
    injectable monotonic clock.
    """

    def __init__(
        self,
        default_ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        payload, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return json.loads(payload)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds or self.default_ttl_seconds
        self._entries[key] = (json.dumps(value, default=str), self._clock() + ttl)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def flush(self) -> None:
        self._entries.clear()
        LOGGER.info("Cache flushed")

    async def shutdown(self) -> None:
        self._entries.clear()

    def keys(self) -> list[str]:
        now = self._clock()
        return [key for key, (_, expires_at) in self._entries.items() if expires_at > now]
