"""Redis implementation of CacheStore.

The cache is never on the critical path for correctness, only for latency:
while Redis is unreachable every operation is a silent no-op, and transport
errors are logged instead of raised.
"""

import json
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import urlparse

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ...application.cache import CacheStore
from ...domain import CacheTransportError
from .config import RedisConfig

LOGGER = logging.getLogger(__name__)


class RedisCacheStore(CacheStore):
    """Best-effort key/value cache on top of `redis.asyncio`.

    The store owns a single Redis client, the only cache connection of the
    process. `connect()` probes the server once; until a probe succeeds the
    store is unavailable and every call returns immediately. A connection
    error during an operation flips the store back to unavailable, and a new
    probe is made at most once per `reconnect_interval_seconds`.

    Values are stored as JSON text with `SET key value EX ttl`.

    Examples:
        >>> cache = RedisCacheStore(RedisConfig(url="redis://localhost:6379/0"))
        >>> await cache.connect()
        >>> await cache.set("entity:01J9...", {"id": "01J9..."}, ttl_seconds=60)
        >>> await cache.get("entity:01J9...")
        {'id': '01J9...'}
        >>> await cache.shutdown()
    """

    def __init__(
        self,
        config: RedisConfig,
        client: aioredis.Redis | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self._client = client or self._build_client(config)
        self._clock = clock
        self._connected = False
        self._closed = False
        self._last_probe: float | None = None

    @staticmethod
    def _build_client(config: RedisConfig) -> aioredis.Redis:
        options: dict[str, Any] = {
            "decode_responses": True,
            "socket_timeout": config.socket_timeout_seconds,
            "socket_connect_timeout": config.socket_connect_timeout_seconds,
        }
        # from_url lets credentials in the URL win over keyword arguments.
        if config.password is not None and urlparse(config.url).password is None:
            options["password"] = config.password
        return aioredis.from_url(config.url, **options)

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def default_ttl_seconds(self) -> int:
        return self.config.default_ttl_seconds

    async def connect(self) -> bool:
        """Probe the server and mark the store available on success.

        Returns:
            True if Redis answered, False otherwise. Never raises.
        """
        if self._closed:
            return False
        self._last_probe = self._clock()
        try:
            await self._client.ping()
        except (RedisError, OSError) as err:
            self._connected = False
            LOGGER.error("Failed to connect to Redis", extra={"error": str(err)})
            return False

        if not self._connected:
            LOGGER.info("Connected to Redis")
        self._connected = True
        return True

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError):
            return False

    async def get(self, key: str) -> Any | None:
        if not await self._available():
            return None

        try:
            raw = await self._execute(self._client.get, key)
        except CacheTransportError as err:
            LOGGER.error("Cache get error", extra={"key": key, "error": str(err)})
            return None

        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning("Ignoring undecodable cache value", extra={"key": key})
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        if not await self._available():
            return

        ttl = ttl_seconds or self.config.default_ttl_seconds
        try:
            await self._execute(self._client.set, key, json.dumps(value, default=str), ex=ttl)
        except CacheTransportError as err:
            LOGGER.error("Cache set error", extra={"key": key, "error": str(err)})

    async def delete(self, key: str) -> None:
        if not await self._available():
            return

        try:
            await self._execute(self._client.delete, key)
        except CacheTransportError as err:
            LOGGER.error("Cache delete error", extra={"key": key, "error": str(err)})

    async def flush(self) -> None:
        """Remove every key in the configured Redis database."""
        if not await self._available():
            return

        try:
            await self._execute(self._client.flushdb)
        except CacheTransportError as err:
            LOGGER.error("Cache flush error", extra={"error": str(err)})
            return
        LOGGER.info("Cache flushed")

    async def shutdown(self) -> None:
        """Close the Redis connection pool. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._connected = False
        try:
            await self._client.aclose()
        except (RedisError, OSError) as err:
            LOGGER.error("Error closing Redis connection", extra={"error": str(err)})
            return
        LOGGER.info("Redis connection closed")

    async def _available(self) -> bool:
        if self._connected:
            return True
        if self._closed:
            return False
        if (
            self._last_probe is not None
            and self._clock() - self._last_probe < self.config.reconnect_interval_seconds
        ):
            return False
        return await self.connect()

    async def _execute(self, command: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        try:
            return await command(*args, **kwargs)
        except (RedisConnectionError, RedisTimeoutError, OSError) as err:
            if self._connected:
                LOGGER.warning("Redis connection lost, bypassing cache", extra={"error": str(err)})
            self._connected = False
            raise CacheTransportError(str(err)) from err
        except RedisError as err:
            raise CacheTransportError(str(err)) from err
