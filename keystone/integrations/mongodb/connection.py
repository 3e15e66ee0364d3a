"""Connection management for the MongoDB store.

This module provides the process-wide supervisor of the store connection:
connecting with exponential backoff, pooled-operation configuration, status
reporting, lifecycle notifications and graceful shutdown. It uses PyMongo's
native async support with AsyncMongoClient.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass
from enum import Enum
from typing import Any

try:
    from pymongo import AsyncMongoClient
    from pymongo.errors import PyMongoError
except ImportError as err:
    raise ImportError(
        "pymongo package is required for MongoDB integration. "
        "Install it with: pip install keystone-customers"
    ) from err

from ...application.events import ConnectionEvent, EventChannel
from ...domain import StoreConnectionError
from .config import MongoDBConfig, RetryConfig
from .monitoring import PoolStats, PoolStatsListener, ServerHealthListener

LOGGER = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class ConnectionStatus:
    is_connected: bool
    state: ConnectionState
    retry_count: int
    pool_stats: PoolStats


class ConnectionManager:
    """Owns the lifecycle of the MongoDB connection pool.

    There is one manager per process and it is the only component allowed to
    open a client; repositories borrow `database` from it. Read and write
    paths do no retrying of their own and simply rely on the manager's
    connected-or-not signal.

    `connect()` retries failed attempts with exponential backoff, capped by
    `RetryConfig.max_retries`. Once connected, the driver resumes on its own
    after network blips; the manager reports those transitions on its
    EventChannel as `error` + `disconnected` and later `reconnected`.

    Attributes:
        config: MongoDB pool configuration
        retry: Backoff policy for `connect()`
        events: Channel lifecycle notifications are published on
        state: Current connection state
        retry_count: Retries spent by the current (or last) connect attempt

    Examples:
        >>> events = EventChannel()
        >>> events.subscribe(ConnectionEvent.DISCONNECTED, on_store_lost)
        >>> manager = ConnectionManager(MongoDBConfig(uri="mongodb://localhost:27017"), events=events)
        >>> await manager.connect()
        >>> customers = manager.database["customers"]
        >>> await manager.disconnect()

        >>> # Using async context manager
        >>> async with ConnectionManager(config) as manager:
        ...     await manager.database["customers"].find_one({"_id": customer_id})
    """

    def __init__(
        self,
        config: MongoDBConfig,
        retry: RetryConfig | None = None,
        events: EventChannel | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        client_factory: Callable[..., AsyncMongoClient] = AsyncMongoClient,
    ):
        """Initialize the connection manager.

        Args:
            config: MongoDB configuration object
            retry: Backoff policy, defaults to 5 retries from 1s capped at 30s
            events: Channel to publish lifecycle events on
            sleep: Coroutine used to wait between attempts
            client_factory: Callable building the driver client
        """
        self.config = config
        self.retry = retry or RetryConfig()
        self.events = events or EventChannel()
        self.state = ConnectionState.DISCONNECTED
        self.retry_count = 0
        self._sleep = sleep
        self._client_factory = client_factory
        self._client: AsyncMongoClient | None = None
        self._connect_lock = asyncio.Lock()
        self._sampler: asyncio.Task[None] | None = None
        self._health = ServerHealthListener(self._on_server_lost, self._on_server_restored)
        self._pool = PoolStatsListener()

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def client(self) -> AsyncMongoClient:
        """The driver client.

        Raises:
            StoreConnectionError: If `connect()` has not succeeded.
        """
        if self._client is None:
            raise StoreConnectionError("Not connected to MongoDB")
        return self._client

    @property
    def database(self):
        """Get the configured database.

        Returns:
            MongoDB async database instance
        """
        return self.client[self.config.database]

    async def connect(self) -> None:
        """Connect to MongoDB, retrying with exponential backoff.

        Returns immediately when already connected. Concurrent callers wait
        for the attempt in progress instead of opening a second client.

        Raises:
            StoreConnectionError: When the retry budget is exhausted, or at once
                for an error the driver does not report as a connection failure.
        """
        async with self._connect_lock:
            if self.is_connected:
                LOGGER.debug("Already connected to MongoDB")
                return

            self.retry_count = 0
            try:
                await self._connect_with_retry()
            except StoreConnectionError:
                raise
            except Exception as err:
                # Not a connection failure, e.g. options the driver rejects.
                await self._discard_client()
                self.state = ConnectionState.DISCONNECTED
                LOGGER.error("Unexpected error connecting to MongoDB", extra={"error": str(err)})
                self.events.publish(ConnectionEvent.CONNECTION_FAILED, err)
                raise StoreConnectionError(f"Could not connect to MongoDB: {err}") from err
            except BaseException:
                await self._discard_client()
                self.state = ConnectionState.DISCONNECTED
                raise

            self.state = ConnectionState.CONNECTED
            self.retry_count = 0
            LOGGER.info("Successfully connected to MongoDB")
            self._start_sampler()
            self.events.publish(ConnectionEvent.CONNECTED)

    async def disconnect(self) -> None:
        """Gracefully close the client and every pooled connection.

        Outstanding operations are terminated. The manager ends up
        DISCONNECTED on every path; a close error is logged and re-raised
        after the state has been reset.
        """
        LOGGER.info("Disconnecting from MongoDB...")
        await self._stop_sampler()

        client = self._client
        if client is None:
            self.state = ConnectionState.DISCONNECTED
            LOGGER.info("MongoDB already disconnected")
            return

        try:
            await client.close()
        except (PyMongoError, OSError) as err:
            LOGGER.error("Error during MongoDB disconnection", extra={"error": str(err)})
            raise
        finally:
            self._client = None
            self._health.reset()
            self.state = ConnectionState.DISCONNECTED

        LOGGER.info("Successfully disconnected from MongoDB")
        self.events.publish(ConnectionEvent.DISCONNECTED)

    def get_status(self) -> ConnectionStatus:
        """Snapshot of the connection state and pool usage. No I/O."""
        return ConnectionStatus(
            is_connected=self.is_connected,
            state=self.state,
            retry_count=self.retry_count,
            pool_stats=self._pool.snapshot(self.config.max_pool_size, self.config.min_pool_size),
        )

    async def ping(self) -> bool:
        """Verify that the database answers.

        Returns:
            True if the ping succeeded, False otherwise
        """
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except (PyMongoError, OSError):
            return False

    async def sample_pool_stats(self) -> dict[str, Any] | None:
        """Log the server's connection counters.

        Failures are logged and reported as None; sampling never raises.
        """
        try:
            status = await self.client.admin.command("serverStatus")
        except Exception as err:
            LOGGER.warning("Could not sample MongoDB pool stats", extra={"error": str(err)})
            return None

        connections = status.get("connections", {})
        LOGGER.debug(
            "MongoDB connection pool stats",
            extra={
                "current": connections.get("current"),
                "available": connections.get("available"),
                "total_created": connections.get("totalCreated"),
            },
        )
        return connections

    async def _connect_with_retry(self) -> None:
        while True:
            self.state = ConnectionState.CONNECTING
            LOGGER.info("Connecting to MongoDB...", extra={"attempt": self.retry_count + 1})
            try:
                await self._open_client()
                return
            except (PyMongoError, OSError) as err:
                await self._discard_client()
                LOGGER.error(
                    "Failed to connect to MongoDB",
                    extra={"error": str(err), "retry": self.retry_count},
                )
                if self.retry_count >= self.retry.max_retries:
                    self.state = ConnectionState.DISCONNECTED
                    LOGGER.error(
                        "Max connection retries reached, giving up",
                        extra={"max_retries": self.retry.max_retries},
                    )
                    self.events.publish(ConnectionEvent.CONNECTION_FAILED, err)
                    raise StoreConnectionError(
                        f"Could not connect to MongoDB after {self.retry_count + 1} attempts"
                    ) from err

            delay = self.retry.delay_seconds(self.retry_count)
            self.retry_count += 1
            LOGGER.info("Retrying connection in %.1fs...", delay)
            await self._sleep(delay)

    async def _open_client(self) -> None:
        self._client = self._client_factory(
            self.config.uri,
            tz_aware=True,
            event_listeners=[self._health, self._pool],
            **self.config.client_options(),
        )
        await self._client.admin.command("ping")

    async def _discard_client(self) -> None:
        client, self._client = self._client, None
        self._health.reset()
        if client is None:
            return
        try:
            await client.close()
        except (PyMongoError, OSError) as err:
            LOGGER.debug("Ignoring error closing failed client", extra={"error": str(err)})

    def _start_sampler(self) -> None:
        interval = self.config.monitor_interval_seconds
        if interval is None or self._sampler is not None:
            return

        async def run() -> None:
            while True:
                await asyncio.sleep(interval)
                await self.sample_pool_stats()

        self._sampler = asyncio.create_task(run())

    async def _stop_sampler(self) -> None:
        sampler, self._sampler = self._sampler, None
        if sampler is None:
            return
        sampler.cancel()
        with suppress(asyncio.CancelledError):
            await sampler

    def _on_server_lost(self, error: Any) -> None:
        if not self.is_connected:
            return
        self.state = ConnectionState.DISCONNECTED
        LOGGER.warning("MongoDB disconnected", extra={"error": str(error)})
        self.events.publish(ConnectionEvent.ERROR, error)
        self.events.publish(ConnectionEvent.DISCONNECTED)

    def _on_server_restored(self) -> None:
        if self._client is None or self.state is not ConnectionState.DISCONNECTED:
            return
        self.state = ConnectionState.CONNECTED
        LOGGER.info("MongoDB reconnected")
        self.events.publish(ConnectionEvent.RECONNECTED)

    async def __aenter__(self) -> "ConnectionManager":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - ensures client is closed."""
        await self.disconnect()
        return False
