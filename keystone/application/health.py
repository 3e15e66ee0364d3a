import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from ..domain import utc_now
from .events import ConnectionEvent, EventChannel

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class SupportsPing(Protocol):
    async def ping(self) -> bool:
        """Return True when the service answers."""
        ...


@runtime_checkable
class StoreProbe(SupportsPing, Protocol):
    @property
    def is_connected(self) -> bool: ...


@dataclass(frozen=True)
class HealthReport:
    status: str
    database: dict[str, Any]
    cache: dict[str, Any]
    timestamp: datetime = field(default_factory=utc_now)

    @property
    def is_healthy(self) -> bool:
        return self.status != "error"


class HealthCheck:
    """Reports store and cache health for liveness/readiness probes.

    The check follows the connection manager's lifecycle events, so a lost
    store connection fails the check immediately without crashing the
    process. A store outage is an `error`; a cache outage only makes the
    service `degraded`, since every read can still be served by the store.
    """

    def __init__(
        self,
        store: StoreProbe,
        cache: SupportsPing | None = None,
        events: EventChannel | None = None,
    ):
        self.store = store
        self.cache = cache
        self.store_available = store.is_connected
        self.last_error: str | None = None
        self._unsubscribers = []

        if events is not None:
            self._unsubscribers = [
                events.subscribe(ConnectionEvent.CONNECTED, self._mark_available),
                events.subscribe(ConnectionEvent.RECONNECTED, self._mark_available),
                events.subscribe(ConnectionEvent.DISCONNECTED, self._mark_unavailable),
                events.subscribe(ConnectionEvent.CONNECTION_FAILED, self._record_failure),
                events.subscribe(ConnectionEvent.ERROR, self._record_failure),
            ]

    async def check(self) -> HealthReport:
        database = await self._check_database()
        cache = await self._check_cache()

        if database["status"] != "connected":
            status = "error"
        elif cache["status"] == "unavailable":
            status = "degraded"
        else:
            status = "ok"
        return HealthReport(status=status, database=database, cache=cache)

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    async def _check_database(self) -> dict[str, Any]:
        if not self.store_available:
            return {"status": "disconnected", "last_error": self.last_error}

        started = time.perf_counter()
        if not await self.store.ping():
            LOGGER.error("Database health check failed")
            return {"status": "error"}
        return {
            "status": "connected",
            "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
        }

    async def _check_cache(self) -> dict[str, Any]:
        if self.cache is None:
            return {"status": "disabled"}
        if await self.cache.ping():
            return {"status": "connected"}
        return {"status": "unavailable"}

    def _mark_available(self) -> None:
        self.store_available = True
        self.last_error = None

    def _mark_unavailable(self) -> None:
        self.store_available = False

    def _record_failure(self, error: Any) -> None:
        self.store_available = False
        self.last_error = str(error)
