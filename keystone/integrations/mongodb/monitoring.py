"""PyMongo event listeners feeding the connection manager.

The driver reports server heartbeats and connection pool activity through
`pymongo.monitoring` listeners registered on the client. These listeners
turn that stream into the two signals the connection manager needs: whether
any server is reachable, and a running tally of pool usage.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pymongo import monitoring


@dataclass(frozen=True)
class PoolStats:
    """Point-in-time view of the connection pool."""

    max_pool_size: int
    min_pool_size: int
    total_created: int = 0
    total_closed: int = 0
    checked_out: int = 0
    check_out_failures: int = 0
    times_cleared: int = 0

    @property
    def open_connections(self) -> int:
        return self.total_created - self.total_closed


class ServerHealthListener(monitoring.ServerHeartbeatListener):
    """Tracks which servers answer heartbeats.

    `on_lost` fires when the last reachable server fails a heartbeat and
    `on_restored` fires when a server answers again after that. The driver
    does the actual reconnecting; this listener only reports it.
    """

    def __init__(
        self,
        on_lost: Callable[[Exception | Any], None],
        on_restored: Callable[[], None],
    ):
        self._on_lost = on_lost
        self._on_restored = on_restored
        self._reachable: set[Any] = set()
        self._lost = False

    def reset(self) -> None:
        self._reachable.clear()
        self._lost = False

    def started(self, event: monitoring.ServerHeartbeatStartedEvent) -> None:
        pass

    def succeeded(self, event: monitoring.ServerHeartbeatSucceededEvent) -> None:
        self._reachable.add(event.connection_id)
        if self._lost:
            self._lost = False
            self._on_restored()

    def failed(self, event: monitoring.ServerHeartbeatFailedEvent) -> None:
        self._reachable.discard(event.connection_id)
        if not self._reachable and not self._lost:
            self._lost = True
            self._on_lost(event.reply)


class PoolStatsListener(monitoring.ConnectionPoolListener):
    """Counts connection pool events for status reporting."""

    def __init__(self) -> None:
        self.total_created = 0
        self.total_closed = 0
        self.checked_out = 0
        self.check_out_failures = 0
        self.times_cleared = 0

    def snapshot(self, max_pool_size: int, min_pool_size: int) -> PoolStats:
        return PoolStats(
            max_pool_size=max_pool_size,
            min_pool_size=min_pool_size,
            total_created=self.total_created,
            total_closed=self.total_closed,
            checked_out=self.checked_out,
            check_out_failures=self.check_out_failures,
            times_cleared=self.times_cleared,
        )

    def pool_created(self, event: monitoring.PoolCreatedEvent) -> None:
        pass

    def pool_ready(self, event: monitoring.PoolReadyEvent) -> None:
        pass

    def pool_cleared(self, event: monitoring.PoolClearedEvent) -> None:
        self.times_cleared += 1

    def pool_closed(self, event: monitoring.PoolClosedEvent) -> None:
        pass

    def connection_created(self, event: monitoring.ConnectionCreatedEvent) -> None:
        self.total_created += 1

    def connection_ready(self, event: monitoring.ConnectionReadyEvent) -> None:
        pass

    def connection_closed(self, event: monitoring.ConnectionClosedEvent) -> None:
        self.total_closed += 1

    def connection_check_out_started(self, event: monitoring.ConnectionCheckOutStartedEvent) -> None:
        pass

    def connection_check_out_failed(self, event: monitoring.ConnectionCheckOutFailedEvent) -> None:
        # Includes operations that gave up waiting for an exhausted pool.
        self.check_out_failures += 1

    def connection_checked_out(self, event: monitoring.ConnectionCheckedOutEvent) -> None:
        self.checked_out += 1

    def connection_checked_in(self, event: monitoring.ConnectionCheckedInEvent) -> None:
        self.checked_out = max(self.checked_out - 1, 0)
