"""Central test fixtures."""

from collections.abc import Callable
from decimal import Decimal
from itertools import count

import pytest

from keystone.application.cache import CacheStore, InMemoryCacheStore
from keystone.application.repository import (
    CachedCustomerRepository,
    InMemoryCustomerRepository,
)
from keystone.domain import CacheTransportError, Customer


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class UnavailableCacheStore(CacheStore):
    """Cache whose transport fails on every call."""

    def __init__(self):
        self.calls = 0

    async def get(self, key):
        self.calls += 1
        raise CacheTransportError("cache down")

    async def set(self, key, value, ttl_seconds=None):
        self.calls += 1
        raise CacheTransportError("cache down")

    async def delete(self, key):
        self.calls += 1
        raise CacheTransportError("cache down")

    async def flush(self):
        raise CacheTransportError("cache down")

    async def shutdown(self):
        pass


@pytest.fixture
def make_customer() -> Callable[..., Customer]:
    """Build customers with unique emails."""
    numbers = count(1)

    def factory(**overrides) -> Customer:
        n = next(numbers)
        fields = {
            "first_name": "Ada",
            "last_name": f"Lovelace{n}",
            "email": f"ada{n}@example.com",
            "phone": "555-0100",
            "address": "12 Analytical Row",
            "available_credit": Decimal("100"),
        }
        fields.update(overrides)
        return Customer(**fields)

    return factory


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryCustomerRepository:
    return InMemoryCustomerRepository()


@pytest.fixture
def cache(clock: FakeClock) -> InMemoryCacheStore:
    return InMemoryCacheStore(default_ttl_seconds=3600, clock=clock)


@pytest.fixture
def unavailable_cache() -> UnavailableCacheStore:
    return UnavailableCacheStore()


@pytest.fixture
def cached_repository(
    store: InMemoryCustomerRepository, cache: InMemoryCacheStore
) -> CachedCustomerRepository:
    return CachedCustomerRepository(store, cache, ttl_seconds=60)
