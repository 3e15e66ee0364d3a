from .application import Application, configure_logging
from .cache import (
    CacheStore,
    InMemoryCacheStore,
    NullCacheStore,
    all_collection_keys,
    collection_key,
    entity_key,
)
from .events import ConnectionEvent, EventChannel
from .health import HealthCheck, HealthReport
from .repository import (
    CachedCustomerRepository,
    CustomerRepository,
    InMemoryCustomerRepository,
)
from .services import CustomerService

__all__ = [
    "Application",
    "configure_logging",
    "CacheStore",
    "InMemoryCacheStore",
    "NullCacheStore",
    "entity_key",
    "collection_key",
    "all_collection_keys",
    "ConnectionEvent",
    "EventChannel",
    "HealthCheck",
    "HealthReport",
    "CustomerRepository",
    "InMemoryCustomerRepository",
    "CachedCustomerRepository",
    "CustomerService",
]
