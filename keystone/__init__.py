"""Keystone - Resilient customer data access for Python.

This module provides the public API: a MongoDB-backed customer store fronted
by a cache-aside Redis layer, supervised by a connection manager.
"""

from .application import (
    Application,
    CachedCustomerRepository,
    CacheStore,
    ConnectionEvent,
    CustomerRepository,
    CustomerService,
    EventChannel,
    HealthCheck,
)
from .config import Settings
from .domain import (
    CacheTransportError,
    ConflictError,
    Customer,
    CustomerNotFoundError,
    EmailAlreadyExistsError,
    InsufficientCreditError,
    NotFoundError,
    StoreConnectionError,
)

__all__ = [
    # Application
    "Application",
    "Settings",
    "CustomerService",
    "HealthCheck",
    # Repositories
    "CustomerRepository",
    "CachedCustomerRepository",
    "CacheStore",
    # Lifecycle events
    "ConnectionEvent",
    "EventChannel",
    # Domain
    "Customer",
    "StoreConnectionError",
    "NotFoundError",
    "CustomerNotFoundError",
    "ConflictError",
    "EmailAlreadyExistsError",
    "CacheTransportError",
    "InsufficientCreditError",
]
