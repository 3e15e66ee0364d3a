"""MongoDB integration providing the authoritative customer store.

This module provides the connection manager supervising the pooled MongoDB
connection and the MongoDB implementation of CustomerRepository, using the
async PyMongo driver.

Usage:
    >>> from keystone.integrations.mongodb import (
    ...     ConnectionManager,
    ...     MongoDBConfig,
    ...     MongoDBCustomerRepository,
    ...     RetryConfig,
    ... )
    >>>
    >>> manager = ConnectionManager(
    ...     MongoDBConfig(uri="mongodb://localhost:27017", database="shop"),
    ...     RetryConfig(max_retries=5),
    ... )
    >>> await manager.connect()
    >>>
    >>> repository = MongoDBCustomerRepository(manager)
    >>> await repository.initialize_schema()
"""

from .config import MongoDBConfig, RetryConfig
from .connection import ConnectionManager, ConnectionState, ConnectionStatus
from .customer_repository import MongoDBCustomerRepository
from .monitoring import PoolStats

__all__ = [
    "MongoDBConfig",
    "RetryConfig",
    "ConnectionManager",
    "ConnectionState",
    "ConnectionStatus",
    "MongoDBCustomerRepository",
    "PoolStats",
]
