"""Pytest fixtures for MongoDB and Redis integration tests."""

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from keystone.domain import StoreConnectionError
from keystone.integrations.mongodb import (
    ConnectionManager,
    MongoDBConfig,
    MongoDBCustomerRepository,
    RetryConfig,
)
from keystone.integrations.redis import RedisCacheStore, RedisConfig

# Assumes MongoDB and Redis containers are running locally on default ports
LOCAL_MONGO_URI = "mongodb://localhost:27017"
LOCAL_REDIS_URL = "redis://localhost:6379/15"


@pytest_asyncio.fixture
async def connection_manager(request: pytest.FixtureRequest) -> AsyncIterator[ConnectionManager]:
    """Connect to a fresh database named after the test."""
    config = MongoDBConfig(
        uri=LOCAL_MONGO_URI,
        database=f"test_{request.node.name}"[:63],
        server_selection_timeout_ms=2000,
    )
    manager = ConnectionManager(config, RetryConfig(max_retries=0))
    try:
        await manager.connect()
    except StoreConnectionError:
        pytest.skip("MongoDB is not reachable on localhost:27017")

    await manager.client.drop_database(config.database)
    try:
        yield manager
    finally:
        await manager.client.drop_database(config.database)
        await manager.disconnect()


@pytest_asyncio.fixture
async def mongo_repository(connection_manager: ConnectionManager) -> MongoDBCustomerRepository:
    repository = MongoDBCustomerRepository(connection_manager)
    await repository.initialize_schema()
    return repository


@pytest_asyncio.fixture
async def redis_cache() -> AsyncIterator[RedisCacheStore]:
    """Redis cache on a scratch database, flushed around each test."""
    cache = RedisCacheStore(RedisConfig(url=LOCAL_REDIS_URL, default_ttl_seconds=60))
    if not await cache.connect():
        await cache.shutdown()
        pytest.skip("Redis is not reachable on localhost:6379")

    await cache.flush()
    try:
        yield cache
    finally:
        await cache.flush()
        await cache.shutdown()
