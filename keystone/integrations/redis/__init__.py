"""Redis integration providing the cache transport.

Usage:
    >>> from keystone.integrations.redis import RedisCacheStore, RedisConfig
    >>>
    >>> cache = RedisCacheStore(RedisConfig(url="redis://localhost:6379/0"))
    >>> await cache.connect()
"""

from .cache import RedisCacheStore
from .config import RedisConfig

__all__ = [
    "RedisCacheStore",
    "RedisConfig",
]
