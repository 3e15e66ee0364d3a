"""Configuration model for the Redis cache transport."""

from pydantic import BaseModel, Field


class RedisConfig(BaseModel):
    """Configuration for the Redis cache store.

    Attributes:
        url: Redis connection URL (redis://host:port/db)
        password: Password used when the URL does not carry one; a password
            in the URL takes precedence
        default_ttl_seconds: TTL applied when a caller does not pass one
        socket_timeout_seconds: Timeout for individual commands
        socket_connect_timeout_seconds: Timeout for opening the connection
        reconnect_interval_seconds: Minimum wait between reconnect probes
            while the cache is unavailable
    """

    url: str = Field(default="redis://localhost:6379/0")
    password: str | None = None
    default_ttl_seconds: int = Field(default=3600, ge=1)
    socket_timeout_seconds: float = Field(default=2.0, gt=0)
    socket_connect_timeout_seconds: float = Field(default=2.0, gt=0)
    reconnect_interval_seconds: float = Field(default=5.0, ge=0)
