"""Application settings using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .integrations.mongodb.config import MongoDBConfig, RetryConfig
from .integrations.redis.config import RedisConfig


class Settings(BaseSettings):
    """Every value the data-access layer is configured with.

    Settings are read once at startup and passed into each component's
    constructor; components never read the environment themselves.

    All settings can be configured via environment variables with the
    KEYSTONE_ prefix, using a double underscore for nested sections. For
    example:
    - KEYSTONE_MONGO__URI=mongodb://localhost:27017
    - KEYSTONE_MONGO__MAX_POOL_SIZE=20
    - KEYSTONE_RETRY__MAX_RETRIES=3
    - KEYSTONE_REDIS__URL=redis://localhost:6379/0
    - KEYSTONE_REDIS__DEFAULT_TTL_SECONDS=600
    - KEYSTONE_LOG_LEVEL=debug

    Example:
        >>> settings = Settings()
        >>> async with Application(settings) as app:
        ...     await app.customers.get_customer(customer_id)
    """

    mongo: MongoDBConfig = Field(default_factory=MongoDBConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="KEYSTONE_", env_nested_delimiter="__")
