"""Fast store and durable store settings.

Connection URLs are normally left unset here and supplied through
CLOSER_STORAGE__REDIS__CONNECTION_URL / CLOSER_STORAGE__POSTGRES__CONNECTION_URL
(or REDIS_URL / DATABASE_URL) so credentials stay out of TOML.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

CacheBackendType = Literal["inmemory", "redis", "none"]
DurableBackendType = Literal["inmemory", "postgres"]


class RedisConfig(BaseModel):
    # "none" skips Redis: the fast store is process-local memory, as with
    # "inmemory", and rate limiting is disabled.
    backend: CacheBackendType = "redis"
    connection_url: str | None = None
    key_prefix: str = Field(default="closer", min_length=1)
    socket_timeout: float = Field(default=2.0, gt=0, description="Per-command timeout in seconds")


class PostgresConfig(BaseModel):
    backend: DurableBackendType = "postgres"
    connection_url: str | None = None
    min_pool_size: int = Field(default=2, gt=0)
    max_pool_size: int = Field(default=10, gt=0)
    command_timeout: float = Field(default=30.0, gt=0, description="Query timeout in seconds")

    @model_validator(mode="after")
    def _pool_bounds(self) -> "PostgresConfig":
        if self.min_pool_size > self.max_pool_size:
            raise ValueError("min_pool_size cannot exceed max_pool_size")
        return self


class StorageConfig(BaseModel):
    """Backends behind the state bridge."""

    redis: RedisConfig = Field(default_factory=RedisConfig)
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    bridge_default_ttl_seconds: int = Field(
        default=86400,
        gt=0,
        description="TTL applied when a durable read is copied back into the fast store",
    )
