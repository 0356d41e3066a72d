"""Redis implementation of CacheStore."""

import redis.asyncio as redis

from closer.cache.store import CacheStore
from closer.db.errors import ConnectionError
from closer.observability.logging import get_logger

logger = get_logger(__name__)


class RedisCacheStore(CacheStore):
    """Redis-backed CacheStore.

    All keys are namespaced as {key_prefix}:{key}. Redis errors are wrapped
    in ConnectionError so callers can apply their own failure policy.
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "closer") -> None:
        """Initialize the store.

        Args:
            client: redis.asyncio client (created with decode_responses=True)
            key_prefix: Namespace prepended to every key
        """
        self._client = client
        self._prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(self._key(key))
        except redis.RedisError as e:
            logger.error("redis_get_error", key=key, error=str(e))
            raise ConnectionError(f"Failed to get {key}: {e}", cause=e) from e
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        try:
            if ttl_seconds is None:
                await self._client.set(self._key(key), value)
            else:
                await self._client.setex(self._key(key), ttl_seconds, value)
        except redis.RedisError as e:
            logger.error("redis_set_error", key=key, error=str(e))
            raise ConnectionError(f"Failed to set {key}: {e}", cause=e) from e

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        try:
            result = await self._client.set(self._key(key), value, nx=True, ex=ttl_seconds)
        except redis.RedisError as e:
            logger.error("redis_setnx_error", key=key, error=str(e))
            raise ConnectionError(f"Failed to set {key}: {e}", cause=e) from e
        return bool(result)

    async def delete(self, key: str) -> bool:
        try:
            deleted = await self._client.delete(self._key(key))
        except redis.RedisError as e:
            logger.error("redis_delete_error", key=key, error=str(e))
            raise ConnectionError(f"Failed to delete {key}: {e}", cause=e) from e
        return deleted > 0

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except redis.RedisError as e:
            logger.warning("redis_ping_failed", error=str(e))
            return False

    async def close(self) -> None:
        await self._client.aclose()
