"""State Store Bridge.

Reconciles the fast TTL store with the durable store. The fast store is the
read path; the durable store is the source of truth that survives fast-store
expiry or eviction.

Reads:  fast -> (miss) durable -> re-populate fast with the default TTL.
Writes: fast first, then durable. A durable failure is logged and counted
        but does not undo or block the fast write.

There is no transaction across the two stores. Re-population is idempotent,
so concurrent readers racing on a miss converge on the same value.
"""

from closer.cache.store import CacheStore
from closer.db.errors import StoreError
from closer.observability.logging import get_logger
from closer.observability.metrics import (
    BRIDGE_CACHE_HITS,
    BRIDGE_CACHE_MISSES,
    BRIDGE_REPOPULATIONS,
    DURABLE_WRITE_FAILURES,
)
from closer.state.store import DurableStateStore

logger = get_logger(__name__)


class StateBridge:
    """Two-tier key-value access over a CacheStore and a DurableStateStore.

    Read errors from either tier propagate as StoreError so callers decide
    whether to fail open or closed.
    """

    def __init__(
        self,
        cache: CacheStore,
        durable: DurableStateStore,
        default_ttl_seconds: int = 86400,
    ) -> None:
        self._cache = cache
        self._durable = durable
        self._default_ttl = default_ttl_seconds

    async def get(self, key: str) -> str | None:
        """Get a value, falling back to the durable store on a fast miss."""
        value = await self._cache.get(key)
        if value is not None:
            BRIDGE_CACHE_HITS.inc()
            return value

        BRIDGE_CACHE_MISSES.inc()
        value = await self._durable.get(key)
        if value is None:
            return None

        try:
            await self._cache.set(key, value, self._default_ttl)
            BRIDGE_REPOPULATIONS.inc()
            logger.info("bridge_repopulated", key=key, ttl=self._default_ttl)
        except StoreError as e:
            # The durable value is still authoritative for this read
            logger.warning("bridge_repopulate_failed", key=key, error=str(e))
        return value

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> bool:
        """Write to both tiers.

        Fast-store errors propagate. Durable-store errors are logged.

        Returns:
            True if the durable write also succeeded
        """
        await self._cache.set(key, value, ttl_seconds or self._default_ttl)
        try:
            await self._durable.set(key, value)
        except StoreError as e:
            DURABLE_WRITE_FAILURES.labels(operation="set").inc()
            logger.error("bridge_durable_write_failed", key=key, error=str(e))
            return False
        return True

    async def delete(self, key: str) -> bool:
        """Delete from both tiers.

        Fast-store errors propagate. A durable failure is logged; the record
        will then re-populate the fast store on the next miss until the
        durable delete is retried.

        Returns:
            True if the durable delete also succeeded
        """
        await self._cache.delete(key)
        try:
            await self._durable.delete(key)
        except StoreError as e:
            DURABLE_WRITE_FAILURES.labels(operation="delete").inc()
            logger.error("bridge_durable_delete_failed", key=key, error=str(e))
            return False
        return True
