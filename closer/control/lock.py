"""Per-conversation lock and inbound message de-duplication.

Both sit on the fast store only and fail open: losing them risks a
duplicate reply, while failing closed would silence every conversation
whenever the fast store is down.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from closer.cache.store import CacheStore
from closer.db.errors import StoreError
from closer.observability.logging import get_logger
from closer.observability.metrics import CONVERSATION_LOCKS

logger = get_logger(__name__)


def lock_key(tenant_id: UUID, actor_phone: str) -> str:
    return f"conv_lock:{tenant_id}:{actor_phone}"


class ConversationLock:
    """Set-if-absent lock serializing replies to one actor of a tenant.

    Usage:
        async with lock.hold(tenant_id, phone) as acquired:
            if not acquired:
                return
            ...
    """

    def __init__(
        self,
        cache: CacheStore,
        ttl_seconds: int = 30,
        wait_seconds: float = 5.0,
        poll_interval_seconds: float = 0.2,
    ) -> None:
        self._cache = cache
        self._ttl = ttl_seconds
        self._wait = wait_seconds
        self._poll = poll_interval_seconds

    async def acquire(
        self,
        tenant_id: UUID,
        actor_phone: str,
        wait_seconds: float | None = None,
    ) -> bool:
        """Try to take the lock, polling until wait_seconds elapse.

        Returns:
            True if acquired (or the store failed), False on timeout
        """
        key = lock_key(tenant_id, actor_phone)
        deadline = time.monotonic() + (self._wait if wait_seconds is None else wait_seconds)

        while True:
            try:
                if await self._cache.set_if_absent(key, str(time.time()), self._ttl):
                    CONVERSATION_LOCKS.labels(outcome="acquired").inc()
                    return True
            except StoreError as e:
                CONVERSATION_LOCKS.labels(outcome="fail_open").inc()
                logger.error("conversation_lock_error", tenant_id=str(tenant_id), error=str(e))
                return True

            if time.monotonic() >= deadline:
                break
            await asyncio.sleep(self._poll)

        CONVERSATION_LOCKS.labels(outcome="timeout").inc()
        logger.warning("conversation_lock_timeout", tenant_id=str(tenant_id))
        return False

    async def release(self, tenant_id: UUID, actor_phone: str) -> None:
        try:
            await self._cache.delete(lock_key(tenant_id, actor_phone))
        except StoreError as e:
            # The TTL reclaims the lock
            logger.error("conversation_lock_release_error", tenant_id=str(tenant_id), error=str(e))

    @asynccontextmanager
    async def hold(self, tenant_id: UUID, actor_phone: str) -> AsyncIterator[bool]:
        """Acquire for the duration of the block; yields whether acquired."""
        acquired = await self.acquire(tenant_id, actor_phone)
        try:
            yield acquired
        finally:
            if acquired:
                await self.release(tenant_id, actor_phone)


class MessageDeduplicator:
    """Marks provider message ids so webhook redeliveries are processed once."""

    def __init__(self, cache: CacheStore, ttl_seconds: int = 30, timeout_seconds: float = 2.0) -> None:
        self._cache = cache
        self._ttl = ttl_seconds
        self._timeout = timeout_seconds

    async def seen(self, message_id: str) -> bool:
        """Record message_id; return True if it was already recorded."""
        try:
            first = await asyncio.wait_for(
                self._cache.set_if_absent(f"processing:{message_id}", "1", self._ttl),
                timeout=self._timeout,
            )
        except (StoreError, TimeoutError) as e:
            logger.error("message_dedup_error", message_id=message_id, error=str(e) or "timeout")
            return False
        return not first
