"""Tests for ConversationLock and MessageDeduplicator."""

import asyncio
from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from closer.cache.stores import InMemoryCacheStore
from closer.control import ConversationLock, MessageDeduplicator
from closer.control.lock import lock_key
from closer.db.errors import ConnectionError


@pytest.fixture
def lock(cache_store: InMemoryCacheStore) -> ConversationLock:
    return ConversationLock(cache_store, ttl_seconds=30, wait_seconds=0.05, poll_interval_seconds=0.01)


class TestConversationLock:
    @pytest.mark.asyncio
    async def test_second_acquire_times_out(self, lock: ConversationLock, tenant_id: UUID) -> None:
        assert await lock.acquire(tenant_id, "+5215500000000") is True
        assert await lock.acquire(tenant_id, "+5215500000000") is False

    @pytest.mark.asyncio
    async def test_other_actor_is_independent(self, lock: ConversationLock, tenant_id: UUID) -> None:
        assert await lock.acquire(tenant_id, "+5215500000000") is True
        assert await lock.acquire(tenant_id, "+5215511111111") is True

    @pytest.mark.asyncio
    async def test_release_allows_reacquire(
        self, lock: ConversationLock, cache_store: InMemoryCacheStore, tenant_id: UUID
    ) -> None:
        await lock.acquire(tenant_id, "+52155")
        await lock.release(tenant_id, "+52155")

        assert await cache_store.get(lock_key(tenant_id, "+52155")) is None
        assert await lock.acquire(tenant_id, "+52155") is True

    @pytest.mark.asyncio
    async def test_waiter_gets_lock_after_release(
        self, cache_store: InMemoryCacheStore, tenant_id: UUID
    ) -> None:
        lock = ConversationLock(cache_store, wait_seconds=1.0, poll_interval_seconds=0.01)
        await lock.acquire(tenant_id, "+52155")

        waiter = asyncio.create_task(lock.acquire(tenant_id, "+52155"))
        await asyncio.sleep(0.03)
        await lock.release(tenant_id, "+52155")

        assert await waiter is True

    @pytest.mark.asyncio
    async def test_hold_releases_on_exit(self, lock: ConversationLock, tenant_id: UUID) -> None:
        async with lock.hold(tenant_id, "+52155") as acquired:
            assert acquired is True
            assert await lock.acquire(tenant_id, "+52155", wait_seconds=0) is False

        assert await lock.acquire(tenant_id, "+52155", wait_seconds=0) is True

    @pytest.mark.asyncio
    async def test_fails_open_on_store_error(self, tenant_id: UUID) -> None:
        cache = AsyncMock()
        cache.set_if_absent.side_effect = ConnectionError("down")

        assert await ConversationLock(cache).acquire(tenant_id, "+52155") is True


class TestMessageDeduplicator:
    @pytest.mark.asyncio
    async def test_redelivery_is_seen(self, cache_store: InMemoryCacheStore) -> None:
        dedup = MessageDeduplicator(cache_store)

        assert await dedup.seen("wamid.1") is False
        assert await dedup.seen("wamid.1") is True
        assert await dedup.seen("wamid.2") is False

    @pytest.mark.asyncio
    async def test_store_error_treats_message_as_new(self) -> None:
        cache = AsyncMock()
        cache.set_if_absent.side_effect = ConnectionError("down")

        assert await MessageDeduplicator(cache).seen("wamid.1") is False
