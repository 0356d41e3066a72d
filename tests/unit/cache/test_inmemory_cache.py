"""Tests for InMemoryCacheStore."""

import pytest

from closer.cache.stores import InMemoryCacheStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryCacheStore:
    return InMemoryCacheStore(clock=clock)


class TestInMemoryCacheStore:
    @pytest.mark.asyncio
    async def test_set_and_get(self, store: InMemoryCacheStore) -> None:
        await store.set("k", "v")
        assert await store.get("k") == "v"

    @pytest.mark.asyncio
    async def test_value_expires_after_ttl(self, store: InMemoryCacheStore, clock: FakeClock) -> None:
        await store.set("k", "v", ttl_seconds=30)

        clock.now += 29
        assert await store.get("k") == "v"

        clock.now += 1
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_set_if_absent(self, store: InMemoryCacheStore, clock: FakeClock) -> None:
        assert await store.set_if_absent("lock", "1", ttl_seconds=30) is True
        assert await store.set_if_absent("lock", "2", ttl_seconds=30) is False

        clock.now += 31
        assert await store.set_if_absent("lock", "3", ttl_seconds=30) is True
        assert await store.get("lock") == "3"

    @pytest.mark.asyncio
    async def test_delete_reports_existence(self, store: InMemoryCacheStore) -> None:
        await store.set("k", "v")

        assert await store.delete("k") is True
        assert await store.delete("k") is False
        assert await store.ping() is True

    @pytest.mark.asyncio
    async def test_unread_expired_keys_are_evicted_on_write(
        self, store: InMemoryCacheStore, clock: FakeClock
    ) -> None:
        for n in range(1000):
            assert await store.set_if_absent(f"processing:wamid.{n}", "1", ttl_seconds=30)
            clock.now += 3600

        assert store.size == 1

    @pytest.mark.asyncio
    async def test_rewritten_key_keeps_its_newer_expiry(
        self, store: InMemoryCacheStore, clock: FakeClock
    ) -> None:
        await store.set("k", "old", ttl_seconds=10)
        await store.set("k", "new", ttl_seconds=100)

        clock.now += 50
        await store.set("other", "v", ttl_seconds=10)

        assert await store.get("k") == "new"
