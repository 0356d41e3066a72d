"""Tests for store wiring from storage settings."""

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from closer.api.dependencies import (
    get_bot_control,
    get_cache_store,
    get_conversation_store,
    get_durable_store,
    get_lead_store,
    get_postgres_pool,
    get_rate_limiter,
    get_redis_client,
    reset_dependencies,
)
from closer.cache.stores import InMemoryCacheStore
from closer.config.settings import Settings
from closer.conversation.stores import PostgresConversationStore, PostgresLeadStore
from closer.db.errors import ConnectionError
from closer.state.stores import InMemoryDurableStateStore, PostgresDurableStateStore


@pytest.fixture
async def settings() -> AsyncIterator[Settings]:
    await reset_dependencies()
    yield Settings(
        storage={"postgres": {"backend": "postgres", "connection_url": "postgresql://x:y@db/closer"}},
    )
    await reset_dependencies()


@pytest.fixture
def refused() -> AsyncMock:
    return AsyncMock(side_effect=OSError("connection refused"))


class TestPostgresOutage:
    async def test_stores_stay_postgres_backed(self, settings: Settings, refused: AsyncMock) -> None:
        with patch("closer.db.pool.asyncpg.create_pool", refused):
            durable = await get_durable_store(settings)
            conversations = await get_conversation_store(settings)
            leads = await get_lead_store(settings)

        assert isinstance(durable, PostgresDurableStateStore)
        assert isinstance(conversations, PostgresConversationStore)
        assert isinstance(leads, PostgresLeadStore)
        refused.assert_not_awaited()

    async def test_store_calls_raise_connection_error(
        self, settings: Settings, refused: AsyncMock
    ) -> None:
        with patch("closer.db.pool.asyncpg.create_pool", refused):
            durable = await get_durable_store(settings)
            with pytest.raises(ConnectionError):
                await durable.get("pause:anything")

    async def test_pause_check_fails_closed(self, settings: Settings, refused: AsyncMock) -> None:
        with patch("closer.db.pool.asyncpg.create_pool", refused):
            durable = await get_durable_store(settings)
            control = await get_bot_control(settings, InMemoryCacheStore(), durable)
            conversation_id = uuid4()

            assert await control.is_paused(conversation_id) is True
            assert await control.is_suppressed(conversation_id) is False

    async def test_pool_reconnects_after_outage(
        self, settings: Settings, refused: AsyncMock
    ) -> None:
        pool = await get_postgres_pool(settings)
        assert pool is not None

        with patch("closer.db.pool.asyncpg.create_pool", refused):
            with pytest.raises(ConnectionError):
                await pool.connect()
        assert pool.is_connected is False

        with patch("closer.db.pool.asyncpg.create_pool", AsyncMock(return_value=AsyncMock())):
            await pool.connect()
        assert pool.is_connected is True


class TestInMemoryBackend:
    async def test_inmemory_durable_store_when_configured(self) -> None:
        await reset_dependencies()
        settings = Settings(storage={"postgres": {"backend": "inmemory"}})

        assert isinstance(await get_durable_store(settings), InMemoryDurableStateStore)
        assert await get_postgres_pool(settings) is None
        await reset_dependencies()


class TestNoRedisBackend:
    async def test_process_local_fast_store_without_rate_limiting(self) -> None:
        await reset_dependencies()
        settings = Settings(storage={"redis": {"backend": "none"}})

        client = await get_redis_client(settings)
        cache = await get_cache_store(settings, client)
        limiter = await get_rate_limiter(settings, client)

        assert client is None
        assert isinstance(cache, InMemoryCacheStore)
        for _ in range(50):
            assert (await limiter.check("+5215512345678")).allowed is True
        await reset_dependencies()
