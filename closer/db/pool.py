"""Shared asyncpg pool for the durable stores."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import asyncpg

from closer.db.errors import ConnectionError
from closer.observability.logging import get_logger

logger = get_logger(__name__)

_BACKEND_ERRORS = (OSError, asyncpg.PostgresError, asyncpg.InterfaceError)


class PostgresPool:
    """Lazily opened connection pool.

    Stores call `acquire()`; backend failures surface as
    closer.db.errors.ConnectionError so stores can apply their own policy.
    A None dsn lets asyncpg fall back to the PG* environment variables.
    """

    def __init__(
        self,
        dsn: str | None = None,
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: float = 30.0,
    ) -> None:
        self._dsn = dsn
        self._pool_kwargs = {
            "min_size": min_size,
            "max_size": max_size,
            "command_timeout": command_timeout,
        }
        self._pool: asyncpg.Pool | None = None
        self._connect_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        async with self._connect_lock:
            if self._pool is not None:
                return
            try:
                self._pool = await asyncpg.create_pool(dsn=self._dsn, **self._pool_kwargs)
            except _BACKEND_ERRORS as e:
                logger.error("postgres_connect_failed", error=str(e))
                raise ConnectionError(f"Failed to connect to PostgreSQL: {e}", cause=e) from e
            logger.info("postgres_pool_opened", **self._pool_kwargs)

    async def close(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.close()
            logger.info("postgres_pool_closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        if self._pool is None:
            await self.connect()
        assert self._pool is not None
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except _BACKEND_ERRORS as e:
            logger.error("postgres_query_failed", error=str(e))
            raise ConnectionError(f"PostgreSQL error: {e}", cause=e) from e
