"""PostgreSQL implementation of DurableStateStore.

Records live in the control_state table, scoped by namespace so several
bridges can share the table.
"""

from closer.db.pool import PostgresPool
from closer.observability.logging import get_logger
from closer.state.store import DurableStateStore

logger = get_logger(__name__)


class PostgresDurableStateStore(DurableStateStore):
    """PostgreSQL-backed DurableStateStore over the control_state table."""

    def __init__(self, pool: PostgresPool, namespace: str = "control") -> None:
        self._pool = pool
        self._namespace = namespace

    async def get(self, key: str) -> str | None:
        async with self._pool.acquire() as conn:
            value = await conn.fetchval(
                """
                SELECT value::text FROM control_state
                WHERE namespace = $1 AND key = $2
                """,
                self._namespace,
                key,
            )
        return value

    async def set(self, key: str, value: str) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO control_state (namespace, key, value, updated_at)
                VALUES ($1, $2, $3::jsonb, NOW())
                ON CONFLICT (namespace, key)
                DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()
                """,
                self._namespace,
                key,
                value,
            )
        logger.debug("control_state_saved", namespace=self._namespace, key=key)

    async def delete(self, key: str) -> bool:
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM control_state WHERE namespace = $1 AND key = $2",
                self._namespace,
                key,
            )
        return result.endswith(" 1")
