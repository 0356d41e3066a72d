"""Alembic entry point for the control-plane schema.

Revisions are hand-written DDL (no ORM metadata). Online runs go through
an async engine on asyncpg, matching the driver the stores use.
"""

import asyncio
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

alembic_cfg = context.config
if alembic_cfg.config_file_name is not None:
    fileConfig(alembic_cfg.config_file_name)

URL_ENV_VARS = ("CLOSER_STORAGE__POSTGRES__CONNECTION_URL", "DATABASE_URL")


def database_url() -> str:
    """First of URL_ENV_VARS that is set, else sqlalchemy.url from alembic.ini."""
    url = next((os.environ[name] for name in URL_ENV_VARS if os.environ.get(name)), None)
    url = url or alembic_cfg.get_main_option("sqlalchemy.url") or ""
    scheme, sep, rest = url.partition("://")
    if scheme in ("postgres", "postgresql"):
        return f"postgresql+asyncpg{sep}{rest}"
    return url


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=None)
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    section = alembic_cfg.get_section(alembic_cfg.config_ini_section) or {}
    section["sqlalchemy.url"] = database_url()
    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    # `alembic upgrade --sql`: render DDL without a database.
    context.configure(
        url=database_url(),
        target_metadata=None,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()
else:
    asyncio.run(_migrate_online())
