"""PostgreSQL access: connection pool, store errors and migrations."""

from closer.db.errors import (
    ConflictError,
    ConnectionError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from closer.db.pool import PostgresPool

__all__ = [
    "ConflictError",
    "ConnectionError",
    "NotFoundError",
    "PostgresPool",
    "StoreError",
    "ValidationError",
]
