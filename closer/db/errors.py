"""Backend-neutral store failures.

Fast and durable stores translate redis, asyncpg and timeout errors into
these so callers can choose fail-open or fail-closed per check.
"""


class StoreError(Exception):
    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):  # noqa: A001
    """Backend unreachable, timed out, or the pool is exhausted."""


class NotFoundError(StoreError):
    """A lookup by id matched nothing. Empty listings never raise this."""


class ConflictError(StoreError):
    pass


class ValidationError(StoreError):
    """A stored payload no longer decodes into its model."""
