"""CacheStore abstract interface."""

from abc import ABC, abstractmethod


class CacheStore(ABC):
    """Abstract interface for the fast key-value store.

    Values are strings; callers own serialization. Implementations raise
    closer.db.errors.ConnectionError when the backend is unreachable.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Get a value, or None if absent or expired."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """Set a value, optionally expiring after ttl_seconds."""
        pass

    @abstractmethod
    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Set a value only if the key does not exist.

        Returns:
            True if the value was written
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Return True if the backend is reachable."""
        pass
