"""DurableStateStore abstract interface."""

from abc import ABC, abstractmethod


class DurableStateStore(ABC):
    """Abstract interface for durable key-value control records.

    Records never expire; they are removed only by delete. Values are JSON
    documents serialized as strings.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Get a record by key."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Insert or replace a record."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a record. Returns True if it existed."""
        pass
