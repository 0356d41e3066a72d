"""In-memory implementation of DurableStateStore."""

from closer.state.store import DurableStateStore


class InMemoryDurableStateStore(DurableStateStore):
    """In-memory implementation of DurableStateStore for testing and development."""

    def __init__(self) -> None:
        self._records: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._records.get(key)

    async def set(self, key: str, value: str) -> None:
        self._records[key] = value

    async def delete(self, key: str) -> bool:
        return self._records.pop(key, None) is not None

    def clear(self) -> None:
        """Clear all data (for testing)."""
        self._records.clear()
