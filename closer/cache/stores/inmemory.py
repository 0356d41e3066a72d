"""In-memory implementation of CacheStore."""

import heapq
import time
from collections.abc import Callable

from closer.cache.store import CacheStore


class InMemoryCacheStore(CacheStore):
    """In-memory implementation of CacheStore for testing and development.

    Expiry is evaluated on access against an injectable clock. Writes also
    evict whatever has expired, so keys that are never read again (dedup
    marks, released locks) do not accumulate. Not shared across processes.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._values: dict[str, tuple[str, float | None]] = {}
        # (expires_at, key); entries go stale when a key is rewritten
        self._expiries: list[tuple[float, str]] = []

    @property
    def size(self) -> int:
        """Entries held, including expired ones not yet evicted."""
        return len(self._values)

    def _live(self, key: str) -> str | None:
        entry = self._values.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._values[key]
            return None
        return value

    def _evict_expired(self) -> None:
        now = self._clock()
        while self._expiries and self._expiries[0][0] <= now:
            expires_at, key = heapq.heappop(self._expiries)
            entry = self._values.get(key)
            if entry is not None and entry[1] == expires_at:
                del self._values[key]

    def _store(self, key: str, value: str, ttl_seconds: int | None) -> None:
        self._evict_expired()
        if ttl_seconds is None:
            self._values[key] = (value, None)
            return
        expires_at = self._clock() + ttl_seconds
        self._values[key] = (value, expires_at)
        heapq.heappush(self._expiries, (expires_at, key))

    async def get(self, key: str) -> str | None:
        return self._live(key)

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        self._store(key, value, ttl_seconds)

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        if self._live(key) is not None:
            return False
        self._store(key, value, ttl_seconds)
        return True

    async def delete(self, key: str) -> bool:
        existed = self._live(key) is not None
        self._values.pop(key, None)
        return existed

    async def ping(self) -> bool:
        return True

    def clear(self) -> None:
        """Clear all data (for testing)."""
        self._values.clear()
        self._expiries.clear()
