"""Sliding window stores.

Both implementations keep one timestamp per accepted hit and count the hits
inside the trailing window. They are interchangeable behind
SlidingWindowStore.
"""

import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable

import redis.asyncio as redis

from closer.db.errors import ConnectionError
from closer.observability.logging import get_logger
from closer.ratelimit.models import WindowResult

logger = get_logger(__name__)


class SlidingWindowStore(ABC):
    """Abstract base class for sliding window counters."""

    @abstractmethod
    async def hit(self, key: str, limit: int, window_seconds: int) -> WindowResult:
        """Record a hit for key if it fits inside the window.

        Args:
            key: Window identifier
            limit: Maximum hits allowed in the window
            window_seconds: Length of the trailing window

        Returns:
            WindowResult indicating if the hit was accepted
        """
        pass

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Forget every hit recorded for key."""
        pass


class InMemorySlidingWindow(SlidingWindowStore):
    """In-memory sliding window for a single process.

    Hits outside the window are pruned on every check, and keys whose
    newest hit has left its window are dropped at most once per
    sweep_interval_seconds. For multiple instances use RedisSlidingWindow.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: float = 60.0,
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._windows: dict[str, list[float]] = {}
        self._window_lengths: dict[str, int] = {}
        self._last_sweep = clock()

    @property
    def key_count(self) -> int:
        return len(self._windows)

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        stale = [
            key
            for key, hits in self._windows.items()
            if not hits or hits[-1] <= now - self._window_lengths[key]
        ]
        for key in stale:
            del self._windows[key]
            del self._window_lengths[key]

    async def hit(self, key: str, limit: int, window_seconds: int) -> WindowResult:
        now = self._clock()
        self._sweep(now)
        window_start = now - window_seconds

        hits = [ts for ts in self._windows.get(key, ()) if ts > window_start]
        allowed = len(hits) < limit
        if allowed:
            hits.append(now)
        if hits:
            self._windows[key] = hits
            self._window_lengths[key] = window_seconds
        else:
            self._windows.pop(key, None)
            self._window_lengths.pop(key, None)

        return WindowResult(
            allowed=allowed,
            limit=limit,
            remaining=max(0, limit - len(hits)),
        )

    async def reset(self, key: str) -> None:
        self._windows.pop(key, None)
        self._window_lengths.pop(key, None)


class RedisSlidingWindow(SlidingWindowStore):
    """Redis-backed sliding window using sorted sets.

    Each hit is a member scored by its timestamp, so pruning and counting
    are range operations. Suitable when several instances share limits.
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "closer") -> None:
        self._client = client
        self._prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def hit(self, key: str, limit: int, window_seconds: int) -> WindowResult:
        """Prune, count, then add the hit if there is room.

        The prune and count run in one pipeline. The add is a second round
        trip, so concurrent callers may overshoot the limit by a few hits.
        """
        now = time.time()
        redis_key = self._key(key)

        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.zremrangebyscore(redis_key, 0, now - window_seconds)
                pipe.zcard(redis_key)
                results = await pipe.execute()
            current = int(results[1])

            allowed = current < limit
            if allowed:
                member = f"{now}:{uuid.uuid4().hex}"
                async with self._client.pipeline(transaction=True) as pipe:
                    pipe.zadd(redis_key, {member: now})
                    pipe.expire(redis_key, window_seconds + 10)
                    await pipe.execute()
                current += 1
        except redis.RedisError as e:
            logger.error("rate_window_error", key=key, error=str(e))
            raise ConnectionError(f"Rate window check failed: {e}", cause=e) from e

        return WindowResult(allowed=allowed, limit=limit, remaining=max(0, limit - current))

    async def reset(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except redis.RedisError as e:
            raise ConnectionError(f"Rate window reset failed: {e}", cause=e) from e
