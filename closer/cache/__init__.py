"""Fast TTL key-value store used for control flags and locks."""

from closer.cache.store import CacheStore
from closer.cache.stores import InMemoryCacheStore, RedisCacheStore

__all__ = [
    "CacheStore",
    "InMemoryCacheStore",
    "RedisCacheStore",
]
