"""CacheStore implementations."""

from closer.cache.stores.inmemory import InMemoryCacheStore
from closer.cache.stores.redis import RedisCacheStore

__all__ = [
    "InMemoryCacheStore",
    "RedisCacheStore",
]
