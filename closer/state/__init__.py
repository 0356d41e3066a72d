"""Durable control records and the cache/durable State Store Bridge."""

from closer.state.bridge import StateBridge
from closer.state.store import DurableStateStore
from closer.state.stores import InMemoryDurableStateStore, PostgresDurableStateStore

__all__ = [
    "DurableStateStore",
    "InMemoryDurableStateStore",
    "PostgresDurableStateStore",
    "StateBridge",
]
