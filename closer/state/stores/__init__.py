"""DurableStateStore implementations."""

from closer.state.stores.inmemory import InMemoryDurableStateStore
from closer.state.stores.postgres import PostgresDurableStateStore

__all__ = [
    "InMemoryDurableStateStore",
    "PostgresDurableStateStore",
]
