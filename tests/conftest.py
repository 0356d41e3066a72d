"""Fixtures shared by every test package."""

from collections.abc import Callable, Iterator
from pathlib import Path
from uuid import UUID, uuid4

import pytest

from closer.cache.stores import InMemoryCacheStore
from closer.state.bridge import StateBridge
from closer.state.stores import InMemoryDurableStateStore


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    path = tmp_path / "config"
    path.mkdir()
    return path


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Write {filename: toml text} into test_config_dir."""

    def write(files: dict[str, str]) -> None:
        for name, text in files.items():
            (test_config_dir / name).write_text(text)

    return write


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    """Both settings singletons are rebuilt for every test."""
    from closer import config
    from closer.api import dependencies

    caches = (config.get_settings, dependencies.get_settings)
    for cached in caches:
        cached.cache_clear()
    yield
    for cached in caches:
        cached.cache_clear()


@pytest.fixture
def tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def conversation_id() -> UUID:
    return uuid4()


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def durable_store() -> InMemoryDurableStateStore:
    return InMemoryDurableStateStore()


@pytest.fixture
def bridge(cache_store: InMemoryCacheStore, durable_store: InMemoryDurableStateStore) -> StateBridge:
    return StateBridge(cache_store, durable_store, default_ttl_seconds=3600)
