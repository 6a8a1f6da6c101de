"""
Pytest fixtures and configuration for agecache tests.

Provides a controllable clock, storage adapters and cache instances.
"""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from agecache.cache import AgeBoundedCache
from agecache.core.config import CacheConfig
from agecache.core.exceptions import StorageFailure
from agecache.storage.memory import MemoryStorage
from agecache.storage.sqlite import SQLiteStorage

# =============================================================================
# Clock Fixtures
# =============================================================================


class FakeClock:
    """Clock returning a settable time in milliseconds."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock starting at t=0."""
    return FakeClock()


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Create a temporary cache directory path."""
    return tmp_path / "cache-dir"


@pytest.fixture
def memory_storage() -> MemoryStorage:
    """Create an empty in-memory adapter."""
    return MemoryStorage()


@pytest.fixture
def sqlite_storage(tmp_cache_dir: Path) -> SQLiteStorage:
    """Create a SQLite adapter in a temporary directory."""
    return SQLiteStorage(db_dir=tmp_cache_dir, name="testapp")


@pytest.fixture
def failing_storage() -> MemoryStorage:
    """Create an adapter whose every operation raises StorageFailure."""
    storage = MemoryStorage()
    storage.put = AsyncMock(side_effect=StorageFailure("put", "disk full"))
    storage.get = AsyncMock(side_effect=StorageFailure("get", "permission denied"))
    storage.delete = AsyncMock(side_effect=StorageFailure("delete", "permission denied"))
    storage.clear = AsyncMock(side_effect=StorageFailure("clear", "permission denied"))
    return storage


# =============================================================================
# Cache Fixtures
# =============================================================================


@pytest.fixture
def config(tmp_cache_dir: Path) -> CacheConfig:
    """Create a config pointing at a temporary directory."""
    return CacheConfig(name="testapp", db_dir=tmp_cache_dir)


@pytest.fixture
def memory_cache(memory_storage: MemoryStorage, clock: FakeClock) -> AgeBoundedCache:
    """Create a cache over an in-memory adapter with a fake clock."""
    return AgeBoundedCache(memory_storage, clock=clock)


@pytest.fixture
def sqlite_cache(config: CacheConfig, clock: FakeClock) -> AgeBoundedCache:
    """Create a SQLite-backed cache with a fake clock."""
    return AgeBoundedCache.from_config(config, clock=clock)


@pytest.fixture(params=["memory", "sqlite"])
def cache(request, memory_cache, sqlite_cache) -> AgeBoundedCache:
    """Run a test against both storage adapters."""
    if request.param == "memory":
        return memory_cache
    return sqlite_cache
