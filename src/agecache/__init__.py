"""
agecache

A durable, age-bounded key-value cache for results of expensive remote
fetches. Values are stamped with their write time and treated as absent
once older than a max age; storage failures degrade to cache misses.

Quick Start:
    >>> import asyncio
    >>> from agecache import AgeBoundedCache, CacheConfig, CacheKey
    >>> cache = AgeBoundedCache.from_config(CacheConfig())
    >>> asyncio.run(cache.set(CacheKey.LISTINGS, [{"id": 1}]))
    True
    >>> asyncio.run(cache.get_value(CacheKey.LISTINGS, max_age=60_000))
    [{'id': 1}]
"""

__version__ = "0.1.0"

from agecache.cache import AgeBoundedCache

# Configuration
from agecache.core.config import DEFAULT_MAX_AGE_MS, CacheConfig

# Exceptions
from agecache.core.exceptions import (
    AgeCacheError,
    ConfigurationError,
    CorruptEntryError,
    InvalidKeyError,
    StorageFailure,
)
from agecache.core.keys import make_key

# Data models
from agecache.core.models import (
    CacheEntry,
    CacheKey,
    CacheResult,
    CacheStats,
    MissReason,
)

# Storage adapters
from agecache.storage import MemoryStorage, SQLiteStorage, StorageAdapter

__all__ = [
    # Version
    "__version__",
    # Cache
    "AgeBoundedCache",
    "CacheConfig",
    "DEFAULT_MAX_AGE_MS",
    "make_key",
    # Models
    "CacheEntry",
    "CacheKey",
    "CacheResult",
    "CacheStats",
    "MissReason",
    # Storage
    "MemoryStorage",
    "SQLiteStorage",
    "StorageAdapter",
    # Exceptions
    "AgeCacheError",
    "ConfigurationError",
    "CorruptEntryError",
    "InvalidKeyError",
    "StorageFailure",
]
