"""
Core module for agecache.

Contains data models, key namespace helpers, configuration, and exceptions.
"""

from agecache.core.config import DEFAULT_MAX_AGE_MS, CacheConfig, system_clock
from agecache.core.exceptions import (
    AgeCacheError,
    ConfigurationError,
    CorruptEntryError,
    InvalidKeyError,
    StorageFailure,
)
from agecache.core.keys import KEY_SEPARATOR, make_key, namespace_of, validate_key
from agecache.core.models import (
    CacheEntry,
    CacheKey,
    CacheResult,
    CacheStats,
    MissReason,
)

__all__ = [
    # Models
    "CacheEntry",
    "CacheKey",
    "CacheResult",
    "CacheStats",
    "MissReason",
    # Keys
    "KEY_SEPARATOR",
    "make_key",
    "namespace_of",
    "validate_key",
    # Config
    "CacheConfig",
    "DEFAULT_MAX_AGE_MS",
    "system_clock",
    # Exceptions
    "AgeCacheError",
    "ConfigurationError",
    "CorruptEntryError",
    "InvalidKeyError",
    "StorageFailure",
]
