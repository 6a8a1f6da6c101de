"""
Storage adapters for persisting cache entries.

Provides a SQLite-backed durable adapter and an in-memory adapter.
"""

from agecache.storage.base import StorageAdapter
from agecache.storage.memory import MemoryStorage
from agecache.storage.sqlite import SQLiteStorage

__all__ = ["MemoryStorage", "SQLiteStorage", "StorageAdapter"]
