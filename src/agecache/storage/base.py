"""
Abstract base class for storage adapters.

Defines the durable key-value interface the cache sits on.
"""

from abc import ABC, abstractmethod
from typing import Any

from agecache.core.models import CacheEntry


class StorageAdapter(ABC):
    """Abstract base class for storage adapters.

    Adapters persist :class:`CacheEntry` envelopes by string key. Writes
    are atomic per key: a concurrent reader sees a complete entry or
    nothing. Every operation may be retried after a failure.

    Implementations raise :class:`~agecache.core.exceptions.StorageFailure`
    on I/O errors. They never decide freshness; that is the cache's job.
    """

    @abstractmethod
    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store an entry, replacing any existing entry for the key.

        Raises:
            StorageFailure: If the entry cannot be encoded or written.
        """

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Return the stored entry, or None if the key is absent.

        Raises:
            StorageFailure: On I/O errors.
            CorruptEntryError: If the stored envelope cannot be decoded.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the entry for a key. Absent keys are not an error.

        Raises:
            StorageFailure: On I/O errors.
        """

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry in this adapter's store.

        Raises:
            StorageFailure: On I/O errors.
        """

    @abstractmethod
    async def entries(self) -> dict[str, CacheEntry]:
        """Return all decodable entries keyed by cache key.

        Used by maintenance tooling; corrupt rows are skipped.
        """

    async def keys(self) -> list[str]:
        """Return all stored keys, sorted."""
        return sorted(await self.entries())

    async def count(self) -> int:
        """Return the number of stored entries."""
        return len(await self.entries())

    async def purge_older_than(self, cutoff_ms: int) -> int:
        """Delete entries written before ``cutoff_ms``.

        This is a one-off sweep run on request; nothing schedules it.

        Returns:
            Number of entries removed.
        """
        removed = 0
        for key, entry in (await self.entries()).items():
            if entry.written_at < cutoff_ms:
                await self.delete(key)
                removed += 1
        return removed

    async def close(self) -> None:
        """Release any resources held by the adapter."""

    async def __aenter__(self) -> "StorageAdapter":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
