"""
In-memory storage adapter.

Keeps entries in a dict for tests and short-lived processes. Nothing is
persisted across restarts.
"""

from agecache.core.models import CacheEntry
from agecache.storage.base import StorageAdapter


class MemoryStorage(StorageAdapter):
    """Dict-backed storage adapter.

    Entries are immutable, so replacing a dict slot is the whole write and
    readers never observe a partial entry.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    async def put(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry

    async def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    async def entries(self) -> dict[str, CacheEntry]:
        return dict(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
