"""
Tests for storage adapters.
"""

import asyncio
import json
import sqlite3
from unittest.mock import patch

import pytest

from agecache.core.exceptions import ConfigurationError, CorruptEntryError, StorageFailure
from agecache.core.models import CacheEntry
from agecache.storage.memory import MemoryStorage
from agecache.storage.sqlite import SQLiteStorage


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, memory_storage, sqlite_storage):
    """Run a test against both adapters."""
    if request.param == "memory":
        return memory_storage
    return sqlite_storage


class TestAdapterContract:
    """Tests shared by every adapter."""

    @pytest.mark.asyncio
    async def test_put_get(self, storage):
        """Test storing and reading back an entry."""
        entry = CacheEntry(value={"id": 1, "tags": ["a"]}, written_at=42)
        await storage.put("listings:1", entry)

        assert await storage.get("listings:1") == entry

    @pytest.mark.asyncio
    async def test_get_absent(self, storage):
        """Test that a missing key returns None."""
        assert await storage.get("listings") is None

    @pytest.mark.asyncio
    async def test_put_replaces(self, storage):
        """Test that put overwrites an existing entry."""
        await storage.put("categories", CacheEntry(value=1, written_at=1))
        await storage.put("categories", CacheEntry(value=2, written_at=2))

        assert await storage.get("categories") == CacheEntry(value=2, written_at=2)
        assert await storage.count() == 1

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, storage):
        """Test that deleting twice is not an error."""
        await storage.put("favorites", CacheEntry(value=[], written_at=0))

        await storage.delete("favorites")
        await storage.delete("favorites")

        assert await storage.get("favorites") is None

    @pytest.mark.asyncio
    async def test_clear(self, storage):
        """Test removing everything."""
        for key in ("listings", "userData:1", "favorites"):
            await storage.put(key, CacheEntry(value=key, written_at=0))

        await storage.clear()

        assert await storage.count() == 0

    @pytest.mark.asyncio
    async def test_keys_and_entries(self, storage):
        """Test listing stored keys and entries."""
        await storage.put("userData:2", CacheEntry(value=2, written_at=20))
        await storage.put("listings", CacheEntry(value=1, written_at=10))

        assert await storage.keys() == ["listings", "userData:2"]
        entries = await storage.entries()
        assert entries["listings"].written_at == 10

    @pytest.mark.asyncio
    async def test_purge_older_than(self, storage):
        """Test the one-off sweep of old entries."""
        await storage.put("listings", CacheEntry(value=1, written_at=100))
        await storage.put("categories", CacheEntry(value=2, written_at=200))

        removed = await storage.purge_older_than(150)

        assert removed == 1
        assert await storage.keys() == ["categories"]

    @pytest.mark.asyncio
    async def test_concurrent_puts_on_independent_keys(self, storage):
        """Test that concurrent writes to different keys all land."""
        await asyncio.gather(
            *(
                storage.put(f"listings:{i}", CacheEntry(value=i, written_at=i))
                for i in range(20)
            )
        )

        assert await storage.count() == 20
        assert (await storage.get("listings:7")).value == 7

    @pytest.mark.asyncio
    async def test_context_manager(self, storage):
        """Test async context manager support."""
        async with storage as opened:
            assert opened is storage


class TestSQLiteStorage:
    """Tests specific to the SQLite adapter."""

    def test_construction_is_lazy(self, tmp_cache_dir):
        """Test that nothing is created until first use."""
        SQLiteStorage(db_dir=tmp_cache_dir)
        assert not tmp_cache_dir.exists()

    def test_rejects_bad_store_name(self, tmp_cache_dir):
        """Test that the table name must be an identifier."""
        with pytest.raises(ConfigurationError):
            SQLiteStorage(db_dir=tmp_cache_dir, store_name='x"; DROP TABLE y; --')

    @pytest.mark.asyncio
    async def test_database_named_for_application(self, sqlite_storage, tmp_cache_dir):
        """Test the database file location."""
        await sqlite_storage.put("listings", CacheEntry(value=1, written_at=1))
        assert (tmp_cache_dir / "testapp.db").exists()

    @pytest.mark.asyncio
    async def test_survives_reopen(self, tmp_cache_dir):
        """Test that entries are durable across adapter instances."""
        first = SQLiteStorage(db_dir=tmp_cache_dir)
        await first.put("userData:1", CacheEntry(value={"name": "Ana"}, written_at=99))
        await first.close()

        second = SQLiteStorage(db_dir=tmp_cache_dir)
        assert await second.get("userData:1") == CacheEntry(value={"name": "Ana"}, written_at=99)

    @pytest.mark.asyncio
    async def test_clear_only_affects_own_store(self, tmp_cache_dir):
        """Test that two stores in one database are isolated."""
        cache_store = SQLiteStorage(db_dir=tmp_cache_dir, store_name="cache")
        other_store = SQLiteStorage(db_dir=tmp_cache_dir, store_name="settings")
        await cache_store.put("listings", CacheEntry(value=1, written_at=1))
        await other_store.put("listings", CacheEntry(value=2, written_at=2))

        await cache_store.clear()

        assert await cache_store.get("listings") is None
        assert (await other_store.get("listings")).value == 2

    @pytest.mark.asyncio
    async def test_unserializable_value_raises_storage_failure(self, sqlite_storage):
        """Test that encoding errors surface as StorageFailure."""
        with pytest.raises(StorageFailure) as exc_info:
            await sqlite_storage.put("listings", CacheEntry(value={1, 2}, written_at=0))

        assert exc_info.value.operation == "put"
        assert exc_info.value.key == "listings"

    @pytest.mark.asyncio
    async def test_corrupt_row_raises(self, sqlite_storage):
        """Test that an undecodable stored value raises CorruptEntryError."""
        await sqlite_storage.put("listings", CacheEntry(value=1, written_at=1))
        with sqlite3.connect(sqlite_storage.db_path) as conn:
            conn.execute("UPDATE cache SET value = '{not json' WHERE key = 'listings'")

        with pytest.raises(CorruptEntryError):
            await sqlite_storage.get("listings")
        # Maintenance listing skips the bad row
        assert await sqlite_storage.entries() == {}

    @pytest.mark.asyncio
    async def test_unusable_path_raises_storage_failure(self, tmp_path):
        """Test that an I/O error surfaces as StorageFailure."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        storage = SQLiteStorage(db_dir=blocker / "sub")

        with pytest.raises(StorageFailure):
            await storage.get("listings")

    @pytest.mark.asyncio
    async def test_stats(self, sqlite_storage):
        """Test store statistics."""
        await sqlite_storage.put("listings:1", CacheEntry(value=1, written_at=100))
        await sqlite_storage.put("listings:2", CacheEntry(value=2, written_at=300))
        await sqlite_storage.put("categories", CacheEntry(value=3, written_at=300))

        stats = await sqlite_storage.stats(fresh_since_ms=200)

        assert stats["total_entries"] == 3
        assert stats["fresh_entries"] == 2
        assert stats["expired_entries"] == 1
        assert stats["entries_by_namespace"] == {"listings": 2, "categories": 1}
        assert stats["store_name"] == "cache"
        assert stats["db_size_bytes"] > 0

    @pytest.mark.asyncio
    async def test_stats_file_error_raises_storage_failure(self, sqlite_storage):
        """Test that failing to stat the database file surfaces as StorageFailure."""
        await sqlite_storage.put("listings", CacheEntry(value=1, written_at=1))
        path_type = type(sqlite_storage.db_path)

        with patch.object(path_type, "exists", return_value=True), patch.object(
            path_type, "stat", side_effect=PermissionError("denied")
        ):
            with pytest.raises(StorageFailure) as exc_info:
                await sqlite_storage.stats(fresh_since_ms=0)

        assert exc_info.value.operation == "stats"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [{1: "a"}, {"t": (1, 2)}, (1, 2)])
    async def test_put_lossy_value_raises(self, sqlite_storage, value):
        """Test that values JSON cannot reproduce exactly are refused."""
        with pytest.raises(StorageFailure) as exc_info:
            await sqlite_storage.put("userData", CacheEntry(value=value, written_at=1))

        assert exc_info.value.operation == "put"
        assert await sqlite_storage.get("userData") is None

    @pytest.mark.asyncio
    async def test_value_column_holds_envelope(self, sqlite_storage):
        """Test that the stored value is the full envelope JSON."""
        await sqlite_storage.put("categories", CacheEntry(value=["a"], written_at=42))

        with sqlite3.connect(sqlite_storage.db_path) as conn:
            (raw,) = conn.execute("SELECT value FROM cache WHERE key = 'categories'").fetchone()

        assert json.loads(raw) == {"value": ["a"], "writtenAt": 42}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("older_than", [-(2**70), 2**70])
    async def test_purge_out_of_range_raises_storage_failure(self, sqlite_storage, older_than):
        """Test that a cutoff beyond SQLite's integer range is a StorageFailure."""
        await sqlite_storage.put("listings", CacheEntry(value=1, written_at=1))

        with pytest.raises(StorageFailure) as exc_info:
            await sqlite_storage.purge_older_than(older_than)

        assert exc_info.value.operation == "purge"
        assert await sqlite_storage.count() == 1


class TestMemoryStorage:
    """Tests specific to the in-memory adapter."""

    @pytest.mark.asyncio
    async def test_len_and_contains(self):
        """Test container helpers."""
        storage = MemoryStorage()
        await storage.put("listings", CacheEntry(value=1, written_at=1))

        assert len(storage) == 1
        assert "listings" in storage
        assert "favorites" not in storage
