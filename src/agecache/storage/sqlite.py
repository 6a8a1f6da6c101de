"""
SQLite-based storage adapter.

Provides durable, crash-tolerant persistence for cache entries. Each
operation opens its own connection and commits in a single transaction,
so a write is never observed half-done. Blocking I/O runs in a worker
thread to keep the event loop free.
"""

import asyncio
import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Generator, Optional, TypeVar

from agecache.core.config import CacheConfig
from agecache.core.exceptions import CorruptEntryError, StorageFailure
from agecache.core.keys import KEY_SEPARATOR
from agecache.core.models import CacheEntry
from agecache.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SQLiteStorage(StorageAdapter):
    """SQLite-backed storage adapter.

    One database file is named for the application; cache entries live in
    a dedicated table (the store) so :meth:`clear` never touches other
    state kept in the same file.
    """

    BUSY_TIMEOUT = 30.0  # seconds to wait on a locked database

    def __init__(
        self,
        db_dir: Optional[Path] = None,
        name: str = "agecache",
        store_name: str = "cache",
    ):
        """Initialize the adapter.

        The database and schema are created on first use, so construction
        never touches the filesystem.

        Args:
            db_dir: Directory for the database file. Defaults to ~/.agecache
            name: Application store name (database file stem).
            store_name: Table dedicated to cache entries.

        Raises:
            ConfigurationError: If ``name`` or ``store_name`` is not a plain
                identifier.
        """
        config = CacheConfig(name=name, store_name=store_name, db_dir=db_dir)
        self.db_path = config.db_path
        self.store_name = config.store_name
        self._table = f'"{self.store_name}"'
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: CacheConfig) -> "SQLiteStorage":
        """Create an adapter from a :class:`CacheConfig`."""
        return cls(db_dir=config.db_dir, name=config.name, store_name=config.store_name)

    def _ensure_schema(self) -> None:
        """Create the database directory and table if needed."""
        if self._schema_ready:
            return

        with self._schema_lock:
            if self._schema_ready:
                return
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageFailure("initialization", str(e)) from e

            with self._connection(ensure_schema=False) as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.executescript(f"""
                    CREATE TABLE IF NOT EXISTS {self._table} (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        written_at INTEGER NOT NULL
                    );

                    CREATE INDEX IF NOT EXISTS "idx_{self.store_name}_written_at"
                    ON {self._table}(written_at);
                """)
            self._schema_ready = True
            logger.debug("Initialized cache store %s in %s", self.store_name, self.db_path)

    @contextmanager
    def _connection(
        self,
        ensure_schema: bool = True,
    ) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection context manager.

        Yields:
            sqlite3.Connection that commits on success and rolls back on error.

        Raises:
            StorageFailure: If the database cannot be opened or a statement fails.
        """
        if ensure_schema:
            self._ensure_schema()

        try:
            conn = sqlite3.connect(self.db_path, timeout=self.BUSY_TIMEOUT)
        except sqlite3.Error as e:
            raise StorageFailure("connect", str(e)) from e

        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except (sqlite3.Error, OverflowError) as e:
            # OverflowError: an integer parameter outside SQLite's 64-bit range
            conn.rollback()
            raise StorageFailure("database operation", str(e)) from e
        finally:
            conn.close()

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking operation in a worker thread."""
        return await asyncio.to_thread(func, *args)

    # -- Sync implementations -------------------------------------------------

    def _put_sync(self, key: str, entry: CacheEntry) -> None:
        try:
            value_json = json.dumps(entry.to_dict())
        except (TypeError, ValueError) as e:
            raise StorageFailure("put", f"value is not JSON-serializable: {e}", key=key) from e

        # Reject lossy encodings such as int dict keys or tuples, which JSON
        # would hand back as strings and lists.
        if self._decode(key, value_json) != entry:
            raise StorageFailure("put", "value does not round-trip through JSON", key=key)

        try:
            with self._connection() as conn:
                conn.execute(
                    f"INSERT OR REPLACE INTO {self._table} (key, value, written_at) "
                    "VALUES (?, ?, ?)",
                    (key, value_json, entry.written_at),
                )
        except StorageFailure as e:
            raise StorageFailure("put", e.details, key=key) from e

    def _get_sync(self, key: str) -> CacheEntry | None:
        try:
            with self._connection() as conn:
                row = conn.execute(
                    f"SELECT value, written_at FROM {self._table} WHERE key = ?",
                    (key,),
                ).fetchone()
        except StorageFailure as e:
            raise StorageFailure("get", e.details, key=key) from e

        if row is None:
            return None
        return self._decode_row(key, row)

    def _delete_sync(self, key: str) -> None:
        try:
            with self._connection() as conn:
                conn.execute(f"DELETE FROM {self._table} WHERE key = ?", (key,))
        except StorageFailure as e:
            raise StorageFailure("delete", e.details, key=key) from e

    def _clear_sync(self) -> int:
        try:
            with self._connection() as conn:
                return conn.execute(f"DELETE FROM {self._table}").rowcount
        except StorageFailure as e:
            raise StorageFailure("clear", e.details) from e

    def _entries_sync(self) -> dict[str, CacheEntry]:
        try:
            with self._connection() as conn:
                rows = conn.execute(
                    f"SELECT key, value, written_at FROM {self._table} ORDER BY key"
                ).fetchall()
        except StorageFailure as e:
            raise StorageFailure("entries", e.details) from e

        result = {}
        for row in rows:
            try:
                result[row["key"]] = self._decode_row(row["key"], row)
            except CorruptEntryError as e:
                logger.warning("Skipping corrupt cache entry: %s", e)
        return result

    def _keys_sync(self) -> list[str]:
        with self._connection() as conn:
            rows = conn.execute(f"SELECT key FROM {self._table} ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    def _count_sync(self) -> int:
        with self._connection() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM {self._table}").fetchone()[0]

    def _purge_sync(self, cutoff_ms: int) -> int:
        try:
            with self._connection() as conn:
                cursor = conn.execute(
                    f"DELETE FROM {self._table} WHERE written_at < ?",
                    (cutoff_ms,),
                )
                return cursor.rowcount
        except StorageFailure as e:
            raise StorageFailure("purge", e.details) from e

    def _stats_sync(self, fresh_since_ms: int) -> dict[str, Any]:
        with self._connection() as conn:
            total = conn.execute(f"SELECT COUNT(*) FROM {self._table}").fetchone()[0]

            fresh = conn.execute(
                f"SELECT COUNT(*) FROM {self._table} WHERE written_at >= ?",
                (fresh_since_ms,),
            ).fetchone()[0]

            # Count by namespace (the part before the first separator)
            namespaces = conn.execute(
                f"""
                SELECT
                    SUBSTR(key, 1, INSTR(key || ?, ?) - 1) as namespace,
                    COUNT(*) as count
                FROM {self._table}
                GROUP BY namespace
                """,
                (KEY_SEPARATOR, KEY_SEPARATOR),
            ).fetchall()

        try:
            db_size = self.db_path.stat().st_size if self.db_path.exists() else 0
        except OSError as e:
            raise StorageFailure("stats", str(e)) from e

        return {
            "total_entries": total,
            "fresh_entries": fresh,
            "expired_entries": total - fresh,
            "db_size_bytes": db_size,
            "db_path": str(self.db_path),
            "store_name": self.store_name,
            "entries_by_namespace": {row["namespace"]: row["count"] for row in namespaces},
        }

    @staticmethod
    def _decode(key: str, envelope_json: str) -> CacheEntry:
        try:
            envelope = json.loads(envelope_json)
        except (TypeError, ValueError) as e:
            raise CorruptEntryError(key, str(e)) from e
        return CacheEntry.from_dict(envelope, key)

    @classmethod
    def _decode_row(cls, key: str, row: sqlite3.Row) -> CacheEntry:
        return cls._decode(key, row["value"])

    # -- StorageAdapter interface ---------------------------------------------

    async def put(self, key: str, entry: CacheEntry) -> None:
        await self._run(self._put_sync, key, entry)

    async def get(self, key: str) -> CacheEntry | None:
        return await self._run(self._get_sync, key)

    async def delete(self, key: str) -> None:
        await self._run(self._delete_sync, key)

    async def clear(self) -> None:
        removed = await self._run(self._clear_sync)
        logger.debug("Cleared %d entries from store %s", removed, self.store_name)

    async def entries(self) -> dict[str, CacheEntry]:
        return await self._run(self._entries_sync)

    async def keys(self) -> list[str]:
        return await self._run(self._keys_sync)

    async def count(self) -> int:
        return await self._run(self._count_sync)

    async def purge_older_than(self, cutoff_ms: int) -> int:
        return await self._run(self._purge_sync, cutoff_ms)

    async def stats(self, fresh_since_ms: int) -> dict[str, Any]:
        """Get store statistics.

        Args:
            fresh_since_ms: Entries written at or after this time count as
                fresh; older ones as expired.

        Returns:
            Dict with entry counts, per-namespace counts and database info.
        """
        return await self._run(self._stats_sync, fresh_since_ms)
