"""
Age-bounded cache in front of expensive remote fetches.

Wraps a storage adapter, stamps every value with its write time, and
treats entries older than a max age as absent. Expiry is checked lazily
at read time; an expired entry is deleted when it is read.

Cache problems never reach the caller: storage failures are logged and
turned into a no-op for writes and a miss for reads, since the data
source behind the cache can always be queried directly.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from agecache.core.config import (
    CacheConfig,
    Clock,
    MaxAge,
    system_clock,
    validate_max_age,
)
from agecache.core.exceptions import CorruptEntryError, StorageFailure
from agecache.core.keys import validate_key
from agecache.core.models import (
    CacheEntry,
    CacheKey,
    CacheResult,
    CacheStats,
    MissReason,
)
from agecache.storage.base import StorageAdapter
from agecache.storage.sqlite import SQLiteStorage

logger = logging.getLogger(__name__)


class AgeBoundedCache:
    """Durable, time-bounded key-value cache.

    Construct one instance with its configuration and pass it to every
    call site.

    Example::

        cache = AgeBoundedCache.from_config(CacheConfig(db_dir=Path("/tmp/app")))

        result = await cache.get(CacheKey.LISTINGS)
        if not result:
            listings = await fetch_listings()
            await cache.set(CacheKey.LISTINGS, listings)
    """

    def __init__(
        self,
        storage: StorageAdapter,
        config: Optional[CacheConfig] = None,
        clock: Clock = system_clock,
        log: Optional[logging.Logger] = None,
    ):
        """Initialize the cache.

        Args:
            storage: Adapter that persists entries.
            config: Cache settings; only ``default_max_age_ms`` is used here.
            clock: Returns the current time in milliseconds since the epoch.
            log: Logger that receives failure reports. Defaults to this
                module's logger.
        """
        self.storage = storage
        self.config = config or CacheConfig()
        self.clock = clock
        self.log = log or logger
        self.stats = CacheStats()

    @classmethod
    def from_config(
        cls,
        config: CacheConfig,
        clock: Clock = system_clock,
        log: Optional[logging.Logger] = None,
    ) -> "AgeBoundedCache":
        """Create a SQLite-backed cache from a :class:`CacheConfig`."""
        return cls(SQLiteStorage.from_config(config), config=config, clock=clock, log=log)

    @property
    def default_max_age(self) -> MaxAge:
        """Default max age in milliseconds."""
        return self.config.default_max_age_ms

    def _failed(self, operation: str, key: Optional[str], error: StorageFailure) -> None:
        self.stats.failures += 1
        self.log.warning("Cache %s failed for key %r: %s", operation, key, error)

    async def set(self, key: str | CacheKey, value: Any) -> bool:
        """Store a value, replacing any existing entry for the key.

        Args:
            key: A namespace key or a key derived from one.
            value: JSON-serializable payload.

        Returns:
            True if the value was stored, False if storage failed. Failures
            are logged, never raised.

        Raises:
            InvalidKeyError: If the key is outside the key namespace.
        """
        key = validate_key(key)
        entry = CacheEntry(value=value, written_at=self.clock())
        try:
            await self.storage.put(key, entry)
        except StorageFailure as e:
            self._failed("set", key, e)
            return False

        self.stats.writes += 1
        return True

    async def get(self, key: str | CacheKey, max_age: Optional[MaxAge] = None) -> CacheResult:
        """Look up a value if it is younger than ``max_age``.

        An expired entry is deleted before the miss is returned.

        Args:
            key: A namespace key or a key derived from one.
            max_age: Max age in milliseconds. Defaults to the configured value.

        Returns:
            CacheResult that is found with the value, or not found with the
            reason (absent, expired, or a storage failure).

        Raises:
            InvalidKeyError: If the key is outside the key namespace.
            ConfigurationError: If ``max_age`` is negative.
        """
        key = validate_key(key)
        if max_age is None:
            max_age = self.default_max_age
        validate_max_age(max_age)

        try:
            entry = await self.storage.get(key)
        except CorruptEntryError as e:
            self._failed("get", key, e)
            await self._discard(key)
            return self._miss(MissReason.FAILURE)
        except StorageFailure as e:
            self._failed("get", key, e)
            return self._miss(MissReason.FAILURE)

        if entry is None:
            return self._miss(MissReason.ABSENT)

        now = self.clock()
        if entry.is_expired(now, max_age):
            self.log.debug(
                "Cache entry %r expired (age %d ms > %s ms)", key, entry.age(now), max_age
            )
            self.stats.expired += 1
            await self._discard(key)
            return self._miss(MissReason.EXPIRED)

        self.stats.hits += 1
        return CacheResult.hit(entry.value)

    async def get_value(
        self,
        key: str | CacheKey,
        max_age: Optional[MaxAge] = None,
        default: Any = None,
    ) -> Any:
        """Get a cached value, or ``default`` on a miss."""
        result = await self.get(key, max_age)
        return result.value_or(default)

    async def remove(self, key: str | CacheKey) -> bool:
        """Delete the entry for a key.

        Returns:
            True on success (including when the key was absent), False if
            storage failed.
        """
        key = validate_key(key)
        try:
            await self.storage.delete(key)
        except StorageFailure as e:
            self._failed("remove", key, e)
            return False
        return True

    async def clear(self) -> bool:
        """Delete every entry in the cache store.

        Returns:
            True on success, False if storage failed.
        """
        try:
            await self.storage.clear()
        except StorageFailure as e:
            self._failed("clear", None, e)
            return False
        return True

    async def get_or_fetch(
        self,
        key: str | CacheKey,
        fetch: Callable[[], Awaitable[Any]],
        max_age: Optional[MaxAge] = None,
    ) -> Any:
        """Get a cached value or fetch, cache and return a fresh one.

        Args:
            key: A namespace key or a key derived from one.
            fetch: Async callable that queries the source of truth.
            max_age: Max age in milliseconds.

        Returns:
            Cached or freshly fetched value.

        Raises:
            Whatever ``fetch`` raises; nothing is cached in that case.
        """
        result = await self.get(key, max_age)
        if result:
            return result.value

        value = await fetch()
        await self.set(key, value)
        return value

    async def _discard(self, key: str) -> None:
        try:
            await self.storage.delete(key)
        except StorageFailure as e:
            self._failed("delete", key, e)

    def _miss(self, reason: MissReason) -> CacheResult:
        self.stats.misses += 1
        return CacheResult.miss(reason)

    async def close(self) -> None:
        """Close the underlying storage adapter and log the final counters."""
        self.log.debug("Closing cache, counters: %s", self.stats.to_dict())
        await self.storage.close()

    async def __aenter__(self) -> "AgeBoundedCache":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
