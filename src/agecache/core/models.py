"""
Core data models for agecache.

This module defines the stored envelope, the fixed key namespace, the
explicit lookup result returned by the cache, and per-instance counters.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from agecache.core.exceptions import CorruptEntryError


class CacheKey(str, Enum):
    """Closed set of logical cache domains.

    Every cache key is either one of these values or a key derived from one
    (see :meth:`derive`), so independent data sets never collide.
    """

    LISTINGS = "listings"
    USER_DATA = "userData"
    CATEGORIES = "categories"
    FAVORITES = "favorites"

    def __str__(self) -> str:
        return self.value

    def derive(self, *parts: object) -> str:
        """Build a key scoped to this namespace, e.g. ``listings:42``."""
        from agecache.core.keys import make_key

        return make_key(self, *parts)


class MissReason(Enum):
    """Why a lookup did not produce a value."""

    ABSENT = "absent"  # Never written, removed or cleared
    EXPIRED = "expired"  # Present but older than max age; deleted on read
    FAILURE = "failure"  # Storage failure or corrupt envelope

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CacheEntry:
    """A stored value plus the time it was written.

    ``written_at`` is milliseconds since the epoch and is set once, by the
    cache, when the entry is created.
    """

    value: Any
    written_at: int

    def age(self, now_ms: int) -> int:
        """Return the entry age in milliseconds at ``now_ms``."""
        return now_ms - self.written_at

    def is_expired(self, now_ms: int, max_age_ms: float) -> bool:
        """Return True if the entry is older than ``max_age_ms``."""
        return self.age(now_ms) > max_age_ms

    def to_dict(self) -> dict:
        """Convert to the envelope stored by adapters."""
        return {"value": self.value, "writtenAt": self.written_at}

    @classmethod
    def from_dict(cls, data: Any, key: str | None = None) -> "CacheEntry":
        """Create from a stored envelope.

        Raises:
            CorruptEntryError: If the envelope is malformed.
        """
        if not isinstance(data, dict) or "value" not in data:
            raise CorruptEntryError(key, "envelope is missing 'value'")

        written_at = data.get("writtenAt")
        # bool is an int subclass but never a valid timestamp
        if not isinstance(written_at, int) or isinstance(written_at, bool):
            raise CorruptEntryError(key, f"invalid writtenAt: {written_at!r}")

        return cls(value=data["value"], written_at=written_at)


@dataclass(frozen=True)
class CacheResult:
    """Outcome of a cache lookup: either found with a value, or not found.

    Storage failures are folded into "not found" with
    :attr:`MissReason.FAILURE`, so callers never handle cache errors.
    """

    found: bool
    value: Any = None
    reason: MissReason | None = None

    def __bool__(self) -> bool:
        return self.found

    @classmethod
    def hit(cls, value: Any) -> "CacheResult":
        return cls(found=True, value=value)

    @classmethod
    def miss(cls, reason: MissReason = MissReason.ABSENT) -> "CacheResult":
        return cls(found=False, reason=reason)

    def value_or(self, default: Any = None) -> Any:
        """Return the value on a hit, otherwise ``default``."""
        return self.value if self.found else default


@dataclass
class CacheStats:
    """Counters kept by a single cache instance."""

    hits: int = 0
    misses: int = 0
    expired: int = 0
    failures: int = 0
    writes: int = 0

    @property
    def lookups(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups that were hits (0.0 with no lookups)."""
        if not self.lookups:
            return 0.0
        return self.hits / self.lookups

    def to_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "expired": self.expired,
            "failures": self.failures,
            "writes": self.writes,
            "hit_rate": round(self.hit_rate, 4),
        }
