"""
Configuration for agecache.

A :class:`CacheConfig` is built once and handed to
:class:`~agecache.cache.AgeBoundedCache`; nothing is read from global state.
"""

import math
import os
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional, Union

from agecache.core.exceptions import ConfigurationError

# Milliseconds since the epoch
Clock = Callable[[], int]

# Milliseconds; may be a float such as math.inf
MaxAge = Union[int, float]

DEFAULT_MAX_AGE_MS = 3_600_000  # 1 hour

_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def system_clock() -> int:
    """Return the current wall-clock time in milliseconds."""
    return time.time_ns() // 1_000_000


def validate_max_age(max_age_ms: MaxAge, field: str = "max_age") -> MaxAge:
    """Validate a max age in milliseconds.

    Floats are accepted, including ``math.inf`` for "never expires".

    Raises:
        ConfigurationError: If the value is not a non-negative number.
    """
    if isinstance(max_age_ms, bool) or not isinstance(max_age_ms, (int, float)):
        raise ConfigurationError(field, max_age_ms, "must be a number")
    if math.isnan(max_age_ms):
        raise ConfigurationError(field, max_age_ms, "must not be NaN")
    if max_age_ms < 0:
        raise ConfigurationError(field, max_age_ms, "must not be negative")
    return max_age_ms


def _validate_identifier(field: str, value: str) -> str:
    if not isinstance(value, str) or not _IDENTIFIER_PATTERN.match(value):
        raise ConfigurationError(
            field, value, "must start with a letter or underscore and "
            "contain only letters, digits and underscores",
        )
    return value


@dataclass
class CacheConfig:
    """Settings for a cache instance.

    Attributes:
        name: Application store name, used as the database file stem.
        store_name: Sub-store (table) dedicated to cache entries, isolating
            them from any other state kept in the same database.
        db_dir: Directory holding the database. Defaults to ~/.agecache
        default_max_age_ms: Max age used when a lookup does not pass one.
    """

    name: str = "agecache"
    store_name: str = "cache"
    db_dir: Optional[Path] = None
    default_max_age_ms: MaxAge = DEFAULT_MAX_AGE_MS

    def __post_init__(self) -> None:
        _validate_identifier("name", self.name)
        _validate_identifier("store_name", self.store_name)
        validate_max_age(self.default_max_age_ms, "default_max_age_ms")
        if self.db_dir is not None:
            self.db_dir = Path(self.db_dir).expanduser()

    @property
    def db_path(self) -> Path:
        """Full path of the SQLite database file."""
        base = self.db_dir if self.db_dir is not None else Path.home() / ".agecache"
        return base / f"{self.name}.db"

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        prefix: str = "AGECACHE_",
    ) -> "CacheConfig":
        """Build a config from environment variables.

        Reads ``<prefix>DIR``, ``<prefix>NAME``, ``<prefix>STORE`` and
        ``<prefix>MAX_AGE_MS``; unset variables keep their defaults.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        kwargs: dict = {}

        if env.get(f"{prefix}DIR"):
            kwargs["db_dir"] = Path(env[f"{prefix}DIR"])
        if env.get(f"{prefix}NAME"):
            kwargs["name"] = env[f"{prefix}NAME"]
        if env.get(f"{prefix}STORE"):
            kwargs["store_name"] = env[f"{prefix}STORE"]

        raw_max_age = env.get(f"{prefix}MAX_AGE_MS")
        if raw_max_age:
            try:
                kwargs["default_max_age_ms"] = int(raw_max_age)
            except ValueError as e:
                raise ConfigurationError(
                    f"{prefix}MAX_AGE_MS", raw_max_age, "must be an integer"
                ) from e

        return cls(**kwargs)
