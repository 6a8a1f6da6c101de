"""
Custom exceptions for agecache.
"""


class AgeCacheError(Exception):
    """Base exception for all agecache errors."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class StorageFailure(AgeCacheError):
    """Raised by a storage adapter when an I/O operation fails."""

    def __init__(
        self,
        operation: str,
        details: str | None = None,
        key: str | None = None,
    ):
        message = f"Storage failure during {operation}"
        if key is not None:
            message += f" of '{key}'"
        super().__init__(message, details=details)
        self.operation = operation
        self.key = key


class CorruptEntryError(StorageFailure):
    """Raised when a stored envelope cannot be decoded."""

    def __init__(self, key: str | None = None, details: str | None = None):
        super().__init__("decode", details=details, key=key)


class InvalidKeyError(AgeCacheError, ValueError):
    """Raised when a cache key falls outside the fixed key namespace."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Invalid cache key: {key!r}", details=reason)
        self.key = key
        self.reason = reason


class ConfigurationError(AgeCacheError, ValueError):
    """Raised when cache configuration values are invalid."""

    def __init__(self, field: str, value: object, reason: str):
        super().__init__(
            f"Invalid configuration for {field}",
            details=f"Value {value!r} is invalid: {reason}",
        )
        self.field = field
        self.value = value
        self.reason = reason
