"""
Cache key builders and validation.

Keys are either a :class:`CacheKey` namespace value or that value followed
by separator-joined parts (``favorites:user-7``). Parts must not contain
``KEY_SEPARATOR`` so derived keys stay unambiguous.
"""

from agecache.core.exceptions import InvalidKeyError
from agecache.core.models import CacheKey

KEY_SEPARATOR = ":"

_NAMESPACES = {member.value: member for member in CacheKey}


def _validate_part(part: str, key: str) -> None:
    """Raise InvalidKeyError if a key component is empty or ambiguous."""
    if not part:
        raise InvalidKeyError(key, "key components cannot be empty")
    if KEY_SEPARATOR in part:
        raise InvalidKeyError(
            key, f"key components must not contain separator {KEY_SEPARATOR!r}"
        )


def make_key(namespace: CacheKey, *parts: object) -> str:
    """Create a cache key from a namespace and optional parts.

    Args:
        namespace: One of the fixed cache domains.
        *parts: Extra components, e.g. a listing or user id.

    Returns:
        Separator-joined cache key.

    Raises:
        InvalidKeyError: If a part is empty or contains the separator.
    """
    if not isinstance(namespace, CacheKey):
        raise InvalidKeyError(str(namespace), "namespace must be a CacheKey")

    str_parts = [str(p) for p in parts]
    key = KEY_SEPARATOR.join([namespace.value, *str_parts])
    for part in str_parts:
        _validate_part(part, key)
    return key


def namespace_of(key: str | CacheKey) -> CacheKey:
    """Return the namespace a key belongs to.

    Raises:
        InvalidKeyError: If the key is not in the fixed namespace.
    """
    if isinstance(key, CacheKey):
        return key
    if not isinstance(key, str) or not key:
        raise InvalidKeyError(str(key), "key must be a non-empty string")

    head, _, _ = key.partition(KEY_SEPARATOR)
    namespace = _NAMESPACES.get(head)
    if namespace is None:
        known = ", ".join(sorted(_NAMESPACES))
        raise InvalidKeyError(key, f"namespace {head!r} is not one of: {known}")
    return namespace


def validate_key(key: str | CacheKey) -> str:
    """Validate a key and return it as a plain string.

    Raises:
        InvalidKeyError: If the key is outside the namespace or malformed.
    """
    if isinstance(key, CacheKey):
        return key.value

    namespace_of(key)
    parts = key.split(KEY_SEPARATOR)[1:]
    for part in parts:
        _validate_part(part, key)
    return key
