"""Cache key derivation. Single place for key format (DRY).

Keys look like ``api:<resource>[:user:<user_id>][:q:<name>=<value>...]``.
Every component is percent-encoded (``urllib.parse.quote`` with no safe
characters), so ``:``, ``=`` and glob characters inside ids or query values
can never forge a user segment, a parameter boundary or a wildcard.
Parameters are sorted by name so equal parameter sets always derive the
same key regardless of insertion order. Derivation never raises: values
are stringified as-is, so callers canonicalize (case, whitespace) first.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from app.core.constants import (
    CACHE_KEY_PREFIX,
    CACHE_KEY_SEP,
    CACHE_MULTI_VALUE_SEP,
    CACHE_PARAM_ASSIGN,
    CACHE_PARAM_SEGMENT,
    CACHE_USER_SEGMENT,
)


def encode_component(value: Any) -> str:
    """Percent-encode one key component; only ``[A-Za-z0-9_.~-]`` stay literal."""
    return quote(str(value), safe="")


def _encode_value(value: Any) -> str:
    # Repeated query parameters arrive as a list; each item is encoded before
    # joining, so a literal "," in a single value stays distinct from a list.
    if isinstance(value, (list, tuple)):
        return CACHE_MULTI_VALUE_SEP.join(encode_component(v) for v in value)
    return encode_component(value)


def derive_key(
    resource: str,
    user_id: str | None = None,
    params: Mapping[str, Any] | None = None,
) -> str:
    """Build the string cache key for a (resource, user, params) triple.

    Args:
        resource: Resource name (e.g. 'properties').
        user_id: Acting user; None (or empty) means the shared, user-less partition.
        params: Query parameters; empty is the same as absent. A list or tuple
            value stands for a repeated parameter.

    Returns:
        Deterministic cache key.
    """
    parts = [CACHE_KEY_PREFIX, encode_component(resource)]
    if user_id:
        parts.extend((CACHE_USER_SEGMENT, encode_component(user_id)))
    if params:
        for name, value in sorted(params.items(), key=lambda item: str(item[0])):
            parts.extend(
                (CACHE_PARAM_SEGMENT, f"{encode_component(name)}{CACHE_PARAM_ASSIGN}{_encode_value(value)}")
            )
    return CACHE_KEY_SEP.join(parts)


def user_pattern(user_id: str) -> str:
    """Invalidation prefix (without the api: prefix) for every resource of a user."""
    return f"*{CACHE_KEY_SEP}{CACHE_USER_SEGMENT}{CACHE_KEY_SEP}{encode_component(user_id)}"


def resource_pattern(resource: str, user_id: str | None = None) -> str:
    """Invalidation prefix (without the api: prefix) for a resource, optionally one user's slice."""
    prefix = encode_component(resource)
    if user_id:
        return f"{prefix}{CACHE_KEY_SEP}{CACHE_USER_SEGMENT}{CACHE_KEY_SEP}{encode_component(user_id)}"
    return prefix


@dataclass(frozen=True)
class CacheKey:
    """Logical cache key; never persisted, only derived to a string."""

    resource: str
    user_id: str | None = None
    params: Mapping[str, Any] | None = None

    def derive(self) -> str:
        return derive_key(self.resource, self.user_id, self.params)
