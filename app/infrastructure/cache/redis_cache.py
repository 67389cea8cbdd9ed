"""Distributed API response cache.

Wraps a TTLStore (Redis in production) with key derivation, JSON
serialization, default TTLs and prefix-based bulk invalidation. The cache
is strictly an optimization: backend and serialization failures are logged
and degrade to a miss or a no-op, they never reach the caller.

Invalidation is deliberately broad (whole resource or whole user
namespace): writes cannot enumerate every parameter combination a list
endpoint may have cached.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from redis.exceptions import RedisError

from app.core.config import Settings
from app.core.constants import CACHE_KEY_PREFIX, CACHE_KEY_SEP
from app.infrastructure.cache.cache_protocol import TTLStore
from app.infrastructure.cache.keys import CacheKey, resource_pattern, user_pattern
from app.infrastructure.cache.redis_store import RedisStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300

_BACKEND_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


@dataclass
class CacheStats:
    """Hit/miss counters since the last reset."""

    hits: int = 0
    misses: int = 0
    errors: int = 0
    last_reset: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class CacheService:
    """Async cache service keyed by CacheKey.

    Call connect() at startup and disconnect() at shutdown. Construct with
    from_settings() in the app; inject any TTLStore in tests.
    """

    def __init__(self, store: TTLStore, default_ttl: int = DEFAULT_TTL_SECONDS) -> None:
        """Initialize cache service.

        Args:
            store: Backend implementing TTLStore.
            default_ttl: TTL in seconds used when set() gets none.
        """
        self.store = store
        self.default_ttl = default_ttl
        self.stats = CacheStats()

    @classmethod
    def from_settings(cls, settings: Settings) -> CacheService:
        return cls(RedisStore(settings=settings), default_ttl=settings.cache_default_ttl)

    async def connect(self) -> None:
        await self.store.connect()

    async def disconnect(self) -> None:
        """Release the backend connection. Idempotent."""
        try:
            await self.store.close()
        except _BACKEND_ERRORS:
            logger.exception("Cache disconnect error")

    def is_available(self) -> bool:
        return self.store.is_available()

    def reset_stats(self) -> None:
        self.stats = CacheStats()

    async def get(self, key: CacheKey) -> Any | None:
        """Return the cached value or None on miss, outage or corrupt payload.

        Args:
            key: Logical cache key.

        Returns:
            JSON-deserialized value or None.
        """
        cache_key = key.derive()
        if not self.store.is_available():
            self.stats.misses += 1
            return None
        try:
            raw = await self.store.get(cache_key)
        except _BACKEND_ERRORS:
            logger.exception("Cache get error for key %s", cache_key)
            self.stats.errors += 1
            self.stats.misses += 1
            return None
        if raw is None:
            logger.debug("Cache MISS: %s", cache_key)
            self.stats.misses += 1
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            # Left in place; the next successful write overwrites it.
            logger.warning("Cache payload for key %s is not valid JSON", cache_key)
            self.stats.errors += 1
            self.stats.misses += 1
            return None
        logger.debug("Cache HIT: %s", cache_key)
        self.stats.hits += 1
        return value

    async def set(self, key: CacheKey, value: Any, ttl: int | None = None) -> bool:
        """Store value as JSON. Returns True if written.

        Args:
            key: Logical cache key.
            value: JSON-serializable value.
            ttl: Seconds to live; None uses default_ttl, 0 or negative stores
                without expiry.

        Returns:
            True if stored, False otherwise.
        """
        cache_key = key.derive()
        if not self.store.is_available():
            return False
        if ttl is None:
            ttl = self.default_ttl
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError):
            logger.exception("Cache value for key %s is not JSON-serializable", cache_key)
            self.stats.errors += 1
            return False
        try:
            if ttl > 0:
                await self.store.setex(cache_key, ttl, serialized)
            else:
                await self.store.set(cache_key, serialized)
        except _BACKEND_ERRORS:
            logger.exception("Cache set error for key %s", cache_key)
            self.stats.errors += 1
            return False
        logger.debug("Cache SET: %s (TTL: %ss)", cache_key, ttl if ttl > 0 else "none")
        return True

    async def delete(self, key: CacheKey) -> bool:
        """Remove exactly one derived key. Returns True if the call reached the backend."""
        cache_key = key.derive()
        if not self.store.is_available():
            return False
        try:
            await self.store.delete(cache_key)
        except _BACKEND_ERRORS:
            logger.exception("Cache delete error for key %s", cache_key)
            self.stats.errors += 1
            return False
        logger.debug("Cache DELETE: %s", cache_key)
        return True

    async def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key equal to ``api:<pattern>`` or under ``api:<pattern>:`` in one batch.

        The prefix ends on a segment boundary, so ``u1`` never reaches ``u10``
        and ``loan`` never reaches ``loans``.

        Args:
            pattern: Key prefix after ``api:``; ``*`` is a wildcard.

        Returns:
            Number of keys deleted (0 on no match or error).
        """
        if not self.store.is_available():
            return 0
        match = f"{CACHE_KEY_PREFIX}{CACHE_KEY_SEP}{pattern}"
        try:
            keys = set(await self.store.keys_matching(match))
            keys.update(await self.store.keys_matching(f"{match}{CACHE_KEY_SEP}*"))
            if not keys:
                return 0
            deleted = await self.store.delete(*sorted(keys))
        except _BACKEND_ERRORS:
            logger.exception("Cache invalidate error for %s", match)
            self.stats.errors += 1
            return 0
        logger.info("Cache INVALIDATE: %s (%s keys)", match, deleted)
        return deleted

    async def invalidate_user(self, user_id: str) -> int:
        """Drop every cached resource for one user."""
        return await self.invalidate_pattern(user_pattern(user_id))

    async def invalidate_resource(self, resource: str, user_id: str | None = None) -> int:
        """Drop a resource's cache: one user's slice if user_id is given, else all of it."""
        return await self.invalidate_pattern(resource_pattern(resource, user_id))
