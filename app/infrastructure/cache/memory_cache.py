"""Process-local TTL cache.

Low-latency cache for repeat reads inside one process. Not shared between
workers and never invalidated from outside, so it is only used for data
that may be briefly stale (e.g. decoded bearer tokens). Expired entries are
evicted lazily on read and by run_periodic_cleanup.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    value: Any
    written_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.written_at > self.ttl


class MemoryCache:
    """Dict-backed cache with per-entry TTL in seconds.

    No locking: all access happens on one event loop and no method awaits.
    """

    def __init__(self, default_ttl: float = 300.0) -> None:
        self.default_ttl = default_ttl
        self._entries: dict[str, CacheEntry] = {}

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store value, replacing any existing entry.

        Args:
            key: Cache key.
            value: Any object (stored by reference).
            ttl: Seconds to live; None or non-positive uses default_ttl.
        """
        if ttl is None or ttl <= 0:
            ttl = self.default_ttl
        self._entries[key] = CacheEntry(value=value, written_at=time.monotonic(), ttl=ttl)

    def get(self, key: str) -> Any | None:
        """Return the value, or None when absent or expired (expired entries are removed)."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(time.monotonic()):
            del self._entries[key]
            return None
        return entry.value

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def cleanup(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = time.monotonic()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


async def run_periodic_cleanup(cache: MemoryCache, interval_seconds: float) -> None:
    """Sweep expired entries every interval_seconds until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        removed = cache.cleanup()
        if removed:
            logger.debug("Memory cache cleanup removed %s expired entries", removed)
