"""TTL store protocol for the distributed cache (DIP).

CacheService only talks to this contract; RedisStore is the production
implementation. Patterns use ``*`` as the only wildcard and are translated
to the backend's native syntax by the implementation.
"""

from typing import Protocol


class TTLStore(Protocol):
    """Minimal key-value contract with per-key expiry and prefix scans."""

    def is_available(self) -> bool:
        """Return True if the backend is connected and usable."""
        ...

    async def connect(self) -> None:
        """Open the backend connection. Must not raise when the backend is down."""
        ...

    async def close(self) -> None:
        """Release the backend connection. Idempotent."""
        ...

    async def get(self, key: str) -> str | None:
        """Return the stored string or None."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store value without expiry."""
        ...

    async def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Store value expiring after ttl_seconds."""
        ...

    async def delete(self, *keys: str) -> int:
        """Delete keys; return how many existed."""
        ...

    async def keys_matching(self, pattern: str) -> list[str]:
        """Return all keys matching a ``*`` wildcard pattern."""
        ...
