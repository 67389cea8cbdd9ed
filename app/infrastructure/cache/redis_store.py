"""Redis implementation of the TTL store protocol.

Thin adapter over redis.asyncio. Reconnects and backoff are left to the
client (Retry + ExponentialBackoff); errors are raised to the caller, which
is expected to treat them as cache misses.
"""

from __future__ import annotations

import logging
import re

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff

from app.core.config import Settings

logger = logging.getLogger(__name__)

# Redis glob metacharacters other than "*" are taken literally.
_GLOB_SPECIAL = re.compile(r"([?\[\]\\])")

_UNLINK_CHUNK_SIZE = 500


def to_redis_glob(pattern: str) -> str:
    """Translate a ``*``-only wildcard pattern to a Redis MATCH pattern."""
    return _GLOB_SPECIAL.sub(r"\\\1", pattern)


class RedisStore:
    """TTLStore backed by an async Redis client.

    Call connect() at startup and close() at shutdown. An injected client
    (tests or DI) is treated as already connected.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            redis_client: Optional client for testing or DI.
            settings: Connection settings used when no client is injected.
        """
        self.redis = redis_client
        self.settings = settings
        self._connected = redis_client is not None

    def _build_client(self) -> redis.Redis:
        s = self.settings
        if s is None:
            raise ValueError("RedisStore needs settings or an injected client")
        return redis.Redis(
            host=s.redis_host,
            port=s.redis_port,
            db=s.redis_db,
            password=s.redis_password.get_secret_value() if s.redis_password else None,
            decode_responses=True,
            socket_connect_timeout=s.redis_socket_timeout,
            socket_timeout=s.redis_socket_timeout,
            socket_keepalive=True,
            retry=Retry(ExponentialBackoff(cap=2.0, base=0.05), s.redis_retry_attempts),
            retry_on_error=[redis.ConnectionError, redis.TimeoutError],
        )

    async def connect(self) -> None:
        """Establish the Redis connection. Logs and stays unavailable on failure."""
        if self._connected:
            return
        client = self._build_client()
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError, OSError) as e:
            logger.warning("Redis connection failed: %s. Distributed cache disabled.", e)
            await client.aclose()
            return
        self.redis = client
        self._connected = True
        logger.info(
            "Redis cache connected: %s:%s/%s",
            self.settings.redis_host,
            self.settings.redis_port,
            self.settings.redis_db,
        )

    async def close(self) -> None:
        """Close the Redis connection. Safe to call more than once."""
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            logger.info("Redis cache disconnected")
        self._connected = False

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise redis.ConnectionError("Redis client is not connected")
        return self.redis

    async def get(self, key: str) -> str | None:
        return await self._client().get(key)

    async def set(self, key: str, value: str) -> None:
        await self._client().set(key, value)

    async def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        await self._client().setex(key, ttl_seconds, value)

    async def delete(self, *keys: str) -> int:
        """UNLINK keys in pipelined chunks (non-blocking on the server).

        Returns:
            Number of keys that existed.
        """
        if not keys:
            return 0
        client = self._client()
        deleted = 0
        for start in range(0, len(keys), _UNLINK_CHUNK_SIZE):
            chunk = keys[start : start + _UNLINK_CHUNK_SIZE]
            async with client.pipeline(transaction=False) as pipe:
                pipe.unlink(*chunk)
                results = await pipe.execute()
            deleted += sum(int(r or 0) for r in results)
        return deleted

    async def keys_matching(self, pattern: str) -> list[str]:
        """Collect keys via SCAN (never KEYS, which blocks the server)."""
        client = self._client()
        return [key async for key in client.scan_iter(match=to_redis_glob(pattern))]
