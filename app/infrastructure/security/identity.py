"""Best-effort user identity for cache partitioning.

Resolves the acting user from an ``Authorization: Bearer`` token. Any
problem (no header, bad token, no secret configured) yields None, which
puts the request in the shared, user-less cache partition.
"""

import hashlib
import logging
import time

from app.infrastructure.cache.cache_aside import CacheRequest
from app.infrastructure.cache.memory_cache import MemoryCache
from app.infrastructure.security.jwt import verify_token

logger = logging.getLogger(__name__)

_BEARER = "bearer "


def bearer_token(request: CacheRequest) -> str | None:
    """Return the bearer token from the Authorization header, if any."""
    header = request.header("authorization")
    if not header or not header.lower().startswith(_BEARER):
        return None
    token = header[len(_BEARER) :].strip()
    return token or None


class BearerUserIdResolver:
    """Maps bearer tokens to their sub claim, memoised in a MemoryCache.

    Entries live at most until the token's own expiry.
    """

    def __init__(self, memory_cache: MemoryCache, ttl: float = 60.0) -> None:
        self.memory_cache = memory_cache
        self.ttl = ttl

    @staticmethod
    def _cache_key(token: str) -> str:
        return "token-sub:" + hashlib.sha256(token.encode()).hexdigest()

    async def __call__(self, request: CacheRequest) -> str | None:
        token = bearer_token(request)
        if token is None:
            return None
        key = self._cache_key(token)
        user_id = self.memory_cache.get(key)
        if user_id is not None:
            return user_id
        try:
            payload = verify_token(token)
        except ValueError as e:
            logger.debug("Bearer token ignored for cache partitioning: %s", e)
            return None
        user_id = str(payload["sub"])
        remaining = float(payload["exp"]) - time.time()
        if remaining > 0:
            self.memory_cache.set(key, user_id, ttl=min(self.ttl, remaining))
        return user_id
