"""Cache: key derivation, local memory cache, Redis-backed API cache and cache-aside wrapping.

CacheService (redis_cache.py) talks to a TTLStore (cache_protocol.py),
RedisStore in production; key format is in keys.py (DRY).
"""

from app.infrastructure.cache.cache_aside import (
    BackgroundWriter,
    CacheRequest,
    HandlerResult,
    with_cache,
)
from app.infrastructure.cache.cache_protocol import TTLStore
from app.infrastructure.cache.keys import (
    CacheKey,
    derive_key,
    resource_pattern,
    user_pattern,
)
from app.infrastructure.cache.memory_cache import MemoryCache, run_periodic_cleanup
from app.infrastructure.cache.redis_cache import CacheService, CacheStats
from app.infrastructure.cache.redis_store import RedisStore, to_redis_glob

__all__ = [
    "BackgroundWriter",
    "CacheKey",
    "CacheRequest",
    "CacheService",
    "CacheStats",
    "HandlerResult",
    "MemoryCache",
    "RedisStore",
    "TTLStore",
    "derive_key",
    "resource_pattern",
    "run_periodic_cleanup",
    "to_redis_glob",
    "user_pattern",
    "with_cache",
]
