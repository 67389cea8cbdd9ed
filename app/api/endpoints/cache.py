"""Cache statistics endpoint (token protected)."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from app.api.dependencies import get_api_cache, get_memory_cache, require_cache_stats_token
from app.infrastructure.cache.memory_cache import MemoryCache
from app.infrastructure.cache.redis_cache import CacheService
from app.schemas.cache import CacheStatsResponse

router = APIRouter()


@router.get(
    "/stats",
    response_model=CacheStatsResponse,
    dependencies=[Depends(require_cache_stats_token)],
)
def cache_stats(
    cache: CacheService | None = Depends(get_api_cache),
    memory_cache: MemoryCache | None = Depends(get_memory_cache),
) -> CacheStatsResponse:
    """Hit/miss counters of the distributed cache plus the local cache size."""
    memory_entries = len(memory_cache) if memory_cache is not None else 0
    if cache is None:
        return CacheStatsResponse(
            hits=0,
            misses=0,
            errors=0,
            hit_rate=0.0,
            last_reset=datetime.now(UTC),
            available=False,
            memory_entries=memory_entries,
        )
    stats = cache.stats
    return CacheStatsResponse(
        hits=stats.hits,
        misses=stats.misses,
        errors=stats.errors,
        hit_rate=stats.hit_rate,
        last_reset=stats.last_reset,
        available=cache.is_available(),
        memory_entries=memory_entries,
    )
