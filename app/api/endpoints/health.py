"""Health check endpoint. Used for liveness probes; reports cache reachability."""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_api_cache
from app.infrastructure.cache.redis_cache import CacheService
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check(cache: CacheService | None = Depends(get_api_cache)) -> HealthResponse:
    """Return ok; the cache field never turns a healthy service unhealthy."""
    if cache is None:
        return HealthResponse(cache="disabled")
    return HealthResponse(cache="connected" if cache.is_available() else "unavailable")
