"""API request/response schemas."""

from app.schemas.cache import CacheStatsResponse
from app.schemas.health import HealthResponse

__all__ = ["CacheStatsResponse", "HealthResponse"]
