"""Cache statistics API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class CacheStatsResponse(BaseModel):
    """Response for GET /cache/stats."""

    hits: int = Field(..., description="Cache hits since last reset")
    misses: int = Field(..., description="Cache misses since last reset")
    errors: int = Field(..., description="Backend or payload errors since last reset")
    hit_rate: float = Field(..., description="hits / (hits + misses), 0 when idle")
    last_reset: datetime = Field(..., description="When the counters were last reset")
    available: bool = Field(..., description="Whether the distributed cache is reachable")
    memory_entries: int = Field(0, description="Entries held in the process-local cache")
