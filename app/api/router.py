"""API router aggregation.

Only operational endpoints live here; portfolio resources are served by
their own routers and reach the cache through ResponseCacheMiddleware.
"""

from fastapi import APIRouter

from app.api.endpoints import cache, health

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(cache.router, prefix="/cache", tags=["cache"])
