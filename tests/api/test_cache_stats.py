"""GET /api/cache/stats: token check and counters."""

from httpx import AsyncClient

from app.infrastructure.cache.keys import CacheKey
from app.infrastructure.cache.memory_cache import MemoryCache
from app.infrastructure.cache.redis_cache import CacheService
from app.main import app

TEST_STATS_TOKEN = "test-stats-token"


async def test_stats_without_token_is_unauthorized(client: AsyncClient) -> None:
    response = await client.get("/api/cache/stats")
    assert response.status_code == 401
    assert response.json()["error"] == "AUTHENTICATION_ERROR"


async def test_stats_with_wrong_token_is_unauthorized(client: AsyncClient) -> None:
    response = await client.get("/api/cache/stats", headers={"X-Cache-Stats-Token": "nope"})
    assert response.status_code == 401


async def test_stats_without_cache_reports_unavailable(client: AsyncClient) -> None:
    response = await client.get("/api/cache/stats", headers={"X-Cache-Stats-Token": TEST_STATS_TOKEN})
    assert response.status_code == 200
    data = response.json()
    assert data["available"] is False
    assert data["hits"] == 0


async def test_stats_report_counters(client: AsyncClient, cache_service: CacheService) -> None:
    memory = MemoryCache()
    memory.set("token-sub:x", "u1")
    app.state.api_cache = cache_service
    app.state.memory_cache = memory
    try:
        await cache_service.set(CacheKey("properties"), [1])
        await cache_service.get(CacheKey("properties"))
        await cache_service.get(CacheKey("loans"))
        response = await client.get("/api/cache/stats", headers={"X-Cache-Stats-Token": TEST_STATS_TOKEN})
    finally:
        app.state.api_cache = None
        app.state.memory_cache = None
    assert response.status_code == 200
    data = response.json()
    assert data["hits"] == 1
    assert data["misses"] == 1
    assert data["hit_rate"] == 0.5
    assert data["available"] is True
    assert data["memory_entries"] == 1
