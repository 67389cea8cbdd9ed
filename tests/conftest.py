"""Pytest configuration and fixtures for portfolio-api.

Environment is set before app.main is imported so create_app() sees test
settings. Redis-level fixtures use fakeredis (one FakeServer per test).
"""

import os
from datetime import UTC, datetime, timedelta

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("CACHE_STATS_TOKEN", "test-stats-token")
os.environ.setdefault("FEATURE_CACHING", "false")
os.environ.setdefault("FEATURE_RATE_LIMITING", "false")
os.environ.setdefault("FEATURE_PERFORMANCE_MONITORING", "false")

import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt

from app.core.config import get_settings
from app.infrastructure.cache.cache_aside import BackgroundWriter
from app.infrastructure.cache.memory_cache import MemoryCache
from app.infrastructure.cache.redis_cache import CacheService
from app.infrastructure.cache.redis_store import RedisStore

get_settings.cache_clear()

from app.main import app  # noqa: E402


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def fake_redis() -> fakeredis.FakeAsyncRedis:
    """Isolated in-process Redis."""
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def redis_store(fake_redis: fakeredis.FakeAsyncRedis) -> RedisStore:
    return RedisStore(redis_client=fake_redis)


@pytest.fixture
def cache_service(redis_store: RedisStore) -> CacheService:
    return CacheService(redis_store, default_ttl=300)


@pytest.fixture
def memory_cache() -> MemoryCache:
    cache = MemoryCache(default_ttl=60)
    yield cache
    cache.clear()


@pytest.fixture
async def writer() -> BackgroundWriter:
    """Background writer drained at teardown so no write outlives the test."""
    background = BackgroundWriter()
    yield background
    await background.drain()


@pytest.fixture
def make_token():
    """Sign a bearer token the way the upstream identity provider would."""

    def _make(sub: str, expires_in: timedelta = timedelta(minutes=30)) -> str:
        settings = get_settings()
        claims = {"sub": sub, "exp": datetime.now(UTC) + expires_in}
        return jwt.encode(claims, settings.secret_key.get_secret_value(), algorithm=settings.algorithm)

    return _make
