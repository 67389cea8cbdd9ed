"""Lifespan wiring: services published on app.state and torn down on exit."""

import pytest
from fastapi import FastAPI

from app.core.config import get_settings
from app.core.lifespan import create_lifespan
from app.infrastructure.cache.memory_cache import MemoryCache
from app.infrastructure.cache.redis_cache import CacheService
from app.infrastructure.security.identity import BearerUserIdResolver


@pytest.fixture
def settings_env(monkeypatch: pytest.MonkeyPatch):
    def apply(**env: str) -> None:
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        get_settings.cache_clear()

    yield apply
    get_settings.cache_clear()


async def test_caching_disabled_publishes_local_services_only(settings_env) -> None:
    settings_env(FEATURE_CACHING="false")
    app = FastAPI()
    async with create_lifespan(app):
        assert isinstance(app.state.memory_cache, MemoryCache)
        assert isinstance(app.state.user_id_resolver, BearerUserIdResolver)
        assert app.state.api_cache is None
        cleanup_task = app.state.memory_cleanup_task
        assert not cleanup_task.done()
    assert cleanup_task.cancelled()
    assert app.state.memory_cleanup_task is None


async def test_caching_enabled_with_unreachable_redis_still_starts(settings_env) -> None:
    settings_env(
        FEATURE_CACHING="true",
        REDIS_HOST="127.0.0.1",
        REDIS_PORT="1",
        REDIS_SOCKET_TIMEOUT="0.5",
        REDIS_RETRY_ATTEMPTS="0",
    )
    app = FastAPI()
    async with create_lifespan(app):
        assert isinstance(app.state.api_cache, CacheService)
        assert not app.state.api_cache.is_available()
        assert app.state.cache_writer is not None
    assert app.state.api_cache is None
