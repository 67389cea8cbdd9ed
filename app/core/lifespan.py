"""Application lifespan: startup and shutdown.

Single place for cache wiring (SRP). Used by main.py; services are created
here and published on app.state instead of module-level singletons, so
tests can build isolated instances.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.core.config import get_settings
from app.infrastructure.cache.cache_aside import BackgroundWriter
from app.infrastructure.cache.memory_cache import MemoryCache, run_periodic_cleanup
from app.infrastructure.cache.redis_cache import CacheService
from app.infrastructure.security.identity import BearerUserIdResolver

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: memory cache + sweep task, user id resolver, distributed
    cache (if FEATURE_CACHING). Shutdown order: sweep task cancel, pending
    cache writes drained, cache disconnect.
    """
    settings = get_settings()

    # ---- Startup ----
    memory_cache = MemoryCache(default_ttl=settings.memory_cache_default_ttl)
    app.state.memory_cache = memory_cache
    app.state.memory_cleanup_task = asyncio.create_task(
        run_periodic_cleanup(memory_cache, settings.memory_cache_cleanup_interval)
    )
    app.state.user_id_resolver = BearerUserIdResolver(memory_cache)

    if settings.feature_caching:
        cache = CacheService.from_settings(settings)
        await cache.connect()
        app.state.api_cache = cache
        app.state.cache_writer = BackgroundWriter()
    else:
        app.state.api_cache = None
        app.state.cache_writer = None

    yield

    # ---- Shutdown ----
    cleanup_task = getattr(app.state, "memory_cleanup_task", None)
    if cleanup_task is not None:
        cleanup_task.cancel()
        try:
            await cleanup_task
        except asyncio.CancelledError:
            pass
        app.state.memory_cleanup_task = None
        logger.info("Memory cache cleanup task stopped")

    writer = getattr(app.state, "cache_writer", None)
    if writer is not None:
        await writer.drain()

    if getattr(app.state, "api_cache", None) is not None:
        await app.state.api_cache.disconnect()
        app.state.api_cache = None
        logger.info("Cache disconnected")
