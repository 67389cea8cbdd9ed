"""Cache-aside wrapping for request handlers.

with_cache() takes a handler and returns a new handler with the same
signature:

- before: resolve the user, derive the key, serve GET hits from the cache
  without calling the handler;
- after: on a GET 200 schedule the cache write in the background and tag
  the result MISS; on a mutating verb invalidate the resource namespace,
  whatever the handler's outcome.

Framework-free so it can wrap plain coroutines as well as the ASGI adapter
in app.middleware.response_cache.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine, Mapping
from dataclasses import dataclass, field
from typing import Any

from app.core.constants import CACHE_HIT, CACHE_MISS, MUTATING_METHODS
from app.infrastructure.cache.keys import CacheKey
from app.infrastructure.cache.redis_cache import CacheService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheRequest:
    """What the cache layer needs to know about an inbound request."""

    method: str
    path: str
    query_params: Mapping[str, str | list[str]] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        want = name.lower()
        for key, value in self.headers.items():
            if key.lower() == want:
                return value
        return None


@dataclass
class HandlerResult:
    """Handler outcome. body must be JSON-serializable when cacheable is True."""

    status_code: int
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)
    cacheable: bool = True
    cache_status: str | None = None


Handler = Callable[[CacheRequest], Awaitable[HandlerResult]]
UserIdResolver = Callable[[CacheRequest], Awaitable[str | None]]
ResourceResolver = Callable[[CacheRequest], str]


class BackgroundWriter:
    """Runs best-effort cache writes as detached tasks.

    The response path never awaits these; drain() exists for shutdown and
    tests. Task failures are logged, never re-raised.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background cache write failed", exc_info=exc)

    async def drain(self) -> None:
        """Wait for every scheduled write to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


async def resolve_user_id(
    get_user_id: UserIdResolver | None, request: CacheRequest
) -> str | None:
    """Best-effort user lookup; any resolver failure means 'no user segment'."""
    if get_user_id is None:
        return None
    try:
        return await get_user_id(request)
    except Exception:
        logger.warning("User id resolution failed for %s %s", request.method, request.path, exc_info=True)
        return None


def with_cache(
    handler: Handler,
    *,
    cache: CacheService,
    resource: str | ResourceResolver,
    ttl: int | None = None,
    get_user_id: UserIdResolver | None = None,
    writer: BackgroundWriter | None = None,
    extra_params: Callable[[CacheRequest], Mapping[str, str]] | None = None,
) -> Handler:
    """Wrap handler with cache-aside reads and write-time invalidation.

    Args:
        handler: Downstream handler.
        cache: Distributed cache service.
        resource: Resource name, or a callable deriving it from the request.
        ttl: Seconds to cache GET results; None uses the service default.
        get_user_id: Optional resolver; None result is the shared partition.
        writer: Where cache writes are scheduled; a private one is used if omitted.
        extra_params: Optional extra key parameters (e.g. a sub-path).

    Returns:
        Handler with the same contract, tagging GET results HIT or MISS.
    """
    background = writer or BackgroundWriter()

    async def cached_handler(request: CacheRequest) -> HandlerResult:
        method = request.method.upper()
        if method != "GET" and method not in MUTATING_METHODS:
            return await handler(request)

        name = resource(request) if callable(resource) else resource
        user_id = await resolve_user_id(get_user_id, request)

        if method in MUTATING_METHODS:
            try:
                return await handler(request)
            finally:
                # Also on handler failure: over-invalidate rather than serve stale reads.
                await cache.invalidate_resource(name, user_id)

        params = dict(request.query_params)
        if extra_params is not None:
            params.update(extra_params(request))
        key = CacheKey(resource=name, user_id=user_id, params=params or None)

        cached = await cache.get(key)
        if cached is not None:
            return HandlerResult(status_code=200, body=cached, cache_status=CACHE_HIT)

        result = await handler(request)
        if result.status_code != 200 or not result.cacheable:
            return result
        background.schedule(cache.set(key, result.body, ttl=ttl))
        result.cache_status = CACHE_MISS
        return result

    return cached_handler
