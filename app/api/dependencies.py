"""FastAPI dependencies: cache services from app.state and stats access check."""

import hmac

from fastapi import Header, Request

from app.core.config import get_settings
from app.domain.exceptions import AuthenticationException
from app.infrastructure.cache.memory_cache import MemoryCache
from app.infrastructure.cache.redis_cache import CacheService


def get_api_cache(request: Request) -> CacheService | None:
    """Distributed cache set by the lifespan; None when FEATURE_CACHING is off."""
    return getattr(request.app.state, "api_cache", None)


def get_memory_cache(request: Request) -> MemoryCache | None:
    return getattr(request.app.state, "memory_cache", None)


def require_cache_stats_token(
    x_cache_stats_token: str | None = Header(default=None),
) -> None:
    """Allow the request only if X-Cache-Stats-Token matches CACHE_STATS_TOKEN.

    With no token configured every request is rejected.
    """
    configured = get_settings().cache_stats_token
    expected = configured.get_secret_value() if configured else ""
    if not expected or not x_cache_stats_token:
        raise AuthenticationException("Cache statistics require a valid token")
    if not hmac.compare_digest(expected.encode(), x_cache_stats_token.encode()):
        raise AuthenticationException("Cache statistics require a valid token")
