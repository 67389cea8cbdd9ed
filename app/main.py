"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers.
No business logic here (SRP). See app.core.lifespan and app.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and optionally
clear get_settings cache) before importing or calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api import api_router
from app.core.config import get_settings
from app.core.exception_handlers import register_exception_handlers
from app.core.lifespan import create_lifespan
from app.core.limiter import create_limiter
from app.middleware import PerformanceMonitorMiddleware, ResponseCacheMiddleware
from app.shared.telemetry import setup_logging


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    app.state.limiter = create_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    # Middleware: last added = outermost. Order: performance → rate limit → CORS → response cache.
    app.add_middleware(
        ResponseCacheMiddleware,
        api_prefix=settings.api_prefix,
        enabled_paths=settings.cache_enabled_path_list,
        exclude_paths=settings.cache_exclude_path_list,
        ttl=settings.cache_default_ttl,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.feature_rate_limiting:
        app.add_middleware(SlowAPIMiddleware)
    if settings.feature_performance_monitoring:
        app.add_middleware(
            PerformanceMonitorMiddleware,
            slow_request_threshold_ms=settings.slow_request_threshold_ms,
            request_id_header=settings.request_id_header,
        )

    app.include_router(api_router, prefix=settings.api_prefix)

    return app


app = create_app()
