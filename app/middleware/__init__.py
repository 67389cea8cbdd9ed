"""HTTP middleware: performance monitoring and response cache.

Applied in main app; order matters (first added = outermost).
Import and use from app.main.
"""

from app.middleware.performance import PerformanceMonitorMiddleware
from app.middleware.response_cache import ResponseCacheMiddleware

__all__ = [
    "PerformanceMonitorMiddleware",
    "ResponseCacheMiddleware",
]
