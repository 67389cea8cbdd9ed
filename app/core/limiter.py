"""Rate limiter factory for SlowAPI.

One Limiter per app (stored on app.state.limiter) so tests get isolated
counters. Disabled unless FEATURE_RATE_LIMITING is on; when enabled the
default limit applies to every route through SlowAPIMiddleware.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import Settings


def create_limiter(settings: Settings) -> Limiter:
    """Build the app's limiter from settings."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit_default],
        enabled=settings.feature_rate_limiting,
    )
