"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Everything is optional; defaults below are the
documented defaults. Invalid combinations are rejected at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment and .env."""

    # App
    app_name: str = "portfolio-api"
    app_version: str = "1.0.0"
    debug: bool = False
    api_prefix: str = "/api"

    # CORS
    allowed_origins: str = "http://localhost:3000"

    # Security (bearer tokens are only decoded to partition the cache per user)
    secret_key: SecretStr = SecretStr("")
    algorithm: str = "HS256"
    # Shared secret for GET /api/cache/stats; unset means the endpoint always answers 401.
    cache_stats_token: SecretStr | None = None

    # Request / middleware
    request_id_header: str = "X-Request-ID"

    # Feature flags (FEATURE_CACHING=true etc.); all off unless enabled per deployment.
    feature_caching: bool = False
    feature_rate_limiting: bool = False
    feature_performance_monitoring: bool = False

    # Redis (distributed cache backend)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    redis_socket_timeout: float = 5.0
    redis_retry_attempts: int = 3

    # Distributed response cache
    cache_default_ttl: int = 300
    cache_enabled_paths: str = "/api/properties,/api/loans,/api/users"
    cache_exclude_paths: str = "/api/auth,/api/health"

    # Process-local memory cache (seconds)
    memory_cache_default_ttl: float = 300.0
    memory_cache_cleanup_interval: float = 600.0

    # Rate limiting (slowapi limit string)
    rate_limit_default: str = "100/minute"

    # Performance monitoring
    slow_request_threshold_ms: int = 1000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def cache_enabled_path_list(self) -> list[str]:
        """Path prefixes eligible for response caching."""
        return _split_csv(self.cache_enabled_paths)

    @property
    def cache_exclude_path_list(self) -> list[str]:
        """Path prefixes never cached (checked before the enabled list)."""
        return _split_csv(self.cache_exclude_paths)

    @property
    def allowed_origin_list(self) -> list[str]:
        return _split_csv(self.allowed_origins)

    @model_validator(mode="after")
    def validate_cache_settings(self) -> "Settings":
        """Reject values the cache layer cannot work with.

        - Redis port must be a TCP port and the DB index non-negative.
        - Memory cache TTL and sweep interval must be positive.
        """
        if not 0 < self.redis_port < 65536:
            raise ValueError(f"REDIS_PORT must be between 1 and 65535, got: {self.redis_port}")
        if self.redis_db < 0:
            raise ValueError(f"REDIS_DB must be >= 0, got: {self.redis_db}")
        if self.redis_retry_attempts < 0:
            raise ValueError("REDIS_RETRY_ATTEMPTS must be >= 0")
        if self.memory_cache_default_ttl <= 0:
            raise ValueError("MEMORY_CACHE_DEFAULT_TTL must be > 0")
        if self.memory_cache_cleanup_interval <= 0:
            raise ValueError("MEMORY_CACHE_CLEANUP_INTERVAL must be > 0")
        if not self.api_prefix.startswith("/"):
            raise ValueError(f"API_PREFIX must start with '/', got: {self.api_prefix!r}")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
