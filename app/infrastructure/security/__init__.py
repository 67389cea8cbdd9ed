"""Security: JWT decoding and best-effort user identity for cache partitioning."""

from app.infrastructure.security.identity import BearerUserIdResolver, bearer_token
from app.infrastructure.security.jwt import verify_token

__all__ = [
    "BearerUserIdResolver",
    "bearer_token",
    "verify_token",
]
