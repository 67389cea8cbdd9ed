"""Bearer JWT decoding for cache partitioning.

The API never issues tokens; an upstream identity provider signs them with
the shared SECRET_KEY. Only ``sub`` (the cache partition) and ``exp`` (how
long the partition lookup may be memoised) are read.
"""

from typing import Any

from jose import JWTError, jwt

from app.core.config import get_settings

_REQUIRED_CLAIMS = {"require_exp": True, "require_sub": True}


def verify_token(token: str) -> dict[str, Any]:
    """Decode a signed token and return its claims.

    Raises:
        ValueError: No SECRET_KEY configured, bad signature, expired, or
            an empty sub.
    """
    settings = get_settings()
    secret = settings.secret_key.get_secret_value()
    if not secret:
        raise ValueError("SECRET_KEY is not configured")
    try:
        claims = jwt.decode(token, secret, algorithms=[settings.algorithm], options=_REQUIRED_CLAIMS)
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    if not claims.get("sub"):
        raise ValueError("Token sub claim is empty")
    return claims
