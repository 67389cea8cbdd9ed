"""Performance monitoring middleware.

Generates or forwards X-Request-ID, adds X-Response-Time (milliseconds) and
logs requests slower than the configured threshold.
Client-provided request IDs are sanitized (length + character set) to prevent log injection.
Uses raw ASGI (no BaseHTTPMiddleware) for production-safe streaming and background tasks.
"""

import logging
import re
import time
import uuid
from typing import Callable

logger = logging.getLogger(__name__)

# Safe for logging: alphanumeric, hyphen, underscore; max length to avoid abuse.
REQUEST_ID_MAX_LENGTH = 64
REQUEST_ID_ALLOWED_PATTERN = re.compile(
    r"^[a-zA-Z0-9_-]{1," + str(REQUEST_ID_MAX_LENGTH) + r"}$"
)
RESPONSE_TIME_HEADER = "X-Response-Time"


def _get_header(scope: dict, name: str) -> str | None:
    """Return first header value for name (case-insensitive). Headers are (bytes, bytes)."""
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace")
    return None


def _sanitize_request_id(raw: str | None) -> str:
    """Return raw if valid and safe; otherwise return a new UUID."""
    if not raw or not REQUEST_ID_ALLOWED_PATTERN.match(raw.strip()):
        return str(uuid.uuid4())
    return raw.strip()


def PerformanceMonitorMiddleware(
    app: Callable,
    slow_request_threshold_ms: int = 1000,
    request_id_header: str = "X-Request-ID",
) -> Callable:
    """Time each HTTP request and tag the response with request ID and duration. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = _sanitize_request_id(_get_header(scope, request_id_header))
        scope.setdefault("state", {})["request_id"] = request_id
        started = time.perf_counter()
        cpu_started = time.process_time()
        status_code = 500

        async def send_wrapper(message: dict) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                elapsed_ms = (time.perf_counter() - started) * 1000
                headers = list(message.get("headers", []))
                headers.append((request_id_header.encode(), request_id.encode()))
                headers.append((RESPONSE_TIME_HEADER.encode(), f"{elapsed_ms:.1f}ms".encode()))
                message["headers"] = headers
            await send(message)

        try:
            await app(scope, receive, send_wrapper)
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            cpu_ms = (time.process_time() - cpu_started) * 1000
            method = scope.get("method", "")
            path = scope.get("path", "")
            if duration_ms > slow_request_threshold_ms:
                logger.warning(
                    "Slow request detected: %s %s took %.1fms (threshold %sms, status %s, request_id %s)",
                    method,
                    path,
                    duration_ms,
                    slow_request_threshold_ms,
                    status_code,
                    request_id,
                )
            logger.debug(
                "Request metrics: %s %s status=%s duration=%.1fms cpu=%.1fms request_id=%s",
                method,
                path,
                status_code,
                duration_ms,
                cpu_ms,
                request_id,
            )

    return asgi_app
