"""Response cache middleware.

Applies app.infrastructure.cache.cache_aside.with_cache to API paths:
GET hits are answered from Redis with X-Cache: HIT, cacheable 200 JSON
misses are stored and tagged X-Cache: MISS, and POST/PUT/PATCH/DELETE
invalidate the resource before the response leaves.
Uses raw ASGI (no BaseHTTPMiddleware) for production-safe streaming and background tasks.

CacheService, BackgroundWriter and the user id resolver are read from
app.state (api_cache, cache_writer, user_id_resolver), set by the lifespan.
Without api_cache every request passes straight through.
"""

import json
import logging
from collections.abc import Sequence
from typing import Callable

from starlette.datastructures import Headers, QueryParams
from starlette.responses import JSONResponse

from app.core.constants import (
    CACHE_HIT,
    CACHE_MISS,
    CACHE_PATH_PARAM,
    CACHE_RESERVED_PARAM_PREFIX,
    CACHE_STATUS_HEADER,
    MUTATING_METHODS,
)
from app.infrastructure.cache.cache_aside import CacheRequest, HandlerResult, with_cache

logger = logging.getLogger(__name__)


def should_cache(path: str, enabled_paths: Sequence[str], exclude_paths: Sequence[str]) -> bool:
    """Return True if path is under an enabled prefix and no excluded one."""
    if any(path.startswith(p) for p in exclude_paths):
        return False
    return any(path.startswith(p) for p in enabled_paths)


def split_resource(path: str, api_prefix: str) -> tuple[str, str]:
    """Split a request path into (resource, sub-path).

    /api/properties/7/rooms -> ("properties", "7/rooms"); /api/loans -> ("loans", "").
    """
    rest = path
    if api_prefix and (path == api_prefix or path.startswith(api_prefix.rstrip("/") + "/")):
        rest = path[len(api_prefix.rstrip("/")) :]
    segments = [s for s in rest.split("/") if s]
    if not segments:
        return "", ""
    return segments[0], "/".join(segments[1:])


def client_params(query_string: bytes | str) -> dict[str, str | list[str]]:
    """Query parameters as cache key parameters.

    Repeated names keep every value as a list. Names starting with "_" get
    one more "_", so client input never lands on a reserved parameter such
    as _path while distinct names still map to distinct keys.
    """
    params: dict[str, str | list[str]] = {}
    for name, value in QueryParams(query_string).multi_items():
        if name.startswith(CACHE_RESERVED_PARAM_PREFIX):
            name = CACHE_RESERVED_PARAM_PREFIX + name
        current = params.get(name)
        if current is None:
            params[name] = value
        elif isinstance(current, list):
            current.append(value)
        else:
            params[name] = [current, value]
    return params


def _is_json(headers: list[tuple[bytes, bytes]]) -> bool:
    for k, v in headers:
        if k.lower() == b"content-type":
            return v.split(b";")[0].strip().lower() == b"application/json"
    return False


def ResponseCacheMiddleware(
    app: Callable,
    api_prefix: str = "/api",
    enabled_paths: Sequence[str] = (),
    exclude_paths: Sequence[str] = (),
    ttl: int | None = None,
) -> Callable:
    """Cache-aside for GET and invalidation on writes under enabled_paths. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        method = scope.get("method", "GET").upper()
        path = scope.get("path", "")
        if (method != "GET" and method not in MUTATING_METHODS) or not should_cache(
            path, enabled_paths, exclude_paths
        ):
            await app(scope, receive, send)
            return
        starlette_app = scope.get("app")
        state = getattr(starlette_app, "state", None)
        cache = getattr(state, "api_cache", None)
        if cache is None:
            await app(scope, receive, send)
            return

        resource, sub_path = split_resource(path, api_prefix)
        messages: list[dict] = []

        async def downstream(request: CacheRequest) -> HandlerResult:
            async def buffer(message: dict) -> None:
                messages.append(message)

            await app(scope, receive, buffer)
            start = next((m for m in messages if m["type"] == "http.response.start"), None)
            if start is None:
                return HandlerResult(status_code=500, cacheable=False)
            status = start["status"]
            headers = list(start.get("headers", []))
            if request.method != "GET" or status != 200 or not _is_json(headers):
                return HandlerResult(status_code=status, cacheable=False)
            raw = b"".join(m.get("body", b"") for m in messages if m["type"] == "http.response.body")
            try:
                body = json.loads(raw)
            except ValueError:
                return HandlerResult(status_code=status, cacheable=False)
            return HandlerResult(status_code=status, body=body)

        handler = with_cache(
            downstream,
            cache=cache,
            resource=resource,
            ttl=ttl,
            get_user_id=getattr(state, "user_id_resolver", None),
            writer=getattr(state, "cache_writer", None),
            extra_params=lambda _: {CACHE_PATH_PARAM: sub_path} if sub_path else {},
        )
        headers = Headers(scope=scope)
        request = CacheRequest(
            method=method,
            path=path,
            query_params=client_params(scope.get("query_string", b"")),
            headers=dict(headers.items()),
        )
        result = await handler(request)

        if result.cache_status == CACHE_HIT:
            max_age = ttl if ttl is not None else cache.default_ttl
            response = JSONResponse(
                result.body,
                headers={
                    CACHE_STATUS_HEADER: CACHE_HIT,
                    "Cache-Control": f"private, max-age={max_age}",
                },
            )
            await response(scope, receive, send)
            return

        for message in messages:
            if message["type"] == "http.response.start" and result.cache_status == CACHE_MISS:
                message = dict(message)
                message["headers"] = list(message.get("headers", [])) + [
                    (CACHE_STATUS_HEADER.encode(), CACHE_MISS.encode())
                ]
            await send(message)

    return asgi_app
