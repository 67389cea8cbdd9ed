"""Tests for bearer-token user resolution used to partition the cache."""

from datetime import timedelta
from unittest.mock import patch

from jose import jwt

from app.infrastructure.cache.cache_aside import CacheRequest
from app.infrastructure.cache.memory_cache import MemoryCache
from app.infrastructure.security.identity import BearerUserIdResolver, bearer_token


def _request(authorization: str | None = None) -> CacheRequest:
    headers = {"Authorization": authorization} if authorization is not None else {}
    return CacheRequest(method="GET", path="/api/properties", headers=headers)


class TestBearerToken:
    def test_extracts_token(self) -> None:
        assert bearer_token(_request("Bearer abc.def")) == "abc.def"

    def test_scheme_is_case_insensitive(self) -> None:
        assert bearer_token(_request("bearer abc")) == "abc"

    def test_missing_or_other_scheme(self) -> None:
        assert bearer_token(_request()) is None
        assert bearer_token(_request("Basic dXNlcjpwYXNz")) is None
        assert bearer_token(_request("Bearer   ")) is None


class TestBearerUserIdResolver:
    async def test_valid_token_resolves_sub(self, memory_cache: MemoryCache, make_token) -> None:
        resolver = BearerUserIdResolver(memory_cache)
        token = make_token("user-1")
        assert await resolver(_request(f"Bearer {token}")) == "user-1"

    async def test_no_header_is_none(self, memory_cache: MemoryCache) -> None:
        assert await BearerUserIdResolver(memory_cache)(_request()) is None

    async def test_garbage_token_is_none(self, memory_cache: MemoryCache) -> None:
        assert await BearerUserIdResolver(memory_cache)(_request("Bearer not-a-jwt")) is None
        assert len(memory_cache) == 0

    async def test_wrong_secret_is_none(self, memory_cache: MemoryCache) -> None:
        token = jwt.encode({"sub": "user-1", "exp": 4102444800}, "other-secret", algorithm="HS256")
        assert await BearerUserIdResolver(memory_cache)(_request(f"Bearer {token}")) is None

    async def test_expired_token_is_none(self, memory_cache: MemoryCache, make_token) -> None:
        token = make_token("user-1", timedelta(seconds=-10))
        assert await BearerUserIdResolver(memory_cache)(_request(f"Bearer {token}")) is None

    async def test_decoded_token_is_memoised(self, memory_cache: MemoryCache, make_token) -> None:
        resolver = BearerUserIdResolver(memory_cache)
        token = make_token("user-1")
        assert await resolver(_request(f"Bearer {token}")) == "user-1"
        assert len(memory_cache) == 1
        with patch("app.infrastructure.security.identity.verify_token") as verify:
            assert await resolver(_request(f"Bearer {token}")) == "user-1"
            verify.assert_not_called()

    async def test_empty_sub_is_none(self, memory_cache: MemoryCache) -> None:
        token = jwt.encode({"sub": "", "exp": 4102444800}, "test-secret-key", algorithm="HS256")
        assert await BearerUserIdResolver(memory_cache)(_request(f"Bearer {token}")) is None
