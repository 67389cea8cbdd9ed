"""Tests for cache key derivation (determinism, partitioning, patterns)."""

import pytest

from app.infrastructure.cache.keys import (
    CacheKey,
    derive_key,
    encode_component,
    resource_pattern,
    user_pattern,
)


class TestDeriveKey:
    """Keys are deterministic and partition users from the shared namespace."""

    def test_resource_only(self) -> None:
        assert derive_key("properties") == "api:properties"

    def test_user_segment(self) -> None:
        assert derive_key("properties", "u1") == "api:properties:user:u1"

    def test_params_sorted_by_name(self) -> None:
        key = derive_key("properties", "u1", {"b": "2", "a": "1"})
        assert key == "api:properties:user:u1:q:a=1:q:b=2"
        assert key == derive_key("properties", "u1", {"a": "1", "b": "2"})

    def test_sort_is_case_sensitive(self) -> None:
        assert derive_key("loans", None, {"b": "1", "B": "2"}) == "api:loans:q:B=2:q:b=1"

    def test_empty_params_same_as_absent(self) -> None:
        assert derive_key("properties", "u1", {}) == derive_key("properties", "u1")
        assert not derive_key("properties", None, {}).endswith(":")

    def test_absent_user_never_collides_with_literal_strings(self) -> None:
        shared = derive_key("properties", None, {})
        assert shared != derive_key("properties", "null", {})
        assert shared != derive_key("properties", "None", {})
        assert shared != derive_key("properties", "u1", {})
        assert derive_key("properties", "null") != derive_key("properties", "u1")

    def test_values_not_normalized(self) -> None:
        assert derive_key("p", None, {"q": "a b"}) != derive_key("p", None, {"q": "a  b"})
        assert derive_key("p", None, {"q": "Tokyo"}) != derive_key("p", None, {"q": "tokyo"})

    def test_non_string_values_degrade_deterministically(self) -> None:
        key = derive_key("p", None, {"page": 2, "active": True})  # type: ignore[dict-item]
        assert key == "api:p:q:active=True:q:page=2"
        assert key == derive_key("p", None, {"active": True, "page": 2})  # type: ignore[dict-item]


class TestNoForgedSegments:
    """Parameters and ids cannot impersonate the user segment or each other."""

    def test_user_param_is_not_a_user_partition(self) -> None:
        assert derive_key("properties", None, {"user": "u1"}) != derive_key("properties", "u1")

    @pytest.mark.parametrize(
        ("left", "right"),
        [
            ((None, {"a": "1:b:2"}), (None, {"a": "1", "b": "2"})),
            ((None, {"a": "1=2"}), (None, {"a=1": "2"})),
            (("u1:q:a=1", None), ("u1", {"a": "1"})),
            (("u1", {"page": "2"}), (None, {"user": "u1", "page": "2"})),
            ((None, {"tag": "a,b"}), (None, {"tag": ["a", "b"]})),
        ],
    )
    def test_distinct_inputs_derive_distinct_keys(self, left, right) -> None:
        assert derive_key("properties", *left) != derive_key("properties", *right)

    def test_separators_and_globs_are_encoded(self) -> None:
        assert encode_component("a:b=c*d?") == "a%3Ab%3Dc%2Ad%3F"
        assert derive_key("p", "x:y") == "api:p:user:x%3Ay"

    def test_repeated_values_keep_order(self) -> None:
        assert derive_key("p", None, {"tag": ["b", "a"]}) == "api:p:q:tag=b,a"


class TestCacheKey:
    def test_derive_matches_function(self) -> None:
        key = CacheKey("loans", "u9", {"status": "active"})
        assert key.derive() == derive_key("loans", "u9", {"status": "active"})

    def test_equal_keys_are_equal(self) -> None:
        assert CacheKey("loans", None) == CacheKey("loans")


class TestPatterns:
    def test_user_pattern(self) -> None:
        assert user_pattern("u1") == "*:user:u1"

    def test_user_pattern_wildcard_in_id_is_literal(self) -> None:
        assert user_pattern("*") == "*:user:%2A"

    def test_resource_pattern(self) -> None:
        assert resource_pattern("properties") == "properties"
        assert resource_pattern("properties", "u1") == "properties:user:u1"
