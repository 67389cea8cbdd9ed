"""Core constants: cache key structure and cache-status header values.

Single source of truth for cache key layout (DRY). Used by
app.infrastructure.cache and the response cache middleware.
"""

# Every derived key starts with this namespace:
# api:<resource>[:user:<id>][:q:<name>=<value>...], components percent-encoded
CACHE_KEY_PREFIX = "api"
CACHE_USER_SEGMENT = "user"
CACHE_PARAM_SEGMENT = "q"

# Delimiters for composite keys; both are always percent-encoded inside components
CACHE_KEY_SEP = ":"
CACHE_PARAM_ASSIGN = "="

# Joins the values of a repeated parameter (?tag=a&tag=b)
CACHE_MULTI_VALUE_SEP = ","

# Reserved key parameter holding the sub-path below a resource (/api/properties/7 -> "7").
# Client query parameters starting with "_" are re-prefixed so they never land on it.
CACHE_PATH_PARAM = "_path"
CACHE_RESERVED_PARAM_PREFIX = "_"

# Response header telling clients whether the body came from the cache
CACHE_STATUS_HEADER = "X-Cache"
CACHE_HIT = "HIT"
CACHE_MISS = "MISS"

# HTTP verbs that invalidate cached reads for the resource they touch
MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
