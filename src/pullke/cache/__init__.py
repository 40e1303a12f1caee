"""
Local search-result cache.

- keys: deterministic cache keys for repository and pull request searches
- store: one JSON file per key with a family-specific default TTL
- fetch: cache-or-fetch orchestration tolerant of cache failures
"""

from .fetch import Fetched, get_from_cache_or_fetch
from .keys import CacheKey, KeyFamily, pull_request_search_key, repository_search_key
from .store import (
    CacheHit,
    CacheInfo,
    CacheMiss,
    CacheRecord,
    CacheStore,
    ClearResult,
    StoreUnavailable,
    sanitize_cache_key,
)

__all__ = [
    "CacheHit",
    "CacheInfo",
    "CacheKey",
    "CacheMiss",
    "CacheRecord",
    "CacheStore",
    "ClearResult",
    "Fetched",
    "KeyFamily",
    "StoreUnavailable",
    "get_from_cache_or_fetch",
    "pull_request_search_key",
    "repository_search_key",
    "sanitize_cache_key",
]
