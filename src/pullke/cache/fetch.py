"""Serve a value from the cache store, or fetch and populate it."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from ..errors import CacheError
from .store import CacheHit, CacheStore, KeyLike, StoreUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Fetched(Generic[T]):
    data: T
    cached: bool


async def get_from_cache_or_fetch(
    store: CacheStore,
    key: KeyLike,
    fetch: Callable[[], Awaitable[T]],
    ttl: Optional[float] = None,
) -> Fetched[T]:
    """
    Return the cached value for ``key`` or call ``fetch`` once and cache it.

    Errors raised by ``fetch`` propagate. Cache failures never do: a failed
    write is logged and the fresh value is still returned, and an unreadable
    store falls straight through to ``fetch`` without attempting a write.
    Concurrent callers missing the same key each fetch; the last write wins.
    """
    lookup = store.lookup(key)

    if isinstance(lookup, CacheHit):
        logger.info(f"Using cached data for: {key}")
        return Fetched(lookup.data, cached=True)

    if isinstance(lookup, StoreUnavailable):
        logger.warning(f"Cache unavailable for '{key}', fetching without caching: {lookup.error}")
        return Fetched(await fetch(), cached=False)

    logger.info(f"Cache miss ({lookup.reason}) for '{key}', fetching fresh data")
    data = await fetch()

    try:
        store.write(key, data, ttl)
    except CacheError as e:
        logger.warning(f"Failed to cache fresh data for '{key}': {e}")

    return Fetched(data, cached=False)
