"""
Read-through resolution in front of a TTLCache.

On a miss the resolver runs the fetch function once per key no matter how many
threads ask at the same time (single-flight): the first caller fetches, the
others wait on its Future and share the value or the exception. Only successful
fetches are cached.
"""

import logging
import re
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

from .ttl_cache import TTLCache

logger = logging.getLogger(__name__)

_MISSING = object()


def cache_key(kind: str, *parts: Any) -> str:
    """
    Build a deterministic cache key from a logical query.

    Each part is percent-encoded, so an id containing ':' cannot reach
    another entity's key.

    Args:
        kind: Entity kind, e.g. 'tournament' or 'player-search'; must not contain ':'
        *parts: Identifying values, joined in order

    Returns:
        Key such as 'tournament:42' or 'player-search:rory%20mc:20'
    """
    return ':'.join([kind] + [quote(str(part), safe='') for part in parts])


def normalize_search_term(term: str) -> str:
    """Trim, collapse whitespace and lower-case a free-text search term."""
    return re.sub(r'\s+', ' ', term.strip()).lower()


class ReadThroughResolver:
    """Wraps slow fetches so repeated requests within the TTL hit the cache."""

    def __init__(self, cache: TTLCache):
        self.cache = cache
        self._lock = threading.Lock()
        self._in_flight: Dict[str, Future] = {}

    @property
    def in_flight_count(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def resolve(
        self,
        key: str,
        ttl: Optional[float],
        fetch_fn: Callable[[], Any]
    ) -> Any:
        """
        Return the cached value for ``key`` or fetch, store and return it.

        Args:
            key: Cache key (see cache_key())
            ttl: Seconds to keep a fetched value (None = cache default)
            fetch_fn: Zero-argument callable hitting the data source

        Returns:
            Cached or freshly fetched value

        Raises:
            Whatever fetch_fn raises; the cache is left unmodified.
        """
        value = self.cache.get(key, _MISSING)
        if value is not _MISSING:
            logger.debug(f"Cache hit: {key}")
            return value

        with self._lock:
            future = self._in_flight.get(key)
            leader = future is None
            if leader:
                # A previous leader may have populated the cache since our check
                value = self.cache.get(key, _MISSING)
                if value is not _MISSING:
                    return value
                future = Future()
                self._in_flight[key] = future

        if not leader:
            logger.debug(f"Awaiting in-flight fetch: {key}")
            return future.result()

        logger.debug(f"Cache miss: {key}")
        try:
            value = fetch_fn()
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            self.cache.set(key, value, ttl)
            future.set_result(value)
            return value
        finally:
            with self._lock:
                self._in_flight.pop(key, None)
