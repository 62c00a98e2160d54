"""
In-memory TTL cache for slow-changing tournament and player data.

Expiry is lazy: an entry past its deadline is removed by the next get/delete/clear
that touches it, there is no background sweep and no size bound.

Note: each server process owns its own cache instance. With several uvicorn
workers the same key may be fetched once per worker.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .. import config

logger = logging.getLogger(__name__)


class TTLCache:
    """Thread-safe key -> value store with per-entry expiry."""

    def __init__(
        self,
        default_ttl: float = config.DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize an empty cache.

        Args:
            default_ttl: Seconds an entry lives when set() gets no ttl
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self.default_ttl = default_ttl
        self._clock = clock
        self._store: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        """
        Return the cached value, or ``default`` when absent or expired.

        An expired entry is deleted as a side effect.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if self._clock() > expires_at:
                del self._store[key]
                logger.debug(f"Expired cache entry: {key}")
                return default
            return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store or overwrite ``key``; it expires ``ttl`` seconds from now."""
        if ttl is None:
            ttl = self.default_ttl
        with self._lock:
            self._store[key] = (self._clock() + ttl, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            count = len(self._store)
            self._store.clear()
        logger.info(f"Cleared cache ({count} entries)")

    def __len__(self) -> int:
        """Number of stored entries, including expired ones not yet touched."""
        with self._lock:
            return len(self._store)
