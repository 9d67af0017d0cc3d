"""Response cache for geocode and forecast payloads, keyed by normalized inputs.

Entries live in process memory, so each uvicorn worker fetches and holds its
own copy. Only the event loop thread touches the cache, so it takes no lock.
"""

import logging
import time
from typing import Any, Callable

from cachetools import TTLCache

logger = logging.getLogger(__name__)


def make_key(endpoint: str, *parts: Any) -> str:
    """Build a cache key from an endpoint path and its normalized inputs.

    >>> make_key("/api/weather", 51.5, -0.12, "Europe/London")
    '/api/weather:51.5:-0.12:europe/london'
    """
    normalized = []
    for part in parts:
        if isinstance(part, float):
            normalized.append(repr(part))
        else:
            normalized.append(str(part).strip().lower())
    return ":".join([endpoint, *normalized])


class ResponseCache:
    """Short-lived memoization of upstream payloads.

    Entries expire ``ttl_seconds`` after insertion; once ``max_entries`` is
    reached the least recently used entry is evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        max_entries: int = 100,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._store: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl_seconds, timer=timer)

    def get(self, key: str) -> Any | None:
        value = self._store.get(key)
        logger.debug("Cache %s: %s", "hit" if value is not None else "miss", key)
        return value

    def set(self, key: str, value: Any) -> None:
        self._store[key] = value

    def clear(self) -> int:
        """Drop every entry. Returns how many live entries were flushed."""
        self._store.expire()
        flushed = len(self._store)
        self._store.clear()
        logger.info("Cache cleared (%d entries)", flushed)
        return flushed

    def __len__(self) -> int:
        self._store.expire()
        return len(self._store)
