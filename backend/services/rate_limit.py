"""Fixed-window rate limiting per client IP, shared by every /api route.

Counters live in process memory (``limits`` MemoryStorage), so like the
response cache each uvicorn worker keeps its own budget.
"""

import math
import time

from fastapi import Request
from limits import RateLimitItem, parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

EXEMPT_PATHS = frozenset({"/api/health"})


def client_address(request: Request) -> str:
    if request.client is None:
        return "127.0.0.1"
    return request.client.host


class RateLimiter:
    """One request budget per client across all routes.

    ``rate`` uses the ``limits`` notation, e.g. ``"100/15 minutes"``.
    """

    def __init__(self, rate: str, exempt_paths=EXEMPT_PATHS):
        self.limit: RateLimitItem = parse(rate)
        self.exempt_paths = frozenset(exempt_paths)
        self._window = FixedWindowRateLimiter(MemoryStorage())

    def is_exempt(self, request: Request) -> bool:
        return request.url.path in self.exempt_paths

    def hit(self, key: str) -> bool:
        """Count one request for ``key``. False once the window's budget is spent."""
        return self._window.hit(self.limit, key)

    def retry_after(self, key: str) -> int:
        """Whole seconds until ``key``'s current window resets."""
        reset_at, _remaining = self._window.get_window_stats(self.limit, key)
        return max(1, math.ceil(reset_at - time.time()))
