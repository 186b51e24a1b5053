"""
Fixed-window rate limiting backed by the shared cache.

Each (limiter, key, window) gets its own counter that expires with the window,
so counters reset themselves and nothing has to clean them up.
"""
import logging
import time
from typing import Callable

from wallet_auth.core.cache import Cache
from wallet_auth.core.errors import CacheError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Allow at most `limit` hits per key in each `window_seconds` window."""

    def __init__(
        self,
        cache: Cache,
        name: str,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ):
        self.cache = cache
        self.name = name
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock

    def _key(self, key: str) -> str:
        window = int(self._clock() // self.window_seconds)
        return f"rate_limit:{self.name}:{key}:{window}"

    def allow(self, key: str) -> bool:
        """
        Count a hit for `key` and report whether it is within the limit.

        Args:
            key: Client identity (IP, or IP:address)

        Returns:
            True if the request may proceed. False when the limit is exceeded
            or the counter cannot be reached.
        """
        try:
            count = self.cache.incr(self._key(key), self.window_seconds)
        except CacheError as exc:
            logger.error("Rate limiter %s unavailable, rejecting %s: %s", self.name, key, exc)
            return False

        if count > self.limit:
            logger.warning("Rate limit %s exceeded for %s (%d/%d)", self.name, key, count, self.limit)
            return False
        return True

    def remaining(self, key: str) -> int:
        """Attempts left for `key` in the current window (0 if unknown)."""
        try:
            current = self.cache.get(self._key(key))
        except CacheError:
            return 0
        used = int(current) if current else 0
        return max(self.limit - used, 0)
