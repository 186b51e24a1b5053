"""
Expiring key-value cache used for nonces and rate-limit counters.

Two backends share one interface:
- MemoryCache: bounded in-process TLRU cache (single process, tests)
- RedisCache: Redis with native key expiry (multi-instance deployments)

Expired keys always read as absent.
"""
import logging
import time
from threading import Lock
from typing import Callable, Optional, Tuple

import redis
from cachetools import TLRUCache

from wallet_auth.core.config import Settings
from wallet_auth.core.errors import CacheError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def _expires_at(key: str, value: Tuple[str, float], now: float) -> float:
    return value[1]


class Cache:
    """Interface implemented by every cache backend."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        raise NotImplementedError

    def delete(self, *keys: str) -> None:
        raise NotImplementedError

    def incr(self, key: str, ttl_seconds: int) -> int:
        raise NotImplementedError

    def ping(self) -> bool:
        raise NotImplementedError

    def close(self) -> None:
        pass


class MemoryCache(Cache):
    """
    Thread-safe in-process cache with per-key TTL.

    Backed by a cachetools TLRUCache: expired entries are purged on every
    write and the least recently used entry is evicted once `maxsize` is
    reached, so per-window rate-limit keys cannot pile up.
    """

    def __init__(self, clock: Clock = time.time, maxsize: int = 100_000):
        self._clock = clock
        # values are (payload, absolute expiry)
        self._entries = TLRUCache(maxsize=maxsize, ttu=_expires_at, timer=clock)
        self._lock = Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            return entry[0] if entry else None

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)

    def incr(self, key: str, ttl_seconds: int) -> int:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                count, expires_at = 1, self._clock() + ttl_seconds
            else:
                count, expires_at = int(entry[0]) + 1, entry[1]
            self._entries[key] = (str(count), expires_at)
            return count

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)


class RedisCache(Cache):
    """Redis-backed cache. Every redis error is re-raised as CacheError."""

    def __init__(self, url: Optional[str] = None, client: Optional[redis.Redis] = None):
        if client is None:
            client = redis.Redis.from_url(url, decode_responses=True)
        self.redis_client = client

    def get(self, key: str) -> Optional[str]:
        try:
            return self.redis_client.get(key)
        except redis.RedisError as exc:
            raise CacheError(f"GET {key} failed: {exc}") from exc

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self.redis_client.setex(key, ttl_seconds, value)
        except redis.RedisError as exc:
            raise CacheError(f"SETEX {key} failed: {exc}") from exc

    def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            self.redis_client.delete(*keys)
        except redis.RedisError as exc:
            raise CacheError(f"DEL failed: {exc}") from exc

    def incr(self, key: str, ttl_seconds: int) -> int:
        # window starts with the first hit; later hits keep the original expiry
        try:
            count = self.redis_client.incr(key)
            if count == 1:
                self.redis_client.expire(key, ttl_seconds)
            return int(count)
        except redis.RedisError as exc:
            raise CacheError(f"INCR {key} failed: {exc}") from exc

    def ping(self) -> bool:
        try:
            return bool(self.redis_client.ping())
        except redis.RedisError:
            logger.warning("Redis ping failed", exc_info=True)
            return False

    def close(self) -> None:
        self.redis_client.close()


def build_cache(config: Settings) -> Cache:
    """
    Build the cache backend named by the configuration.

    Args:
        config: Application settings

    Returns:
        MemoryCache or RedisCache
    """
    if config.cache_backend == "redis":
        return RedisCache(url=config.redis_url)
    if config.cache_backend == "memory":
        return MemoryCache(maxsize=config.memory_cache_maxsize)
    raise ValueError(f"Unknown cache backend: {config.cache_backend!r}")
