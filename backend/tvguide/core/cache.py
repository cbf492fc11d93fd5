"""
cache.py

Best-effort response cache for upstream API results (TMDB, JustWatch).

One cache is built per process at startup (see build_response_cache) and
handed to the clients that need it. Losing its contents is always safe.
"""
import json
import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Tuple

logger = logging.getLogger(__name__)

# Sentinel for "not cached", so that a cached None can still be a hit
MISS = object()


class ResponseCache:
    """Async cache contract: get / set / evict_expired / clear."""

    async def get(self, key: str) -> Any:
        raise NotImplementedError

    async def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    async def evict_expired(self) -> int:
        raise NotImplementedError

    async def clear(self) -> None:
        raise NotImplementedError


class MemoryResponseCache(ResponseCache):
    """
    In-process TTL map.

    Entries expire ttl_seconds after being written. When the map grows past
    max_entries, expired entries are swept; if it is still over capacity the
    oldest writes are dropped until it fits.
    """

    def __init__(self, ttl_seconds: float = 300, max_entries: int = 100, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return MISS
        expiry, value = entry
        if expiry <= self._clock():
            del self._entries[key]
            return MISS
        return value

    async def set(self, key: str, value: Any) -> None:
        self._entries.pop(key, None)
        self._entries[key] = (self._clock() + self.ttl_seconds, value)
        if len(self._entries) > self.max_entries:
            await self.evict_expired()
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    async def evict_expired(self) -> int:
        now = self._clock()
        expired = [key for key, (expiry, _) in self._entries.items() if expiry <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")
        return len(expired)

    async def clear(self) -> None:
        self._entries.clear()


class RedisResponseCache(ResponseCache):
    """
    Shared TTL cache on Redis for multi-worker deployments.

    Values are stored as JSON under a key prefix with SETEX, so Redis handles
    expiry and eviction (configure maxmemory-policy on the server). Redis
    errors are logged and treated as misses.
    """

    def __init__(self, redis=None, ttl_seconds: int = 300, prefix: str = "tvguide:cache:", url: str = None):
        self._redis = redis
        self.url = url
        self.ttl_seconds = int(ttl_seconds)
        self.prefix = prefix

    @property
    def redis(self):
        # Without an injected client, resolve the one bound to the running loop
        if self._redis is not None:
            return self._redis
        from tvguide.core.redis_client import get_redis
        return get_redis(self.url)

    async def get(self, key: str) -> Any:
        try:
            raw = await self.redis.get(self.prefix + key)
        except Exception as e:
            logger.warning(f"Redis cache get failed for {key}: {e}")
            return MISS
        if raw is None:
            return MISS
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        try:
            await self.redis.setex(self.prefix + key, self.ttl_seconds, json.dumps(value))
        except Exception as e:
            logger.warning(f"Redis cache set failed for {key}: {e}")

    async def evict_expired(self) -> int:
        # Redis expires keys itself
        return 0

    async def clear(self) -> None:
        try:
            async for key in self.redis.scan_iter(match=f"{self.prefix}*"):
                await self.redis.delete(key)
        except Exception as e:
            logger.warning(f"Redis cache clear failed: {e}")


def build_response_cache(settings, redis=None) -> ResponseCache:
    """Construct the process-wide cache selected by CACHE_BACKEND."""
    backend = (settings.cache_backend or "memory").lower()
    if backend == "redis":
        logger.info("Using Redis response cache")
        return RedisResponseCache(redis, ttl_seconds=settings.cache_ttl_seconds, url=settings.redis_url)
    logger.info(f"Using in-memory response cache (ttl={settings.cache_ttl_seconds}s, max={settings.cache_max_entries})")
    return MemoryResponseCache(ttl_seconds=settings.cache_ttl_seconds, max_entries=settings.cache_max_entries)
