import asyncio
import json
import unittest

from tvguide.core.cache import MISS, MemoryResponseCache, RedisResponseCache
from tvguide.core.redis_client import close_redis, get_redis


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestMemoryResponseCache(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = MemoryResponseCache(ttl_seconds=300, max_entries=3, clock=self.clock)

    def test_hit_and_miss(self):
        asyncio.run(self.cache.set("a", {"x": 1}))
        self.assertEqual(asyncio.run(self.cache.get("a")), {"x": 1})
        self.assertIs(asyncio.run(self.cache.get("b")), MISS)

    def test_cached_none_is_a_hit(self):
        asyncio.run(self.cache.set("empty", None))
        self.assertIsNone(asyncio.run(self.cache.get("empty")))

    def test_entries_expire_after_ttl(self):
        asyncio.run(self.cache.set("a", 1))
        self.clock.now += 299
        self.assertEqual(asyncio.run(self.cache.get("a")), 1)
        self.clock.now += 1
        self.assertIs(asyncio.run(self.cache.get("a")), MISS)

    def test_expired_entries_swept_when_over_capacity(self):
        asyncio.run(self.cache.set("old1", 1))
        asyncio.run(self.cache.set("old2", 2))
        self.clock.now += 400
        asyncio.run(self.cache.set("new1", 3))
        asyncio.run(self.cache.set("new2", 4))

        self.assertEqual(len(self.cache), 2)
        self.assertEqual(asyncio.run(self.cache.get("new1")), 3)

    def test_oldest_dropped_when_full_of_live_entries(self):
        for i in range(4):
            asyncio.run(self.cache.set(f"k{i}", i))

        self.assertEqual(len(self.cache), 3)
        self.assertIs(asyncio.run(self.cache.get("k0")), MISS)
        self.assertEqual(asyncio.run(self.cache.get("k3")), 3)

    def test_clear(self):
        asyncio.run(self.cache.set("a", 1))
        asyncio.run(self.cache.clear())
        self.assertEqual(len(self.cache), 0)


class FakeRedis:
    def __init__(self, fail=False):
        self.store = {}
        self.ttls = {}
        self.fail = fail

    async def get(self, key):
        if self.fail:
            raise ConnectionError("redis down")
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        if self.fail:
            raise ConnectionError("redis down")
        self.store[key] = value
        self.ttls[key] = ttl


def test_redis_cache_round_trip_uses_setex():
    redis = FakeRedis()
    cache = RedisResponseCache(redis, ttl_seconds=120)

    asyncio.run(cache.set("tmdb:/tv/1", {"id": 1}))

    assert redis.ttls["tvguide:cache:tmdb:/tv/1"] == 120
    assert json.loads(redis.store["tvguide:cache:tmdb:/tv/1"]) == {"id": 1}
    assert asyncio.run(cache.get("tmdb:/tv/1")) == {"id": 1}
    assert asyncio.run(cache.get("other")) is MISS


def test_redis_errors_behave_as_miss():
    cache = RedisResponseCache(FakeRedis(fail=True))
    asyncio.run(cache.set("a", 1))
    assert asyncio.run(cache.get("a")) is MISS


def test_redis_client_is_reused_within_a_loop():
    async def run():
        first = get_redis("redis://localhost:6399/0")
        second = get_redis("redis://localhost:6399/0")
        await close_redis()
        third = get_redis("redis://localhost:6399/0")
        await close_redis()
        return first, second, third

    first, second, third = asyncio.run(run())
    assert first is second
    assert third is not first
