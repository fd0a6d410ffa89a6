import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from projecthub.core.cache import PROJECT_LIST_KEY, STATS_SUMMARY_KEY, RedisCache, cache


class FakeRedis:
    """In-memory stand-in for the handful of redis calls the cache makes."""

    def __init__(self, fail=False):
        self.store = {}
        self.fail = fail

    async def get(self, key):
        if self.fail:
            raise RedisConnectionError("down")
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        if self.fail:
            raise RedisConnectionError("down")
        self.store[key] = value

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    async def aclose(self):
        pass


@pytest.fixture
def fake_cache():
    redis_cache = RedisCache("redis://unused", enabled=True, ttl_seconds=30)
    redis_cache.redis_client = FakeRedis()
    return redis_cache


@pytest.mark.asyncio
async def test_set_then_get(fake_cache):
    assert await fake_cache.get(PROJECT_LIST_KEY) is None
    assert await fake_cache.set(PROJECT_LIST_KEY, [{"id": "p1"}]) is True
    assert await fake_cache.get(PROJECT_LIST_KEY) == [{"id": "p1"}]


@pytest.mark.asyncio
async def test_invalidate_listings(fake_cache):
    await fake_cache.set(PROJECT_LIST_KEY, [])
    await fake_cache.set(STATS_SUMMARY_KEY, {"totalProjects": 0})
    assert await fake_cache.invalidate_listings() == 2
    assert fake_cache.redis_client.store == {}


@pytest.mark.asyncio
async def test_redis_failures_fall_back():
    redis_cache = RedisCache("redis://unused", enabled=True)
    redis_cache.redis_client = FakeRedis(fail=True)
    assert await redis_cache.get(PROJECT_LIST_KEY) is None
    assert await redis_cache.set(PROJECT_LIST_KEY, []) is False


@pytest.mark.asyncio
async def test_disabled_cache_never_touches_redis():
    redis_cache = RedisCache("redis://unused", enabled=False)
    assert await redis_cache.set(PROJECT_LIST_KEY, []) is False
    assert await redis_cache.get(PROJECT_LIST_KEY) is None
    assert redis_cache.redis_client is None


def test_project_list_is_cached_and_invalidated(client, make_project, monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache, "enabled", True)
    monkeypatch.setattr(cache, "redis_client", fake)

    make_project(name="Cached")
    first = client.get("/api/v1/projects").json()
    assert json.loads(fake.store[PROJECT_LIST_KEY])[0]["name"] == "Cached"

    # Served from the cache
    assert client.get("/api/v1/projects").json() == first

    make_project(name="Fresh")
    assert PROJECT_LIST_KEY not in fake.store
    assert [p["name"] for p in client.get("/api/v1/projects").json()] == ["Fresh", "Cached"]
