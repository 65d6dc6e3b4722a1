"""
Tests for the curated listing cache and its fail-open behaviour.
"""

import json

import pytest

from artspace.services import cache_service
from artspace.services.relationships import ARTWORKS, SHOWS


class FakeRedis:
    def __init__(self):
        self.data = {}

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value

    async def delete(self, key):
        self.data.pop(key, None)

    async def scan_iter(self, match=None, count=None):
        prefix = match.rstrip("*")
        for key in list(self.data):
            if key.startswith(prefix):
                yield key


class BrokenRedis(FakeRedis):
    async def get(self, key):
        raise ConnectionError("redis went away")

    async def setex(self, key, ttl, value):
        raise ConnectionError("redis went away")


@pytest.fixture
def fake_redis(monkeypatch):
    client = FakeRedis()

    async def get_redis():
        return client

    monkeypatch.setattr(cache_service, "get_redis", get_redis)
    return client


@pytest.mark.asyncio
async def test_curation_listing_is_cached(fake_redis, engine, curation, store):
    await engine.assign_artwork("A1", "s1", "l1")

    first = await curation.curated_artworks("s1")
    await store.update(ARTWORKS, "A1", {"title": "Changed"})
    second = await curation.curated_artworks("s1")

    assert [a.title for a in first] == ["Dawn"]
    assert [a.title for a in second] == ["Dawn"]
    cached = json.loads(fake_redis.data["shows:curation:s1"])
    assert cached[0]["artshowId"] == "s1"


@pytest.mark.asyncio
async def test_invalidation_clears_only_curation_keys(fake_redis):
    fake_redis.data["shows:curation:s1"] = "[]"
    fake_redis.data["shows:curation:s2"] = "[]"
    fake_redis.data["other:key"] = "x"

    await cache_service.invalidate_curation_cache()

    assert list(fake_redis.data) == ["other:key"]


@pytest.mark.asyncio
async def test_redis_failure_falls_back_to_store(monkeypatch, engine, curation, store):
    async def get_redis():
        return BrokenRedis()

    monkeypatch.setattr(cache_service, "get_redis", get_redis)
    await engine.assign_artwork("A1", "s1", "l1")
    await store.update(SHOWS, "s1", {"name": "Still served"})

    artworks = await curation.curated_artworks("s1")

    assert [a.id for a in artworks] == ["A1"]


@pytest.mark.asyncio
async def test_disabled_cache_reports_status():
    assert await cache_service.get_cache_stats() == {"status": "disabled"}
    assert await cache_service.get_cached_curation("s1") is None
