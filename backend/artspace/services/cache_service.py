"""
Redis caching service for curated show listings.

CACHING STRATEGY
================

What we cache:
  - The artworks of a show in curation order (JSON-serialized)
  - Cache key pattern: "shows:curation:{show_id}"

Why:
  - The public show page and the curation board read the ordered listing
    far more often than curators change it
  - Building it costs one show read plus one read per artwork

Invalidation strategy:
  - Any engine operation that touches show membership or order deletes all
    "shows:curation:*" keys (assignment, rejection, reorder, closing...)
  - TTL-based expiry as safety net (5 minutes)

Redis is advisory only: every Redis failure is logged and treated as a
cache miss, so an outage never blocks curation.
"""

import json
from typing import Optional

import redis.asyncio as redis

from artspace.core.config import get_settings
from artspace.core.logging import get_logger
from artspace.core.metrics import record_cache_operation

logger = get_logger(__name__)

CURATION_KEY_PREFIX = "shows:curation:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client
    settings = get_settings()

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_curation_key(show_id: str) -> str:
    return f"{CURATION_KEY_PREFIX}{show_id}"


async def get_cached_curation(show_id: str) -> Optional[list]:
    """Retrieve the cached curated listing of a show."""
    client = await get_redis()
    if not client:
        return None

    key = _make_curation_key(show_id)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=bool(data))
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_curation(show_id: str, artworks: list) -> None:
    """Cache a curated listing with TTL."""
    client = await get_redis()
    if not client:
        return

    settings = get_settings()
    key = _make_curation_key(show_id)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(artworks, default=str))
        record_cache_operation("set", hit=False)
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_curation_cache() -> None:
    """
    Invalidate all cached curated listings.
    Uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{CURATION_KEY_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        keyspace = await client.info("keyspace")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
            "keys": keyspace,
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
