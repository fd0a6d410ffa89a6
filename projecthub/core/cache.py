import json
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from projecthub.core.config import settings
from projecthub.core.logger import get_logger

logger = get_logger("cache")

PROJECT_LIST_KEY = "projects:list"
STATS_SUMMARY_KEY = "stats:summary"


class RedisCache:
    """
    Read-through JSON cache for list/summary responses.

    Cache failures never fail a request: reads fall back to the store and
    writes are dropped, both with an error log line.
    """

    def __init__(self, url: str, enabled: bool = True, ttl_seconds: int = 120):
        self.url = url
        self.enabled = enabled
        self.ttl_seconds = ttl_seconds
        self.redis_client: Optional[redis.Redis] = None

    async def connect(self):
        """Initialize Redis connection"""
        if self.enabled and not self.redis_client:
            self.redis_client = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True
            )
            logger.info("Connected to Redis", extra={"url": self.url})

    async def disconnect(self):
        """Close Redis connection"""
        if self.redis_client:
            logger.info("Disconnecting from Redis")
            await self.redis_client.aclose()
            self.redis_client = None

    async def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        if not self.redis_client:
            await self.connect()
        try:
            value = await self.redis_client.get(key)
        except RedisError as e:
            logger.error("Cache get error", extra={"key": key, "error": str(e)})
            return None
        if value is None:
            return None
        try:
            return json.loads(value)
        except (TypeError, ValueError):
            logger.warning("Discarding undecodable cache entry", extra={"key": key})
            return None

    async def set(self, key: str, value: Any, expire_seconds: Optional[int] = None) -> bool:
        if not self.enabled:
            return False
        if not self.redis_client:
            await self.connect()
        try:
            serialized = json.dumps(value, default=str)
            await self.redis_client.setex(key, expire_seconds or self.ttl_seconds, serialized)
        except (RedisError, TypeError, ValueError) as e:
            logger.error("Cache set error", extra={"key": key, "error": str(e)})
            return False
        logger.debug("Cache set", extra={"key": key})
        return True

    async def delete(self, *keys: str) -> int:
        if not self.enabled or not keys:
            return 0
        if not self.redis_client:
            await self.connect()
        try:
            result = await self.redis_client.delete(*keys)
        except RedisError as e:
            logger.error("Cache delete error", extra={"keys": list(keys), "error": str(e)})
            return 0
        logger.debug("Cache delete", extra={"keys": list(keys), "result": result})
        return result

    async def invalidate_listings(self) -> int:
        """Drop every cached view that aggregates projects or comments."""
        return await self.delete(PROJECT_LIST_KEY, STATS_SUMMARY_KEY)


cache = RedisCache(settings.REDIS_URL, enabled=settings.CACHE_ENABLED, ttl_seconds=settings.CACHE_TTL_SECONDS)
