# newsletter/core/cache.py
"""Redis caching for reader responses."""
import json
import logging
from datetime import timedelta
from typing import Any, Iterable, Optional, Union

import redis.asyncio as redis

from .config import settings

logger = logging.getLogger(__name__)


class CacheManager:
    """Best-effort cache: every failure degrades to a miss, never to an error."""

    def __init__(self, url: str, enabled: bool = True, prefix: str = "newsletter"):
        self.url = url
        self.enabled = enabled
        self.prefix = prefix
        self.redis: Optional[redis.Redis] = None

    async def connect(self):
        """Initialize Redis connection."""
        if self.enabled and not self.redis:
            self.redis = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
            )

    async def disconnect(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    def make_key(self, *parts: Any) -> str:
        return ":".join([self.prefix, *(str(p) for p in parts)])

    def reader_key(self, week_number: str, class_ids: Iterable[str], generation: int = 0) -> str:
        """Key for a reader view; class ids are sorted so equal sets share a key.

        The week generation is part of the key, so a view computed before a
        write can only ever be stored under a generation nobody reads again.
        """
        scope = ",".join(sorted(set(class_ids))) or "public"
        return self.make_key("articles", week_number, f"g{generation}", scope)

    def generation_key(self, week_number: str) -> str:
        return self.make_key("generation", week_number)

    async def week_generation(self, week_number: str) -> Optional[int]:
        """Current generation of a week, or None when the cache cannot be used."""
        if not self.enabled:
            return None
        await self.connect()
        try:
            value = await self.redis.get(self.generation_key(week_number))
            return int(value or 0)
        except Exception as e:
            logger.debug(f"Cache generation read failed for {week_number}: {e}")
            return None

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        if not self.enabled:
            return None
        await self.connect()
        try:
            value = await self.redis.get(key)
            if value:
                return json.loads(value)
        except Exception as e:
            logger.debug(f"Cache get failed for {key}: {e}")
        return None

    async def set(
        self,
        key: str,
        value: Any,
        expire: Optional[Union[int, timedelta]] = None
    ) -> bool:
        """Set value in cache."""
        if not self.enabled:
            return False
        await self.connect()
        if expire is None:
            expire = settings.cache_ttl_seconds
        if isinstance(expire, timedelta):
            expire = int(expire.total_seconds())
        try:
            return bool(await self.redis.setex(key, expire, json.dumps(value)))
        except Exception as e:
            logger.debug(f"Cache set failed for {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern."""
        if not self.enabled:
            return 0
        await self.connect()
        removed = 0
        try:
            async for key in self.redis.scan_iter(match=pattern):
                removed += await self.redis.delete(key)
        except Exception as e:
            logger.debug(f"Cache invalidation failed for {pattern}: {e}")
        return removed

    async def invalidate_week(self, week_number: str) -> int:
        """Move the week to a new generation and drop its cached reader views."""
        if not self.enabled:
            return 0
        await self.connect()
        try:
            await self.redis.incr(self.generation_key(week_number))
        except Exception as e:
            logger.debug(f"Cache generation bump failed for {week_number}: {e}")
        return await self.delete_pattern(self.make_key("articles", week_number, "*"))


# Global cache instance
cache = CacheManager(settings.redis_url, enabled=settings.cache_enabled)

