"""
Caching Service.

JSON cache on Redis for read-mostly reference catalogs. Redis problems
never break a request: reads miss and writes are skipped (fail open).
"""

import json
import logging
from typing import Any, Optional

from redis.exceptions import RedisError

from backend.app.core.config import settings

logger = logging.getLogger(__name__)

CACHE_PREFIX = "catalog:"


class CacheService:

    def __init__(self, redis_client, ttl_seconds: Optional[int] = None):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds or settings.catalog_cache_ttl_seconds

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.redis.get(CACHE_PREFIX + key)
        except (RedisError, OSError):
            logger.warning("Cache read failed for %s, falling back to database", key, exc_info=True)
            return None

        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, data: Any) -> None:
        try:
            await self.redis.set(CACHE_PREFIX + key, json.dumps(data), ex=self.ttl_seconds)
        except (RedisError, OSError):
            logger.warning("Cache write failed for %s", key, exc_info=True)
