"""
Redis connection backing the reference catalog cache.

The cache fails open, so a short socket timeout keeps an unreachable
Redis from stalling catalog reads.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError
from backend.app.core.config import settings

redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
    socket_timeout=settings.redis_socket_timeout_seconds,
    socket_connect_timeout=settings.redis_socket_timeout_seconds,
)


async def get_redis():
    return redis_client


async def ping_redis() -> bool:
    """Cache status for /health."""
    try:
        return await redis_client.ping()
    except (RedisError, OSError):
        return False
