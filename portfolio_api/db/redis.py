"""Redis connection and client management."""

import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from portfolio_api.config import settings

logger = logging.getLogger(__name__)

# Global Redis client
redis_client: Optional[aioredis.Redis] = None


async def init_redis() -> None:
    """Connect to Redis; the API keeps serving without it."""
    global redis_client

    client = aioredis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.warning(f"Redis unavailable, rate limiting and metrics disabled: {e}")
        await client.aclose()
        return
    redis_client = client


async def close_redis() -> None:
    """Close Redis connection."""
    global redis_client

    if redis_client:
        await redis_client.aclose()
        redis_client = None


def get_redis() -> aioredis.Redis:
    """Get Redis client instance."""
    if redis_client is None:
        raise RuntimeError("Redis is not initialized")
    return redis_client
