"""Redis connection for notification fan-out.

Request, quote and order state never lives in Redis; losing Redis only loses
notifications, so startup checks reachability but does not require it.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings

logger = logging.getLogger(__name__)

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Get or create the shared connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            health_check_interval=30,
        )
    return _redis_pool


async def ping_redis() -> bool:
    try:
        return bool(await (await get_redis()).ping())
    except RedisError:
        logger.warning("redis unreachable at %s; notifications will be dropped", settings.REDIS_URL)
        return False


async def close_redis() -> None:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
