"""
Optional Redis connection manager.

Provides an async Redis client singleton that degrades gracefully
when REDIS_URL is not set or Redis is unreachable.
"""

from resume_builder.utils.logger import get_logger

_log = get_logger("redis")

_redis_client = None


async def init_redis() -> None:
    """Connect to Redis if REDIS_URL is configured. Safe to call always."""
    global _redis_client
    from resume_builder.config import get_settings

    url = get_settings().redis_url
    if not url:
        _log.info("[redis] REDIS_URL not set, AI cache stays in-process")
        return

    import redis.asyncio as aioredis
    from redis.exceptions import RedisError

    try:
        _redis_client = aioredis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        await _redis_client.ping()
        _log.info("[redis] Connected successfully")
    except (RedisError, OSError) as exc:
        _log.warning(f"[redis] Connection failed ({exc}), running without Redis")
        _redis_client = None


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _log.info("[redis] Connection closed")
        _redis_client = None


def get_redis():
    """Return the Redis client or None if unavailable."""
    return _redis_client
