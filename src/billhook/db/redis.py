"""
Redis Module

Shared connection for the client record store and cache-clean events. Only
opened when CLIENTS_BACKEND=redis.
"""

import redis.asyncio as redis
import structlog

from billhook.config import settings

logger = structlog.get_logger()

_redis_client: redis.Redis | None = None


async def init_redis(url: str | None = None) -> redis.Redis:
    """Open the shared connection, reusing it if already open."""
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    client = redis.from_url(
        url or str(settings.redis_url),
        encoding="utf-8",
        decode_responses=True,
    )
    await client.ping()

    _redis_client = client
    logger.info("Redis connection initialized", collection=settings.clients_collection)
    return client


async def close_redis() -> None:
    global _redis_client

    if _redis_client is None:
        return

    await _redis_client.aclose()
    _redis_client = None
    logger.info("Redis connection closed")


async def get_redis() -> redis.Redis:
    if _redis_client is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis_client


async def redis_ready() -> bool:
    """Whether the shared connection is open and answering."""
    try:
        client = await get_redis()
        return bool(await client.ping())
    except (RuntimeError, redis.RedisError) as e:
        logger.warning("Redis not ready", error=str(e))
        return False


__all__ = ["init_redis", "close_redis", "get_redis", "redis_ready"]
