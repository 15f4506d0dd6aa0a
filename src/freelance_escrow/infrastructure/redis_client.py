"""Redis client backing the distributed per-job locks.

Usage:
    from freelance_escrow.infrastructure.redis_client import get_redis, init_redis

    await init_redis()
    lock = get_redis().lock("job-lock:abc", timeout=10)
"""

from __future__ import annotations

import redis.asyncio as aioredis

from freelance_escrow.config import get_settings
from freelance_escrow.logging_config import get_logger

logger = get_logger(__name__)

_redis_client: aioredis.Redis | None = None


async def init_redis(url: str | None = None) -> aioredis.Redis:
    """Initialize and return the Redis client. Called during app startup."""
    global _redis_client
    url = url or get_settings().redis_url
    _redis_client = aioredis.from_url(url, decode_responses=True)
    # Verify connectivity
    await _redis_client.ping()
    logger.info("redis.connected", url=url)
    return _redis_client


def get_redis() -> aioredis.Redis:
    """Return the Redis client singleton. Must call init_redis() first."""
    if _redis_client is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection. Called during app shutdown."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        logger.info("redis.disconnected")
        _redis_client = None
