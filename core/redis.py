"""
Redis client lifecycle.

Redis backs creation rate limiting and the ARQ queue. It is optional for the
API: when ``init_redis`` fails and ``redis_required`` is off, callers get
``None`` from ``get_redis_or_none`` and rate limiting is skipped.
"""

import logging
import time

from redis.asyncio import ConnectionPool, Redis

from .config import get_settings

logger = logging.getLogger(__name__)

_pool: ConnectionPool | None = None
_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Connect to ``redis_url`` and verify the connection with PING.

    Raises:
        Exception: Whatever the client raised; nothing is kept on failure
    """
    global _pool, _client

    settings = get_settings()
    _pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        decode_responses=True,
    )
    _client = Redis(connection_pool=_pool)

    try:
        await _client.ping()
    except Exception as e:
        logger.error(f"Failed to connect to Redis at {settings.redis_url}: {e}")
        await close_redis()
        raise

    logger.info("Redis connection established")
    return _client


async def close_redis() -> None:
    """Release the client and its pool."""
    global _pool, _client

    if _client is not None:
        await _client.close()
        _client = None
        logger.info("Redis connection closed")

    if _pool is not None:
        await _pool.disconnect()
        _pool = None


async def get_redis_or_none() -> Redis | None:
    """Get the shared client, or None when Redis is unavailable."""
    return _client


async def check_redis() -> dict:
    """
    Check Redis health status.

    Returns:
        Dictionary with ``status`` (healthy, unhealthy or not_initialized),
        latency and the server version when reachable
    """
    if _client is None:
        return {"status": "not_initialized", "latency_ms": None}

    try:
        start = time.perf_counter()
        await _client.ping()
        latency_ms = (time.perf_counter() - start) * 1000
        info = await _client.info("server")
    except Exception as e:
        return {"status": "unhealthy", "error": str(e), "latency_ms": None}

    return {
        "status": "healthy",
        "latency_ms": round(latency_ms, 2),
        "version": info.get("redis_version", "unknown"),
    }
