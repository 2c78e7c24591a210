"""Redis connectivity check used by the detailed health endpoint."""

import redis.asyncio as redis

from app.config import settings


async def check_redis_connection() -> bool:
    """
    Check if Redis connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    client = redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        ssl=settings.redis_ssl,
        socket_connect_timeout=5,
    )
    try:
        await client.ping()
        return True
    except redis.RedisError:
        return False
    finally:
        await client.aclose()
