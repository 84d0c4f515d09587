# ruff: noqa: PLW0603
"""Redis connection management.

Redis is optional: it carries real-time fan-out of notifications and course
chat messages. Everything else keeps working when it is unreachable.
"""

import redis.asyncio as redis

from scholarsync.config import get_settings
from scholarsync.core.logging import get_logger


logger = get_logger(__name__)

_redis_client: redis.Redis | None = None


async def init_redis() -> redis.Redis:
    """Initialize the Redis connection pool and verify it with a ping."""
    global _redis_client

    settings = get_settings()

    client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        retry_on_timeout=settings.redis_retry_on_timeout,
        health_check_interval=settings.redis_health_check_interval,
        decode_responses=True,
    )

    try:
        await client.ping()
    except redis.ConnectionError as e:
        logger.warning("redis_connection_failed", error=str(e))
        await client.aclose()
        raise

    _redis_client = client
    logger.info("redis_connected", url=settings.redis_url)
    return _redis_client


async def shutdown_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_client

    if _redis_client:
        await _redis_client.aclose()
        logger.info("redis_disconnected")
        _redis_client = None


def get_redis() -> redis.Redis | None:
    """Get the Redis client, or None when Redis is not connected."""
    return _redis_client


def notification_channel(user_id: str) -> str:
    """Per-user notification channel."""
    return f"notifications:user:{user_id}"


def course_chat_channel(course_id: str) -> str:
    """Per-course chat channel."""
    return f"chat:course:{course_id}"
