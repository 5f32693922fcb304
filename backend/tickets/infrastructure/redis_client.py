"""
Shared asyncio Redis connection used by the admission gate.
"""

from typing import Optional

import redis.asyncio as redis

from tickets.core.config import get_settings


class RedisClient:
    """Process-wide Redis connection pool, created on first use."""

    _instance: Optional[redis.Redis] = None

    @classmethod
    def get_client(cls, url: Optional[str] = None) -> redis.Redis:
        if cls._instance is None:
            cls._instance = redis.from_url(
                url or get_settings().REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        return cls._instance

    @classmethod
    async def close(cls):
        """Drop the pool; a later get_client() reconnects."""
        client, cls._instance = cls._instance, None
        if client is not None:
            await client.aclose()


def get_redis() -> redis.Redis:
    return RedisClient.get_client()
