"""Connections to external systems the ticketing core depends on."""

from tickets.infrastructure.redis_client import RedisClient, get_redis

__all__ = ["RedisClient", "get_redis"]
