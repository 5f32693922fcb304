"""
Redis admission gate for high-contention ticket releases.

Redis tracks the remaining count from the last inventory sync and the number
of tickets admitted but not yet settled. A request is admitted only while the
difference covers it.

When Redis is unreachable the gate fails open and every request falls through
to the inventory, which stays authoritative.
"""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from tickets.core.logging import get_logger
from tickets.core.metrics import record_admission, redis_connection_errors, redis_circuit_breaker_open
from tickets.infrastructure.redis_client import get_redis
from tickets.services.interfaces.admission import AdmissionStrategy

logger = get_logger(__name__)

# KEYS[1] remaining tickets at last sync, KEYS[2] tickets admitted but not settled
# ARGV[1] tickets requested. Returns 1 admitted, 0 rejected, -1 never synced.
ADMISSION_SCRIPT = """
local remaining = redis.call('GET', KEYS[1])
if not remaining then
    return -1
end
local in_flight = tonumber(redis.call('GET', KEYS[2]) or '0')
local requested = tonumber(ARGV[1])
if tonumber(remaining) - in_flight >= requested then
    redis.call('INCRBY', KEYS[2], requested)
    return 1
end
return 0
"""


class RedisAdmission(AdmissionStrategy):
    """Turns purchasers away in Redis before they contend for inventory rows."""

    def __init__(self, client: Optional[redis.Redis] = None):
        self.redis = client or get_redis()
        self.script = self.redis.register_script(ADMISSION_SCRIPT)

    @staticmethod
    def _keys(ticket_type_id: str) -> list[str]:
        return [f"tickets:remaining:{ticket_type_id}", f"tickets:in_flight:{ticket_type_id}"]

    async def admit(self, ticket_type_id: str, number: int = 1) -> bool:
        try:
            result = await self.script(keys=self._keys(ticket_type_id), args=[number])
        except RedisError as e:
            redis_connection_errors.inc()
            redis_circuit_breaker_open.set(1)
            logger.warning("admission_redis_unavailable", ticket_type=ticket_type_id, error=str(e))
            return True

        redis_circuit_breaker_open.set(0)
        admitted = int(result) != 0
        record_admission(admitted)
        if not admitted:
            logger.info("admission_rejected", ticket_type=ticket_type_id, requested=number)
        return admitted

    async def release(self, ticket_type_id: str, number: int = 1):
        in_flight_key = self._keys(ticket_type_id)[1]
        try:
            await self.redis.decrby(in_flight_key, number)
        except RedisError as e:
            redis_connection_errors.inc()
            logger.warning("admission_release_failed", ticket_type=ticket_type_id, error=str(e))

    async def sync(self, ticket_type_id: str, remaining: int):
        remaining_key = self._keys(ticket_type_id)[0]
        try:
            await self.redis.set(remaining_key, remaining)
        except RedisError as e:
            redis_connection_errors.inc()
            logger.warning("admission_sync_failed", ticket_type=ticket_type_id, error=str(e))
