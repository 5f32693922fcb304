"""
In-process inventory - counters held in memory.
Check-and-decrement runs under a per-ticket-type asyncio.Lock.
"""

import asyncio
from collections import defaultdict
from dataclasses import replace

from tickets.core.logging import get_logger
from tickets.domain.counter import TicketCounter
from tickets.domain.errors import TicketUnavailable
from tickets.services.configuration import Configuration
from tickets.services.interfaces.inventory import TicketInventory

logger = get_logger(__name__)


class InMemoryInventory(TicketInventory):
    """
    Counters live in this process only.

    Use when:
    - Running a single worker process
    - Tests and local development
    """

    def __init__(self):
        self._counters: dict[str, TicketCounter] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @classmethod
    def from_configuration(cls, configuration: Configuration) -> "InMemoryInventory":
        inventory = cls()
        for identifier in configuration.get_ticket_types():
            inventory._counters[identifier] = TicketCounter.full(
                identifier, configuration.get_available_tickets(identifier)
            )
        return inventory

    def _get(self, ticket_type_id: str) -> TicketCounter:
        try:
            return self._counters[ticket_type_id]
        except KeyError:
            raise TicketUnavailable(ticket_type_id, "does not exist") from None

    async def reserve(self, ticket_type_id: str, number: int = 1) -> int:
        async with self._locks[ticket_type_id]:
            counter = self._get(ticket_type_id)
            counter.reserve(number)
            return counter.remaining

    async def release(self, ticket_type_id: str, number: int = 1) -> int:
        async with self._locks[ticket_type_id]:
            counter = self._get(ticket_type_id)
            counter.release(number)
            return counter.remaining

    async def counter(self, ticket_type_id: str) -> TicketCounter:
        return replace(self._get(ticket_type_id))

    async def sync(self, configuration: Configuration) -> None:
        """
        Rebuild counters from the configuration, keeping tickets already sold.

        Runs without awaiting, and reserve()/release() look the counter up after
        taking their lock, so no reservation can land on a replaced counter.
        """
        counters = {}
        for identifier in configuration.get_ticket_types():
            capacity = configuration.get_available_tickets(identifier)
            existing = self._counters.get(identifier)
            sold = existing.sold if existing else 0
            counters[identifier] = TicketCounter(identifier, max(capacity - sold, 0), capacity)
        self._counters = counters
        logger.info("ticket_counters_synced", ticket_types=len(counters))
