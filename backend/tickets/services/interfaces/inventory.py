"""
Ticket inventory interface.
Allows swapping the in-process counters for the database-backed ones.
"""

from abc import ABC, abstractmethod

from tickets.domain.counter import TicketCounter
from tickets.services.configuration import Configuration


class TicketInventory(ABC):
    """
    Interface for per-ticket-type remaining counts.

    Implementations:
    - InMemoryInventory: counters in this process, serialised with asyncio locks
    - DatabaseInventory: counter rows with optimistic version checks

    reserve() must be an atomic check-and-decrement: two concurrent callers
    can never both take the last ticket.
    """

    @abstractmethod
    async def reserve(self, ticket_type_id: str, number: int = 1) -> int:
        """
        Take `number` tickets out of inventory.

        Returns:
            Remaining tickets after the reservation

        Raises:
            InsufficientInventory: fewer than `number` left (nothing reserved)
            TicketUnavailable: unknown ticket type
        """
        pass

    @abstractmethod
    async def release(self, ticket_type_id: str, number: int = 1) -> int:
        """
        Return previously reserved tickets to inventory.

        Raises:
            InventoryOverRelease: would exceed the configured capacity
        """
        pass

    @abstractmethod
    async def counter(self, ticket_type_id: str) -> TicketCounter:
        """Snapshot of the counter for one ticket type."""
        pass

    async def remaining(self, ticket_type_id: str) -> int:
        return (await self.counter(ticket_type_id)).remaining

    @abstractmethod
    async def sync(self, configuration: Configuration) -> None:
        """
        Rebuild counters from configuration (projection rebuild).

        New ticket types start full; existing ones keep their sold count
        against the new capacity.
        """
        pass
