"""
Admission control strategy interface.
A cheap gate in front of inventory reservation that can turn purchasers away
before they reach the database.
"""

from abc import ABC, abstractmethod


class AdmissionStrategy(ABC):
    """
    Interface for admission control strategies.

    Implementations:
    - OptimisticAdmission: No pre-check, rely on inventory optimistic locking
    - RedisAdmission: Fail-fast check in Redis before inventory
    """

    @abstractmethod
    async def admit(self, ticket_type_id: str, number: int = 1) -> bool:
        """
        Check if a reservation request should be admitted.

        Returns:
            True if admitted (proceed to inventory)
            False if rejected (fail fast)
        """
        pass

    @abstractmethod
    async def release(self, ticket_type_id: str, number: int = 1):
        """Settle admitted tickets once the inventory has accepted or refused them."""
        pass

    @abstractmethod
    async def sync(self, ticket_type_id: str, remaining: int):
        """
        Sync admission state with inventory (reconciliation).

        Args:
            ticket_type_id: Ticket type
            remaining: Current remaining tickets from inventory
        """
        pass
