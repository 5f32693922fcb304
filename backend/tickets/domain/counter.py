"""
TicketCounter read model: how many tickets of one type are left.
"""

from dataclasses import dataclass
from enum import Enum

from tickets.domain.errors import InsufficientInventory, InventoryOverRelease


class CounterState(Enum):
    AVAILABLE = "available"
    EXHAUSTED = "exhausted"


def _check_quantity(number: int) -> None:
    if isinstance(number, bool) or not isinstance(number, int) or number <= 0:
        raise ValueError(f"Ticket quantity must be a positive integer, got {number!r}")


@dataclass
class TicketCounter:
    """
    Remaining inventory for one ticket type.

    `maximum` is the configured capacity; remaining never leaves [0, maximum].
    The counter is not thread safe on its own, inventories serialise access.
    """

    ticket_type_id: str
    remaining: int
    maximum: int

    def __post_init__(self) -> None:
        if not 0 <= self.remaining <= self.maximum:
            raise ValueError(
                f"Counter for '{self.ticket_type_id}' out of range: {self.remaining}/{self.maximum}"
            )

    @classmethod
    def full(cls, ticket_type_id: str, capacity: int) -> "TicketCounter":
        return cls(ticket_type_id, capacity, capacity)

    @property
    def state(self) -> CounterState:
        return CounterState.AVAILABLE if self.remaining > 0 else CounterState.EXHAUSTED

    @property
    def sold(self) -> int:
        return self.maximum - self.remaining

    def can_reserve(self, number: int) -> bool:
        return number <= self.remaining

    def reserve(self, number: int) -> None:
        _check_quantity(number)
        if not self.can_reserve(number):
            raise InsufficientInventory(self.ticket_type_id, number, self.remaining)
        self.remaining -= number

    def release(self, number: int) -> None:
        _check_quantity(number)
        if self.remaining + number > self.maximum:
            raise InventoryOverRelease(self.ticket_type_id, number, self.remaining, self.maximum)
        self.remaining += number
