"""
Basket: the purchaser's selected tickets plus an optional discount code.
"""

from collections import Counter
from dataclasses import dataclass, replace
from typing import Iterable, Optional

from tickets.domain.catalogue import DiscountCode, TicketType
from tickets.domain.value_objects import Financials, Price


@dataclass(frozen=True)
class Basket:
    financials: Financials
    tickets: tuple[TicketType, ...] = ()
    discount_code: Optional[DiscountCode] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tickets", tuple(self.tickets))

    def add_tickets(self, ticket_type: TicketType, quantity: int = 1) -> "Basket":
        if quantity <= 0:
            raise ValueError("quantity must be positive")
        return replace(self, tickets=self.tickets + (ticket_type,) * quantity)

    def with_discount_code(self, discount_code: Optional[DiscountCode]) -> "Basket":
        return replace(self, discount_code=discount_code)

    def count(self) -> int:
        return len(self.tickets)

    def is_empty(self) -> bool:
        return not self.tickets

    def quantities(self) -> dict[str, int]:
        """Tickets per ticket type identifier, in selection order."""
        return dict(Counter(ticket.identifier for ticket in self.tickets))

    def delegate_tickets(self) -> list[TicketType]:
        return [ticket for ticket in self.tickets if ticket.requires_delegate_information]

    def subtotal(self, tickets: Optional[Iterable[TicketType]] = None) -> Price:
        total = self.financials.zero_price()
        for ticket in self.tickets if tickets is None else tickets:
            total = total.add(ticket.price)
        return total

    def discount(self) -> Price:
        if self.discount_code is None:
            return self.financials.zero_price()
        return self.discount_code.apply(self)

    def total(self) -> Price:
        return self.subtotal().subtract(self.discount())
