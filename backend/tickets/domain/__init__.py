from tickets.domain.value_objects import Financials, Money, Price, TaxRate
from tickets.domain.catalogue import DiscountCode, DiscountCodeMetadata, TicketMetadata, TicketType
from tickets.domain.basket import Basket
from tickets.domain.discount_types import (
    DiscountType,
    FixedPerBasket,
    FixedPerTicket,
    Percentage,
    register_discount_type,
)
from tickets.domain.counter import CounterState, TicketCounter

__all__ = [
    "Money", "TaxRate", "Price", "Financials",
    "TicketType", "DiscountCode", "TicketMetadata", "DiscountCodeMetadata",
    "Basket",
    "DiscountType", "FixedPerTicket", "FixedPerBasket", "Percentage", "register_discount_type",
    "TicketCounter", "CounterState",
]
