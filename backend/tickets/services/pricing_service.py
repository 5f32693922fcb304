"""
Basket pricing pipeline.

  1. every ticket must be a known ticket type currently on sale
  2. subtotal = sum of ticket prices
  3. a discount code must exist and be inside its validity window
  4. total = subtotal - discount, clamped at zero

Pricing is pure: the result depends only on the basket, the configuration and
`now`. Failures are raised as typed domain errors, never defaulted.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from tickets.core.logging import get_logger
from tickets.core.metrics import discount_applications, record_pricing_failure
from tickets.domain.basket import Basket
from tickets.domain.errors import (
    DiscountCodeExpired,
    DiscountCodeNotFound,
    DomainError,
    TicketUnavailable,
)
from tickets.domain.value_objects import Price
from tickets.services.configuration import Configuration

logger = get_logger(__name__)


@dataclass(frozen=True)
class BasketPricing:
    subtotal: Price
    discount: Price
    total: Price
    display_tax: bool = False

    @property
    def display_total(self):
        return self.total.display_amount(self.display_tax)


def _check_tickets(basket: Basket, configuration: Configuration, now: datetime) -> None:
    for ticket in basket.tickets:
        known = configuration.get_ticket_types().get(ticket.identifier)
        if known is None or (known is not ticket and (known.price.currency != ticket.price.currency or known != ticket)):
            raise TicketUnavailable(ticket.identifier, "does not exist")
        metadata = configuration.get_ticket_metadata(ticket.identifier)
        if metadata.is_pending_at(now):
            raise TicketUnavailable(ticket.identifier, "is not on sale yet")
        if metadata.has_expired_at(now):
            raise TicketUnavailable(ticket.identifier, "is no longer on sale")


def _check_discount_code(basket: Basket, configuration: Configuration, now: datetime) -> None:
    code = basket.discount_code
    if code is None:
        return
    known = configuration.get_discount_codes().get(code.code)
    if known is None or known != code:
        raise DiscountCodeNotFound(code.code)
    metadata = configuration.get_discount_code_metadata(code.code)
    if metadata.has_expired_at(now):
        raise DiscountCodeExpired(code.code)
    # Codes not yet released are treated as unknown to the purchaser
    if metadata.is_pending_at(now):
        raise DiscountCodeNotFound(code.code)


def price_basket(
    basket: Basket,
    configuration: Configuration,
    now: Optional[datetime] = None,
) -> BasketPricing:
    """Validate and price a basket. Raises TicketUnavailable, DiscountCodeNotFound or DiscountCodeExpired."""
    now = now or datetime.now(timezone.utc)
    try:
        _check_tickets(basket, configuration, now)
        _check_discount_code(basket, configuration, now)
    except DomainError as exc:
        record_pricing_failure(exc.code.value)
        logger.info("basket_pricing_rejected", error_code=exc.code.value, detail=exc.message)
        raise

    subtotal = basket.subtotal()
    discount = basket.discount()
    total = subtotal.subtract(discount)
    if basket.discount_code is not None:
        discount_applications.labels(code=basket.discount_code.code).inc()

    logger.debug(
        "basket_priced",
        tickets=basket.count(),
        discount_code=basket.discount_code.code if basket.discount_code else None,
        subtotal=subtotal.gross.amount,
        discount=discount.gross.amount,
        total=total.gross.amount,
    )
    return BasketPricing(subtotal, discount, total, configuration.display_tax)


def compute_basket_total(
    basket: Basket,
    configuration: Configuration,
    now: Optional[datetime] = None,
) -> Price:
    return price_basket(basket, configuration, now).total
