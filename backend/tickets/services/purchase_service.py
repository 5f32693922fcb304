"""
Purchase flow: price the basket, hold the tickets, then confirm or release.

Payment happens between start() and complete() and is not handled here.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from tickets.core.logging import bind_purchase_context, get_logger
from tickets.domain.basket import Basket
from tickets.services.configuration import Configuration
from tickets.services.pricing_service import BasketPricing, price_basket
from tickets.services.reservation_service import Reservation, ReservationService

logger = get_logger(__name__)


@dataclass(frozen=True)
class PurchaseQuote:
    basket: Basket
    pricing: BasketPricing
    reservation_id: str
    expires_at: datetime
    purchase_id: str = field(default_factory=lambda: str(uuid.uuid4()))


class PurchaseService:
    def __init__(self, configuration: Configuration, reservations: ReservationService):
        self.configuration = configuration
        self.reservations = reservations

    async def start(self, basket: Basket, now: Optional[datetime] = None) -> PurchaseQuote:
        """
        Price the basket and hold its tickets.

        Pricing runs first so an invalid basket never touches inventory.

        Raises:
            TicketUnavailable, DiscountCodeNotFound, DiscountCodeExpired: basket rejected
            InsufficientInventory: not enough tickets left, reselect tickets
        """
        if basket.is_empty():
            raise ValueError("Cannot start a purchase with an empty basket")
        now = now or datetime.now(timezone.utc)

        pricing = price_basket(basket, self.configuration, now)
        reservation = await self.reservations.hold(basket.quantities(), now)

        quote = PurchaseQuote(
            basket=basket,
            pricing=pricing,
            reservation_id=reservation.id,
            expires_at=reservation.expires_at,
        )
        bind_purchase_context(quote.purchase_id, reservation_id=reservation.id)
        logger.info(
            "purchase_started",
            tickets=basket.count(),
            total=pricing.total.gross.amount,
            currency=pricing.total.currency,
        )
        return quote

    async def complete(self, quote: PurchaseQuote, now: Optional[datetime] = None) -> Reservation:
        """Confirm the hold after payment. Raises ReservationExpired if the hold lapsed."""
        reservation = await self.reservations.confirm(quote.reservation_id, now)
        logger.info("purchase_completed", purchase_id=quote.purchase_id)
        return reservation

    async def abandon(self, quote: PurchaseQuote, now: Optional[datetime] = None) -> Reservation:
        reservation = await self.reservations.release(quote.reservation_id, now)
        logger.info("purchase_abandoned", purchase_id=quote.purchase_id)
        return reservation
