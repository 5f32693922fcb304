"""
Catalogue queries and projection rebuilds.

The catalogue itself lives in the Configuration. Live availability combines it
with the inventory counters; the discount code projection copies the
configured codes into the database.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tickets.core.logging import get_logger
from tickets.domain.catalogue import DiscountCodeMetadata, TicketType
from tickets.domain.counter import CounterState
from tickets.domain.value_objects import Financials
from tickets.models.discount_code import DiscountCodeRow
from tickets.schemas.catalogue import DiscountCodeSchema
from tickets.services.configuration import Configuration
from tickets.services.interfaces.inventory import TicketInventory

logger = get_logger(__name__)


@dataclass(frozen=True)
class TicketAvailability:
    ticket_type: TicketType
    remaining: int
    on_sale: bool

    @property
    def purchasable(self) -> bool:
        return self.on_sale and self.remaining > 0


async def list_ticket_availability(
    configuration: Configuration,
    inventory: TicketInventory,
    now: Optional[datetime] = None,
) -> list[TicketAvailability]:
    """Every configured ticket type with its live remaining count and sale window state."""
    now = now or datetime.now(timezone.utc)
    listing = []
    for identifier, ticket_type in configuration.get_ticket_types().items():
        counter = await inventory.counter(identifier)
        metadata = configuration.get_ticket_metadata(identifier)
        listing.append(TicketAvailability(
            ticket_type=ticket_type,
            remaining=counter.remaining,
            on_sale=metadata.is_available_at(now) and counter.state is CounterState.AVAILABLE,
        ))
    return listing


async def rebuild_discount_codes(db: AsyncSession, configuration: Configuration) -> int:
    """Replace the discount code projection with the configured codes."""
    await db.execute(delete(DiscountCodeRow))
    for code in configuration.get_discount_codes():
        schema = DiscountCodeSchema.from_domain(configuration.get_discount_code_metadata(code))
        db.add(DiscountCodeRow(
            code=schema.code,
            display_name=schema.display_name,
            discount_type=schema.discount_type.model_dump(),
            available_from=schema.available_from,
            available_to=schema.available_to,
        ))
    await db.commit()
    count = len(configuration.get_discount_codes())
    logger.info("discount_codes_rebuilt", count=count)
    return count


async def load_discount_codes(db: AsyncSession, financials: Financials) -> dict[str, DiscountCodeMetadata]:
    result = await db.execute(select(DiscountCodeRow).order_by(DiscountCodeRow.code))
    return {
        row.code: DiscountCodeSchema.model_validate(row).to_domain(financials)
        for row in result.scalars().all()
    }
