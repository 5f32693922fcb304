"""
Conference Tickets - composition root

Wires the ticketing core for a host application:
- Configuration built once from raw settings (fatal on error)
- Database-backed ticket counters with optimistic locking
- Discount code projection rebuilt from the configuration
- Optional Redis admission gate
- Reservation and purchase services
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from tickets.core.config import get_settings
from tickets.core.logging import setup_logging, get_logger
from tickets.db.base import Base
from tickets.db.session import create_engine, create_session_factory
from tickets.infrastructure.redis_client import RedisClient
from tickets.models import DiscountCodeRow, TicketCounterRow  # noqa: F401 - registers tables
from tickets.services.catalogue_service import rebuild_discount_codes
from tickets.services.configuration import Configuration
from tickets.services.interfaces.admission import AdmissionStrategy
from tickets.services.inventory_service import DatabaseInventory
from tickets.services.purchase_service import PurchaseService
from tickets.services.reservation_service import ReservationService
from tickets.services.strategy_factory import get_admission_strategy

settings = get_settings()


@dataclass
class Ticketing:
    configuration: Configuration
    inventory: DatabaseInventory
    admission: AdmissionStrategy
    reservations: ReservationService
    purchases: PurchaseService


@asynccontextmanager
async def ticketing(
    raw_settings: Mapping[str, Any],
    engine: Optional[AsyncEngine] = None,
    create_tables: bool = False,
) -> AsyncIterator[Ticketing]:
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "ticketing_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    # InvalidConfiguration propagates: the process must not start
    configuration = Configuration.from_array(raw_settings)

    engine = engine or create_engine()
    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    session_factory = create_session_factory(engine)
    inventory = DatabaseInventory(session_factory)
    await inventory.sync(configuration)
    async with session_factory() as db:
        await rebuild_discount_codes(db, configuration)

    admission = get_admission_strategy(settings)
    for identifier in configuration.get_ticket_types():
        await admission.sync(identifier, await inventory.remaining(identifier))

    reservations = ReservationService(inventory, admission)
    try:
        yield Ticketing(
            configuration=configuration,
            inventory=inventory,
            admission=admission,
            reservations=reservations,
            purchases=PurchaseService(configuration, reservations),
        )
    finally:
        released = await reservations.release_all()
        await RedisClient.close()
        await engine.dispose()
        logger.info("ticketing_shutdown", released_on_shutdown=len(released))
