"""
Tests for the purchase flow, catalogue availability and the discount code projection.
"""

from datetime import timedelta

import pytest
from sqlalchemy.pool import StaticPool

from tickets.db.session import create_engine
from tickets.domain.errors import DiscountCodeExpired, InsufficientInventory, ReservationExpired
from tickets.domain.value_objects import Money
from tickets.main import ticketing
from tickets.services.catalogue_service import (
    list_ticket_availability,
    load_discount_codes,
    rebuild_discount_codes,
)
from tickets.services.purchase_service import PurchaseService
from tickets.services.reservation_service import ReservationService, ReservationStatus

TTL = timedelta(minutes=15)


@pytest.fixture
def purchases(configuration, memory_inventory) -> PurchaseService:
    return PurchaseService(configuration, ReservationService(memory_inventory, ttl=TTL))


def _basket(configuration, code=None):
    basket = configuration.new_basket().add_tickets(configuration.get_ticket_type("std"), 2)
    if code:
        basket = basket.with_discount_code(configuration.get_discount_code(code))
    return basket


@pytest.mark.asyncio
async def test_purchase_happy_path(purchases, configuration, memory_inventory, now):
    quote = await purchases.start(_basket(configuration, "PERTICKET"), now)

    assert quote.pricing.total.gross == Money(2160, "GBP")
    assert quote.expires_at == now + TTL
    assert await memory_inventory.remaining("std") == 0

    reservation = await purchases.complete(quote, now + timedelta(minutes=1))
    assert reservation.status is ReservationStatus.CONFIRMED


@pytest.mark.asyncio
async def test_abandoned_purchase_returns_tickets(purchases, configuration, memory_inventory, now):
    quote = await purchases.start(_basket(configuration), now)
    await purchases.abandon(quote)
    assert await memory_inventory.remaining("std") == 2


@pytest.mark.asyncio
async def test_invalid_basket_never_touches_inventory(purchases, configuration, memory_inventory, now):
    with pytest.raises(DiscountCodeExpired):
        await purchases.start(_basket(configuration, "OLD"), now)
    assert await memory_inventory.remaining("std") == 2


@pytest.mark.asyncio
async def test_second_purchaser_told_to_reselect(purchases, configuration, now):
    await purchases.start(_basket(configuration), now)
    with pytest.raises(InsufficientInventory) as exc_info:
        await purchases.start(_basket(configuration), now)
    assert exc_info.value.recoverable is True


@pytest.mark.asyncio
async def test_lapsed_purchase_cannot_complete(purchases, configuration, memory_inventory, now):
    quote = await purchases.start(_basket(configuration), now)
    with pytest.raises(ReservationExpired):
        await purchases.complete(quote, now + TTL)
    assert await memory_inventory.remaining("std") == 2


@pytest.mark.asyncio
async def test_empty_basket_rejected(purchases, configuration, now):
    with pytest.raises(ValueError):
        await purchases.start(configuration.new_basket(), now)


@pytest.mark.asyncio
async def test_ticket_availability_listing(configuration, memory_inventory, now):
    await memory_inventory.reserve("std", 2)

    listing = {item.ticket_type.identifier: item for item in
               await list_ticket_availability(configuration, memory_inventory, now)}

    assert listing["std"].remaining == 0
    assert listing["std"].purchasable is False
    assert listing["early"].on_sale is False
    assert listing["dinner"].purchasable is True
    assert listing["dinner"].remaining == 10


@pytest.mark.asyncio
async def test_discount_code_projection_round_trip(session_factory, configuration):
    async with session_factory() as db:
        assert await rebuild_discount_codes(db, configuration) == 6
    # rebuilding replaces rather than duplicates
    async with session_factory() as db:
        assert await rebuild_discount_codes(db, configuration) == 6

    async with session_factory() as db:
        loaded = await load_discount_codes(db, configuration.financials)

    assert set(loaded) == set(configuration.get_discount_codes())
    for code, metadata in loaded.items():
        expected = configuration.get_discount_code_metadata(code)
        assert metadata.discount_code == expected.discount_code
        assert metadata.available_to == expected.available_to
        assert metadata.available_from == expected.available_from


@pytest.mark.asyncio
async def test_ticketing_lifecycle_releases_holds_on_shutdown(raw_settings, now):
    engine = create_engine("sqlite+aiosqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})

    async with ticketing(raw_settings, engine=engine, create_tables=True) as app:
        basket = app.configuration.new_basket().add_tickets(app.configuration.get_ticket_type("dinner"), 3)
        quote = await app.purchases.start(basket, now)
        assert await app.inventory.remaining("dinner") == 7
        held = app.reservations.get(quote.reservation_id)

    assert held.status is ReservationStatus.RELEASED
