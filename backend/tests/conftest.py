"""
Pytest fixtures for the ticket catalogue, inventories and a test database.

Database tests run against an in-memory SQLite database (aiosqlite) so the
suite needs no external services; tables are created and dropped per test.
"""

from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from tickets.db.base import Base
from tickets.db.session import create_engine, create_session_factory
from tickets.models import DiscountCodeRow, TicketCounterRow  # noqa: F401 - registers tables
from tickets.services.configuration import Configuration
from tickets.services.interfaces.memory_inventory import InMemoryInventory
from tickets.services.inventory_service import DatabaseInventory

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def raw_settings() -> dict:
    """A conference with a standard ticket, a timed early bird and an add-on."""
    return {
        "tickets": {
            "std": {"cost": 1000, "name": "Standard", "available": 2},
            "early": {
                "cost": 500,
                "name": "Early Bird",
                "description": "Cheaper, for a limited time",
                "available": 5,
                "metadata": {"availableTo": "2026-03-01T00:00:00+00:00"},
            },
            "dinner": {"cost": 2500, "name": "Conference dinner", "supplementary": True, "available": 10},
        },
        "discountCodes": {
            "PERTICKET": {"type": "fixed_per_ticket", "name": "Per ticket", "options": {"net": 100}},
            "FLAT": {"type": "fixed_per_basket", "name": "Flat", "options": {"net": 100}},
            "HUGE": {"type": "fixed_per_basket", "name": "Huge", "options": {"gross": 100000}},
            "TENOFF": {"type": "percentage", "name": "10% off standard", "options": {"percent": 10, "ticketTypes": ["std"]}},
            "OLD": {
                "type": "fixed_per_ticket",
                "name": "Last year",
                "options": {"net": 100},
                "metadata": {"availableTo": "2025-12-31T23:59:59+00:00"},
            },
            "SOON": {
                "type": "fixed_per_ticket",
                "name": "Not yet",
                "options": {"net": 100},
                "metadata": {"availableFrom": "2099-01-01T00:00:00+00:00"},
            },
        },
        "financial": {"currency": "GBP", "taxRate": 0.20, "displayTax": True},
    }


@pytest.fixture
def configuration(raw_settings) -> Configuration:
    return Configuration.from_array(raw_settings)


@pytest.fixture
def memory_inventory(configuration) -> InMemoryInventory:
    return InMemoryInventory.from_configuration(configuration)


@pytest_asyncio.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create tables, yield a session factory, then drop tables for isolation."""
    engine = create_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield create_session_factory(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def file_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory over a SQLite file, one connection per session, so
    concurrent sessions contend for the database the way separate workers do.
    """
    engine = create_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'tickets.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield create_session_factory(engine)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_inventory(session_factory, configuration) -> DatabaseInventory:
    """Database inventory with counters built from the test configuration."""
    inventory = DatabaseInventory(session_factory, max_retries=3)
    await inventory.sync(configuration)
    return inventory
