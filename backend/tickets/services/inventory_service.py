"""
Database-backed ticket inventory with concurrency-safe reservation.

CONCURRENCY STRATEGY: Conditional Update with Retry
===================================================

Problem:
  Two purchasers try to take the last ticket of a type simultaneously.
  Both read remaining=1, both decrement to 0, both succeed.
  Result: Overselling.

Solution:
  The check and the decrement are one statement:

    UPDATE ticket_counters SET remaining = remaining - N, version = version + 1
    WHERE ticket_type_id = :id AND remaining >= N

  The database serialises writers on the row, so rows_affected == 0 means the
  stock really is short. Nothing is read before the update, so a purchaser
  never acts on a stale count.

  Lock errors (OperationalError: "database is locked", deadlocks) are retried
  up to max_retries times. Once retries run out the row is read again and the
  caller gets InsufficientInventory if stock is now short, ReservationConflict
  otherwise. Both are inventory errors, never raw persistence errors.

  The CHECK constraints (remaining >= 0, remaining <= maximum) are the final
  safety net if a writer bypasses this service.

Releases are a single conditional UPDATE (remaining + N <= maximum): either
the row has room for the tickets or the caller is releasing tickets it never
reserved.
"""

from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tickets.core.config import get_settings
from tickets.core.logging import get_logger
from tickets.core.metrics import db_retries, record_reservation_attempt, reservation_latency
from tickets.domain.counter import TicketCounter
from tickets.domain.errors import (
    InsufficientInventory,
    InventoryOverRelease,
    ReservationConflict,
    TicketUnavailable,
)
from tickets.models.ticket_counter import TicketCounterRow
from tickets.services.configuration import Configuration
from tickets.services.interfaces.inventory import TicketInventory

logger = get_logger(__name__)


def _check_quantity(number: int) -> None:
    if isinstance(number, bool) or not isinstance(number, int) or number <= 0:
        raise ValueError(f"Ticket quantity must be a positive integer, got {number!r}")


async def _load_row(db: AsyncSession, ticket_type_id: str) -> TicketCounterRow:
    result = await db.execute(
        select(TicketCounterRow).where(TicketCounterRow.ticket_type_id == ticket_type_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise TicketUnavailable(ticket_type_id, "does not exist")
    return row


async def _load_remaining(db: AsyncSession, ticket_type_id: str) -> int:
    result = await db.execute(
        select(TicketCounterRow.remaining).where(TicketCounterRow.ticket_type_id == ticket_type_id)
    )
    return result.scalar_one()


class DatabaseInventory(TicketInventory):
    """
    Counters persisted in the ticket_counters table.

    Use when:
    - More than one worker process sells tickets
    - Counters must survive restarts

    max_retries counts attempts after the first; 0 means a single attempt.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_retries: Optional[int] = None,
    ):
        if max_retries is None:
            max_retries = get_settings().RESERVATION_MAX_RETRIES
        if max_retries < 0:
            raise ValueError(f"max_retries cannot be negative, got {max_retries}")
        self._session_factory = session_factory
        self._max_retries = max_retries

    async def reserve(self, ticket_type_id: str, number: int = 1) -> int:
        """
        Atomically take tickets, retrying on lock errors.

        Raises:
            InsufficientInventory: not enough tickets left
            ReservationConflict: retries exhausted while stock was still available
            TicketUnavailable: unknown ticket type
        """
        _check_quantity(number)
        with reservation_latency.time():
            try:
                return await self._reserve(ticket_type_id, number)
            except (InsufficientInventory, TicketUnavailable):
                raise
            except SQLAlchemyError as e:
                record_reservation_attempt("error")
                logger.error("ticket_reservation_error", ticket_type=ticket_type_id, error=str(e))
                raise

    async def _reserve(self, ticket_type_id: str, number: int) -> int:
        for attempt in range(1, self._max_retries + 2):
            try:
                return await self._try_reserve(ticket_type_id, number, attempt)
            except OperationalError as e:
                db_retries.inc()
                logger.info(
                    "ticket_reservation_retry",
                    ticket_type=ticket_type_id,
                    attempt=attempt,
                    reason="lock_error",
                    error=str(e.orig),
                )
        return await self._give_up(ticket_type_id, number)

    async def _try_reserve(self, ticket_type_id: str, number: int, attempt: int) -> int:
        async with self._session_factory() as db:
            result = await db.execute(
                update(TicketCounterRow)
                .where(
                    TicketCounterRow.ticket_type_id == ticket_type_id,
                    TicketCounterRow.remaining >= number,
                )
                .values(
                    remaining=TicketCounterRow.remaining - number,
                    version=TicketCounterRow.version + 1,
                )
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 0:
                await db.rollback()
                # Unknown ticket type raises TicketUnavailable here
                remaining = (await _load_row(db, ticket_type_id)).remaining
                logger.warning(
                    "ticket_reservation_failed_sold_out",
                    ticket_type=ticket_type_id,
                    requested=number,
                    remaining=remaining,
                )
                record_reservation_attempt("insufficient")
                raise InsufficientInventory(ticket_type_id, number, remaining)

            remaining = await _load_remaining(db, ticket_type_id)
            await db.commit()

        record_reservation_attempt("success")
        logger.info(
            "tickets_reserved",
            ticket_type=ticket_type_id,
            number=number,
            remaining=remaining,
            attempt=attempt,
        )
        return remaining

    async def _give_up(self, ticket_type_id: str, number: int) -> int:
        """Decide from a fresh read whether exhausted retries mean sold out or contention."""
        async with self._session_factory() as db:
            remaining = (await _load_row(db, ticket_type_id)).remaining
        if remaining < number:
            record_reservation_attempt("insufficient")
            raise InsufficientInventory(ticket_type_id, number, remaining)
        record_reservation_attempt("conflict")
        logger.warning(
            "ticket_reservation_conflict",
            ticket_type=ticket_type_id,
            requested=number,
            remaining=remaining,
            attempts=self._max_retries + 1,
        )
        raise ReservationConflict(ticket_type_id, number, remaining)

    async def release(self, ticket_type_id: str, number: int = 1) -> int:
        _check_quantity(number)
        async with self._session_factory() as db:
            result = await db.execute(
                update(TicketCounterRow)
                .where(
                    TicketCounterRow.ticket_type_id == ticket_type_id,
                    TicketCounterRow.remaining + number <= TicketCounterRow.maximum,
                )
                .values(
                    remaining=TicketCounterRow.remaining + number,
                    version=TicketCounterRow.version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await db.rollback()
                row = await _load_row(db, ticket_type_id)
                logger.error(
                    "ticket_over_release",
                    ticket_type=ticket_type_id,
                    number=number,
                    remaining=row.remaining,
                    maximum=row.maximum,
                )
                raise InventoryOverRelease(ticket_type_id, number, row.remaining, row.maximum)
            remaining = await _load_remaining(db, ticket_type_id)
            await db.commit()

        logger.info("tickets_released", ticket_type=ticket_type_id, number=number, remaining=remaining)
        return remaining

    async def counter(self, ticket_type_id: str) -> TicketCounter:
        async with self._session_factory() as db:
            return (await _load_row(db, ticket_type_id)).to_domain()

    async def sync(self, configuration: Configuration) -> None:
        async with self._session_factory() as db:
            result = await db.execute(select(TicketCounterRow))
            rows = {row.ticket_type_id: row for row in result.scalars().all()}

            for identifier in configuration.get_ticket_types():
                capacity = configuration.get_available_tickets(identifier)
                row = rows.pop(identifier, None)
                if row is None:
                    db.add(TicketCounterRow(
                        ticket_type_id=identifier,
                        remaining=capacity,
                        maximum=capacity,
                        version=1,
                    ))
                    continue
                sold = row.maximum - row.remaining
                row.maximum = capacity
                row.remaining = max(capacity - sold, 0)
                row.version = row.version + 1

            if rows:
                await db.execute(
                    delete(TicketCounterRow).where(TicketCounterRow.ticket_type_id.in_(list(rows)))
                )
            await db.commit()
            logger.info(
                "ticket_counters_synced",
                ticket_types=len(configuration.get_ticket_types()),
                removed=sorted(rows),
            )
