"""
Tentative reservations: reserve -> [payment] -> confirm | release.

A purchase holds its tickets while the purchaser pays. Holds that are not
confirmed before they expire are released by expire(), which the host runs
periodically; abandoned or failed purchases call release() directly.

Multi-ticket-type holds are all or nothing: if any type is short, or the hold
is cancelled or times out, tickets already taken for the other types are put
back before the error propagates.

Holds are tracked in this process; the inventory counters are authoritative.
Settled reservations are kept for one TTL so repeated confirm() and release()
calls stay idempotent, then expire() forgets them.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Mapping, Optional

from tickets.core.config import get_settings
from tickets.core.logging import get_logger
from tickets.core.metrics import record_release
from tickets.domain.errors import InsufficientInventory, ReservationExpired, ReservationNotFound
from tickets.services.interfaces.admission import AdmissionStrategy
from tickets.services.interfaces.inventory import TicketInventory
from tickets.services.interfaces.optimistic_admission import OptimisticAdmission

logger = get_logger(__name__)


class ReservationStatus(Enum):
    HELD = "held"
    CONFIRMED = "confirmed"
    RELEASED = "released"
    EXPIRED = "expired"


@dataclass
class Reservation:
    quantities: dict[str, int]
    expires_at: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: ReservationStatus = ReservationStatus.HELD
    # Ticket types already handed back to the inventory
    returned: set[str] = field(default_factory=set)
    settled_at: Optional[datetime] = None

    def is_expired_at(self, now: datetime) -> bool:
        return self.status is ReservationStatus.HELD and now >= self.expires_at

    @property
    def ticket_count(self) -> int:
        return sum(self.quantities.values())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReservationService:
    def __init__(
        self,
        inventory: TicketInventory,
        admission: Optional[AdmissionStrategy] = None,
        ttl: Optional[timedelta] = None,
    ):
        self.inventory = inventory
        self.admission = admission or OptimisticAdmission()
        self.ttl = ttl or timedelta(seconds=get_settings().RESERVATION_TTL_SECONDS)
        self._reservations: dict[str, Reservation] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._reservations)

    def get(self, reservation_id: str) -> Reservation:
        try:
            return self._reservations[reservation_id]
        except KeyError:
            raise ReservationNotFound(reservation_id) from None

    async def hold(self, quantities: Mapping[str, int], now: Optional[datetime] = None) -> Reservation:
        """
        Reserve every requested ticket type or none of them.

        Raises:
            InsufficientInventory: a ticket type is short (or rejected by admission)
            TicketUnavailable: unknown ticket type
        """
        if not quantities:
            raise ValueError("Nothing to reserve")
        now = now or _utcnow()
        taken: list[tuple[str, int]] = []
        try:
            for ticket_type_id, number in quantities.items():
                await self._reserve_one(ticket_type_id, number, taken)
        except BaseException:
            # Includes CancelledError from timeouts and task cancellation
            for ticket_type_id, number in reversed(taken):
                remaining = await self.inventory.release(ticket_type_id, number)
                await self.admission.sync(ticket_type_id, remaining)
                record_release("compensation", number)
            logger.info("reservation_rolled_back", released=dict(taken))
            raise

        reservation = Reservation(quantities=dict(quantities), expires_at=now + self.ttl)
        self._reservations[reservation.id] = reservation
        logger.info(
            "reservation_held",
            reservation_id=reservation.id,
            quantities=reservation.quantities,
            expires_at=reservation.expires_at.isoformat(),
        )
        return reservation

    async def _reserve_one(self, ticket_type_id: str, number: int, taken: list[tuple[str, int]]) -> None:
        if not await self.admission.admit(ticket_type_id, number):
            raise InsufficientInventory(ticket_type_id, number, await self.inventory.remaining(ticket_type_id))
        try:
            remaining = await self.inventory.reserve(ticket_type_id, number)
            taken.append((ticket_type_id, number))
        finally:
            await self.admission.release(ticket_type_id, number)
        await self.admission.sync(ticket_type_id, remaining)

    async def confirm(self, reservation_id: str, now: Optional[datetime] = None) -> Reservation:
        """Make a hold permanent once payment succeeded. Confirming twice is a no-op."""
        now = now or _utcnow()
        async with self._lock:
            reservation = self.get(reservation_id)
            if reservation.status is ReservationStatus.CONFIRMED:
                return reservation
            if reservation.is_expired_at(now):
                await self._return_tickets(reservation, ReservationStatus.EXPIRED, now)
            if reservation.status is not ReservationStatus.HELD:
                raise ReservationExpired(reservation_id)
            reservation.status = ReservationStatus.CONFIRMED
            reservation.settled_at = now
            logger.info("reservation_confirmed", reservation_id=reservation_id)
            return reservation

    async def release(self, reservation_id: str, now: Optional[datetime] = None) -> Reservation:
        """Put the tickets back (payment failed, purchase abandoned or cancelled)."""
        async with self._lock:
            reservation = self.get(reservation_id)
            if reservation.status in (ReservationStatus.RELEASED, ReservationStatus.EXPIRED):
                return reservation
            await self._return_tickets(reservation, ReservationStatus.RELEASED, now or _utcnow())
            return reservation

    async def expire(self, now: Optional[datetime] = None) -> list[Reservation]:
        """
        Release every hold past its expiry and forget reservations settled more
        than one TTL ago. Returns the reservations released.

        A hold whose tickets cannot all be returned stays HELD and is retried
        on the next call; it does not stop the others from expiring.
        """
        now = now or _utcnow()
        async with self._lock:
            expired = await self._settle_each(
                [r for r in self._reservations.values() if r.is_expired_at(now)],
                ReservationStatus.EXPIRED,
                now,
            )
            forgotten = [
                r.id for r in self._reservations.values()
                if r.settled_at is not None and r.settled_at + self.ttl <= now
            ]
            for reservation_id in forgotten:
                del self._reservations[reservation_id]
        if expired or forgotten:
            logger.info("reservations_expired", count=len(expired), forgotten=len(forgotten))
        return expired

    async def release_all(self) -> list[Reservation]:
        """Release every open hold. Holds are process-local so they must not outlive the process."""
        async with self._lock:
            return await self._settle_each(
                [r for r in self._reservations.values() if r.status is ReservationStatus.HELD],
                ReservationStatus.RELEASED,
                _utcnow(),
            )

    async def _settle_each(
        self,
        reservations: list[Reservation],
        status: ReservationStatus,
        now: datetime,
    ) -> list[Reservation]:
        settled = []
        for reservation in reservations:
            try:
                await self._return_tickets(reservation, status, now)
            except Exception:
                logger.exception(
                    "reservation_release_failed",
                    reservation_id=reservation.id,
                    returned=sorted(reservation.returned),
                )
                continue
            settled.append(reservation)
        return settled

    async def _return_tickets(self, reservation: Reservation, status: ReservationStatus, now: datetime) -> None:
        for ticket_type_id, number in reservation.quantities.items():
            if ticket_type_id in reservation.returned:
                continue
            remaining = await self.inventory.release(ticket_type_id, number)
            reservation.returned.add(ticket_type_id)
            await self.admission.sync(ticket_type_id, remaining)
        reservation.status = status
        reservation.settled_at = now
        reason = "expired" if status is ReservationStatus.EXPIRED else "cancelled"
        record_release(reason, reservation.ticket_count)
        logger.info(
            "reservation_released",
            reservation_id=reservation.id,
            reason=reason,
            quantities=reservation.quantities,
        )
