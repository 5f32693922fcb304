"""
Persisted ticket counter: the remaining inventory for one ticket type.

Key design decisions:
- One row per ticket type, keyed by the configured identifier
- `maximum` stores the configured capacity so releases can be bounded
- `version` column enables optimistic locking for concurrent reservations
- CHECK constraints keep remaining within [0, maximum] at the DB level
"""

from sqlalchemy import Column, Integer, String, CheckConstraint

from tickets.db.base import Base, TimestampMixin
from tickets.domain.counter import TicketCounter


class TicketCounterRow(Base, TimestampMixin):
    __tablename__ = "ticket_counters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticket_type_id = Column(String(100), nullable=False, unique=True, index=True)
    remaining = Column(Integer, nullable=False)
    maximum = Column(Integer, nullable=False)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("remaining >= 0", name="check_remaining_non_negative"),
        CheckConstraint("maximum >= 0", name="check_maximum_non_negative"),
        CheckConstraint("remaining <= maximum", name="check_remaining_lte_maximum"),
    )

    def to_domain(self) -> TicketCounter:
        return TicketCounter(self.ticket_type_id, self.remaining, self.maximum)

    def __repr__(self) -> str:
        return f"<TicketCounterRow(ticket_type={self.ticket_type_id}, remaining={self.remaining}/{self.maximum})>"
