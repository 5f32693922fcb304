"""
Domain error taxonomy.

Fatal errors (configuration, currency mismatch) mean the process is
misconfigured and must not serve purchases. Recoverable errors are shown to
the purchaser with a corrective message.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    CURRENCY_MISMATCH = "CURRENCY_MISMATCH"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    INVALID_DISCOUNT_CONFIGURATION = "INVALID_DISCOUNT_CONFIGURATION"
    TICKET_UNAVAILABLE = "TICKET_UNAVAILABLE"
    DISCOUNT_CODE_NOT_FOUND = "DISCOUNT_CODE_NOT_FOUND"
    DISCOUNT_CODE_EXPIRED = "DISCOUNT_CODE_EXPIRED"
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    RESERVATION_CONFLICT = "RESERVATION_CONFLICT"
    INVENTORY_OVER_RELEASE = "INVENTORY_OVER_RELEASE"
    RESERVATION_NOT_FOUND = "RESERVATION_NOT_FOUND"
    RESERVATION_EXPIRED = "RESERVATION_EXPIRED"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    recoverable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class CurrencyMismatch(DomainError):
    code = ErrorCode.CURRENCY_MISMATCH

    def __init__(self, left: str, right: str) -> None:
        super().__init__(f"Cannot combine {left} with {right}")
        self.currencies = (left, right)


class InvalidConfiguration(DomainError):
    """Raised at startup for malformed settings. `key` is the dotted path of the offending entry."""

    code = ErrorCode.INVALID_CONFIGURATION

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(f"{key}: {message}" if key else message)
        self.key = key


class InvalidDiscountConfiguration(InvalidConfiguration):
    code = ErrorCode.INVALID_DISCOUNT_CONFIGURATION


class TicketUnavailable(DomainError):
    code = ErrorCode.TICKET_UNAVAILABLE
    recoverable = True

    def __init__(self, ticket_type_id: str, reason: str = "is not available") -> None:
        super().__init__(f"Ticket '{ticket_type_id}' {reason}")
        self.ticket_type_id = ticket_type_id


class DiscountCodeNotFound(DomainError):
    code = ErrorCode.DISCOUNT_CODE_NOT_FOUND
    recoverable = True

    def __init__(self, discount_code: str) -> None:
        super().__init__(f"Discount code '{discount_code}' is not valid")
        self.discount_code = discount_code


class DiscountCodeExpired(DomainError):
    code = ErrorCode.DISCOUNT_CODE_EXPIRED
    recoverable = True

    def __init__(self, discount_code: str) -> None:
        super().__init__(f"Discount code '{discount_code}' has expired")
        self.discount_code = discount_code


class InsufficientInventory(DomainError):
    """Not enough tickets left. The purchaser should revise their selection."""

    code = ErrorCode.INSUFFICIENT_INVENTORY
    recoverable = True

    def __init__(self, ticket_type_id: str, requested: int, remaining: int) -> None:
        super().__init__(
            f"Not enough '{ticket_type_id}' tickets. Requested: {requested}, Available: {remaining}"
        )
        self.ticket_type_id = ticket_type_id
        self.requested = requested
        self.remaining = remaining


class ReservationConflict(InsufficientInventory):
    """Lost the optimistic-lock race on every retry while stock was still there."""

    code = ErrorCode.RESERVATION_CONFLICT

    def __init__(self, ticket_type_id: str, requested: int, remaining: int) -> None:
        super().__init__(ticket_type_id, requested, remaining)
        self.message = "Reservation failed due to high demand. Please try again."
        self.args = (self.message,)


class InventoryOverRelease(DomainError):
    """Releasing more tickets than were ever reserved. Internal consistency error."""

    code = ErrorCode.INVENTORY_OVER_RELEASE

    def __init__(self, ticket_type_id: str, released: int, remaining: int, maximum: int) -> None:
        super().__init__(
            f"Releasing {released} '{ticket_type_id}' tickets would exceed capacity "
            f"({remaining}/{maximum})"
        )
        self.ticket_type_id = ticket_type_id


class ReservationNotFound(DomainError):
    code = ErrorCode.RESERVATION_NOT_FOUND

    def __init__(self, reservation_id: str) -> None:
        super().__init__(f"Reservation {reservation_id} not found")
        self.reservation_id = reservation_id


class ReservationExpired(DomainError):
    code = ErrorCode.RESERVATION_EXPIRED
    recoverable = True

    def __init__(self, reservation_id: str) -> None:
        super().__init__(f"Reservation {reservation_id} has expired, please select your tickets again")
        self.reservation_id = reservation_id
