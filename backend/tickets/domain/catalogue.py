"""
Catalogue entries: ticket types, discount codes and their sale windows.

These are immutable once the Configuration has been built.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from tickets.domain.errors import InvalidConfiguration
from tickets.domain.value_objects import Price

if TYPE_CHECKING:
    from tickets.domain.basket import Basket
    from tickets.domain.discount_types import DiscountType

TimestampLike = Union[str, datetime, None]


@dataclass(frozen=True)
class TicketType:
    identifier: str
    price: Price
    name: str
    description: str = ""
    supplementary: bool = False

    @property
    def requires_delegate_information(self) -> bool:
        """Supplementary tickets (add-ons) carry no attendee details."""
        return not self.supplementary


@dataclass(frozen=True)
class DiscountCode:
    code: str
    display_name: str
    discount_type: "DiscountType"

    def apply(self, basket: "Basket") -> Price:
        return self.discount_type.apply(basket)


def parse_timestamp(value: TimestampLike, key: str) -> Optional[datetime]:
    """Accept ISO-8601 strings or datetimes; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as exc:
            raise InvalidConfiguration(f"not an ISO-8601 timestamp: {value!r}", key=key) from exc
    if not isinstance(value, datetime):
        raise InvalidConfiguration(f"expected a timestamp, got {type(value).__name__}", key=key)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class _SaleWindow:
    available_from: Optional[datetime] = None
    available_to: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.available_from and self.available_to and self.available_from > self.available_to:
            raise ValueError("availableFrom must not be after availableTo")

    def is_pending_at(self, now: Optional[datetime] = None) -> bool:
        now = now or _utcnow()
        return self.available_from is not None and now < self.available_from

    def has_expired_at(self, now: Optional[datetime] = None) -> bool:
        now = now or _utcnow()
        return self.available_to is not None and now > self.available_to

    def is_available_at(self, now: Optional[datetime] = None) -> bool:
        now = now or _utcnow()
        return not self.is_pending_at(now) and not self.has_expired_at(now)

    @classmethod
    def _build(cls, raw: Mapping[str, Any], key: str, **owner: Any):
        window = {
            "available_from": parse_timestamp(raw.get("availableFrom"), f"{key}.availableFrom"),
            "available_to": parse_timestamp(raw.get("availableTo"), f"{key}.availableTo"),
        }
        try:
            return cls(**window, **owner)
        except ValueError as exc:
            raise InvalidConfiguration(str(exc), key=key) from exc


@dataclass(frozen=True)
class TicketMetadata(_SaleWindow):
    ticket_type: Optional[TicketType] = None

    @classmethod
    def from_array(cls, ticket_type: TicketType, raw: Mapping[str, Any]) -> "TicketMetadata":
        return cls._build(raw, f"tickets.{ticket_type.identifier}.metadata", ticket_type=ticket_type)


@dataclass(frozen=True)
class DiscountCodeMetadata(_SaleWindow):
    discount_code: Optional[DiscountCode] = None

    @classmethod
    def from_array(cls, discount_code: DiscountCode, raw: Mapping[str, Any]) -> "DiscountCodeMetadata":
        return cls._build(raw, f"discountCodes.{discount_code.code}.metadata", discount_code=discount_code)
