"""
Discount type family.

Every variant implements the same contract:

  apply(basket) -> Price               amount to take off, never negative
  from_array(options, financials)      build from raw settings
  to_array() -> dict                   options that rebuild the same discount

Variants are looked up by tag from the registry while the Configuration is
being built, so an unknown tag fails at startup rather than at checkout.
"""

from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional

from tickets.domain.basket import Basket
from tickets.domain.errors import InvalidDiscountConfiguration
from tickets.domain.value_objects import Financials, Money, Price, round_half_up

DISCOUNT_TYPES: dict[str, type["DiscountType"]] = {}


def register_discount_type(tag: str) -> Callable[[type["DiscountType"]], type["DiscountType"]]:
    def decorator(cls: type["DiscountType"]) -> type["DiscountType"]:
        if tag in DISCOUNT_TYPES:
            raise ValueError(f"Discount type '{tag}' is already registered")
        cls.tag = tag
        DISCOUNT_TYPES[tag] = cls
        return cls

    return decorator


def resolve_discount_type(tag: str) -> type["DiscountType"]:
    try:
        return DISCOUNT_TYPES[tag]
    except KeyError:
        known = ", ".join(sorted(DISCOUNT_TYPES))
        raise InvalidDiscountConfiguration(f"Unknown discount type '{tag}' (known: {known})") from None


class DiscountType(ABC):
    tag: str = ""

    @abstractmethod
    def apply(self, basket: Basket) -> Price:
        ...

    @classmethod
    @abstractmethod
    def from_array(cls, options: Mapping[str, Any], financials: Financials) -> "DiscountType":
        ...

    @abstractmethod
    def to_array(self) -> dict[str, Any]:
        ...

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DiscountType):
            return NotImplemented
        return type(self) is type(other) and self.to_array() == other.to_array()

    def __hash__(self) -> int:
        return hash((type(self), repr(sorted(self.to_array().items()))))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_array()!r})"


def _amount(options: Mapping[str, Any], key: str) -> int:
    value = options[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidDiscountConfiguration(f"'{key}' must be a non-negative integer amount, got {value!r}")
    return value


class _FixedAmount(DiscountType):
    """
    A fixed discount configured as either a net or a gross amount.

    Net wins when both are set. The basis is kept so to_array() rebuilds the
    same Price without a net/gross rounding round trip.
    """

    def __init__(self, discount: Price, basis: str = "net") -> None:
        self.discount = discount
        self.basis = basis

    @classmethod
    def from_array(cls, options: Mapping[str, Any], financials: Financials) -> "_FixedAmount":
        if not isinstance(options, Mapping):
            raise InvalidDiscountConfiguration("options must be a mapping")
        if "net" in options:
            amount = financials.money(_amount(options, "net"))
            return cls(Price.from_net_cost(amount, financials.tax_rate), "net")
        if "gross" in options:
            amount = financials.money(_amount(options, "gross"))
            return cls(Price.from_gross_cost(amount, financials.tax_rate), "gross")
        raise InvalidDiscountConfiguration("options must define 'net' or 'gross'")

    def to_array(self) -> dict[str, Any]:
        return {self.basis: getattr(self.discount, self.basis).amount}


@register_discount_type("fixed_per_ticket")
class FixedPerTicket(_FixedAmount):
    """The same amount off every ticket in the basket, whatever its type."""

    def apply(self, basket: Basket) -> Price:
        return self.discount.multiply(basket.count())


@register_discount_type("fixed_per_basket")
class FixedPerBasket(_FixedAmount):
    """A flat amount off the whole purchase."""

    def apply(self, basket: Basket) -> Price:
        if basket.is_empty():
            return basket.financials.zero_price()
        return self.discount


@register_discount_type("percentage")
class Percentage(DiscountType):
    """
    A percentage off the subtotal.

    When `ticket_types` is given only those tickets are discounted. The
    discount is taken from the net subtotal and tax recomputed on it.
    """

    def __init__(self, percent: Decimal, financials: Financials, ticket_types: Optional[frozenset[str]] = None) -> None:
        self.percent = percent
        self.financials = financials
        self.ticket_types = ticket_types

    def apply(self, basket: Basket) -> Price:
        scoped = [
            ticket for ticket in basket.tickets
            if self.ticket_types is None or ticket.identifier in self.ticket_types
        ]
        net = basket.subtotal(scoped).net
        discount = Money(round_half_up(Decimal(net.amount) * self.percent / 100), net.currency)
        return Price.from_net_cost(discount, self.financials.tax_rate)

    @classmethod
    def from_array(cls, options: Mapping[str, Any], financials: Financials) -> "Percentage":
        if not isinstance(options, Mapping) or "percent" not in options:
            raise InvalidDiscountConfiguration("options must define 'percent'")
        raw = options["percent"]
        try:
            percent = Decimal(str(raw)) if not isinstance(raw, bool) else None
        except InvalidOperation:
            percent = None
        if percent is None or not percent.is_finite() or not 0 <= percent <= 100:
            raise InvalidDiscountConfiguration(f"'percent' must be between 0 and 100, got {raw!r}")

        ticket_types = options.get("ticketTypes")
        if ticket_types is not None:
            if not isinstance(ticket_types, (list, tuple)) or not all(isinstance(t, str) for t in ticket_types):
                raise InvalidDiscountConfiguration("'ticketTypes' must be a list of ticket identifiers")
            ticket_types = frozenset(ticket_types)
        return cls(percent, financials, ticket_types)

    def to_array(self) -> dict[str, Any]:
        options: dict[str, Any] = {"percent": str(self.percent)}
        if self.ticket_types is not None:
            options["ticketTypes"] = sorted(self.ticket_types)
        return options
