"""
Monetary value objects.

All amounts are integers in minor currency units (pence, cents). Tax is
rounded half-up on minor units, the only rounding rule used in the package.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from functools import total_ordering
from typing import Union

from tickets.domain.errors import CurrencyMismatch

RateLike = Union[int, float, str, Decimal]


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@total_ordering
@dataclass(frozen=True, eq=False)
class Money:
    """Amount in minor units tagged with an ISO 4217 currency code."""

    amount: int
    currency: str

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise TypeError(f"Money amount must be an int, got {type(self.amount).__name__}")
        if not isinstance(self.currency, str) or len(self.currency) != 3 or not self.currency.isalpha():
            raise ValueError(f"Invalid currency code: {self.currency!r}")
        object.__setattr__(self, "currency", self.currency.upper())

    @classmethod
    def zero(cls, currency: str) -> "Money":
        return cls(0, currency)

    def add(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def subtract(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def multiply(self, factor: int) -> "Money":
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def is_zero(self) -> bool:
        return self.amount == 0

    def __add__(self, other: "Money") -> "Money":
        return self.add(other)

    def __sub__(self, other: "Money") -> "Money":
        return self.subtract(other)

    def __mul__(self, factor: int) -> "Money":
        return self.multiply(factor)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._assert_same_currency(other)
        return self.amount == other.amount

    def __lt__(self, other: "Money") -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._assert_same_currency(other)
        return self.amount < other.amount

    def __hash__(self) -> int:
        return hash((self.amount, self.currency))

    def __str__(self) -> str:
        return f"{self.currency} {self.amount / 100:.2f}"

    def _assert_same_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatch(self.currency, other.currency)


@dataclass(frozen=True)
class TaxRate:
    """A single sales tax rate expressed as a fraction, eg 0.20 for 20%."""

    rate: Decimal

    def __post_init__(self) -> None:
        rate = self.rate
        if isinstance(rate, float):
            rate = Decimal(str(rate))
        elif not isinstance(rate, Decimal):
            rate = Decimal(rate)
        if rate < 0:
            raise ValueError(f"Tax rate cannot be negative, got {rate}")
        object.__setattr__(self, "rate", rate)

    @property
    def percentage(self) -> Decimal:
        return self.rate * 100

    def tax_on_net(self, net: Money) -> Money:
        return Money(round_half_up(Decimal(net.amount) * self.rate), net.currency)

    def net_from_gross(self, gross: Money) -> Money:
        return Money(round_half_up(Decimal(gross.amount) / (1 + self.rate)), gross.currency)


@dataclass(frozen=True)
class Price:
    """
    A (net, gross, tax) triple at a given tax rate.

    Build with from_net_cost or from_gross_cost. The constructor only checks
    that gross == net + tax so an inconsistent triple can never exist.
    Prices only add to or subtract from prices at the same rate.
    """

    net: Money
    gross: Money
    tax: Money
    tax_rate: TaxRate

    def __post_init__(self) -> None:
        if self.net.add(self.tax) != self.gross:
            raise ValueError(f"Inconsistent price: {self.net} + {self.tax} != {self.gross}")

    @classmethod
    def from_net_cost(cls, net: Money, tax_rate: TaxRate) -> "Price":
        tax = tax_rate.tax_on_net(net)
        return cls(net=net, gross=net.add(tax), tax=tax, tax_rate=tax_rate)

    @classmethod
    def from_gross_cost(cls, gross: Money, tax_rate: TaxRate) -> "Price":
        net = tax_rate.net_from_gross(gross)
        return cls(net=net, gross=gross, tax=gross.subtract(net), tax_rate=tax_rate)

    @classmethod
    def zero(cls, currency: str, tax_rate: TaxRate) -> "Price":
        return cls.from_net_cost(Money.zero(currency), tax_rate)

    @property
    def currency(self) -> str:
        return self.net.currency

    def is_zero(self) -> bool:
        return self.gross.is_zero()

    def multiply(self, factor: int) -> "Price":
        # Components are scaled directly; recomputing tax would drift from factor * unit tax.
        return Price(
            net=self.net.multiply(factor),
            gross=self.gross.multiply(factor),
            tax=self.tax.multiply(factor),
            tax_rate=self.tax_rate,
        )

    def _check_rate(self, other: "Price") -> None:
        if other.tax_rate != self.tax_rate:
            raise ValueError(
                f"Cannot combine prices taxed at {self.tax_rate.percentage}% and {other.tax_rate.percentage}%"
            )

    def add(self, other: "Price") -> "Price":
        self._check_rate(other)
        return Price(
            net=self.net.add(other.net),
            gross=self.gross.add(other.gross),
            tax=self.tax.add(other.tax),
            tax_rate=self.tax_rate,
        )

    def subtract(self, other: "Price") -> "Price":
        """Subtract a discount, clamping at zero."""
        self._check_rate(other)
        gross = max(self.gross.subtract(other.gross).amount, 0)
        net = min(max(self.net.subtract(other.net).amount, 0), gross)
        return Price(
            net=Money(net, self.currency),
            gross=Money(gross, self.currency),
            tax=Money(gross - net, self.currency),
            tax_rate=self.tax_rate,
        )

    def display_amount(self, display_tax: bool) -> Money:
        """Net when tax is shown as its own line, gross otherwise."""
        return self.net if display_tax else self.gross


@dataclass(frozen=True)
class Financials:
    """Immutable snapshot of the financial settings handed to discount construction."""

    currency: str
    tax_rate: TaxRate
    display_tax: bool = False

    def money(self, amount: int) -> Money:
        return Money(amount, self.currency)

    def zero_price(self) -> Price:
        return Price.zero(self.currency, self.tax_rate)
