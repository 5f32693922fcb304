"""
Pydantic serialization codecs for catalogue value objects.

Domain types stay plain; these schemas own the wire/row shape.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field

from tickets.domain.catalogue import DiscountCode, DiscountCodeMetadata, TicketType, parse_timestamp
from tickets.domain.discount_types import resolve_discount_type
from tickets.domain.value_objects import Financials, Money, Price, TaxRate


class MoneySchema(BaseModel):
    amount: int
    currency: str = Field(..., pattern=r"^[A-Z]{3}$")

    @classmethod
    def from_domain(cls, money: Money) -> "MoneySchema":
        return cls(amount=money.amount, currency=money.currency)

    def to_domain(self) -> Money:
        return Money(self.amount, self.currency)


class PriceSchema(BaseModel):
    net: MoneySchema
    gross: MoneySchema
    tax: MoneySchema
    tax_rate: Decimal

    @classmethod
    def from_domain(cls, price: Price) -> "PriceSchema":
        return cls(
            net=MoneySchema.from_domain(price.net),
            gross=MoneySchema.from_domain(price.gross),
            tax=MoneySchema.from_domain(price.tax),
            tax_rate=price.tax_rate.rate,
        )

    def to_domain(self) -> Price:
        return Price(
            net=self.net.to_domain(),
            gross=self.gross.to_domain(),
            tax=self.tax.to_domain(),
            tax_rate=TaxRate(self.tax_rate),
        )


class TicketTypeSchema(BaseModel):
    identifier: str
    name: str
    description: str = ""
    supplementary: bool = False
    price: PriceSchema

    @classmethod
    def from_domain(cls, ticket_type: TicketType) -> "TicketTypeSchema":
        return cls(
            identifier=ticket_type.identifier,
            name=ticket_type.name,
            description=ticket_type.description,
            supplementary=ticket_type.supplementary,
            price=PriceSchema.from_domain(ticket_type.price),
        )

    def to_domain(self) -> TicketType:
        return TicketType(
            identifier=self.identifier,
            price=self.price.to_domain(),
            name=self.name,
            description=self.description,
            supplementary=self.supplementary,
        )


class DiscountTypeSchema(BaseModel):
    type: str
    options: dict[str, Any] = Field(default_factory=dict)


class DiscountCodeSchema(BaseModel):
    code: str
    display_name: str
    discount_type: DiscountTypeSchema
    available_from: Optional[datetime] = None
    available_to: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_domain(cls, metadata: DiscountCodeMetadata) -> "DiscountCodeSchema":
        code = metadata.discount_code
        return cls(
            code=code.code,
            display_name=code.display_name,
            discount_type=DiscountTypeSchema(
                type=code.discount_type.tag,
                options=code.discount_type.to_array(),
            ),
            available_from=metadata.available_from,
            available_to=metadata.available_to,
        )

    def to_domain(self, financials: Financials) -> DiscountCodeMetadata:
        discount_type = resolve_discount_type(self.discount_type.type).from_array(
            self.discount_type.options, financials
        )
        discount_code = DiscountCode(self.code, self.display_name, discount_type)
        return DiscountCodeMetadata(
            discount_code=discount_code,
            available_from=parse_timestamp(self.available_from, "available_from"),
            available_to=parse_timestamp(self.available_to, "available_to"),
        )
