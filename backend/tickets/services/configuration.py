"""
Configuration: the validated, cross-referenced catalogue built from raw settings.

Built once at process start and read-only afterwards. Construction runs in two
phases so discount types never see a half-built Configuration:

  1. financial settings and ticket types (with initial counts and sale windows)
  2. discount codes, each given only the immutable Financials snapshot

Raw settings structure:

  tickets:
    <identifier>:
      cost:         net cost in minor units (before tax)
      name:         display name shown to customers
      description:  optional
      supplementary: optional, add-on tickets without attendee details
      available:    number available for purchase
      metadata:     optional {availableFrom, availableTo}
  discountCodes:
    <code>:
      type:     registered discount type tag, eg fixed_per_ticket
      name:     user friendly name for the code
      options:  options for the discount type
      metadata: optional {availableFrom, availableTo}
  financial:
    currency:   ISO currency code, defaults to GBP
    taxRate:    single tax rate for all tickets, defaults to 0
    displayTax: show tax as its own line at purchase time, defaults to false

Changing tickets or discount codes requires rebuilding the counters and
discount code projections (see catalogue_service).
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import ValidationError

from tickets.core.logging import get_logger
from tickets.domain.basket import Basket
from tickets.domain.catalogue import DiscountCode, DiscountCodeMetadata, TicketMetadata, TicketType
from tickets.domain.discount_types import resolve_discount_type
from tickets.domain.errors import (
    DiscountCodeNotFound,
    InvalidConfiguration,
    InvalidDiscountConfiguration,
    TicketUnavailable,
)
from tickets.domain.value_objects import Financials, Money, Price, TaxRate
from tickets.schemas.settings import DiscountCodeDefinition, TicketDefinition, TicketingSettings

logger = get_logger(__name__)

DEFAULT_SETTINGS: Mapping[str, Any] = MappingProxyType({
    "tickets": MappingProxyType({}),
    "discountCodes": MappingProxyType({}),
    "financial": MappingProxyType({
        "currency": "GBP",
        "taxRate": 0,
        "displayTax": False,
    }),
})


def merge_settings(defaults: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge overrides over defaults, returning new dicts."""
    merged = {key: dict(value) if isinstance(value, Mapping) else value for key, value in defaults.items()}
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


def _validation_error_key(exc: ValidationError) -> tuple[str, str]:
    error = exc.errors()[0]
    return ".".join(str(part) for part in error["loc"]), error["msg"]


@dataclass(frozen=True)
class Configuration:
    financials: Financials
    ticket_types: Mapping[str, TicketType]
    available_tickets: Mapping[str, int]
    ticket_metadata: Mapping[str, TicketMetadata]
    discount_codes: Mapping[str, DiscountCode]
    discount_code_metadata: Mapping[str, DiscountCodeMetadata]

    @classmethod
    def from_array(cls, settings: Mapping[str, Any]) -> "Configuration":
        if not isinstance(settings, Mapping):
            raise InvalidConfiguration("settings must be a mapping")
        try:
            parsed = TicketingSettings.model_validate(merge_settings(DEFAULT_SETTINGS, settings))
        except ValidationError as exc:
            key, message = _validation_error_key(exc)
            raise InvalidConfiguration(message, key=key) from exc

        financial = parsed.financial
        financials = Financials(
            currency=financial.currency.upper(),
            tax_rate=TaxRate(financial.taxRate),
            display_tax=financial.displayTax,
        )

        ticket_types: dict[str, TicketType] = {}
        available: dict[str, int] = {}
        ticket_metadata: dict[str, TicketMetadata] = {}
        for identifier, definition in parsed.tickets.items():
            ticket_type = _build_ticket_type(identifier, definition, financials)
            ticket_types[identifier] = ticket_type
            available[identifier] = definition.available
            ticket_metadata[identifier] = TicketMetadata.from_array(
                ticket_type, definition.metadata.model_dump()
            )

        discount_codes: dict[str, DiscountCode] = {}
        discount_metadata: dict[str, DiscountCodeMetadata] = {}
        for code, definition in parsed.discountCodes.items():
            discount_code = _build_discount_code(code, definition, financials, ticket_types)
            discount_codes[code] = discount_code
            discount_metadata[code] = DiscountCodeMetadata.from_array(
                discount_code, definition.metadata.model_dump()
            )

        logger.info(
            "configuration_built",
            currency=financials.currency,
            tax_rate=str(financials.tax_rate.rate),
            ticket_types=len(ticket_types),
            discount_codes=len(discount_codes),
        )
        return cls(
            financials=financials,
            ticket_types=MappingProxyType(ticket_types),
            available_tickets=MappingProxyType(available),
            ticket_metadata=MappingProxyType(ticket_metadata),
            discount_codes=MappingProxyType(discount_codes),
            discount_code_metadata=MappingProxyType(discount_metadata),
        )

    @property
    def currency(self) -> str:
        return self.financials.currency

    @property
    def tax_rate(self) -> TaxRate:
        return self.financials.tax_rate

    @property
    def display_tax(self) -> bool:
        return self.financials.display_tax

    def get_ticket_types(self) -> Mapping[str, TicketType]:
        return self.ticket_types

    def get_ticket_type(self, identifier: str) -> TicketType:
        try:
            return self.ticket_types[identifier]
        except KeyError:
            raise TicketUnavailable(identifier, "does not exist") from None

    def get_available_tickets(self, identifier: str) -> int:
        """Initial configured count, not the live remaining inventory."""
        self.get_ticket_type(identifier)
        return self.available_tickets[identifier]

    def get_ticket_metadata(self, identifier: str) -> TicketMetadata:
        self.get_ticket_type(identifier)
        return self.ticket_metadata[identifier]

    def get_discount_codes(self) -> Mapping[str, DiscountCode]:
        return self.discount_codes

    def get_discount_code(self, code: str) -> DiscountCode:
        try:
            return self.discount_codes[code]
        except KeyError:
            raise DiscountCodeNotFound(code) from None

    def get_discount_code_metadata(self, code: str) -> DiscountCodeMetadata:
        self.get_discount_code(code)
        return self.discount_code_metadata[code]

    def new_basket(self) -> Basket:
        return Basket(self.financials)


def _build_ticket_type(identifier: str, definition: TicketDefinition, financials: Financials) -> TicketType:
    price = Price.from_net_cost(Money(definition.cost, financials.currency), financials.tax_rate)
    return TicketType(
        identifier=identifier,
        price=price,
        name=definition.name,
        description=definition.description,
        supplementary=definition.supplementary,
    )


def _build_discount_code(
    code: str,
    definition: DiscountCodeDefinition,
    financials: Financials,
    ticket_types: Mapping[str, TicketType],
) -> DiscountCode:
    key = f"discountCodes.{code}"
    try:
        discount_type = resolve_discount_type(definition.type).from_array(definition.options, financials)
    except InvalidDiscountConfiguration as exc:
        raise InvalidDiscountConfiguration(exc.message, key=key) from exc

    scoped = getattr(discount_type, "ticket_types", None) or ()
    unknown = sorted(set(scoped) - set(ticket_types))
    if unknown:
        raise InvalidDiscountConfiguration(f"unknown ticket types {unknown}", key=f"{key}.options.ticketTypes")

    return DiscountCode(code=code, display_name=definition.name, discount_type=discount_type)
