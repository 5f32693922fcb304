"""
Tests for building the Configuration from raw settings.
"""

from datetime import datetime, timezone

import pytest

from tickets.domain.discount_types import FixedPerTicket, Percentage
from tickets.domain.errors import (
    DiscountCodeNotFound,
    InvalidConfiguration,
    InvalidDiscountConfiguration,
    TicketUnavailable,
)
from tickets.domain.value_objects import Money, TaxRate
from tickets.services.configuration import DEFAULT_SETTINGS, Configuration, merge_settings


def test_ticket_price_includes_tax():
    """One ticket at 1000 net with 20% tax costs 1200 gross; 2 available."""
    configuration = Configuration.from_array({
        "tickets": {"id": {"cost": 1000, "name": "Ticket", "available": 2}},
        "financial": {"taxRate": 0.20},
    })
    ticket = configuration.get_ticket_type("id")
    assert ticket.price.gross == Money(1200, "GBP")
    assert ticket.price.tax == Money(200, "GBP")
    assert configuration.get_available_tickets("id") == 2


def test_defaults_apply_to_empty_settings():
    configuration = Configuration.from_array({})
    assert configuration.currency == "GBP"
    assert configuration.tax_rate == TaxRate(0)
    assert configuration.display_tax is False
    assert dict(configuration.get_ticket_types()) == {}
    assert dict(configuration.get_discount_codes()) == {}


def test_partial_financial_settings_keep_other_defaults():
    configuration = Configuration.from_array({"financial": {"currency": "eur"}})
    assert configuration.currency == "EUR"
    assert configuration.tax_rate == TaxRate(0)


def test_merge_settings_does_not_mutate_defaults():
    merged = merge_settings(DEFAULT_SETTINGS, {"financial": {"taxRate": 0.2}})
    assert merged["financial"] == {"currency": "GBP", "taxRate": 0.2, "displayTax": False}
    assert DEFAULT_SETTINGS["financial"]["taxRate"] == 0


def test_catalogue_entries(configuration):
    assert set(configuration.get_ticket_types()) == {"std", "early", "dinner"}
    dinner = configuration.get_ticket_type("dinner")
    assert dinner.supplementary is True
    assert dinner.requires_delegate_information is False
    assert configuration.get_ticket_type("early").description == "Cheaper, for a limited time"

    per_ticket = configuration.get_discount_code("PERTICKET")
    assert per_ticket.display_name == "Per ticket"
    assert isinstance(per_ticket.discount_type, FixedPerTicket)
    assert isinstance(configuration.get_discount_code("TENOFF").discount_type, Percentage)


def test_metadata_is_parsed(configuration):
    metadata = configuration.get_ticket_metadata("early")
    assert metadata.ticket_type is configuration.get_ticket_type("early")
    assert metadata.available_to == datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert metadata.available_from is None

    code_metadata = configuration.get_discount_code_metadata("SOON")
    assert code_metadata.discount_code is configuration.get_discount_code("SOON")
    assert code_metadata.is_pending_at(datetime(2026, 1, 1, tzinfo=timezone.utc))


def test_discount_codes_are_case_sensitive(configuration):
    with pytest.raises(DiscountCodeNotFound):
        configuration.get_discount_code("perticket")


def test_unknown_ticket_lookup(configuration):
    with pytest.raises(TicketUnavailable):
        configuration.get_available_tickets("vip")


def test_configuration_is_read_only(configuration):
    with pytest.raises(TypeError):
        configuration.get_ticket_types()["vip"] = configuration.get_ticket_type("std")
    with pytest.raises(AttributeError):
        configuration.financials = None


@pytest.mark.parametrize("settings, key", [
    ({"tickets": {"std": {"name": "Standard", "available": 2}}}, "tickets.std.cost"),
    ({"tickets": {"std": {"cost": 10.5, "name": "Standard", "available": 2}}}, "tickets.std.cost"),
    ({"tickets": {"std": {"cost": 100, "name": "Standard", "available": -1}}}, "tickets.std.available"),
    ({"financial": {"taxRate": -0.2}}, "financial.taxRate"),
    ({"financial": {"currency": "POUNDS"}}, "financial.currency"),
    ({"discountCodes": {"X": {"name": "No type"}}}, "discountCodes.X.type"),
])
def test_invalid_settings_name_the_key(settings, key):
    with pytest.raises(InvalidConfiguration) as exc_info:
        Configuration.from_array(settings)
    assert exc_info.value.key == key


def test_inverted_sale_window_rejected():
    with pytest.raises(InvalidConfiguration) as exc_info:
        Configuration.from_array({"tickets": {"std": {
            "cost": 100, "name": "Standard", "available": 1,
            "metadata": {"availableFrom": "2026-05-01T00:00:00", "availableTo": "2026-04-01T00:00:00"},
        }}})
    assert exc_info.value.key == "tickets.std.metadata"


def test_bad_timestamp_rejected():
    with pytest.raises(InvalidConfiguration) as exc_info:
        Configuration.from_array({"discountCodes": {"X": {
            "type": "fixed_per_ticket", "name": "X", "options": {"net": 1},
            "metadata": {"availableTo": "next tuesday"},
        }}})
    assert exc_info.value.key == "discountCodes.X.metadata.availableTo"


def test_unknown_discount_type_rejected():
    with pytest.raises(InvalidDiscountConfiguration) as exc_info:
        Configuration.from_array({"discountCodes": {"X": {"type": "buy_one_get_one", "name": "X"}}})
    assert exc_info.value.key == "discountCodes.X"


def test_malformed_discount_options_rejected():
    with pytest.raises(InvalidDiscountConfiguration) as exc_info:
        Configuration.from_array({"discountCodes": {"X": {"type": "fixed_per_ticket", "name": "X", "options": {}}}})
    assert exc_info.value.key == "discountCodes.X"


def test_discount_scoped_to_unknown_ticket_rejected():
    with pytest.raises(InvalidDiscountConfiguration) as exc_info:
        Configuration.from_array({
            "tickets": {"std": {"cost": 100, "name": "Standard", "available": 1}},
            "discountCodes": {"X": {"type": "percentage", "name": "X", "options": {"percent": 5, "ticketTypes": ["vip"]}}},
        })
    assert exc_info.value.key == "discountCodes.X.options.ticketTypes"


def test_discounts_use_configured_currency_and_rate():
    configuration = Configuration.from_array({
        "discountCodes": {"X": {"type": "fixed_per_ticket", "name": "X", "options": {"net": 1000}}},
        "financial": {"currency": "EUR", "taxRate": "0.19"},
    })
    discount = configuration.get_discount_code("X").discount_type.discount
    assert discount.gross == Money(1190, "EUR")
