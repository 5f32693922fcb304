"""
Tests for the pydantic codecs and the Prometheus exposition.
"""

from tickets.core.metrics import metrics_payload, record_pricing_failure
from tickets.schemas import DiscountCodeSchema, TicketTypeSchema


def test_ticket_type_schema_carries_the_full_price(configuration):
    ticket = configuration.get_ticket_type("std")

    schema = TicketTypeSchema.from_domain(ticket)

    assert schema.model_dump()["price"]["gross"] == {"amount": 1200, "currency": "GBP"}
    assert TicketTypeSchema.model_validate_json(schema.model_dump_json()).to_domain() == ticket


def test_discount_code_schema_keeps_the_tag_and_options(configuration):
    schema = DiscountCodeSchema.from_domain(configuration.get_discount_code_metadata("TENOFF"))

    assert schema.discount_type.type == "percentage"
    assert schema.discount_type.options == {"percent": "10", "ticketTypes": ["std"]}
    assert schema.available_to is None


def test_metrics_payload_is_prometheus_text():
    record_pricing_failure("discount_expired")

    body, content_type = metrics_payload()

    assert content_type.startswith("text/plain")
    assert b'basket_pricing_failures_total{reason="discount_expired"}' in body
