"""
Tests for Money, TaxRate and Price.
"""

from decimal import Decimal, ROUND_HALF_UP

import pytest

from tickets.domain.errors import CurrencyMismatch
from tickets.domain.value_objects import Financials, Money, Price, TaxRate

RATES = ["0", "0.05", "0.175", "0.20", "1"]


class TestMoney:
    def test_add_and_multiply_keep_currency(self):
        total = Money(1000, "GBP").add(Money(250, "GBP")).multiply(3)
        assert total == Money(3750, "GBP")
        assert total.currency == "GBP"

    def test_currency_code_is_normalised(self):
        assert Money(1, "gbp").currency == "GBP"

    def test_rejects_fractional_amounts(self):
        with pytest.raises(TypeError):
            Money(10.5, "GBP")

    def test_rejects_non_integer_factor(self):
        with pytest.raises(TypeError):
            Money(100, "GBP").multiply(1.5)

    @pytest.mark.parametrize("operation", [
        lambda a, b: a.add(b),
        lambda a, b: a.subtract(b),
        lambda a, b: a == b,
        lambda a, b: a < b,
        lambda a, b: a >= b,
    ])
    def test_mixed_currencies_raise(self, operation):
        with pytest.raises(CurrencyMismatch):
            operation(Money(100, "GBP"), Money(100, "EUR"))

    def test_comparison(self):
        assert Money(100, "GBP") < Money(101, "GBP")
        assert Money(100, "GBP") >= Money(100, "GBP")

    def test_str_formats_major_units(self):
        assert str(Money(123456, "GBP")) == "GBP 1234.56"


class TestTaxRate:
    def test_float_rates_are_exact(self):
        assert TaxRate(0.2).rate == Decimal("0.2")

    def test_negative_rate_rejected(self):
        with pytest.raises(ValueError):
            TaxRate(-0.1)

    def test_tax_rounds_half_up(self):
        assert TaxRate("0.1").tax_on_net(Money(25, "GBP")) == Money(3, "GBP")
        assert TaxRate("0.1").tax_on_net(Money(24, "GBP")) == Money(2, "GBP")


class TestPrice:
    def test_from_net_cost(self):
        price = Price.from_net_cost(Money(1000, "GBP"), TaxRate(0.2))
        assert price.net == Money(1000, "GBP")
        assert price.tax == Money(200, "GBP")
        assert price.gross == Money(1200, "GBP")

    def test_from_gross_cost(self):
        price = Price.from_gross_cost(Money(1000, "GBP"), TaxRate(0.2))
        assert price.net == Money(833, "GBP")
        assert price.tax == Money(167, "GBP")

    @pytest.mark.parametrize("rate", RATES)
    def test_gross_is_net_plus_rounded_tax(self, rate):
        tax_rate = TaxRate(rate)
        for amount in range(0, 3000, 37):
            net = Money(amount, "GBP")
            expected_tax = int((Decimal(amount) * Decimal(rate)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
            assert Price.from_net_cost(net, tax_rate).gross == Money(amount + expected_tax, "GBP")

    @pytest.mark.parametrize("rate", RATES)
    def test_gross_cost_splits_exactly(self, rate):
        tax_rate = TaxRate(rate)
        for amount in range(0, 3000, 37):
            gross = Money(amount, "GBP")
            price = Price.from_gross_cost(gross, tax_rate)
            assert price.net.add(price.tax) == gross

    def test_inconsistent_triple_rejected(self):
        with pytest.raises(ValueError):
            Price(Money(100, "GBP"), Money(130, "GBP"), Money(20, "GBP"), TaxRate(0.2))

    def test_multiply_scales_components(self):
        price = Price.from_net_cost(Money(333, "GBP"), TaxRate("0.175")).multiply(3)
        assert price.net == Money(999, "GBP")
        assert price.tax == Money(174, "GBP")
        assert price.gross == Money(1173, "GBP")

    def test_subtract(self):
        subtotal = Price.from_net_cost(Money(2000, "GBP"), TaxRate(0.2))
        discount = Price.from_net_cost(Money(100, "GBP"), TaxRate(0.2))
        result = subtotal.subtract(discount)
        assert result.gross == Money(2280, "GBP")
        assert result.net == Money(1900, "GBP")
        assert result.tax == Money(380, "GBP")

    def test_subtract_clamps_at_zero(self):
        subtotal = Price.from_net_cost(Money(1000, "GBP"), TaxRate(0.2))
        discount = Price.from_gross_cost(Money(100000, "GBP"), TaxRate(0.2))
        assert subtotal.subtract(discount) == Price.zero("GBP", TaxRate(0.2))

    def test_subtract_keeps_tax_non_negative(self):
        subtotal = Price.from_net_cost(Money(100, "GBP"), TaxRate(0.2))
        discount = Price.from_gross_cost(Money(110, "GBP"), TaxRate(0.2))
        result = subtotal.subtract(discount)
        assert result.gross == Money(10, "GBP")
        assert result.tax.amount >= 0

    def test_prices_at_different_rates_do_not_combine(self):
        standard = Price.from_net_cost(Money(1000, "GBP"), TaxRate(0.2))
        reduced = Price.from_net_cost(Money(1000, "GBP"), TaxRate(0.05))
        with pytest.raises(ValueError):
            standard.add(reduced)
        with pytest.raises(ValueError):
            standard.subtract(reduced)
        # equal rates written differently still combine
        assert standard.add(Price.from_net_cost(Money(1, "GBP"), TaxRate("0.20"))).net == Money(1001, "GBP")

    def test_display_amount_follows_display_tax(self):
        price = Price.from_net_cost(Money(1000, "GBP"), TaxRate(0.2))
        assert price.display_amount(True) == Money(1000, "GBP")
        assert price.display_amount(False) == Money(1200, "GBP")


def test_financials_zero_price_uses_snapshot():
    financials = Financials("EUR", TaxRate("0.19"))
    zero = financials.zero_price()
    assert zero.currency == "EUR"
    assert zero.is_zero()
