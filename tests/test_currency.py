"""Tests for currency conversion."""

import pytest
from decimal import Decimal

from finstate.domain.currency import DEFAULT_RATES, RateTable, convert
from finstate.domain.entities import CurrencyRate
from finstate.domain.errors import RateTableError, UnknownCurrencyError


@pytest.fixture
def rates():
    """USD-based rate table."""
    return [
        CurrencyRate("USD", Decimal("1"), is_base=True),
        CurrencyRate("EUR", Decimal("1.10")),
        CurrencyRate("GBP", Decimal("1.25")),
    ]


def test_same_currency_returns_amount_unchanged(rates):
    amount = Decimal("123.456")
    assert convert(amount, "EUR", "EUR", rates) is amount


def test_same_currency_needs_no_rate():
    """Identity conversion ignores the table, even an unusable one."""
    assert convert(Decimal("5"), "XYZ", "xyz", []) == Decimal("5")


def test_to_base(rates):
    assert convert(Decimal("100"), "EUR", "USD", rates) == Decimal("110.00")


def test_from_base(rates):
    assert convert(Decimal("110"), "USD", "EUR", rates) == Decimal("100")


def test_cross_rate(rates):
    result = convert(Decimal("100"), "GBP", "EUR", rates)
    assert result.quantize(Decimal("0.0001")) == Decimal("113.6364")


def test_codes_are_case_insensitive(rates):
    assert convert(Decimal("100"), "eur", "usd", rates) == Decimal("110.00")


def test_unknown_currency(rates):
    with pytest.raises(UnknownCurrencyError) as excinfo:
        convert(Decimal("1"), "JPY", "USD", rates)
    assert excinfo.value.code == "JPY"
    assert "JPY" in str(excinfo.value)


class TestRateTable:
    """Tests for RateTable validation."""

    def test_requires_base(self):
        with pytest.raises(RateTableError, match="no base currency"):
            RateTable([CurrencyRate("EUR", Decimal("1.1"))])

    def test_rejects_two_bases(self):
        with pytest.raises(RateTableError, match="more than one base"):
            RateTable(
                [
                    CurrencyRate("USD", Decimal("1"), is_base=True),
                    CurrencyRate("EUR", Decimal("1"), is_base=True),
                ]
            )

    def test_base_must_be_one(self):
        with pytest.raises(RateTableError, match="must have rate 1"):
            RateTable([CurrencyRate("USD", Decimal("2"), is_base=True)])

    def test_rejects_non_positive_rate(self):
        with pytest.raises(RateTableError, match="must be positive"):
            RateTable(
                [CurrencyRate("USD", Decimal("1"), is_base=True), CurrencyRate("EUR", Decimal("0"))]
            )

    def test_rebased(self, rates):
        table = RateTable(rates).rebased("EUR")
        assert table.base_currency == "EUR"
        assert table.rate("EUR") == Decimal("1")
        assert table.rate("USD") == Decimal("1") / Decimal("1.10")

    def test_rebased_preserves_conversions(self, rates):
        original = RateTable(rates)
        rebased = original.rebased("GBP")
        amount = Decimal("250")
        assert convert(amount, "EUR", "USD", original).quantize(Decimal("0.01")) == convert(
            amount, "EUR", "USD", rebased
        ).quantize(Decimal("0.01"))

    def test_default_rates_form_a_table(self):
        table = RateTable.from_mapping(DEFAULT_RATES, "USD")
        assert table.base_currency == "USD"
        assert "EUR" in table
        assert "BTC" in table
