"""Tests for amount parsing."""

import pytest
from decimal import Decimal

from finstate.utils.amount_parser import parse_amount, parse_money


@pytest.mark.parametrize(
    "text, expected",
    [
        ("123.45", Decimal("123.45")),
        ("$123.45", Decimal("123.45")),
        ("-123.45", Decimal("-123.45")),
        ("-$123.45", Decimal("-123.45")),
        ("1,234.56", Decimal("1234.56")),
        ("(123.45)", Decimal("-123.45")),
        ("€10", Decimal("10")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


def test_parse_amount_keeps_precision():
    """Amounts stay exact decimals, never floats."""
    assert parse_amount("0.1") + parse_amount("0.2") == Decimal("0.3")


@pytest.mark.parametrize("text", ["", "   ", "abc", "NaN", "Infinity"])
def test_parse_amount_invalid(text):
    with pytest.raises(ValueError):
        parse_amount(text)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1,200.50 EUR", (Decimal("1200.50"), "EUR")),
        ("eur 1200.50", (Decimal("1200.50"), "EUR")),
        ("£99", (Decimal("99"), "GBP")),
        ("0.5 BTC", (Decimal("0.5"), "BTC")),
        ("4248", (Decimal("4248"), None)),
    ],
)
def test_parse_money(text, expected):
    assert parse_money(text) == expected


def test_parse_money_invalid():
    with pytest.raises(ValueError):
        parse_money("EUR twelve")
