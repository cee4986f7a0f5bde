"""Tests for date parser with relative dates."""

import pytest
from datetime import date, timedelta

from finstate.utils.date_parser import parse_date

TODAY = date(2024, 3, 14)  # a Thursday


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    result = parse_date("2024-01-15")
    assert result == date(2024, 1, 15)


def test_parse_today():
    """Test parsing 'today'."""
    assert parse_date("today") == date.today()
    assert parse_date("today", TODAY) == TODAY


def test_parse_yesterday_and_tomorrow():
    """Test parsing 'yesterday' and 'tomorrow'."""
    assert parse_date("yesterday", TODAY) == date(2024, 3, 13)
    assert parse_date("Tomorrow", TODAY) == date(2024, 3, 15)


def test_parse_last_month():
    """Test parsing 'last month' gives the first day of last month."""
    assert parse_date("last month", TODAY) == date(2024, 2, 1)
    assert parse_date("last month", date(2024, 1, 10)) == date(2023, 12, 1)


def test_parse_last_week():
    """Test parsing 'last week' gives Monday of last week."""
    result = parse_date("last week", TODAY)
    assert result == date(2024, 3, 4)
    assert result.weekday() == 0


def test_parse_last_weekday():
    """Test parsing 'last friday'."""
    assert parse_date("last friday", TODAY) == date(2024, 3, 8)
    assert parse_date("last thursday", TODAY) == TODAY - timedelta(days=7)


def test_parse_this_and_next():
    """Test parsing 'this'/'next' month and year."""
    assert parse_date("this month", TODAY) == date(2024, 3, 1)
    assert parse_date("this year", TODAY) == date(2024, 1, 1)
    assert parse_date("next month", TODAY) == date(2024, 4, 1)
    assert parse_date("next year", TODAY) == date(2025, 1, 1)


def test_parse_last_year():
    """Test parsing 'last year'."""
    assert parse_date("last year", TODAY) == date(2023, 1, 1)


def test_parse_end_of():
    """Test 'end of' gives the last day of the month or year."""
    assert parse_date("end of last month", TODAY) == date(2024, 2, 29)
    assert parse_date("end of this month", TODAY) == date(2024, 3, 31)
    assert parse_date("end of last year", TODAY) == date(2023, 12, 31)


def test_parse_end_of_invalid():
    """Test 'end of' without a month or year."""
    with pytest.raises(ValueError, match="needs a month or year"):
        parse_date("end of today", TODAY)


def test_parse_invalid_relative():
    """Test parsing invalid relative date."""
    with pytest.raises(ValueError):
        parse_date("last invalid")


def test_parse_standard_formats():
    """Test parsing various standard date formats."""
    # These should all work via dateutil parser
    assert parse_date("January 15, 2024") == date(2024, 1, 15)
    assert parse_date("15/01/2024") == date(2024, 1, 15)
