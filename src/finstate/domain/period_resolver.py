"""Resolve semantic period selectors into concrete date ranges.

Years are fiscal years: with a fiscal year starting on April 1, "this year"
on 2024-02-15 is 2023-04-01 to 2024-03-31. Months are full calendar months.
All functions take ``today`` explicitly so results never depend on the wall
clock unless the caller leaves it out.
"""

import calendar
from datetime import date, timedelta
from enum import Enum
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from finstate.domain.entities import DateRange
from finstate.domain.errors import InvalidRangeError

# Lower bound used by the "all time" selector.
EARLIEST_LEDGER_DATE = date(1900, 1, 1)


class PeriodSelector(str, Enum):
    """Supported period selectors."""

    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"
    THIS_YEAR = "thisYear"
    LAST_YEAR = "lastYear"
    ALL_TIME = "allTime"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: Union["PeriodSelector", str]) -> "PeriodSelector":
        """Parse a selector, accepting camelCase, kebab-case or snake_case."""
        if isinstance(value, PeriodSelector):
            return value
        key = value.strip().replace("-", "").replace("_", "").lower()
        for selector in cls:
            if selector.value.lower() == key:
                return selector
        supported = ", ".join(s.value for s in cls)
        raise InvalidRangeError(f"Unknown period selector '{value}'. Supported: {supported}")


def day_before(day: date) -> date:
    return day - timedelta(days=1)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def fiscal_year_start(year: int, start_month: int = 1, start_day: int = 1) -> date:
    """Return the first day of the fiscal year that starts in calendar ``year``.

    A start day past the end of the month is clamped (February 30 becomes
    February 28 or 29).
    """
    _check_fiscal_start(start_month, start_day)
    last_day = calendar.monthrange(year, start_month)[1]
    return date(year, start_month, min(start_day, last_day))


def fiscal_year_for(day: date, start_month: int = 1, start_day: int = 1) -> int:
    """Return the fiscal year containing ``day``, labelled by its starting year."""
    if day < fiscal_year_start(day.year, start_month, start_day):
        return day.year - 1
    return day.year


def fiscal_year_range(fiscal_year: int, start_month: int = 1, start_day: int = 1) -> DateRange:
    """Return the date range of a fiscal year."""
    start = fiscal_year_start(fiscal_year, start_month, start_day)
    end = day_before(fiscal_year_start(fiscal_year + 1, start_month, start_day))
    return DateRange(start, end)


def resolve_period(
    selector: Union[PeriodSelector, str],
    fiscal_year_start_month: int = 1,
    fiscal_year_start_day: int = 1,
    custom_range: Optional[tuple[Optional[date], Optional[date]]] = None,
    today: Optional[date] = None,
) -> DateRange:
    """Map a period selector to a concrete date range.

    Args:
        selector: One of thisMonth, lastMonth, thisYear, lastYear, allTime, custom
        fiscal_year_start_month: Month the fiscal year starts in (1-12)
        fiscal_year_start_day: Day of month the fiscal year starts on
        custom_range: (start, end) pair, required for the custom selector
        today: Reference date; defaults to the current date

    Returns:
        Inclusive DateRange

    Raises:
        InvalidRangeError: If the selector is unknown, the fiscal start is
            invalid, or a custom range is missing a bound or inverted
    """
    selector = PeriodSelector.parse(selector)
    _check_fiscal_start(fiscal_year_start_month, fiscal_year_start_day)
    if today is None:
        today = date.today()

    if selector == PeriodSelector.THIS_MONTH:
        start = today.replace(day=1)
        return DateRange(start, month_end(start))

    if selector == PeriodSelector.LAST_MONTH:
        start = today.replace(day=1) - relativedelta(months=1)
        return DateRange(start, month_end(start))

    if selector in (PeriodSelector.THIS_YEAR, PeriodSelector.LAST_YEAR):
        year = fiscal_year_for(today, fiscal_year_start_month, fiscal_year_start_day)
        if selector == PeriodSelector.LAST_YEAR:
            year -= 1
        return fiscal_year_range(year, fiscal_year_start_month, fiscal_year_start_day)

    if selector == PeriodSelector.ALL_TIME:
        return DateRange(EARLIEST_LEDGER_DATE, today)

    start, end = custom_range if custom_range is not None else (None, None)
    if start is None or end is None:
        raise InvalidRangeError("Custom period requires both a start date and an end date")
    if end < start:
        raise InvalidRangeError(
            f"End date {end.isoformat()} is before start date {start.isoformat()}"
        )
    return DateRange(start, end)


def previous_range(current: DateRange) -> DateRange:
    """Return the comparable range immediately before ``current``.

    Ranges made of whole calendar months shift by the same number of months;
    anything else shifts by its length in days.
    """
    if current.start.day == 1 and current.end == month_end(current.end):
        months = (
            (current.end.year - current.start.year) * 12
            + current.end.month
            - current.start.month
            + 1
        )
        return DateRange(current.start - relativedelta(months=months), day_before(current.start))

    length = (current.end - current.start).days
    end = day_before(current.start)
    return DateRange(end - timedelta(days=length), end)


def _check_fiscal_start(month: int, day: int) -> None:
    if not 1 <= month <= 12:
        raise InvalidRangeError(f"Fiscal year start month must be 1-12, got {month}")
    if not 1 <= day <= 31:
        raise InvalidRangeError(f"Fiscal year start day must be 1-31, got {day}")
