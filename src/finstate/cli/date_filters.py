"""CLI helpers for date range resolution."""

from datetime import date
from typing import Optional

import click

from finstate.domain.entities import DateRange
from finstate.domain.errors import InvalidRangeError
from finstate.domain.period_resolver import PeriodSelector, resolve_period
from finstate.domain.settings import ReportSettings
from finstate.utils.date_parser import parse_date

PERIOD_FLAGS = {
    "this_month": PeriodSelector.THIS_MONTH,
    "last_month": PeriodSelector.LAST_MONTH,
    "this_year": PeriodSelector.THIS_YEAR,
    "last_year": PeriodSelector.LAST_YEAR,
    "all_time": PeriodSelector.ALL_TIME,
}


def period_options(func):
    """Add --this-month ... --all-time, --start-date and --end-date to a command."""
    options = [
        click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')"),
        click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'end of last month')"),
        click.option("--this-month", is_flag=True, help="Current calendar month"),
        click.option("--last-month", is_flag=True, help="Previous calendar month"),
        click.option("--this-year", is_flag=True, help="Current fiscal year"),
        click.option("--last-year", is_flag=True, help="Previous fiscal year"),
        click.option("--all-time", is_flag=True, help="Everything up to today"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    settings: Optional[ReportSettings] = None,
    default_range: DateRange | None = None,
    today: date | None = None,
) -> DateRange | None:
    """Resolve CLI date range from period flags or explicit dates.

    Years follow the configured fiscal year start. Explicit dates must come
    as a pair; with neither flags nor dates ``default_range`` is returned.
    """
    settings = settings or ReportSettings()
    selected = [name for name, is_set in period_flags.items() if is_set]

    if len(selected) > 1:
        click.echo(
            "Error: Only one period option (--this-month, --last-month, --this-year, --last-year, --all-time) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if selected and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --this-year, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if not selected and not start_date and not end_date:
        return default_range

    start = None
    end = None
    if not selected:
        if start_date:
            try:
                start = parse_date(start_date, today)
            except ValueError as e:
                click.echo(f"Error: Invalid start date: {e}", err=True)
                ctx.exit(1)

        if end_date:
            try:
                end = parse_date(end_date, today)
            except ValueError as e:
                click.echo(f"Error: Invalid end date: {e}", err=True)
                ctx.exit(1)

    try:
        return resolve_period(
            PERIOD_FLAGS[selected[0]] if selected else PeriodSelector.CUSTOM,
            settings.fiscal_year_start_month,
            settings.fiscal_year_start_day,
            custom_range=(start, end),
            today=today,
        )
    except InvalidRangeError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
