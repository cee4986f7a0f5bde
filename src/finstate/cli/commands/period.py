"""Accounting period commands."""

import click
from finstate.cli.resolution import company_option, resolve_company_or_exit
from finstate.domain.entities import PeriodType
from finstate.domain.period import PeriodService
from finstate.utils.date_parser import parse_date


@click.group()
def period_group():
    """Manage accounting periods."""
    pass


@period_group.command("create")
@click.argument("name", metavar="PERIOD_NAME")
@click.option("--start-date", required=True, help="First day of the period")
@click.option("--end-date", required=True, help="Last day of the period")
@click.option(
    "--type",
    "period_type",
    type=click.Choice([t.value for t in PeriodType], case_sensitive=False),
    default=PeriodType.CUSTOM.value,
    show_default=True,
)
@click.option("--fiscal-year", type=int, help="Fiscal year label (default: derived from start date)")
@click.option("--parent", "parent_id", type=int, help="ID of the enclosing period")
@company_option
@click.pass_context
def create_period(
    ctx,
    name: str,
    start_date: str,
    end_date: str,
    period_type: str,
    fiscal_year: int | None,
    parent_id: int | None,
    company: str | None,
):
    """Create an accounting period.

    Examples:
        finstate period create "H1 2024" --start-date 2024-01-01 --end-date 2024-06-30 --type Interim
    """
    company_id = resolve_company_or_exit(ctx, company)
    service = PeriodService(ctx.obj["db"], ctx.obj["settings"])

    try:
        start = parse_date(start_date)
        end = parse_date(end_date)
        matched = next(t for t in PeriodType if t.value.lower() == period_type.lower())
        period_id = service.create_period(
            company_id, name, start, end, matched, fiscal_year=fiscal_year, parent_id=parent_id
        )
        click.echo(f"Created period '{name}' {start} to {end} (ID: {period_id})")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@period_group.command("create-year")
@click.argument("fiscal_year", type=int, metavar="FISCAL_YEAR")
@click.option("--months", is_flag=True, help="Also create monthly periods")
@company_option
@click.pass_context
def create_year(ctx, fiscal_year: int, months: bool, company: str | None):
    """Create a fiscal year with its quarters (and months).

    FISCAL_YEAR is the calendar year the fiscal year starts in.
    """
    company_id = resolve_company_or_exit(ctx, company)
    service = PeriodService(ctx.obj["db"], ctx.obj["settings"])

    try:
        created = service.create_fiscal_year(company_id, fiscal_year, include_months=months)
        click.echo(f"Created FY{fiscal_year} with {len(created)} periods")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@period_group.command("list")
@click.option("--fiscal-year", type=int, help="Only periods of this fiscal year")
@company_option
@click.pass_context
def list_periods(ctx, fiscal_year: int | None, company: str | None):
    """List accounting periods."""
    company_id = resolve_company_or_exit(ctx, company)
    service = PeriodService(ctx.obj["db"], ctx.obj["settings"])

    periods = service.list_periods(company_id, fiscal_year=fiscal_year)
    if not periods:
        click.echo("No periods found.")
        return

    click.echo("\nPeriods:")
    click.echo("-" * 60)
    for p in periods:
        status = "closed" if p.is_closed else "open"
        click.echo(
            f"ID: {p.id:3d} | {p.name:14s} | {p.start_date} to {p.end_date} | "
            f"{p.period_type.value:9s} | {status}"
        )


@period_group.command("close")
@click.argument("period_id", type=int, metavar="PERIOD_ID")
@click.option("--by", "closed_by", help="Who is closing the period")
@click.pass_context
def close_period(ctx, period_id: int, closed_by: str | None):
    """Close a period so no entries can be dated inside it."""
    service = PeriodService(ctx.obj["db"], ctx.obj["settings"])

    try:
        closing = service.close_period(period_id, closed_by=closed_by)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    click.echo(f"Closed period '{closing.period.name}'")
    click.echo(
        f"Net income transferred to retained earnings: {closing.net_income:,.2f} {closing.currency}"
    )


@period_group.command("reopen")
@click.argument("period_id", type=int, metavar="PERIOD_ID")
@click.pass_context
def reopen_period(ctx, period_id: int):
    """Reopen a closed period (requires allow_prior_period_adjustments)."""
    service = PeriodService(ctx.obj["db"], ctx.obj["settings"])

    try:
        period = service.reopen_period(period_id)
        click.echo(f"Reopened period '{period.name}'")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register period commands with main CLI."""
    cli.add_command(period_group, name="period")
