"""Currency rate commands."""

import click
from finstate.domain.currency import DEFAULT_BASE_CURRENCY
from finstate.domain.rate import RateService
from finstate.utils.amount_parser import parse_amount
from finstate.utils.date_parser import parse_date


def _parse_optional_date(ctx, value: str | None, label: str):
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@click.group()
def rate_group():
    """Manage currency rates (base-currency units per unit)."""
    pass


@rate_group.command("set")
@click.argument("code", metavar="CURRENCY")
@click.argument("rate", metavar="RATE")
@click.option("--base", is_flag=True, help="Make this the base currency (rate must be 1)")
@click.option("--effective-date", help="First date the rate applies to (default: always)")
@click.pass_context
def set_rate(ctx, code: str, rate: str, base: bool, effective_date: str | None):
    """Set the rate of a currency.

    RATE is how many units of the base currency one unit of CURRENCY is worth.

    Examples:
        finstate rate set USD 1 --base
        finstate rate set EUR 1.09
        finstate rate set EUR 1.12 --effective-date 2024-07-01
    """
    service = RateService(ctx.obj["db"])
    effective = _parse_optional_date(ctx, effective_date, "effective date")

    try:
        service.set_rate(code, parse_amount(rate), effective_date=effective, is_base=base)
        click.echo(f"Set {code.upper()} = {rate}" + (" (base)" if base else ""))
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@rate_group.command("list")
@click.option("--as-of", help="Show the rates in effect on this date")
@click.option("--history", "history_code", help="Show every stored rate of one currency")
@click.pass_context
def list_rates(ctx, as_of: str | None, history_code: str | None):
    """List currency rates."""
    service = RateService(ctx.obj["db"])

    if history_code:
        rates = service.rate_history(history_code)
    else:
        rates = service.list_rates(as_of=_parse_optional_date(ctx, as_of, "as-of date"))
    if not rates:
        click.echo("No rates found.")
        return

    click.echo("\nRates:")
    click.echo("-" * 60)
    for r in rates:
        marker = " (base)" if r.is_base else ""
        click.echo(f"{r.code:6s} | {format(r.rate.normalize(), 'f'):>20} | from {r.effective_date}{marker}")


@rate_group.command("rebase")
@click.argument("code", metavar="CURRENCY")
@click.option("--effective-date", help="Date the new base takes effect (default: today)")
@click.pass_context
def rebase(ctx, code: str, effective_date: str | None):
    """Express every rate against a new base currency."""
    service = RateService(ctx.obj["db"])
    effective = _parse_optional_date(ctx, effective_date, "effective date")

    try:
        table = service.rebase(code, effective_date=effective)
        click.echo(f"Rebased {len(table.codes)} rates on {table.base_currency}")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@click.command("init-rates")
@click.option("--base", default=DEFAULT_BASE_CURRENCY, show_default=True, help="Base currency")
@click.pass_context
def init_rates(ctx, base: str):
    """Seed standing rates for common fiat and crypto currencies.

    Currencies that already have a rate are left untouched.
    """
    service = RateService(ctx.obj["db"])

    try:
        created = service.seed_default_rates(base)
        click.echo(f"Created {created} rates against {base.upper()}")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register rate commands with main CLI."""
    cli.add_command(rate_group, name="rate")
    cli.add_command(init_rates)
