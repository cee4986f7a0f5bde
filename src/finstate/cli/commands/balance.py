"""Balance commands."""

import click
from finstate.cli.error_handling import handle_domain_error
from finstate.cli.resolution import company_option, resolve_company_or_exit
from finstate.cli.statement_format import format_amount
from finstate.domain.money_account import MoneyAccountService
from finstate.utils.date_parser import parse_date


@click.command("balance")
@click.option("--as-of", default="today", show_default=True, help="Balance date")
@click.option("--currency", help="Summary currency (default: company functional currency)")
@company_option
@click.pass_context
def balance(ctx, as_of: str, currency: str | None, company: str | None):
    """Show bank account and wallet balances.

    Balances are shown per currency, then summarized in one currency.
    """
    db = ctx.obj["db"]
    company_id = resolve_company_or_exit(ctx, company)
    try:
        as_of_date = parse_date(as_of)
    except ValueError as e:
        click.echo(f"Error: Invalid as-of date: {e}", err=True)
        ctx.exit(1)

    service = MoneyAccountService(db)
    try:
        result = service.balances(company_id, as_of=as_of_date, currency=currency)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not result.snapshots:
        click.echo("No balances found.")
        return

    names = {m.ledger_account_id: m.name for m in service.list_money_accounts(company_id)}
    click.echo(f"\nBalances as of {result.as_of}:")
    for kind, snapshots in result.by_kind.items():
        click.echo(f"\n{kind.value.capitalize()}:")
        click.echo("-" * 60)
        for snapshot in snapshots:
            click.echo(
                f"{names.get(snapshot.account_id, snapshot.account_id)!s:30s} "
                f"{format_amount(snapshot.final_balance):>18} {snapshot.currency}"
            )

    summary = result.summary
    click.echo("-" * 60)
    click.echo(f"{'Total assets':30s} {format_amount(summary.total_assets):>18} {summary.currency}")
    click.echo(f"{'Total liabilities':30s} {format_amount(summary.total_liabilities):>18} {summary.currency}")
    click.echo(f"{'Net worth':30s} {format_amount(summary.net_worth):>18} {summary.currency}")
    for issue in result.issues:
        click.echo(f"{issue.severity.value.upper()}: {issue.message}")


def register_commands(cli):
    """Register balance command with main CLI."""
    cli.add_command(balance)
