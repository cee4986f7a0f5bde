"""Bank account and wallet commands."""

import click
from finstate.cli.resolution import company_option, resolve_account_or_exit, resolve_company_or_exit
from finstate.domain.entities import MoneyAccountKind
from finstate.domain.money_account import MoneyAccountService
from finstate.utils.amount_parser import parse_money


@click.group()
def money_account_group():
    """Manage bank accounts and wallets."""
    pass


@money_account_group.command("create")
@click.argument("name", metavar="NAME")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in MoneyAccountKind]),
    default=MoneyAccountKind.BANK.value,
    show_default=True,
)
@click.option("--ledger-account", required=True, help="Asset account (code or ID) it posts to")
@click.option("--currency", "currencies", multiple=True, required=True, help="Currency held (repeatable)")
@click.option("--bank-name", help="Bank name (bank accounts)")
@click.option("--address", help="Wallet address (wallets)")
@company_option
@click.pass_context
def create_money_account(
    ctx,
    name: str,
    kind: str,
    ledger_account: str,
    currencies: tuple[str, ...],
    bank_name: str | None,
    address: str | None,
    company: str | None,
):
    """Create a bank account or wallet.

    Examples:
        finstate money-account create "Main account" --ledger-account 1010 --currency USD --bank-name "Chase"
        finstate money-account create "Treasury" --kind wallet --ledger-account 1000 --currency USDC --currency ETH
    """
    company_id = resolve_company_or_exit(ctx, company)
    ledger_account_id = resolve_account_or_exit(ctx, company_id, ledger_account)
    service = MoneyAccountService(ctx.obj["db"])

    try:
        if kind == MoneyAccountKind.WALLET.value:
            money_account_id = service.create_wallet(
                company_id, name, ledger_account_id, currencies, wallet_address=address
            )
        else:
            money_account_id = service.create_bank_account(
                company_id, name, ledger_account_id, currencies, bank_name=bank_name
            )
        click.echo(f"Created {kind} '{name}' (ID: {money_account_id})")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@money_account_group.command("list")
@company_option
@click.pass_context
def list_money_accounts(ctx, company: str | None):
    """List bank accounts and wallets."""
    company_id = resolve_company_or_exit(ctx, company)
    service = MoneyAccountService(ctx.obj["db"])

    money_accounts = service.list_money_accounts(company_id)
    if not money_accounts:
        click.echo("No bank accounts or wallets found.")
        return

    click.echo("\nBank accounts and wallets:")
    click.echo("-" * 60)
    for m in money_accounts:
        detail = m.bank_name if m.kind == MoneyAccountKind.BANK else m.wallet_address
        click.echo(
            f"ID: {m.id:3d} | {m.kind.value:6s} | {m.name:20s} | "
            f"{','.join(m.currencies):12s} | {detail or ''}"
        )


@money_account_group.command("initial-balance")
@click.argument("account", metavar="ACCOUNT")
@click.argument("amount", metavar="AMOUNT")
@click.option("--currency", help="Currency (or give it with the amount, e.g. '1000 EUR')")
@company_option
@click.pass_context
def set_initial_balance(ctx, account: str, amount: str, currency: str | None, company: str | None):
    """Set the opening balance of a ledger account in one currency.

    ACCOUNT can be an account code or ID.
    """
    db = ctx.obj["db"]
    company_id = resolve_company_or_exit(ctx, company)
    account_id = resolve_account_or_exit(ctx, company_id, account)

    try:
        value, amount_currency = parse_money(amount)
        currency = currency or amount_currency or db.get_company(company_id).functional_currency
        MoneyAccountService(db).set_initial_balance(account_id, currency, value)
        click.echo(f"Initial balance of {account} set to {value:,.2f} {currency.upper()}")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register money account commands with main CLI."""
    cli.add_command(money_account_group, name="money-account")
