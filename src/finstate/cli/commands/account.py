"""Chart of accounts commands."""

import click
from finstate.cli.resolution import company_option, resolve_account_or_exit, resolve_company_or_exit
from finstate.domain.account import AccountService
from finstate.domain.entities import AccountType, Classification


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("code", metavar="CODE")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType]),
    required=True,
    help="Account type",
)
@click.option(
    "--classification",
    type=click.Choice([c.value for c in Classification]),
    help="Current or non-current (balance sheet accounts)",
)
@click.option("--category", help="IFRS category, e.g. 'Trade receivables'")
@click.option("--subcategory", help="Optional subcategory")
@click.option("--ifrs-ref", help="IFRS reference shown on statements, e.g. 'IAS 1.54(h)'")
@company_option
@click.pass_context
def create_account(
    ctx,
    code: str,
    name: str,
    account_type: str,
    classification: str | None,
    category: str | None,
    subcategory: str | None,
    ifrs_ref: str | None,
    company: str | None,
):
    """Create a new account.

    Examples:
        finstate account create 1000 "Bank" --type asset --classification current --category Cash
        finstate account create 4000 "Sales" --type revenue --category Revenue
    """
    company_id = resolve_company_or_exit(ctx, company)
    service = AccountService(ctx.obj["db"])

    try:
        account_id = service.create_account(
            company_id=company_id,
            code=code,
            name=name,
            account_type=account_type,
            classification=classification,
            category=category,
            subcategory=subcategory,
            ifrs_reference=ifrs_ref,
        )
        click.echo(f"Created account {code} '{name}' (ID: {account_id})")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@account_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated accounts")
@company_option
@click.pass_context
def list_accounts(ctx, include_inactive: bool, company: str | None):
    """List the chart of accounts."""
    company_id = resolve_company_or_exit(ctx, company)
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(company_id, include_inactive=include_inactive)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"{acc.code:>6s} | {acc.name:30s} | {acc.type.value:9s} | {acc.category or '-'}{status}"
        )


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@company_option
@click.pass_context
def deactivate_account(ctx, account: str, company: str | None) -> None:
    """Deactivate an account so nothing new can be posted to it.

    ACCOUNT can be an account code or ID. Existing entries stay in the
    ledger and on statements.
    """
    company_id = resolve_company_or_exit(ctx, company)
    account_id = resolve_account_or_exit(ctx, company_id, account)
    service = AccountService(ctx.obj["db"])

    try:
        service.deactivate_account(account_id)
        click.echo(f"Deactivated account {account}")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
