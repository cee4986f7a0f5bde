"""Initialize a default IFRS chart of accounts."""

import click
from finstate.cli.resolution import company_option, resolve_company_or_exit
from finstate.domain.account import AccountService, AccountTemplate
from finstate.domain.entities import AccountType, Classification

ASSET, LIABILITY, EQUITY, REVENUE, EXPENSE = (
    AccountType.ASSET,
    AccountType.LIABILITY,
    AccountType.EQUITY,
    AccountType.REVENUE,
    AccountType.EXPENSE,
)
CURRENT, NON_CURRENT = Classification.CURRENT, Classification.NON_CURRENT


# Small-business chart: (code, name, type, classification, category, IFRS reference)
DEFAULT_CHART_OF_ACCOUNTS = [
    AccountTemplate("1000", "Cash", ASSET, CURRENT, "Cash and cash equivalents", "IAS 1.54(i)"),
    AccountTemplate("1010", "Bank", ASSET, CURRENT, "Cash and cash equivalents", "IAS 1.54(i)"),
    AccountTemplate("1100", "Trade receivables", ASSET, CURRENT, "Trade receivables", "IAS 1.54(h)"),
    AccountTemplate("1200", "Inventory", ASSET, CURRENT, "Inventory", "IAS 1.54(g)"),
    AccountTemplate("1300", "Prepaid expenses", ASSET, CURRENT, "Prepaid expenses"),
    AccountTemplate(
        "1500", "Property, plant and equipment", ASSET, NON_CURRENT,
        "Property, plant and equipment", "IAS 1.54(a)",
    ),
    AccountTemplate(
        "1510", "Accumulated depreciation", ASSET, NON_CURRENT,
        "Accumulated depreciation", "IAS 16.73(d)",
    ),
    AccountTemplate("1600", "Intangible assets", ASSET, NON_CURRENT, "Intangible assets", "IAS 1.54(c)"),
    AccountTemplate("2000", "Trade payables", LIABILITY, CURRENT, "Trade payables", "IAS 1.54(k)"),
    AccountTemplate("2100", "Accrued expenses", LIABILITY, CURRENT, "Accrued expenses"),
    AccountTemplate("2200", "Current tax payable", LIABILITY, CURRENT, "Current tax payable", "IAS 1.54(n)"),
    AccountTemplate("2300", "Short-term borrowings", LIABILITY, CURRENT, "Short-term borrowings", "IAS 1.54(m)"),
    AccountTemplate("2500", "Long-term borrowings", LIABILITY, NON_CURRENT, "Long-term borrowings", "IAS 1.54(m)"),
    AccountTemplate("3000", "Share capital", EQUITY, None, "Share capital", "IAS 1.54(r)"),
    AccountTemplate("3100", "Retained earnings", EQUITY, None, "Retained earnings", "IAS 1.54(r)"),
    AccountTemplate("3200", "Dividends", EQUITY, None, "Dividends", "IAS 1.107"),
    AccountTemplate("3300", "Revaluation reserve", EQUITY, None, "Revaluation reserve", "IAS 16.39"),
    AccountTemplate("4000", "Sales revenue", REVENUE, None, "Revenue", "IFRS 15"),
    AccountTemplate("4100", "Service revenue", REVENUE, None, "Revenue", "IFRS 15"),
    AccountTemplate("4500", "Interest income", REVENUE, None, "Interest income"),
    AccountTemplate("4800", "Revaluation surplus", REVENUE, None, "Revaluation surplus", "IAS 16.39"),
    AccountTemplate("5000", "Cost of sales", EXPENSE, None, "Cost of sales", "IAS 1.103"),
    AccountTemplate("6000", "Salaries and wages", EXPENSE, None, "Employee benefits"),
    AccountTemplate("6100", "Rent", EXPENSE, None, "Rent"),
    AccountTemplate("6200", "Utilities", EXPENSE, None, "Utilities"),
    AccountTemplate("6300", "Depreciation", EXPENSE, None, "Depreciation", "IAS 16"),
    AccountTemplate("6400", "Marketing", EXPENSE, None, "Marketing"),
    AccountTemplate("7000", "Interest expense", EXPENSE, None, "Finance costs", "IAS 1.82(b)"),
    AccountTemplate("8000", "Income tax expense", EXPENSE, None, "Income tax", "IAS 12"),
]


@click.command("init-accounts")
@company_option
@click.pass_context
def init_accounts(ctx, company: str | None):
    """Initialize a company with a default IFRS chart of accounts.

    Accounts whose code already exists are left untouched, so the command
    can be run again safely.
    """
    company_id = resolve_company_or_exit(ctx, company)
    service = AccountService(ctx.obj["db"])

    try:
        created = service.seed_chart(company_id, DEFAULT_CHART_OF_ACCOUNTS)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    skipped = len(DEFAULT_CHART_OF_ACCOUNTS) - created
    click.echo(f"Created {created} accounts")
    if skipped:
        click.echo(f"Skipped {skipped} existing accounts")


def register_commands(cli):
    """Register init-accounts command with main CLI."""
    cli.add_command(init_accounts)
