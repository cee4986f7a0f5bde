"""CLI helpers for company and account resolution."""

from __future__ import annotations

from typing import Optional

import click
from finstate.domain.account import AccountService
from finstate.domain.company import CompanyService
from finstate.utils.account_resolver import resolve_account
from finstate.utils.company_resolver import resolve_company


def resolve_company_or_exit(ctx: click.Context, company: Optional[str]) -> int:
    """Resolve company name or ID, or exit with a CLI error."""
    try:
        return resolve_company(CompanyService(ctx.obj["db"]), company)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_account_or_exit(ctx: click.Context, company_id: int, account: str | int) -> int:
    """Resolve account code or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(AccountService(ctx.obj["db"]), company_id, account)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


company_option = click.option(
    "--company",
    envvar="FINSTATE_COMPANY",
    help="Company name or ID (optional when only one company exists)",
)
