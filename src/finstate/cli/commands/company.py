"""Company management commands."""

import click
from finstate.domain.company import CompanyService


@click.group()
def company_group():
    """Manage companies."""
    pass


@company_group.command("create")
@click.argument("name", metavar="COMPANY_NAME")
@click.option("--currency", default="USD", show_default=True, help="Functional currency")
@click.pass_context
def create_company(ctx, name: str, currency: str):
    """Create a new company.

    Every account, entry and period belongs to exactly one company.

    Examples:
        finstate company create "Acme Ltd"
        finstate company create "Acme GmbH" --currency EUR
    """
    service = CompanyService(ctx.obj["db"])

    try:
        company_id = service.create_company(name=name, functional_currency=currency)
        click.echo(f"Created company '{name.strip()}' (ID: {company_id}, currency {currency.upper()})")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@company_group.command("list")
@click.pass_context
def list_companies(ctx):
    """List all companies."""
    service = CompanyService(ctx.obj["db"])

    companies = service.list_companies()
    if not companies:
        click.echo("No companies found.")
        return

    click.echo("\nCompanies:")
    click.echo("-" * 60)
    for company in companies:
        click.echo(f"ID: {company.id:3d} | {company.name:30s} | {company.functional_currency}")


def register_commands(cli):
    """Register company commands with main CLI."""
    cli.add_command(company_group, name="company")
