"""CLI error handling helpers."""

import click

from finstate.domain.errors import (
    AccountNotFoundError,
    DomainError,
    RateTableError,
    UnknownCurrencyError,
)

# Follow-up command suggested for errors the user can fix from the CLI
HINTS = {
    UnknownCurrencyError: "Add the rate with 'finstate rate set CODE RATE'.",
    RateTableError: "Seed a rate table with 'finstate init-rates --base CODE'.",
    AccountNotFoundError: "Check the account with 'finstate account list --all'.",
}


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error, with a hint when one applies, and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    for error_type, hint in HINTS.items():
        if isinstance(error, error_type):
            click.echo(f"Hint: {hint}", err=True)
            break
    ctx.exit(1)
