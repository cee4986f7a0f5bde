"""Main CLI entry point."""

import logging

import click
from finstate.config import load_settings
from finstate.database.factories import create_sqlite_database

# Import and register all commands at module level
from finstate.cli.commands import (
    account,
    balance,
    company,
    entry,
    init_accounts,
    invoice,
    money_account,
    period,
    rate,
    statement,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINSTATE_DB_PATH environment variable)",
    envvar="FINSTATE_DB_PATH",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    help="Report settings TOML file (overrides FINSTATE_CONFIG environment variable)",
    envvar="FINSTATE_CONFIG",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, config_path: str | None, verbose: bool):
    """Finstate - IFRS financial statements for small businesses.

    Keep a double-entry ledger per company and generate the profit or loss
    statement, balance sheet, cash flow statement and statement of changes
    in equity from it.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            ctx.obj["settings"] = load_settings(config_path)
        except (FileNotFoundError, ValueError) as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
company.register_commands(cli)
account.register_commands(cli)
init_accounts.register_commands(cli)
rate.register_commands(cli)
period.register_commands(cli)
entry.register_commands(cli)
money_account.register_commands(cli)
balance.register_commands(cli)
statement.register_commands(cli)
invoice.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
