"""Ledger entry commands."""

from datetime import date

import click
from finstate.cli.date_filters import period_options, resolve_cli_date_range
from finstate.cli.error_handling import handle_domain_error
from finstate.cli.resolution import company_option, resolve_account_or_exit, resolve_company_or_exit
from finstate.domain.company import CompanyService
from finstate.domain.entry import EntryService
from finstate.domain.normalizer import InvoicePaymentRecord, JournalLine, JournalRecord
from finstate.domain.money import ZERO
from finstate.utils.amount_parser import parse_amount, parse_money
from finstate.utils.date_parser import parse_date


def _parse_or_exit(ctx, parser, value: str, label: str):
    try:
        return parser(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@click.group()
def entry_group():
    """Post, list and reverse ledger entries."""
    pass


@entry_group.command("add")
@click.option("--date", "entry_date", default="today", show_default=True, help="Journal date")
@click.option("--currency", help="Journal currency (default: company functional currency)")
@click.option(
    "--debit", "debits", type=(str, str), multiple=True, metavar="ACCOUNT AMOUNT",
    help="Debit line (repeatable)",
)
@click.option(
    "--credit", "credits", type=(str, str), multiple=True, metavar="ACCOUNT AMOUNT",
    help="Credit line (repeatable)",
)
@click.option("--description", help="Journal description")
@company_option
@click.pass_context
def add_entry(
    ctx,
    entry_date: str,
    currency: str | None,
    debits: tuple[tuple[str, str], ...],
    credits: tuple[tuple[str, str], ...],
    description: str | None,
    company: str | None,
):
    """Post a manual journal. Debits must equal credits.

    ACCOUNT can be an account code or ID.

    Examples:
        finstate entry add --debit 1010 5000 --credit 3000 5000 --description "Capital injection"
        finstate entry add --date 2024-03-31 --debit 6100 1200 --credit 1010 1200
    """
    db = ctx.obj["db"]
    company_id = resolve_company_or_exit(ctx, company)
    day = _parse_or_exit(ctx, parse_date, entry_date, "date")
    if currency is None:
        currency = CompanyService(db).get_company(company_id).functional_currency

    lines = []
    for account, amount in debits:
        account_id = resolve_account_or_exit(ctx, company_id, account)
        lines.append(JournalLine(account_id, debit=_parse_or_exit(ctx, parse_amount, amount, "amount")))
    for account, amount in credits:
        account_id = resolve_account_or_exit(ctx, company_id, account)
        lines.append(JournalLine(account_id, credit=_parse_or_exit(ctx, parse_amount, amount, "amount")))

    record = JournalRecord(date=day, currency=currency, lines=tuple(lines), description=description)
    try:
        ids = EntryService(db).post_journal(company_id, record)
        click.echo(f"Posted journal with {len(ids)} entries (IDs: {', '.join(map(str, ids))})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@entry_group.command("transaction")
@click.argument("money_account_id", type=int, metavar="MONEY_ACCOUNT_ID")
@click.option("--date", "entry_date", default="today", show_default=True, help="Transaction date")
@click.option("--in", "amount_in", help="Money received, e.g. '250' or '250 EUR'")
@click.option("--out", "amount_out", help="Money paid, e.g. '99.90'")
@click.option("--counter", "counter_account", required=True, help="Account on the other side")
@click.option("--currency", help="Transaction currency (default: the account's only currency)")
@click.option("--description", help="Memo")
@company_option
@click.pass_context
def record_transaction(
    ctx,
    money_account_id: int,
    entry_date: str,
    amount_in: str | None,
    amount_out: str | None,
    counter_account: str,
    currency: str | None,
    description: str | None,
    company: str | None,
):
    """Record a bank or wallet transaction.

    Examples:
        finstate entry transaction 1 --in 1500 --counter 4100 --description "Invoice 42"
        finstate entry transaction 1 --out "99.90 EUR" --counter 6400
    """
    company_id = resolve_company_or_exit(ctx, company)
    counter_id = resolve_account_or_exit(ctx, company_id, counter_account)
    day = _parse_or_exit(ctx, parse_date, entry_date, "date")
    if not amount_in and not amount_out:
        click.echo("Error: Provide --in or --out", err=True)
        ctx.exit(1)

    received, paid = ZERO, ZERO
    if amount_in:
        received, in_currency = _parse_or_exit(ctx, parse_money, amount_in, "amount")
        currency = currency or in_currency
    if amount_out:
        paid, out_currency = _parse_or_exit(ctx, parse_money, amount_out, "amount")
        currency = currency or out_currency

    try:
        ids = EntryService(ctx.obj["db"]).record_transaction(
            company_id,
            money_account_id,
            day,
            counter_id,
            amount_in=received,
            amount_out=paid,
            currency=currency,
            description=description,
        )
        click.echo(f"Recorded transaction (entry IDs: {', '.join(map(str, ids))})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@entry_group.command("payment")
@click.argument("invoice_number", metavar="INVOICE_NUMBER")
@click.option("--amount", required=True, help="Amount received, e.g. '4248' or '4248 USD'")
@click.option("--date", "entry_date", default="today", show_default=True, help="Payment date")
@click.option("--cash", "cash_account", default="1010", show_default=True, help="Receiving account")
@click.option(
    "--receivable", "receivable_account", default="1100", show_default=True,
    help="Receivable account being settled",
)
@click.option("--currency", help="Payment currency (default: company functional currency)")
@company_option
@click.pass_context
def record_payment(
    ctx,
    invoice_number: str,
    amount: str,
    entry_date: str,
    cash_account: str,
    receivable_account: str,
    currency: str | None,
    company: str | None,
):
    """Record a payment received against an invoice."""
    db = ctx.obj["db"]
    company_id = resolve_company_or_exit(ctx, company)
    cash_id = resolve_account_or_exit(ctx, company_id, cash_account)
    receivable_id = resolve_account_or_exit(ctx, company_id, receivable_account)
    day = _parse_or_exit(ctx, parse_date, entry_date, "date")
    value, amount_currency = _parse_or_exit(ctx, parse_money, amount, "amount")
    currency = currency or amount_currency or CompanyService(db).get_company(company_id).functional_currency

    record = InvoicePaymentRecord(
        invoice_number=invoice_number,
        date=day,
        currency=currency,
        amount=value,
        cash_account_id=cash_id,
        receivable_account_id=receivable_id,
    )
    try:
        ids = EntryService(db).record_invoice_payment(company_id, record)
        click.echo(f"Recorded payment of invoice {invoice_number} (entry IDs: {', '.join(map(str, ids))})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@entry_group.command("list")
@period_options
@click.option("--account", help="Only entries of this account (code or ID)")
@click.option("--limit", type=int, help="Show at most this many entries (most recent)")
@company_option
@click.pass_context
def list_entries(
    ctx,
    start_date: str | None,
    end_date: str | None,
    this_month: bool,
    last_month: bool,
    this_year: bool,
    last_year: bool,
    all_time: bool,
    account: str | None,
    limit: int | None,
    company: str | None,
):
    """List ledger entries."""
    company_id = resolve_company_or_exit(ctx, company)
    account_id = resolve_account_or_exit(ctx, company_id, account) if account else None
    date_range = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags={
            "this_month": this_month,
            "last_month": last_month,
            "this_year": this_year,
            "last_year": last_year,
            "all_time": all_time,
        },
        settings=ctx.obj["settings"],
    )

    entries = EntryService(ctx.obj["db"]).list_entries(
        company_id,
        date_range.start if date_range else None,
        date_range.end if date_range else None,
        account_id=account_id,
    )
    if limit is not None:
        entries = entries[-limit:]
    if not entries:
        click.echo("No entries found.")
        return

    click.echo("\nEntries:")
    click.echo("-" * 60)
    for e in entries:
        link = f" (reverses {e.linked_entry_id})" if e.linked_entry_id else ""
        click.echo(
            f"ID: {e.id:4d} | {e.date} | acct {e.account_id:3d} | "
            f"{e.amount:>14,.2f} {e.currency:4s} | {e.description or ''}{link}"
        )


@entry_group.command("reverse")
@click.argument("entry_id", type=int, metavar="ENTRY_ID")
@click.option("--date", "reversal_date", help="Reversal date (default: today)")
@click.pass_context
def reverse_entry(ctx, entry_id: int, reversal_date: str | None):
    """Reverse an entry and the rest of its journal.

    Posted entries are never changed; the reversal cancels them with
    linked entries dated in an open period.
    """
    day = _parse_or_exit(ctx, parse_date, reversal_date, "date") if reversal_date else date.today()

    try:
        ids = EntryService(ctx.obj["db"]).reverse_entry(entry_id, reversal_date=day)
        click.echo(f"Reversed entry {entry_id} (reversal IDs: {', '.join(map(str, ids))})")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")
