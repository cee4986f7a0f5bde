"""Invoice commands."""

from decimal import Decimal, InvalidOperation

import click
from finstate.cli.error_handling import handle_domain_error
from finstate.domain.invoice import InvoiceItem, calculate_invoice_totals
from finstate.domain.rate import RateService
from finstate.utils.amount_parser import parse_amount, parse_money


@click.group()
def invoice_group():
    """Invoice helpers."""
    pass


@invoice_group.command("totals")
@click.option(
    "--item", "items", type=(str, str, str), multiple=True, required=True,
    metavar="DESCRIPTION PRICE QUANTITY",
    help="Invoice line, price optionally with currency (repeatable)",
)
@click.option("--tax-rate", default="0", show_default=True, help="Tax rate in percent")
@click.option("--currency", help="Invoice currency (default: first item's currency)")
@click.pass_context
def invoice_totals(ctx, items: tuple[tuple[str, str, str], ...], tax_rate: str, currency: str | None):
    """Compute subtotal, tax and total of an invoice.

    Items priced in another currency are converted with the stored rates.

    Examples:
        finstate invoice totals --item "Consulting" "1200 USD" 3 --tax-rate 18
    """
    try:
        lines = []
        for description, price, quantity in items:
            amount, item_currency = parse_money(price)
            try:
                qty = Decimal(quantity)
            except InvalidOperation:
                raise ValueError(f"Invalid quantity '{quantity}'") from None
            lines.append(InvoiceItem(description, amount, qty, item_currency))

        invoice_currency = currency or lines[0].currency
        rate_table = None
        if invoice_currency and any(
            (i.currency or invoice_currency).upper() != invoice_currency.upper() for i in lines
        ):
            rate_table = RateService(ctx.obj["db"]).get_rate_table()

        totals = calculate_invoice_totals(
            lines, parse_amount(tax_rate), currency=currency, rate_table=rate_table
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"{'Subtotal':20s} {totals.subtotal:>14,.2f} {totals.currency}")
    click.echo(f"{f'Tax ({totals.tax_rate}%)':20s} {totals.tax:>14,.2f} {totals.currency}")
    click.echo("-" * 40)
    click.echo(f"{'Total':20s} {totals.total:>14,.2f} {totals.currency}")


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
