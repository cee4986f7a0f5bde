"""Invoice totals."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Union

from finstate.domain.currency import RateTable, convert
from finstate.domain.entities import CurrencyRate
from finstate.domain.errors import ValidationError
from finstate.domain.money import HUNDRED, ZERO, quantize


@dataclass(frozen=True)
class InvoiceItem:
    """Invoice line; a missing currency means the invoice currency."""

    description: str
    unit_price: Decimal
    quantity: Decimal = Decimal("1")
    currency: Optional[str] = None


@dataclass(frozen=True)
class InvoiceTotals:
    currency: str
    subtotal: Decimal
    tax_rate: Decimal
    tax: Decimal
    total: Decimal


def calculate_invoice_totals(
    items: Iterable[InvoiceItem],
    tax_rate: Decimal,
    currency: Optional[str] = None,
    rate_table: Union[RateTable, Iterable[CurrencyRate], None] = None,
) -> InvoiceTotals:
    """Compute subtotal, tax and total for an invoice.

    The subtotal is the sum of price times quantity and never includes tax.
    Tax is charged on the rounded subtotal, so ``total == subtotal + tax``
    holds to the cent.

    Args:
        items: Invoice lines
        tax_rate: Tax rate in percent (18 for 18%)
        currency: Invoice currency; defaults to the first item's currency
        rate_table: Rates for items priced in another currency

    Returns:
        InvoiceTotals rounded to cents

    Raises:
        ValidationError: If there are no items, a quantity is not positive,
            a price or the tax rate is negative, or no currency is known
        UnknownCurrencyError: If an item currency has no rate
    """
    items = list(items)
    if not items:
        raise ValidationError("An invoice needs at least one item")
    if tax_rate < 0:
        raise ValidationError(f"Tax rate cannot be negative, got {tax_rate}")

    currency = currency or items[0].currency
    if currency is None:
        raise ValidationError("Invoice currency is required")

    subtotal = ZERO
    for item in items:
        if item.quantity <= 0:
            raise ValidationError(f"Quantity for '{item.description}' must be positive")
        if item.unit_price < 0:
            raise ValidationError(f"Price for '{item.description}' cannot be negative")
        line = item.unit_price * item.quantity
        item_currency = item.currency or currency
        if item_currency.upper() != currency.upper():
            if rate_table is None:
                raise ValidationError(
                    f"Item '{item.description}' is priced in {item_currency}; rates are required"
                )
            line = convert(line, item_currency, currency, rate_table)
        subtotal += line

    subtotal = quantize(subtotal)
    tax = quantize(subtotal * tax_rate / HUNDRED)
    return InvoiceTotals(
        currency=currency.upper(),
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax=tax,
        total=subtotal + tax,
    )
