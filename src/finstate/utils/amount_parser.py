"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

CURRENCY_SYMBOLS = {"$": "USD", "€": "EUR", "£": "GBP", "¥": "JPY", "₺": "TRY", "₹": "INR"}

_CODE_PATTERN = re.compile(r"^([A-Za-z]{3,5})\s+(.+)$|^(.+?)\s+([A-Za-z]{3,5})$")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "-$123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub("[" + "".join(CURRENCY_SYMBOLS) + "]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def parse_money(text: str) -> tuple[Decimal, Optional[str]]:
    """Parse an amount with an optional currency.

    Accepts "1,200.50 EUR", "EUR 1200.50", "€1200.50" or a bare amount.
    The currency is returned upper-cased, or None when the text has none.

    Raises:
        ValueError: If the amount part cannot be parsed
    """
    if not text or not text.strip():
        raise ValueError("Empty amount string")
    text = text.strip()

    match = _CODE_PATTERN.match(text)
    if match:
        if match.group(1):
            return parse_amount(match.group(2)), match.group(1).upper()
        return parse_amount(match.group(3)), match.group(4).upper()

    for symbol, code in CURRENCY_SYMBOLS.items():
        if symbol in text:
            return parse_amount(text), code
    return parse_amount(text), None
