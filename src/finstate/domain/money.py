"""Decimal helpers for monetary amounts."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Smallest currency unit; tolerance for every reconciliation check.
EPSILON = Decimal("0.01")


def minor_unit(places: int = 2) -> Decimal:
    """Smallest amount with ``places`` decimal places, e.g. 0.01."""
    return Decimal(1).scaleb(-places)


def quantize(amount: Decimal, places: int = 2) -> Decimal:
    """Round an amount to ``places`` decimal places, half up."""
    return amount.quantize(minor_unit(places), rounding=ROUND_HALF_UP)


def variance(current: Decimal, prior: Optional[Decimal]) -> Optional[Decimal]:
    """Return ``current - prior``, or None without a prior figure."""
    if prior is None:
        return None
    return current - prior


def variance_percent(current: Decimal, prior: Optional[Decimal]) -> Optional[Decimal]:
    """Return the variance as a percentage of the prior figure.

    None means "not applicable": there is no prior figure or it is zero.
    """
    if prior is None or prior == 0:
        return None
    return quantize((current - prior) / prior * HUNDRED)


def within_tolerance(left: Decimal, right: Decimal, epsilon: Decimal = EPSILON) -> bool:
    return abs(left - right) < epsilon
