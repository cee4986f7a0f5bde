"""Currency conversion over an explicit rate table.

Rates are "base-currency units per one unit of the currency", so the
base-equivalent value of an amount is ``amount * rate[code]`` and converting
between two currencies is ``amount * rate[from] / rate[to]``.
"""

import logging
from decimal import Decimal
from typing import Iterable, Mapping, Union

from finstate.domain.entities import CurrencyRate
from finstate.domain.errors import RateTableError, UnknownCurrencyError

logger = logging.getLogger(__name__)

DEFAULT_BASE_CURRENCY = "USD"

# Seed rates used by ``init-rates``; expressed in USD per unit.
DEFAULT_RATES: dict[str, Decimal] = {
    "USD": Decimal("1"),
    "EUR": Decimal("1.09"),
    "GBP": Decimal("1.27"),
    "CHF": Decimal("1.12"),
    "CAD": Decimal("0.74"),
    "AUD": Decimal("0.66"),
    "JPY": Decimal("0.0067"),
    "CNY": Decimal("0.14"),
    "SEK": Decimal("0.096"),
    "NOK": Decimal("0.094"),
    "DKK": Decimal("0.146"),
    "PLN": Decimal("0.25"),
    "TRY": Decimal("0.031"),
    "INR": Decimal("0.012"),
    "BTC": Decimal("65000"),
    "ETH": Decimal("3200"),
    "USDT": Decimal("1"),
    "USDC": Decimal("1"),
}


class RateTable:
    """Immutable lookup of currency rates relative to a single base currency."""

    def __init__(self, rates: Iterable[CurrencyRate]):
        table: dict[str, Decimal] = {}
        base = None
        for rate in rates:
            code = rate.code.upper()
            if rate.rate <= 0:
                raise RateTableError(f"Rate for {code} must be positive, got {rate.rate}")
            if rate.is_base:
                if base is not None and base != code:
                    raise RateTableError(
                        f"Rate table declares more than one base currency ({base}, {code})"
                    )
                if rate.rate != 1:
                    raise RateTableError(f"Base currency {code} must have rate 1, got {rate.rate}")
                base = code
            table[code] = rate.rate
        if base is None:
            raise RateTableError("Rate table has no base currency")
        self._rates = table
        self._base = base

    @classmethod
    def from_mapping(cls, rates: Mapping[str, Decimal], base_currency: str) -> "RateTable":
        base = base_currency.upper()
        return cls(
            CurrencyRate(code=code, rate=Decimal(rate), is_base=code.upper() == base)
            for code, rate in rates.items()
        )

    @property
    def base_currency(self) -> str:
        return self._base

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(sorted(self._rates))

    def __contains__(self, code: str) -> bool:
        return code.upper() in self._rates

    def rate(self, code: str) -> Decimal:
        """Return the rate for ``code``.

        Raises:
            UnknownCurrencyError: If the currency is not in the table
        """
        try:
            return self._rates[code.upper()]
        except KeyError:
            raise UnknownCurrencyError(code) from None

    def rebased(self, base_currency: str) -> "RateTable":
        """Return an equivalent table expressed against another base currency."""
        divisor = self.rate(base_currency)
        base = base_currency.upper()
        return RateTable(
            CurrencyRate(code=code, rate=rate / divisor, is_base=code == base)
            for code, rate in self._rates.items()
        )

    def to_rates(self) -> list[CurrencyRate]:
        return [
            CurrencyRate(code=code, rate=self._rates[code], is_base=code == self._base)
            for code in self.codes
        ]


def as_rate_table(rates: Union[RateTable, Iterable[CurrencyRate]]) -> RateTable:
    if isinstance(rates, RateTable):
        return rates
    return RateTable(rates)


def convert(
    amount: Decimal,
    from_currency: str,
    to_currency: str,
    rate_table: Union[RateTable, Iterable[CurrencyRate]],
) -> Decimal:
    """Convert an amount between two currencies.

    Converting a currency to itself returns ``amount`` untouched, whatever
    the rate table contains.

    Raises:
        UnknownCurrencyError: If either currency has no rate
    """
    if from_currency.upper() == to_currency.upper():
        return amount
    table = as_rate_table(rate_table)
    converted = amount * table.rate(from_currency) / table.rate(to_currency)
    logger.debug("Converted %s %s to %s %s", amount, from_currency, converted, to_currency)
    return converted
