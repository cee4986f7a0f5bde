"""Currency rate domain service.

Rates are stored with the date they take effect. A rate without an explicit
date is a standing rate, stored against the earliest ledger date, so it
applies to every period until a dated rate overrides it.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from finstate.database.base import Database
from finstate.domain.currency import DEFAULT_BASE_CURRENCY, DEFAULT_RATES, RateTable
from finstate.domain.entities import CurrencyRate
from finstate.domain.errors import ConflictError, RateTableError, ValidationError
from finstate.domain.period_resolver import EARLIEST_LEDGER_DATE

logger = logging.getLogger(__name__)


class RateService:
    """Service for managing currency rates."""

    def __init__(self, db: Database):
        """Initialize rate service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_rate_table(self, as_of: Optional[date] = None) -> RateTable:
        """Rate table in effect on ``as_of`` (latest rates when omitted).

        Raises:
            RateTableError: If no rates are stored or they have no base
        """
        rates = self.db.get_rates(as_of=as_of)
        if not rates:
            raise RateTableError("No currency rates defined. Run 'finstate init-rates' first")
        return RateTable(rates)

    def list_rates(self, as_of: Optional[date] = None) -> list[CurrencyRate]:
        return self.db.get_rates(as_of=as_of)

    def rate_history(self, code: Optional[str] = None) -> list[CurrencyRate]:
        return self.db.list_rate_history(code)

    def set_rate(
        self,
        code: str,
        rate: Decimal,
        effective_date: Optional[date] = None,
        is_base: bool = False,
    ) -> int:
        """Set a currency's rate in base-currency units per unit.

        Args:
            code: Currency code
            rate: Base-currency units per one unit of ``code``
            effective_date: First date the rate applies to; standing rate if omitted
            is_base: Declare ``code`` the base currency (rate must be 1)

        Returns:
            Rate ID

        Raises:
            ValidationError: If the code is empty, the rate not positive, or no
                base currency exists yet
            ConflictError: If the change would give the table a second base or
                move the base currency off rate 1
        """
        code = code.strip().upper()
        if not code:
            raise ValidationError("Currency code cannot be empty")
        if rate <= 0:
            raise ValidationError(f"Rate for {code} must be positive, got {rate}")
        effective_date = effective_date or EARLIEST_LEDGER_DATE

        current = self.db.get_rates(as_of=effective_date) or self.db.get_rates()
        base = next((r.code for r in current if r.is_base), None)
        if base is None and not is_base:
            raise ValidationError("Set a base currency first (use --base)")
        if is_base:
            if rate != 1:
                raise ConflictError(f"Base currency {code} must have rate 1, got {rate}")
            if base is not None and base != code:
                raise ConflictError(
                    f"{base} is already the base currency; use 'finstate rate rebase {code}'"
                )
        elif code == base and rate != 1:
            raise ConflictError(f"Base currency {code} must keep rate 1")

        rate_id = self.db.add_rate(code, rate, is_base or code == base, effective_date)
        logger.info("Set rate %s = %s (effective %s)", code, rate, effective_date)
        return rate_id

    def rebase(self, base_currency: str, effective_date: Optional[date] = None) -> RateTable:
        """Re-express every rate against a new base currency.

        Every currency gets a new rate at ``effective_date`` so the latest rows
        agree on a single base.
        """
        effective_date = effective_date or date.today()
        table = self.get_rate_table(as_of=effective_date).rebased(base_currency)
        for rate in table.to_rates():
            self.db.add_rate(rate.code, rate.rate, rate.is_base, effective_date)
        logger.info("Rebased %d rates on %s", len(table.codes), table.base_currency)
        return table

    def seed_default_rates(self, base_currency: str = DEFAULT_BASE_CURRENCY) -> int:
        """Add standing rates for common currencies that have none yet.

        Returns:
            Number of rates created

        Raises:
            ConflictError: If rates exist with a different base currency
        """
        base_currency = base_currency.upper()
        existing = self.db.get_rates()
        current_base = next((r.code for r in existing if r.is_base), None)
        if current_base is not None and current_base != base_currency:
            raise ConflictError(
                f"Rates already use {current_base} as base currency; "
                f"rebase before seeding with {base_currency}"
            )

        defaults = RateTable.from_mapping(DEFAULT_RATES, DEFAULT_BASE_CURRENCY)
        if base_currency not in defaults:
            raise ValidationError(f"No default rate for base currency {base_currency}")
        known = {r.code for r in existing}
        created = 0
        for rate in defaults.rebased(base_currency).to_rates():
            if rate.code in known:
                continue
            self.db.add_rate(rate.code, rate.rate, rate.is_base, EARLIEST_LEDGER_DATE)
            created += 1
        logger.info("Seeded %d default rates against %s", created, base_currency)
        return created
