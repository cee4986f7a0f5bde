"""Turn raw bookkeeping records into canonical ledger entries.

Three record shapes come in: manual journals (debit/credit lines), imported
bank or wallet transactions, and invoice payment events. Each becomes a set
of balanced LedgerEntry values sharing a journal id, with amounts signed in
each account's normal balance direction.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

from finstate.domain.currency import RateTable, as_rate_table, convert
from finstate.domain.entities import (
    Account,
    CurrencyRate,
    LedgerEntry,
    MoneyAccount,
    Period,
    Severity,
    SourceKind,
    ValidationIssue,
)
from finstate.domain.errors import (
    AccountNotFoundError,
    ClosedPeriodError,
    UnbalancedEntryError,
    UnknownCurrencyError,
    ValidationError,
    period_closed,
    unbalanced_journal,
)
from finstate.domain.money import ZERO, quantize
from finstate.domain.settings import InvalidEntryPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JournalLine:
    """One debit or credit line of a manual journal."""

    account_id: int
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: Optional[str] = None


@dataclass(frozen=True)
class JournalRecord:
    """Manual bookkeeping entry made of balanced lines in one currency."""

    date: date
    currency: str
    lines: tuple[JournalLine, ...]
    description: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class TransactionRecord:
    """Imported bank or wallet movement against a counter account."""

    money_account: MoneyAccount
    date: date
    currency: str
    counter_account_id: int
    amount_in: Decimal = ZERO
    amount_out: Decimal = ZERO
    description: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class InvoicePaymentRecord:
    """Payment received against an invoice."""

    invoice_number: str
    date: date
    currency: str
    amount: Decimal
    cash_account_id: int
    receivable_account_id: int
    description: Optional[str] = None


class LedgerEntryNormalizer:
    """Normalizer bound to one company's chart of accounts and closed periods."""

    def __init__(
        self,
        accounts: Iterable[Account],
        closed_periods: Iterable[Period] = (),
        company_id: Optional[int] = None,
    ):
        """Initialize normalizer.

        Args:
            accounts: Chart of accounts entries may reference
            closed_periods: Periods no new entry may be dated in
            company_id: Company stamped on every produced entry
        """
        self.accounts = {account.id: account for account in accounts}
        self.closed_periods = [p for p in closed_periods if p.is_closed]
        self.company_id = company_id

    def normalize_journal(
        self,
        record: JournalRecord,
        journal_id: Optional[str] = None,
        source_kind: SourceKind = SourceKind.MANUAL,
    ) -> list[LedgerEntry]:
        """Convert a manual journal into ledger entries.

        Raises:
            ValidationError: If the journal has fewer than two lines or a line
                is negative or empty
            UnbalancedEntryError: If total debits differ from total credits
            AccountNotFoundError: If a line references an unknown account
            ClosedPeriodError: If the journal date falls in a closed period
        """
        if len(record.lines) < 2:
            raise ValidationError("A journal needs at least two lines")
        self._check_open(record.date)

        debits = sum((line.debit for line in record.lines), ZERO)
        credits = sum((line.credit for line in record.lines), ZERO)
        for line in record.lines:
            if line.debit < 0 or line.credit < 0:
                raise ValidationError("Journal lines cannot carry negative debits or credits")
            if line.debit == 0 and line.credit == 0:
                raise ValidationError(f"Journal line for account {line.account_id} has no amount")
        if debits != credits:
            raise UnbalancedEntryError(unbalanced_journal(debits, credits))

        return [
            self._entry(
                account_id=line.account_id,
                debit=line.debit - line.credit,
                currency=record.currency,
                day=record.date,
                source_kind=source_kind,
                category=record.category,
                journal_id=journal_id,
                description=line.description or record.description,
            )
            for line in record.lines
        ]

    def normalize_transaction(
        self, record: TransactionRecord, journal_id: Optional[str] = None
    ) -> list[LedgerEntry]:
        """Convert a bank or wallet movement into a cash entry and its counter entry."""
        currency = record.currency.upper()
        allowed = {code.upper() for code in record.money_account.currencies}
        if allowed and currency not in allowed:
            raise ValidationError(
                f"{record.money_account.kind.value.capitalize()} '{record.money_account.name}' "
                f"does not hold {currency}"
            )
        net = record.amount_in - record.amount_out
        if net == 0:
            raise ValidationError("Transaction has no net amount")
        self._check_open(record.date)

        common = dict(
            currency=currency,
            day=record.date,
            source_kind=SourceKind.TRANSACTION,
            category=record.category,
            journal_id=journal_id,
            description=record.description,
        )
        return [
            self._entry(account_id=record.money_account.ledger_account_id, debit=net, **common),
            self._entry(account_id=record.counter_account_id, debit=-net, **common),
        ]

    def normalize_invoice_payment(
        self, record: InvoicePaymentRecord, journal_id: Optional[str] = None
    ) -> list[LedgerEntry]:
        """Convert an invoice payment into a cash debit and receivable credit."""
        if record.amount <= 0:
            raise ValidationError("Invoice payment amount must be positive")
        self._check_open(record.date)

        description = record.description or f"Payment of invoice {record.invoice_number}"
        common = dict(
            currency=record.currency.upper(),
            day=record.date,
            source_kind=SourceKind.INVOICE_PAYMENT,
            category=None,
            journal_id=journal_id,
            description=description,
        )
        return [
            self._entry(account_id=record.cash_account_id, debit=record.amount, **common),
            self._entry(account_id=record.receivable_account_id, debit=-record.amount, **common),
        ]

    def reversal_entries(
        self,
        entries: Sequence[LedgerEntry],
        reversal_date: date,
        journal_id: Optional[str] = None,
    ) -> list[LedgerEntry]:
        """Build entries that cancel ``entries`` without touching them.

        Each reversal negates the original amount and links back to it, so
        posted entries are superseded rather than edited in place.

        Raises:
            ValidationError: If an entry has not been persisted yet
            ClosedPeriodError: If the reversal date falls in a closed period
        """
        self._check_open(reversal_date)
        reversals = []
        for entry in entries:
            if entry.id is None:
                raise ValidationError("Only persisted entries can be reversed")
            reversals.append(
                replace(
                    entry,
                    id=None,
                    amount=-entry.amount,
                    date=reversal_date,
                    linked_entry_id=entry.id,
                    journal_id=journal_id,
                    description=f"Reversal of entry {entry.id}",
                )
            )
        return reversals

    def _entry(
        self,
        account_id: int,
        debit: Decimal,
        currency: str,
        day: date,
        source_kind: SourceKind,
        category: Optional[str],
        journal_id: Optional[str],
        description: Optional[str],
    ) -> LedgerEntry:
        account = self.accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        if not account.is_active:
            raise ValidationError(f"Account {account.code} '{account.name}' is inactive")
        amount = debit if account.type.is_debit_normal else -debit
        return LedgerEntry(
            id=None,
            account_id=account_id,
            amount=amount,
            currency=currency.upper(),
            date=day,
            account_type=account.type,
            source_kind=source_kind,
            category=category or account.category,
            journal_id=journal_id,
            description=description,
            company_id=self.company_id,
        )

    def _check_open(self, day: date) -> None:
        for period in self.closed_periods:
            if period.contains(day):
                raise ClosedPeriodError(period_closed(period.name, day))


def to_reporting_currency(
    entries: Iterable[LedgerEntry],
    currency: str,
    rate_table: Union[RateTable, Iterable[CurrencyRate]],
    policy: InvalidEntryPolicy = InvalidEntryPolicy.ABORT,
    places: Optional[int] = 2,
) -> tuple[list[LedgerEntry], list[ValidationIssue]]:
    """Express entries in ``currency``, rounded to the minor unit.

    Args:
        entries: Entries in any currency
        currency: Reporting currency
        rate_table: Rates covering every entry currency
        policy: Abort on an unknown currency, or exclude the entry and warn
        places: Decimal places of the reporting currency's minor unit, or
            None to keep the converted amounts exact

    Returns:
        Tuple of (converted entries, warnings for excluded entries)

    Raises:
        UnknownCurrencyError: If a currency has no rate and policy is abort
    """
    table = as_rate_table(rate_table)
    converted: list[LedgerEntry] = []
    issues: list[ValidationIssue] = []
    for entry in entries:
        try:
            amount = convert(entry.amount, entry.currency, currency, table)
        except UnknownCurrencyError as e:
            if policy == InvalidEntryPolicy.ABORT:
                raise
            logger.warning("Excluding entry %s: %s", entry.id, e)
            issues.append(
                ValidationIssue(
                    severity=Severity.WARNING,
                    message=f"Entry {entry.id} excluded: {e}",
                    suggestion=f"Add a {e.code} rate to the rate table",
                    rule="unknown-currency",
                )
            )
            continue
        if places is not None:
            amount = quantize(amount, places)
        converted.append(replace(entry, amount=amount, currency=currency.upper()))
    return converted, issues
