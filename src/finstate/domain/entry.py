"""Ledger entry domain service.

Posted entries are never edited. Corrections are made by posting reversals
that link back to the original, optionally followed by a replacement.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from finstate.database.base import Database
from finstate.domain.entities import LedgerEntry
from finstate.domain.errors import (
    ConflictError,
    NotFoundError,
    company_not_found,
    entry_not_found,
    money_account_not_found,
)
from finstate.domain.normalizer import (
    InvoicePaymentRecord,
    JournalRecord,
    LedgerEntryNormalizer,
    TransactionRecord,
)
from finstate.domain.money import ZERO

logger = logging.getLogger(__name__)


def new_journal_id() -> str:
    return uuid.uuid4().hex


class EntryService:
    """Service for posting and correcting ledger entries."""

    def __init__(self, db: Database):
        """Initialize entry service.

        Args:
            db: Database instance
        """
        self.db = db

    def _normalizer(self, company_id: int) -> LedgerEntryNormalizer:
        if self.db.get_company(company_id) is None:
            raise NotFoundError(company_not_found(company_id))
        return LedgerEntryNormalizer(
            accounts=self.db.list_accounts(company_id, include_inactive=True),
            closed_periods=[p for p in self.db.list_periods(company_id) if p.is_closed],
            company_id=company_id,
        )

    def _post(self, entries: list[LedgerEntry]) -> list[int]:
        ids = self.db.add_ledger_entries(entries)
        logger.info(
            "Posted %d entries (journal %s)", len(ids), entries[0].journal_id if entries else None
        )
        return ids

    def post_journal(self, company_id: int, record: JournalRecord) -> list[int]:
        """Post a manual journal.

        Args:
            company_id: Owning company
            record: Balanced journal lines in one currency

        Returns:
            IDs of the posted entries, one per line

        Raises:
            ValidationError: If a line is malformed or an account inactive
            UnbalancedEntryError: If debits and credits differ
            AccountNotFoundError: If a line references an unknown account
            ClosedPeriodError: If the journal is dated in a closed period
        """
        entries = self._normalizer(company_id).normalize_journal(record, journal_id=new_journal_id())
        return self._post(entries)

    def record_transaction(
        self,
        company_id: int,
        money_account_id: int,
        day: date,
        counter_account_id: int,
        amount_in: Decimal = ZERO,
        amount_out: Decimal = ZERO,
        currency: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> list[int]:
        """Record a bank or wallet movement against a counter account.

        Args:
            company_id: Owning company
            money_account_id: Bank account or wallet the money moved through
            day: Transaction date
            counter_account_id: Revenue, expense or balance sheet account on
                the other side
            amount_in: Money received
            amount_out: Money paid
            currency: Transaction currency; defaults to the account's only
                currency
            description: Optional memo
            category: Optional category override

        Returns:
            IDs of the cash entry and the counter entry

        Raises:
            NotFoundError: If the money account does not exist
            ValidationError: If the currency is not held by the account or the
                net amount is zero
        """
        money_account = self.db.get_money_account(money_account_id)
        if money_account is None or money_account.company_id != company_id:
            raise NotFoundError(money_account_not_found(money_account_id))
        if currency is None:
            if len(money_account.currencies) != 1:
                raise ConflictError(
                    f"'{money_account.name}' holds several currencies; specify one"
                )
            currency = money_account.currencies[0]
        record = TransactionRecord(
            money_account=money_account,
            date=day,
            currency=currency,
            counter_account_id=counter_account_id,
            amount_in=amount_in,
            amount_out=amount_out,
            description=description,
            category=category,
        )
        entries = self._normalizer(company_id).normalize_transaction(
            record, journal_id=new_journal_id()
        )
        return self._post(entries)

    def record_invoice_payment(self, company_id: int, record: InvoicePaymentRecord) -> list[int]:
        """Record a payment received against an invoice.

        Returns:
            IDs of the cash entry and the receivable entry
        """
        entries = self._normalizer(company_id).normalize_invoice_payment(
            record, journal_id=new_journal_id()
        )
        return self._post(entries)

    def get_entry(self, entry_id: int) -> Optional[LedgerEntry]:
        return self.db.get_ledger_entry(entry_id)

    def list_entries(
        self,
        company_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
    ) -> list[LedgerEntry]:
        """List a company's entries ordered by date."""
        return self.db.get_entries(company_id, start_date, end_date, account_id=account_id)

    def _entries_to_reverse(self, entry_id: int) -> list[LedgerEntry]:
        entry = self.db.get_ledger_entry(entry_id)
        if entry is None:
            raise NotFoundError(entry_not_found(entry_id))
        if entry.linked_entry_id is not None:
            raise ConflictError(f"Ledger entry {entry_id} is itself a reversal")
        journal = self.db.get_journal_entries(entry.journal_id) if entry.journal_id else [entry]
        for original in journal:
            if self.db.get_reversals(original.id):
                raise ConflictError(f"Ledger entry {original.id} has already been reversed")
        return journal

    def reverse_entry(self, entry_id: int, reversal_date: Optional[date] = None) -> list[int]:
        """Reverse an entry together with the rest of its journal.

        Reversing single lines would unbalance the ledger, so every entry
        sharing the journal id is reversed.

        Args:
            entry_id: Any entry of the journal to reverse
            reversal_date: Date of the reversal; defaults to today. Must fall in
                an open period, even when the original does not

        Returns:
            IDs of the reversal entries

        Raises:
            NotFoundError: If the entry does not exist
            ConflictError: If the entry is a reversal or was already reversed
            ClosedPeriodError: If the reversal date is in a closed period
        """
        journal = self._entries_to_reverse(entry_id)
        company_id = journal[0].company_id
        reversals = self._normalizer(company_id).reversal_entries(
            journal, reversal_date or date.today(), journal_id=new_journal_id()
        )
        return self._post(reversals)

    def supersede_entry(
        self,
        entry_id: int,
        record: JournalRecord,
        reversal_date: Optional[date] = None,
    ) -> tuple[list[int], list[int]]:
        """Replace a posted journal: reverse it and post ``record`` in one step.

        Returns:
            Tuple of (reversal entry IDs, replacement entry IDs)
        """
        journal = self._entries_to_reverse(entry_id)
        normalizer = self._normalizer(journal[0].company_id)
        reversals = normalizer.reversal_entries(
            journal, reversal_date or record.date, journal_id=new_journal_id()
        )
        replacement = normalizer.normalize_journal(record, journal_id=new_journal_id())
        ids = self._post(reversals + replacement)
        return ids[: len(reversals)], ids[len(reversals):]
