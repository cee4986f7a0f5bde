"""Tests for posting and correcting ledger entries."""

from datetime import date
from decimal import Decimal

import pytest

from finstate.domain.entities import SourceKind
from finstate.domain.errors import (
    AccountNotFoundError,
    ClosedPeriodError,
    ConflictError,
    NotFoundError,
    UnbalancedEntryError,
    ValidationError,
)
from finstate.domain.normalizer import InvoicePaymentRecord, JournalLine, JournalRecord


def _journal(debit_id, credit_id, amount, day=date(2024, 3, 1), currency="USD"):
    value = Decimal(amount)
    return JournalRecord(
        day, currency, (JournalLine(debit_id, debit=value), JournalLine(credit_id, credit=value))
    )


@pytest.fixture
def posted(entry_service, sample_company, sample_chart):
    """IDs of a posted 1000 USD sale."""
    return entry_service.post_journal(
        sample_company.id, _journal(sample_chart["1010"], sample_chart["4000"], "1000")
    )


class TestPostJournal:
    """Tests for manual journals."""

    def test_post(self, entry_service, posted, sample_chart):
        bank, sales = (entry_service.get_entry(i) for i in posted)

        assert bank.account_id == sample_chart["1010"]
        assert bank.amount == Decimal("1000")
        assert sales.amount == Decimal("1000")
        assert bank.journal_id == sales.journal_id
        assert bank.source_kind == SourceKind.MANUAL

    def test_unbalanced(self, entry_service, sample_company, sample_chart):
        record = JournalRecord(
            date(2024, 3, 1),
            "USD",
            (
                JournalLine(sample_chart["1010"], debit=Decimal("100")),
                JournalLine(sample_chart["4000"], credit=Decimal("90")),
            ),
        )
        with pytest.raises(UnbalancedEntryError):
            entry_service.post_journal(sample_company.id, record)
        assert entry_service.list_entries(sample_company.id) == []

    def test_unknown_account(self, entry_service, sample_company, sample_chart):
        with pytest.raises(AccountNotFoundError):
            entry_service.post_journal(sample_company.id, _journal(sample_chart["1010"], 999, "10"))

    def test_inactive_account(self, entry_service, account_service, sample_company, sample_chart):
        account_service.deactivate_account(sample_chart["6400"])
        with pytest.raises(ValidationError, match="inactive"):
            entry_service.post_journal(
                sample_company.id, _journal(sample_chart["6400"], sample_chart["1010"], "10")
            )

    def test_closed_period(self, entry_service, period_service, sample_company, sample_chart):
        ids = period_service.create_fiscal_year(sample_company.id, 2024)
        period_service.close_period(ids[1])

        with pytest.raises(ClosedPeriodError):
            entry_service.post_journal(
                sample_company.id, _journal(sample_chart["1010"], sample_chart["4000"], "10")
            )

    def test_list_entries_filters(self, entry_service, posted, sample_company, sample_chart):
        entry_service.post_journal(
            sample_company.id,
            _journal(sample_chart["6100"], sample_chart["1010"], "200", day=date(2024, 5, 1)),
        )

        assert len(entry_service.list_entries(sample_company.id)) == 4
        march = entry_service.list_entries(sample_company.id, date(2024, 3, 1), date(2024, 3, 31))
        assert len(march) == 2
        bank = entry_service.list_entries(sample_company.id, account_id=sample_chart["1010"])
        assert [e.amount for e in bank] == [Decimal("1000"), Decimal("-200")]


class TestTransactions:
    """Tests for bank transactions and invoice payments."""

    def test_record_transaction(self, entry_service, sample_company, sample_chart, sample_bank):
        ids = entry_service.record_transaction(
            sample_company.id,
            sample_bank.id,
            date(2024, 3, 1),
            sample_chart["6100"],
            amount_out=Decimal("250"),
            description="March rent",
        )
        cash, rent = (entry_service.get_entry(i) for i in ids)

        assert cash.account_id == sample_chart["1010"]
        assert cash.amount == Decimal("-250")
        assert rent.amount == Decimal("250")
        assert cash.currency == "USD"
        assert cash.source_kind == SourceKind.TRANSACTION

    def test_currency_not_held(self, entry_service, sample_company, sample_chart, sample_bank):
        with pytest.raises(ValidationError, match="does not hold EUR"):
            entry_service.record_transaction(
                sample_company.id,
                sample_bank.id,
                date(2024, 3, 1),
                sample_chart["4000"],
                amount_in=Decimal("10"),
                currency="EUR",
            )

    def test_unknown_money_account(self, entry_service, sample_company, sample_chart):
        with pytest.raises(NotFoundError):
            entry_service.record_transaction(
                sample_company.id, 999, date(2024, 3, 1), sample_chart["4000"], amount_in=Decimal("10")
            )

    def test_invoice_payment(self, entry_service, sample_company, sample_chart):
        ids = entry_service.record_invoice_payment(
            sample_company.id,
            InvoicePaymentRecord(
                "INV-42",
                date(2024, 3, 1),
                "USD",
                Decimal("4248"),
                sample_chart["1010"],
                sample_chart["1100"],
            ),
        )
        cash, receivable = (entry_service.get_entry(i) for i in ids)

        assert cash.amount == Decimal("4248")
        assert receivable.amount == Decimal("-4248")
        assert cash.description == "Payment of invoice INV-42"


class TestReversal:
    """Tests for reversal-only corrections."""

    def test_reverse_whole_journal(self, entry_service, posted, sample_company):
        reversal_ids = entry_service.reverse_entry(posted[0], date(2024, 3, 5))
        reversals = [entry_service.get_entry(i) for i in reversal_ids]

        assert sorted(r.linked_entry_id for r in reversals) == sorted(posted)
        assert all(r.amount == Decimal("-1000") for r in reversals)
        assert all(r.date == date(2024, 3, 5) for r in reversals)
        assert entry_service.get_entry(posted[0]).amount == Decimal("1000")

        total = sum(e.amount for e in entry_service.list_entries(sample_company.id))
        assert total == 0

    def test_reverse_twice(self, entry_service, posted):
        entry_service.reverse_entry(posted[0], date(2024, 3, 5))
        with pytest.raises(ConflictError, match="already been reversed"):
            entry_service.reverse_entry(posted[1], date(2024, 3, 6))

    def test_reverse_a_reversal(self, entry_service, posted):
        reversal_ids = entry_service.reverse_entry(posted[0], date(2024, 3, 5))
        with pytest.raises(ConflictError, match="itself a reversal"):
            entry_service.reverse_entry(reversal_ids[0], date(2024, 3, 6))

    def test_reverse_into_closed_period(self, entry_service, period_service, posted, sample_company):
        ids = period_service.create_fiscal_year(sample_company.id, 2024)
        period_service.close_period(ids[2])

        with pytest.raises(ClosedPeriodError):
            entry_service.reverse_entry(posted[0], date(2024, 5, 1))

    def test_reverse_entry_in_closed_period(self, entry_service, period_service, posted, sample_company):
        """An entry in a closed period is corrected by a reversal in an open one."""
        ids = period_service.create_fiscal_year(sample_company.id, 2024)
        period_service.close_period(ids[1])

        assert len(entry_service.reverse_entry(posted[0], date(2024, 4, 1))) == 2

    def test_reverse_missing(self, entry_service):
        with pytest.raises(NotFoundError):
            entry_service.reverse_entry(999)

    def test_supersede(self, entry_service, posted, sample_company, sample_chart):
        reversal_ids, replacement_ids = entry_service.supersede_entry(
            posted[0], _journal(sample_chart["1010"], sample_chart["4000"], "1200", day=date(2024, 3, 2))
        )

        assert len(reversal_ids) == 2
        assert len(replacement_ids) == 2
        assert entry_service.get_entry(reversal_ids[0]).date == date(2024, 3, 2)
        bank = entry_service.list_entries(sample_company.id, account_id=sample_chart["1010"])
        assert sum(e.amount for e in bank) == Decimal("1200")

    def test_supersede_rejects_bad_replacement(self, entry_service, posted, sample_company, sample_chart):
        record = JournalRecord(
            date(2024, 3, 2),
            "USD",
            (
                JournalLine(sample_chart["1010"], debit=Decimal("100")),
                JournalLine(sample_chart["4000"], credit=Decimal("90")),
            ),
        )
        with pytest.raises(UnbalancedEntryError):
            entry_service.supersede_entry(posted[0], record)
        assert len(entry_service.list_entries(sample_company.id)) == 2
