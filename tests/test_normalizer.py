"""Tests for ledger entry normalization."""

import pytest
from datetime import date
from decimal import Decimal

from finstate.domain.entities import (
    AccountType,
    CurrencyRate,
    LedgerEntry,
    MoneyAccount,
    MoneyAccountKind,
    Period,
    PeriodType,
    Severity,
    SourceKind,
)
from finstate.domain.errors import (
    AccountNotFoundError,
    ClosedPeriodError,
    UnbalancedEntryError,
    UnknownCurrencyError,
    ValidationError,
)
from finstate.domain.normalizer import (
    InvoicePaymentRecord,
    JournalLine,
    JournalRecord,
    LedgerEntryNormalizer,
    TransactionRecord,
    to_reporting_currency,
)
from finstate.domain.settings import InvalidEntryPolicy


@pytest.fixture
def normalizer(ledger_accounts):
    closed = Period(1, "FY2023", date(2023, 1, 1), date(2023, 12, 31), 2023, PeriodType.ANNUAL,
                    is_closed=True)
    return LedgerEntryNormalizer(ledger_accounts.values(), closed_periods=[closed], company_id=7)


@pytest.fixture
def bank_account(ledger_accounts):
    return MoneyAccount(1, MoneyAccountKind.BANK, "Main", ledger_accounts["bank"].id, ("USD", "EUR"))


class TestJournal:
    """Tests for manual journals."""

    def test_amounts_follow_normal_balance(self, normalizer, ledger_accounts):
        """A sale debits the bank and credits revenue; both balances increase."""
        record = JournalRecord(
            date=date(2024, 3, 1),
            currency="usd",
            lines=(
                JournalLine(ledger_accounts["bank"].id, debit=Decimal("500")),
                JournalLine(ledger_accounts["sales"].id, credit=Decimal("500")),
            ),
            description="Cash sale",
        )
        bank, sales = normalizer.normalize_journal(record, journal_id="abc")

        assert bank.amount == Decimal("500")
        assert sales.amount == Decimal("500")
        assert bank.account_type == AccountType.ASSET
        assert sales.account_type == AccountType.REVENUE
        assert bank.currency == "USD"
        assert bank.journal_id == sales.journal_id == "abc"
        assert bank.company_id == 7
        assert bank.source_kind == SourceKind.MANUAL
        assert bank.description == "Cash sale"
        assert bank.id is None

    def test_credit_to_asset_is_negative(self, normalizer, ledger_accounts):
        record = JournalRecord(
            date=date(2024, 3, 1),
            currency="USD",
            lines=(
                JournalLine(ledger_accounts["rent"].id, debit=Decimal("100")),
                JournalLine(ledger_accounts["bank"].id, credit=Decimal("100")),
            ),
        )
        rent, bank = normalizer.normalize_journal(record)
        assert rent.amount == Decimal("100")
        assert bank.amount == Decimal("-100")
        assert bank.debit_amount == Decimal("-100")

    def test_category_defaults_to_account_category(self, normalizer, ledger_accounts):
        record = JournalRecord(
            date=date(2024, 3, 1),
            currency="USD",
            lines=(
                JournalLine(ledger_accounts["rent"].id, debit=Decimal("100")),
                JournalLine(ledger_accounts["bank"].id, credit=Decimal("100")),
            ),
        )
        rent, _ = normalizer.normalize_journal(record)
        assert rent.category == "Rent"

    def test_unbalanced(self, normalizer, ledger_accounts):
        record = JournalRecord(
            date=date(2024, 3, 1),
            currency="USD",
            lines=(
                JournalLine(ledger_accounts["rent"].id, debit=Decimal("100")),
                JournalLine(ledger_accounts["bank"].id, credit=Decimal("90")),
            ),
        )
        with pytest.raises(UnbalancedEntryError, match="difference 10"):
            normalizer.normalize_journal(record)

    def test_single_line(self, normalizer, ledger_accounts):
        record = JournalRecord(
            date=date(2024, 3, 1),
            currency="USD",
            lines=(JournalLine(ledger_accounts["rent"].id, debit=Decimal("100")),),
        )
        with pytest.raises(ValidationError, match="at least two lines"):
            normalizer.normalize_journal(record)

    def test_unknown_account(self, normalizer, ledger_accounts):
        record = JournalRecord(
            date=date(2024, 3, 1),
            currency="USD",
            lines=(
                JournalLine(999, debit=Decimal("100")),
                JournalLine(ledger_accounts["bank"].id, credit=Decimal("100")),
            ),
        )
        with pytest.raises(AccountNotFoundError) as excinfo:
            normalizer.normalize_journal(record)
        assert excinfo.value.account_id == 999

    def test_closed_period(self, normalizer, ledger_accounts):
        record = JournalRecord(
            date=date(2023, 6, 30),
            currency="USD",
            lines=(
                JournalLine(ledger_accounts["rent"].id, debit=Decimal("100")),
                JournalLine(ledger_accounts["bank"].id, credit=Decimal("100")),
            ),
        )
        with pytest.raises(ClosedPeriodError, match="FY2023"):
            normalizer.normalize_journal(record)

    def test_negative_line(self, normalizer, ledger_accounts):
        record = JournalRecord(
            date=date(2024, 3, 1),
            currency="USD",
            lines=(
                JournalLine(ledger_accounts["rent"].id, debit=Decimal("-100")),
                JournalLine(ledger_accounts["bank"].id, credit=Decimal("-100")),
            ),
        )
        with pytest.raises(ValidationError, match="negative"):
            normalizer.normalize_journal(record)


class TestTransaction:
    """Tests for bank and wallet transactions."""

    def test_money_in(self, normalizer, bank_account, ledger_accounts):
        record = TransactionRecord(
            money_account=bank_account,
            date=date(2024, 5, 2),
            currency="EUR",
            counter_account_id=ledger_accounts["sales"].id,
            amount_in=Decimal("250"),
        )
        cash, counter = normalizer.normalize_transaction(record)
        assert cash.account_id == ledger_accounts["bank"].id
        assert cash.amount == Decimal("250")
        assert counter.amount == Decimal("250")
        assert cash.source_kind == SourceKind.TRANSACTION
        assert cash.currency == "EUR"

    def test_money_out(self, normalizer, bank_account, ledger_accounts):
        record = TransactionRecord(
            money_account=bank_account,
            date=date(2024, 5, 2),
            currency="USD",
            counter_account_id=ledger_accounts["rent"].id,
            amount_out=Decimal("99.90"),
        )
        cash, counter = normalizer.normalize_transaction(record)
        assert cash.amount == Decimal("-99.90")
        assert counter.amount == Decimal("99.90")

    def test_currency_not_held(self, normalizer, bank_account, ledger_accounts):
        record = TransactionRecord(
            money_account=bank_account,
            date=date(2024, 5, 2),
            currency="GBP",
            counter_account_id=ledger_accounts["sales"].id,
            amount_in=Decimal("10"),
        )
        with pytest.raises(ValidationError, match="does not hold GBP"):
            normalizer.normalize_transaction(record)

    def test_zero_net(self, normalizer, bank_account, ledger_accounts):
        record = TransactionRecord(
            money_account=bank_account,
            date=date(2024, 5, 2),
            currency="USD",
            counter_account_id=ledger_accounts["sales"].id,
            amount_in=Decimal("10"),
            amount_out=Decimal("10"),
        )
        with pytest.raises(ValidationError, match="no net amount"):
            normalizer.normalize_transaction(record)


def test_invoice_payment(normalizer, ledger_accounts):
    record = InvoicePaymentRecord(
        invoice_number="INV-42",
        date=date(2024, 5, 2),
        currency="USD",
        amount=Decimal("4248"),
        cash_account_id=ledger_accounts["bank"].id,
        receivable_account_id=ledger_accounts["receivables"].id,
    )
    cash, receivable = normalizer.normalize_invoice_payment(record)
    assert cash.amount == Decimal("4248")
    assert receivable.amount == Decimal("-4248")
    assert cash.source_kind == SourceKind.INVOICE_PAYMENT
    assert cash.description == "Payment of invoice INV-42"


def test_reversal_entries(normalizer, journal):
    originals = journal("2024-03-01", "bank", "sales", "500")
    reversals = normalizer.reversal_entries(originals, date(2024, 4, 1), journal_id="rev")

    assert [r.linked_entry_id for r in reversals] == [e.id for e in originals]
    assert [r.amount for r in reversals] == [-e.amount for e in originals]
    assert all(r.id is None and r.date == date(2024, 4, 1) for r in reversals)
    assert sum(r.debit_amount for r in reversals) == 0
    # originals untouched
    assert originals[0].amount == Decimal("500")


def test_reversal_into_closed_period(normalizer, journal):
    originals = journal("2024-03-01", "bank", "sales", "500")
    with pytest.raises(ClosedPeriodError):
        normalizer.reversal_entries(originals, date(2023, 12, 31))


class TestToReportingCurrency:
    """Tests for converting entries into the reporting currency."""

    def _entry(self, amount: str, currency: str, entry_id: int = 1) -> LedgerEntry:
        return LedgerEntry(entry_id, 1, Decimal(amount), currency, date(2024, 1, 1), AccountType.ASSET)

    def test_converts_and_rounds_each_entry(self):
        rates = [CurrencyRate("USD", Decimal("1"), is_base=True), CurrencyRate("EUR", Decimal("1.105"))]
        converted, issues = to_reporting_currency(
            [self._entry("10.01", "EUR"), self._entry("10.01", "EUR", 2)], "USD", rates
        )
        assert [e.amount for e in converted] == [Decimal("11.06"), Decimal("11.06")]
        assert all(e.currency == "USD" for e in converted)
        assert issues == []

    def test_keeps_exact_amounts_without_places(self):
        rates = [CurrencyRate("USD", Decimal("1"), is_base=True), CurrencyRate("EUR", Decimal("1.005"))]
        converted, _ = to_reporting_currency([self._entry("1.00", "EUR")], "USD", rates, places=None)
        assert converted[0].amount == Decimal("1.005")

    def test_unknown_currency_aborts(self):
        rates = [CurrencyRate("USD", Decimal("1"), is_base=True)]
        with pytest.raises(UnknownCurrencyError):
            to_reporting_currency([self._entry("10", "JPY")], "USD", rates)

    def test_unknown_currency_excluded_with_warning(self):
        rates = [CurrencyRate("USD", Decimal("1"), is_base=True)]
        converted, issues = to_reporting_currency(
            [self._entry("10", "JPY"), self._entry("5", "USD", 2)],
            "USD",
            rates,
            policy=InvalidEntryPolicy.EXCLUDE,
        )
        assert [e.id for e in converted] == [2]
        assert len(issues) == 1
        assert issues[0].severity == Severity.WARNING
        assert "JPY" in issues[0].message
