"""Tests for generating the full statement bundle."""

import threading
from datetime import date
from decimal import Decimal

import pytest

from finstate.domain.entities import CurrencyRate, DateRange
from finstate.domain.errors import GenerationCancelled, NotFoundError, ReconciliationError
from finstate.domain.normalizer import JournalLine, JournalRecord
from finstate.domain.reporting import (
    BUILDERS,
    ReportingService,
    StatementInputs,
    generate_statements,
)
from finstate.domain.settings import InvalidEntryPolicy, ReportSettings

YEAR_2024 = DateRange(date(2024, 1, 1), date(2024, 12, 31))
EUR_RATES = [CurrencyRate("USD", Decimal("1"), is_base=True), CurrencyRate("EUR", Decimal("1.005"))]


@pytest.fixture
def inputs(journal, ledger_accounts):
    entries = [
        *journal("2024-01-01", "bank", "capital", "10000"),
        *journal("2024-02-01", "receivables", "sales", "3000"),
        *journal("2024-03-01", "bank", "receivables", "1000"),
        *journal("2024-04-01", "equipment", "bank", "4000"),
        *journal("2024-06-01", "rent", "payables", "500"),
    ]
    return StatementInputs(
        period=YEAR_2024,
        entries=tuple(entries),
        accounts=tuple(ledger_accounts.values()),
        settings=ReportSettings(),
    )


class TestGenerateStatements:
    """Tests for generate_statements."""

    def test_builds_all_statements(self, inputs):
        statements = generate_statements(inputs)

        assert set(statements.results()) == set(BUILDERS)
        assert statements.reconciliation == ()
        assert not statements.has_errors
        assert statements.cash_accounts_total == Decimal("7000")
        assert statements.profit_loss.data.net_income.amount == Decimal("2500")

    def test_parallel_matches_sequential(self, inputs):
        sequential = generate_statements(inputs)
        parallel = generate_statements(inputs, max_workers=4)

        assert parallel.to_dict() == sequential.to_dict()

    def test_repeatable(self, inputs):
        assert generate_statements(inputs).to_dict() == generate_statements(inputs).to_dict()

    def test_cancelled_before_start(self, inputs):
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(GenerationCancelled):
            generate_statements(inputs, cancel_event=cancel)

    def test_cancelled_in_parallel(self, inputs):
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(GenerationCancelled):
            generate_statements(inputs, cancel_event=cancel, max_workers=4)

    def test_raise_for_errors_passes_clean_bundle(self, inputs):
        statements = generate_statements(inputs)
        statements.raise_for_errors()
        assert statements.errors == ()

    def test_reconciliation_error_raised(self, inputs, ledger_accounts):
        from finstate.domain.entities import AccountType, LedgerEntry

        stray = LedgerEntry(
            99, ledger_accounts["bank"].id, Decimal("50"), "USD", date(2024, 8, 1), AccountType.ASSET
        )
        statements = generate_statements(
            StatementInputs(
                period=inputs.period,
                entries=inputs.entries + (stray,),
                accounts=inputs.accounts,
                settings=inputs.settings,
            )
        )

        assert statements.has_errors
        with pytest.raises(ReconciliationError) as exc_info:
            statements.raise_for_errors()
        assert exc_info.value.issues == statements.errors

    def test_simplified_mode(self, inputs):
        statements = generate_statements(
            StatementInputs(
                period=inputs.period,
                entries=inputs.entries,
                accounts=inputs.accounts,
                settings=ReportSettings(simplified_mode=True),
            )
        )

        assert statements.profit_loss.available
        assert not statements.balance_sheet.available
        assert statements.cash_accounts_total is None
        assert not statements.has_errors

    def test_to_dict(self, inputs):
        data = generate_statements(inputs).to_dict()

        assert set(data) == {*BUILDERS, "reconciliation", "cash_accounts_total"}
        assert Decimal(data["cash_accounts_total"]) == Decimal("7000")


class TestMultiCurrency:
    """Bundles built from journals posted in a foreign currency."""

    @pytest.fixture
    def mixed_inputs(self, journal, ledger_accounts):
        entries = journal("2024-01-01", "bank", "capital", "100")
        for day in ("2024-02-01", "2024-03-01", "2024-04-01"):
            entries += journal(day, "bank", ("sales", "interest_income"), "1.00", "EUR")

        def build(extra=(), settings=None):
            return StatementInputs(
                period=YEAR_2024,
                entries=tuple(entries) + tuple(extra),
                accounts=tuple(ledger_accounts.values()),
                settings=settings or ReportSettings(),
                rates=tuple(EUR_RATES),
            )

        return build

    def test_reconciles_with_uneven_rate(self, mixed_inputs):
        statements = generate_statements(mixed_inputs())

        assert statements.reconciliation == ()
        assert not statements.has_errors
        assert statements.cash_accounts_total == Decimal("106.03")
        assert statements.balance_sheet.data.difference == 0

    def test_presented_amounts_rounded(self, mixed_inputs):
        data = generate_statements(mixed_inputs()).to_dict()
        profit_loss = data["profit_loss"]["data"]

        revenue = {line["label"]: line["amount"] for line in profit_loss["revenue"]["lines"]}
        assert revenue == {"Sales revenue": "3.02"}
        assert profit_loss["net_income"]["amount"] == "6.03"
        assert data["cash_accounts_total"] == "106.03"

    def test_excluded_cash_entries_left_out_of_cash_total(self, mixed_inputs, journal):
        settings = ReportSettings(invalid_entry_policy=InvalidEntryPolicy.EXCLUDE)
        yen = journal("2024-05-01", "bank", "sales", "500", "JPY")

        statements = generate_statements(mixed_inputs(yen, settings))

        assert statements.reconciliation == ()
        assert not statements.has_errors
        assert statements.cash_accounts_total == Decimal("106.03")
        assert any(i.rule == "unknown-currency" for i in statements.cash_flow.warnings)


class TestReportingService:
    """Tests for ReportingService against a database."""

    def _post(self, entry_service, company_id, day, debit, credit, amount):
        value = Decimal(amount)
        entry_service.post_journal(
            company_id,
            JournalRecord(
                date=day,
                currency="USD",
                lines=(JournalLine(debit, debit=value), JournalLine(credit, credit=value)),
            ),
        )

    @pytest.fixture
    def ledger(self, temp_db, entry_service, sample_company, sample_chart, sample_bank):
        post = self._post
        post(entry_service, sample_company.id, date(2024, 1, 1), sample_chart["1010"], sample_chart["3000"], "10000")
        post(entry_service, sample_company.id, date(2024, 2, 1), sample_chart["1010"], sample_chart["4000"], "3000")
        post(entry_service, sample_company.id, date(2024, 3, 1), sample_chart["6100"], sample_chart["1010"], "500")
        post(entry_service, sample_company.id, date(2025, 2, 1), sample_chart["1010"], sample_chart["4000"], "800")
        return sample_company

    def test_generate(self, temp_db, ledger):
        statements = ReportingService(temp_db).generate(ledger.id, YEAR_2024)

        assert not statements.has_errors
        assert statements.profit_loss.data.net_income.amount == Decimal("2500")
        assert statements.balance_sheet.data.total_assets.amount == Decimal("12500")
        assert statements.cash_accounts_total == Decimal("12500")
        assert statements.profit_loss.data.metadata.company_name == "Acme Ltd"
        assert statements.profit_loss.data.metadata.currency == "USD"

    def test_generate_in_parallel(self, temp_db, ledger):
        service = ReportingService(temp_db)
        sequential = service.generate(ledger.id, YEAR_2024)
        parallel = service.generate(ledger.id, YEAR_2024, max_workers=4)
        assert parallel.to_dict() == sequential.to_dict()

    def test_generate_for_period_compares_with_prior(self, temp_db, ledger, period_service):
        period_service.create_fiscal_year(ledger.id, 2024)
        year_2025 = period_service.create_fiscal_year(ledger.id, 2025)[0]

        statements = ReportingService(temp_db).generate_for_period(year_2025)
        revenue = statements.profit_loss.data.revenue.total

        assert revenue.amount == Decimal("800")
        assert revenue.prior_amount == Decimal("3000")
        assert statements.equity_changes.data.opening_balance == Decimal("12500")
        assert not statements.has_errors

    def test_prior_period_for(self, temp_db, ledger, period_service):
        year_2024 = period_service.create_fiscal_year(ledger.id, 2024)[0]
        year_2025 = period_service.create_fiscal_year(ledger.id, 2025)[0]
        service = ReportingService(temp_db)

        assert service.prior_period_for(period_service.get_period(year_2025)).id == year_2024
        assert service.prior_period_for(period_service.get_period(year_2024)) is None

    def test_unknown_company(self, temp_db):
        with pytest.raises(NotFoundError):
            ReportingService(temp_db).generate(999, YEAR_2024)

    def test_unknown_period(self, temp_db):
        with pytest.raises(NotFoundError):
            ReportingService(temp_db).generate_for_period(999)
