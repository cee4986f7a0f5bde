"""Shared pytest fixtures for finstate tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from finstate.database.factories import create_sqlite_database
from finstate.domain.account import AccountService
from finstate.domain.company import CompanyService
from finstate.domain.entities import Account, AccountType, Classification
from finstate.domain.entry import EntryService
from finstate.domain.money_account import MoneyAccountService
from finstate.domain.period import PeriodService
from finstate.domain.rate import RateService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def company_service(temp_db):
    """Create a CompanyService with a temporary database."""
    return CompanyService(temp_db)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def entry_service(temp_db):
    """Create an EntryService with a temporary database."""
    return EntryService(temp_db)


@pytest.fixture
def period_service(temp_db):
    """Create a PeriodService with a temporary database."""
    return PeriodService(temp_db)


@pytest.fixture
def rate_service(temp_db):
    """Create a RateService with a temporary database."""
    return RateService(temp_db)


@pytest.fixture
def money_account_service(temp_db):
    """Create a MoneyAccountService with a temporary database."""
    return MoneyAccountService(temp_db)


@pytest.fixture
def sample_company(company_service):
    """Create a sample company for testing."""
    company_id = company_service.create_company(name="Acme Ltd", functional_currency="USD")
    return company_service.get_company(company_id)


@pytest.fixture
def sample_chart(account_service, sample_company):
    """Seed the default chart of accounts and return account IDs by code."""
    from finstate.cli.commands.init_accounts import DEFAULT_CHART_OF_ACCOUNTS

    account_service.seed_chart(sample_company.id, DEFAULT_CHART_OF_ACCOUNTS)
    return {a.code: a.id for a in account_service.list_accounts(sample_company.id)}


@pytest.fixture
def sample_bank(money_account_service, sample_company, sample_chart):
    """Create a USD bank account backed by ledger account 1010."""
    money_account_id = money_account_service.create_bank_account(
        sample_company.id, "Main account", sample_chart["1010"], ["USD"], bank_name="Test Bank"
    )
    return money_account_service.get_money_account(money_account_id)


@pytest.fixture
def ledger_accounts():
    """In-memory chart of accounts for pure statement tests, keyed by name."""
    return {
        "bank": Account(1, "1010", "Bank", AccountType.ASSET, Classification.CURRENT,
                        category="Cash and cash equivalents"),
        "receivables": Account(2, "1100", "Trade receivables", AccountType.ASSET,
                               Classification.CURRENT, category="Trade receivables"),
        "equipment": Account(3, "1500", "Equipment", AccountType.ASSET, Classification.NON_CURRENT,
                             category="Property, plant and equipment"),
        "payables": Account(4, "2000", "Trade payables", AccountType.LIABILITY,
                            Classification.CURRENT, category="Trade payables"),
        "loan": Account(5, "2500", "Bank loan", AccountType.LIABILITY, Classification.NON_CURRENT,
                        category="Long-term borrowings"),
        "capital": Account(6, "3000", "Share capital", AccountType.EQUITY, category="Share capital"),
        "dividends": Account(7, "3200", "Dividends", AccountType.EQUITY, category="Dividends"),
        "sales": Account(8, "4000", "Sales revenue", AccountType.REVENUE, category="Revenue"),
        "interest_income": Account(9, "4500", "Interest income", AccountType.REVENUE,
                                   category="Interest income"),
        "cogs": Account(10, "5000", "Cost of sales", AccountType.EXPENSE, category="Cost of sales"),
        "rent": Account(11, "6100", "Rent", AccountType.EXPENSE, category="Rent"),
        "tax": Account(12, "8000", "Income tax expense", AccountType.EXPENSE, category="Income tax"),
        "revaluation": Account(13, "4800", "Revaluation surplus", AccountType.REVENUE,
                               category="Revaluation surplus"),
    }


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def cli_env(temp_db, monkeypatch, tmp_path):
    """Point the CLI at the temporary database and an empty config."""
    monkeypatch.setenv("FINSTATE_DB_PATH", temp_db.database_path)
    monkeypatch.delenv("FINSTATE_CONFIG", raising=False)
    monkeypatch.delenv("FINSTATE_COMPANY", raising=False)
    return ["--db-path", temp_db.database_path]


@pytest.fixture
def journal(ledger_accounts):
    """Build balanced ledger entries from (debit name, credit name, amount) tuples.

    ``credit`` may name several accounts; each is credited ``amount`` and the
    debit carries the sum. Entries get sequential IDs and one journal ID per
    call, the way the database would assign them.
    """
    from dataclasses import replace
    from itertools import count

    from finstate.domain.normalizer import JournalLine, JournalRecord, LedgerEntryNormalizer

    normalizer = LedgerEntryNormalizer(ledger_accounts.values())
    ids = count(1)
    journals = count(1)

    def build(day: str, debit: str, credit, amount: str, currency: str = "USD"):
        value = Decimal(amount)
        credits = (credit,) if isinstance(credit, str) else tuple(credit)
        record = JournalRecord(
            date=date.fromisoformat(day),
            currency=currency,
            lines=(
                JournalLine(ledger_accounts[debit].id, debit=value * len(credits)),
                *(JournalLine(ledger_accounts[name].id, credit=value) for name in credits),
            ),
        )
        entries = normalizer.normalize_journal(record, journal_id=f"j{next(journals)}")
        return [replace(e, id=next(ids)) for e in entries]

    return build
