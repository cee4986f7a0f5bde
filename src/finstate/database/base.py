"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

# Import entities directly to avoid circular import through domain services
from finstate.domain.entities import (
    Account,
    AccountType,
    Classification,
    Company,
    CurrencyRate,
    InitialBalance,
    LedgerEntry,
    MoneyAccount,
    MoneyAccountKind,
    Period,
    PeriodType,
)


class Database(ABC):
    """Abstract database interface for finstate."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Company operations
    @abstractmethod
    def create_company(self, name: str, functional_currency: str) -> int:
        """Create a company. Returns company ID."""
        pass

    @abstractmethod
    def get_company(self, company_id: int) -> Optional[Company]:
        """Get company by ID."""
        pass

    @abstractmethod
    def get_company_by_name(self, name: str) -> Optional[Company]:
        """Get company by name."""
        pass

    @abstractmethod
    def list_companies(self) -> list[Company]:
        """List all companies."""
        pass

    # Chart of accounts operations
    @abstractmethod
    def create_account(
        self,
        company_id: int,
        code: str,
        name: str,
        account_type: AccountType,
        classification: Optional[Classification] = None,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        ifrs_reference: Optional[str] = None,
    ) -> int:
        """Create a chart-of-accounts entry. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_code(self, company_id: int, code: str) -> Optional[Account]:
        """Get account by its code within a company."""
        pass

    @abstractmethod
    def list_accounts(self, company_id: int, include_inactive: bool = False) -> list[Account]:
        """List a company's accounts ordered by code."""
        pass

    @abstractmethod
    def set_account_active(self, account_id: int, is_active: bool) -> None:
        """Activate or deactivate an account."""
        pass

    # Ledger operations
    @abstractmethod
    def add_ledger_entries(self, entries: Sequence[LedgerEntry]) -> list[int]:
        """Persist entries in one transaction. Returns IDs in input order."""
        pass

    @abstractmethod
    def get_ledger_entry(self, entry_id: int) -> Optional[LedgerEntry]:
        """Get ledger entry by ID."""
        pass

    @abstractmethod
    def get_entries(
        self,
        company_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
    ) -> list[LedgerEntry]:
        """Get a company's entries in a date range, ordered by date then ID."""
        pass

    @abstractmethod
    def get_journal_entries(self, journal_id: str) -> list[LedgerEntry]:
        """Get every entry posted with a journal ID."""
        pass

    @abstractmethod
    def get_reversals(self, entry_id: int) -> list[LedgerEntry]:
        """Get entries that reverse the given entry."""
        pass

    # Period operations
    @abstractmethod
    def create_period(
        self,
        company_id: int,
        name: str,
        start_date: date,
        end_date: date,
        fiscal_year: int,
        period_type: PeriodType,
        parent_id: Optional[int] = None,
    ) -> int:
        """Create an accounting period. Returns period ID."""
        pass

    @abstractmethod
    def get_period(self, period_id: int) -> Optional[Period]:
        """Get period by ID."""
        pass

    @abstractmethod
    def list_periods(
        self, company_id: int, fiscal_year: Optional[int] = None
    ) -> list[Period]:
        """List a company's periods ordered by start date."""
        pass

    @abstractmethod
    def close_period(
        self, period_id: int, closed_at: datetime, closed_by: Optional[str] = None
    ) -> None:
        """Mark a period closed."""
        pass

    @abstractmethod
    def reopen_period(self, period_id: int) -> None:
        """Mark a period open again."""
        pass

    # Currency rate operations
    @abstractmethod
    def add_rate(
        self, code: str, rate: Decimal, is_base: bool, effective_date: date
    ) -> int:
        """Record a currency rate effective from a date. Returns rate ID."""
        pass

    @abstractmethod
    def get_rates(self, as_of: Optional[date] = None) -> list[CurrencyRate]:
        """Latest rate per currency effective on or before ``as_of``."""
        pass

    @abstractmethod
    def list_rate_history(self, code: Optional[str] = None) -> list[CurrencyRate]:
        """Every stored rate, optionally for one currency, newest first."""
        pass

    # Bank account and wallet operations
    @abstractmethod
    def create_money_account(
        self,
        company_id: int,
        kind: MoneyAccountKind,
        name: str,
        ledger_account_id: int,
        currencies: Sequence[str],
        bank_name: Optional[str] = None,
        wallet_address: Optional[str] = None,
    ) -> int:
        """Create a bank account or wallet. Returns its ID."""
        pass

    @abstractmethod
    def get_money_account(self, money_account_id: int) -> Optional[MoneyAccount]:
        """Get bank account or wallet by ID."""
        pass

    @abstractmethod
    def list_money_accounts(self, company_id: int) -> list[MoneyAccount]:
        """List a company's bank accounts and wallets."""
        pass

    # Initial balance operations
    @abstractmethod
    def set_initial_balance(self, account_id: int, currency: str, amount: Decimal) -> None:
        """Create or replace an account's initial balance in one currency."""
        pass

    @abstractmethod
    def list_initial_balances(self, company_id: int) -> list[InitialBalance]:
        """List initial balances of a company's accounts."""
        pass
