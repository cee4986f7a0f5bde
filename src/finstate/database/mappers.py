"""Mapper functions to convert between domain models and SQLAlchemy models.

Statement generation works on frozen domain values only, so every query
result passes through one of these functions before leaving the database
layer. Numeric columns come back as Decimal and are kept that way.
"""

from finstate.domain import entities as domain
from finstate.database.models import (
    Account as ORMAccount,
    Company as ORMCompany,
    CurrencyRate as ORMCurrencyRate,
    InitialBalance as ORMInitialBalance,
    LedgerEntry as ORMLedgerEntry,
    MoneyAccount as ORMMoneyAccount,
    Period as ORMPeriod,
)


def split_currencies(value: str) -> tuple[str, ...]:
    """Split the stored comma-separated currency list."""
    return tuple(code for code in (part.strip() for part in (value or "").split(",")) if code)


def join_currencies(codes) -> str:
    """Store currency codes as an upper-case comma-separated list."""
    return ",".join(code.strip().upper() for code in codes if code.strip())


def company_to_domain(orm_company: ORMCompany) -> domain.Company:
    """Convert SQLAlchemy Company model to domain Company entity."""
    return domain.Company(
        id=orm_company.id,
        name=orm_company.name,
        functional_currency=orm_company.functional_currency,
        created_at=orm_company.created_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        code=orm_account.code,
        name=orm_account.name,
        type=domain.AccountType(orm_account.account_type),
        classification=(
            domain.Classification(orm_account.classification)
            if orm_account.classification
            else None
        ),
        is_active=orm_account.is_active,
        category=orm_account.category,
        subcategory=orm_account.subcategory,
        company_id=orm_account.company_id,
        ifrs_reference=orm_account.ifrs_reference,
    )


def ledger_entry_to_domain(orm_entry: ORMLedgerEntry) -> domain.LedgerEntry:
    """Convert SQLAlchemy LedgerEntry model to domain LedgerEntry entity."""
    return domain.LedgerEntry(
        id=orm_entry.id,
        account_id=orm_entry.account_id,
        amount=orm_entry.amount,
        currency=orm_entry.currency,
        date=orm_entry.date,
        account_type=domain.AccountType(orm_entry.account_type),
        source_kind=domain.SourceKind(orm_entry.source_kind),
        category=orm_entry.category,
        linked_entry_id=orm_entry.linked_entry_id,
        journal_id=orm_entry.journal_id,
        description=orm_entry.description,
        company_id=orm_entry.company_id,
    )


def period_to_domain(orm_period: ORMPeriod) -> domain.Period:
    """Convert SQLAlchemy Period model to domain Period entity."""
    return domain.Period(
        id=orm_period.id,
        name=orm_period.name,
        start_date=orm_period.start_date,
        end_date=orm_period.end_date,
        fiscal_year=orm_period.fiscal_year,
        period_type=domain.PeriodType(orm_period.period_type),
        is_closed=orm_period.is_closed,
        closed_at=orm_period.closed_at,
        closed_by=orm_period.closed_by,
        parent_id=orm_period.parent_id,
        company_id=orm_period.company_id,
    )


def currency_rate_to_domain(orm_rate: ORMCurrencyRate) -> domain.CurrencyRate:
    """Convert SQLAlchemy CurrencyRate model to domain CurrencyRate entity."""
    return domain.CurrencyRate(
        code=orm_rate.code,
        rate=orm_rate.rate,
        is_base=orm_rate.is_base,
        effective_date=orm_rate.effective_date,
    )


def money_account_to_domain(orm_account: ORMMoneyAccount) -> domain.MoneyAccount:
    """Convert SQLAlchemy MoneyAccount model to domain MoneyAccount entity."""
    return domain.MoneyAccount(
        id=orm_account.id,
        kind=domain.MoneyAccountKind(orm_account.kind),
        name=orm_account.name,
        ledger_account_id=orm_account.ledger_account_id,
        currencies=split_currencies(orm_account.currencies),
        company_id=orm_account.company_id,
        bank_name=orm_account.bank_name,
        wallet_address=orm_account.wallet_address,
    )


def initial_balance_to_domain(orm_balance: ORMInitialBalance) -> domain.InitialBalance:
    """Convert SQLAlchemy InitialBalance model to domain InitialBalance entity."""
    return domain.InitialBalance(
        account_id=orm_balance.account_id,
        currency=orm_balance.currency,
        amount=orm_balance.amount,
    )
