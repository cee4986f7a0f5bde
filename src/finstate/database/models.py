"""SQLAlchemy models for finstate database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Company(Base):
    """Tenant company model."""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    functional_currency = Column(String(10), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    accounts = relationship("Account", back_populates="company", cascade="all, delete-orphan")
    periods = relationship("Period", back_populates="company", cascade="all, delete-orphan")


class Account(Base):
    """Chart-of-accounts model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    account_type = Column(String(20), nullable=False)
    classification = Column(String(20), nullable=True)
    category = Column(String, nullable=True)
    subcategory = Column(String, nullable=True)
    ifrs_reference = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Unique constraint on company_id + code
    __table_args__ = (UniqueConstraint("company_id", "code", name="uq_company_account_code"),)

    # Relationships
    company = relationship("Company", back_populates="accounts")
    entries = relationship("LedgerEntry", back_populates="account")


class LedgerEntry(Base):
    """Ledger entry model. Rows are append-only; reversals link back."""

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    amount = Column(Numeric(20, 8), nullable=False)
    currency = Column(String(10), nullable=False)
    date = Column(Date, nullable=False)
    account_type = Column(String(20), nullable=False)
    source_kind = Column(String(20), nullable=False)
    category = Column(String, nullable=True)
    linked_entry_id = Column(Integer, ForeignKey("ledger_entries.id"), nullable=True)
    journal_id = Column(String(64), nullable=True, index=True)
    description = Column(String, nullable=True)
    posted_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    account = relationship("Account", back_populates="entries")


class Period(Base):
    """Accounting period model."""

    __tablename__ = "periods"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    fiscal_year = Column(Integer, nullable=False)
    period_type = Column(String(20), nullable=False)
    is_closed = Column(Boolean, default=False, nullable=False)
    closed_at = Column(DateTime, nullable=True)
    closed_by = Column(String, nullable=True)
    parent_id = Column(Integer, ForeignKey("periods.id"), nullable=True)

    # Relationships
    company = relationship("Company", back_populates="periods")
    parent = relationship("Period", remote_side=[id], backref="children")


class CurrencyRate(Base):
    """Currency rate model, effective from a date."""

    __tablename__ = "currency_rates"

    id = Column(Integer, primary_key=True)
    code = Column(String(10), nullable=False)
    rate = Column(Numeric(24, 10), nullable=False)
    is_base = Column(Boolean, default=False, nullable=False)
    effective_date = Column(Date, nullable=False)

    __table_args__ = (UniqueConstraint("code", "effective_date", name="uq_rate_code_date"),)


class MoneyAccount(Base):
    """Bank account or wallet model."""

    __tablename__ = "money_accounts"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    kind = Column(String(10), nullable=False)
    name = Column(String, nullable=False)
    ledger_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    currencies = Column(String, nullable=False, default="")
    bank_name = Column(String, nullable=True)
    wallet_address = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class InitialBalance(Base):
    """Opening balance of an account in one currency."""

    __tablename__ = "initial_balances"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    currency = Column(String(10), nullable=False)
    amount = Column(Numeric(20, 8), nullable=False)

    __table_args__ = (UniqueConstraint("account_id", "currency", name="uq_initial_balance"),)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
