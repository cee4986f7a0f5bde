"""Domain model entities for finstate.

These are pure data classes representing bookkeeping concepts, independent of
database schema. Statement generation only ever sees these immutable values,
never ORM objects.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from finstate.domain.money import quantize

T = TypeVar("T")


class AccountType(str, Enum):
    """Chart-of-accounts type."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @property
    def is_debit_normal(self) -> bool:
        """True when a debit increases the account's balance."""
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class Classification(str, Enum):
    """IFRS current/non-current split for balance sheet accounts."""

    CURRENT = "current"
    NON_CURRENT = "non_current"
    NOT_APPLICABLE = "n/a"


class SourceKind(str, Enum):
    """Where a ledger entry came from."""

    MANUAL = "manual"
    TRANSACTION = "transaction"
    INVOICE_PAYMENT = "invoice_payment"


class PeriodType(str, Enum):
    """Accounting period granularity."""

    ANNUAL = "Annual"
    INTERIM = "Interim"
    QUARTERLY = "Quarterly"
    MONTHLY = "Monthly"
    CUSTOM = "Custom"


class MoneyAccountKind(str, Enum):
    """Discriminator for bank accounts and wallets."""

    BANK = "bank"
    WALLET = "wallet"


class Severity(str, Enum):
    """Validation issue severity."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, other: "DateRange") -> bool:
        return self.start <= other.end and other.start <= self.end


@dataclass(frozen=True)
class Company:
    """Tenant company; every account, entry and period belongs to one."""

    id: int
    name: str
    functional_currency: str
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Chart-of-accounts entry."""

    id: int
    code: str
    name: str
    type: AccountType
    classification: Optional[Classification] = None
    is_active: bool = True
    category: Optional[str] = None
    subcategory: Optional[str] = None
    company_id: Optional[int] = None
    ifrs_reference: Optional[str] = None


@dataclass(frozen=True)
class LedgerEntry:
    """Normalized ledger movement.

    ``amount`` is signed in the account's normal balance direction: a
    positive amount increases the balance of the account (debit for assets
    and expenses, credit for liabilities, equity and revenue). Entries that
    have not been persisted yet carry ``id=None``.
    """

    id: Optional[int]
    account_id: int
    amount: Decimal
    currency: str
    date: date
    account_type: AccountType
    source_kind: SourceKind = SourceKind.MANUAL
    category: Optional[str] = None
    linked_entry_id: Optional[int] = None
    journal_id: Optional[str] = None
    description: Optional[str] = None
    company_id: Optional[int] = None

    @property
    def debit_amount(self) -> Decimal:
        """Amount expressed as a debit (negative means a credit)."""
        return self.amount if self.account_type.is_debit_normal else -self.amount


@dataclass(frozen=True)
class Period:
    """Accounting period."""

    id: int
    name: str
    start_date: date
    end_date: date
    fiscal_year: int
    period_type: PeriodType
    is_closed: bool = False
    closed_at: Optional[datetime] = None
    closed_by: Optional[str] = None
    parent_id: Optional[int] = None
    company_id: Optional[int] = None

    @property
    def date_range(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class CurrencyRate:
    """Rate of one currency expressed in base-currency units per unit."""

    code: str
    rate: Decimal
    is_base: bool = False
    effective_date: Optional[date] = None


@dataclass(frozen=True)
class InitialBalance:
    """Opening balance of an account in one currency."""

    account_id: int
    currency: str
    amount: Decimal


@dataclass(frozen=True)
class MoneyAccount:
    """Bank account or wallet, discriminated by ``kind``.

    The kind is decided when the record is loaded and never re-derived from
    which optional fields happen to be populated.
    """

    id: int
    kind: MoneyAccountKind
    name: str
    ledger_account_id: int
    currencies: tuple[str, ...]
    company_id: Optional[int] = None
    bank_name: Optional[str] = None
    wallet_address: Optional[str] = None


@dataclass(frozen=True)
class BalanceSnapshot:
    """Balance of one account in one currency as of a date."""

    account_id: int
    as_of_date: date
    initial_balance: Decimal
    movements_sum: Decimal
    final_balance: Decimal
    currency: str


@dataclass(frozen=True)
class ValidationIssue:
    """Finding attached to a generated statement."""

    severity: Severity
    message: str
    suggestion: Optional[str] = None
    ifrs_reference: Optional[str] = None
    rule: Optional[str] = None


@dataclass(frozen=True)
class StatementResult(Generic[T]):
    """Statement data together with its validation findings."""

    data: Optional[T]
    validation: tuple[ValidationIssue, ...] = ()
    available: bool = True

    @property
    def errors(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.validation if i.severity == Severity.ERROR)

    @property
    def warnings(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.validation if i.severity == Severity.WARNING)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self, places: Optional[int] = None) -> dict[str, Any]:
        """JSON-safe form; ``places`` rounds every amount for presentation."""
        return {
            "available": self.available,
            "data": to_jsonable(self.data, places),
            "validation": [to_jsonable(issue) for issue in self.validation],
        }


@dataclass(frozen=True)
class StatementUnavailable(StatementResult):
    """Result for a statement that cannot be produced for this tenant."""

    data: None = None
    validation: tuple[ValidationIssue, ...] = field(default=())
    available: bool = False

    @classmethod
    def because(cls, reason: str, suggestion: Optional[str] = None) -> "StatementUnavailable":
        return cls(
            validation=(ValidationIssue(Severity.INFO, reason, suggestion, rule="unavailable"),)
        )


def to_jsonable(value: Any, places: Optional[int] = None) -> Any:
    """Convert domain values into JSON-safe structures.

    Decimals become strings so no precision is lost, rounded to ``places``
    when given. Dates become ISO strings and enums their values.
    """
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value if places is None else quantize(value, places))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name), places) for f in fields(value)}
    if isinstance(value, dict):
        return {str(to_jsonable(k)): to_jsonable(v, places) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v, places) for v in value]
    raise TypeError(f"Cannot serialize {type(value).__name__}")
