"""Shared domain error messages and error types."""

from datetime import date
from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class PeriodOverlapError(ConflictError):
    """A period overlaps another period of the same type and fiscal year."""


class InputError(DomainError):
    """Statement inputs cannot be used; generation aborts with no partial result."""


class InvalidRangeError(InputError):
    """Missing or inverted date range, or an unknown period selector."""


class UnknownCurrencyError(InputError):
    """A referenced currency has no rate in the rate table."""

    def __init__(self, code: str):
        super().__init__(unknown_currency(code))
        self.code = code


class RateTableError(InputError):
    """Rate table does not declare exactly one base currency with rate 1."""


class AccountNotFoundError(InputError):
    """A ledger entry references an account that does not exist."""

    def __init__(self, account_id: int):
        super().__init__(account_not_found(account_id))
        self.account_id = account_id


class ClosedPeriodError(InputError):
    """An entry falls inside a closed accounting period."""


class UnbalancedEntryError(InputError):
    """Journal lines whose debits and credits do not match."""


class MixedCurrencyError(InputError):
    """A single balance was requested over entries in several currencies."""


class ReconciliationError(DomainError):
    """Generated statements carry error-severity validation issues.

    Never raised by statement generation itself. Callers that want to block
    publishing or export raise it from the returned bundle.
    """

    def __init__(self, issues):
        self.issues = tuple(issues)
        messages = "; ".join(issue.message for issue in self.issues)
        super().__init__(f"Statements failed validation: {messages}")


class GenerationCancelled(Exception):
    """Statement generation was cancelled before the bundle was complete."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def company_not_found(company_id: int) -> str:
    """Return message for missing company."""
    return f"Company {company_id} not found"


def period_not_found(period_id: int) -> str:
    """Return message for missing period."""
    return f"Period {period_id} not found"


def entry_not_found(entry_id: int) -> str:
    """Return message for missing ledger entry."""
    return f"Ledger entry {entry_id} not found"


def money_account_not_found(money_account_id: int) -> str:
    """Return message for missing bank account or wallet."""
    return f"Bank account or wallet {money_account_id} not found"


def unknown_currency(code: str) -> str:
    """Return message for a currency missing from the rate table."""
    return f"No exchange rate for currency '{code}'"


def period_closed(period_name: str, day: date) -> str:
    """Return message for an entry dated inside a closed period."""
    return (
        f"Period '{period_name}' is closed; cannot post entries dated {day.isoformat()}. "
        "Reopen the period or post a reversal in an open period."
    )


def unbalanced_journal(debits: Decimal, credits: Decimal) -> str:
    """Return message for journal lines that do not balance."""
    return (
        f"Journal is not balanced: debits {debits} != credits {credits} "
        f"(difference {debits - credits})"
    )
