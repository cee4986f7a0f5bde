"""Map chart-of-accounts entries to statement buckets.

Classification uses static lookup tables keyed by the account's IFRS
subcategory or category. An explicit current/non-current classification on
the account always wins. Balance sheet accounts that match nothing are
treated as non-current and flagged with a warning.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from finstate.domain.entities import (
    Account,
    AccountType,
    Classification,
    Severity,
    ValidationIssue,
)


class StatementBucket(str, Enum):
    """Statement line group an account rolls up into."""

    REVENUE = "revenue"
    OTHER_INCOME = "other_income"
    OTHER_COMPREHENSIVE_INCOME = "other_comprehensive_income"
    COGS = "cogs"
    OPERATING_EXPENSE = "operating_expense"
    OTHER_EXPENSE = "other_expense"
    TAX = "tax"
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"


class EquityComponent(str, Enum):
    """Column of the statement of changes in equity."""

    SHARE_CAPITAL = "share_capital"
    RETAINED_EARNINGS = "retained_earnings"
    OCI_RESERVE = "oci_reserve"
    OTHER_RESERVES = "other_reserves"


INCOME_BUCKETS = frozenset(
    {StatementBucket.REVENUE, StatementBucket.OTHER_INCOME}
)
EXPENSE_BUCKETS = frozenset(
    {
        StatementBucket.COGS,
        StatementBucket.OPERATING_EXPENSE,
        StatementBucket.OTHER_EXPENSE,
        StatementBucket.TAX,
    }
)

OTHER_INCOME_CATEGORIES = frozenset(
    {"interest income", "investment returns", "other income", "gain on disposal", "dividend income"}
)
OCI_CATEGORIES = frozenset(
    {
        "other comprehensive income",
        "revaluation surplus",
        "foreign currency translation",
        "cash flow hedges",
        "actuarial gains and losses",
    }
)
COGS_CATEGORIES = frozenset(
    {"cogs", "cost of goods sold", "cost of sales", "cost of service", "cost of services"}
)
TAX_CATEGORIES = frozenset({"taxes", "tax", "income tax", "corporate tax", "tax expense"})
OTHER_EXPENSE_CATEGORIES = frozenset(
    {
        "interest expense",
        "debt payments",
        "travel and entertainment",
        "inventory costs",
        "finance costs",
        "loss on disposal",
        "other",
    }
)

CURRENT_ASSET_CATEGORIES = frozenset(
    {
        "cash and cash equivalents",
        "short-term investments",
        "trade receivables",
        "accounts receivable",
        "inventory",
        "prepaid expenses",
        "other current assets",
    }
)
NON_CURRENT_ASSET_CATEGORIES = frozenset(
    {
        "property, plant and equipment",
        "intangible assets",
        "goodwill",
        "long-term investments",
        "right-of-use assets",
        "deferred tax assets",
        "accumulated depreciation",
        "other non-current assets",
    }
)
CURRENT_LIABILITY_CATEGORIES = frozenset(
    {
        "trade payables",
        "accounts payable",
        "short-term borrowings",
        "accrued expenses",
        "current tax payable",
        "deferred revenue",
        "other current liabilities",
    }
)
NON_CURRENT_LIABILITY_CATEGORIES = frozenset(
    {
        "long-term borrowings",
        "lease liabilities",
        "deferred tax liabilities",
        "provisions",
        "other non-current liabilities",
    }
)

CURRENT_ASSET_KEYWORDS = ("cash", "bank", "receivable", "inventory", "prepaid", "current")
CURRENT_LIABILITY_KEYWORDS = ("payable", "accrued", "current", "short-term")
NON_CURRENT_KEYWORDS = ("non-current", "noncurrent", "long-term")

CASH_CATEGORIES = frozenset({"cash and cash equivalents", "cash", "bank"})
BORROWING_CATEGORIES = frozenset({"short-term borrowings", "long-term borrowings", "lease liabilities"})
BORROWING_KEYWORDS = ("loan", "borrowing", "bond", "debt", "credit line", "mortgage")
DEPRECIATION_CATEGORIES = frozenset(
    {"depreciation", "amortization", "amortisation", "depreciation and amortization"}
)
ACCUMULATED_DEPRECIATION_CATEGORIES = frozenset(
    {"accumulated depreciation", "accumulated amortization", "accumulated amortisation"}
)
DIVIDEND_KEYWORDS = ("dividend", "distribution", "drawings")
SHARE_CAPITAL_KEYWORDS = ("share capital", "common stock", "share premium", "capital", "stock")
OCI_RESERVE_KEYWORDS = ("revaluation", "translation", "comprehensive", "hedg")


@dataclass(frozen=True)
class AccountClassification:
    """Outcome of classifying one account."""

    bucket: StatementBucket
    classification: Classification
    issue: Optional[ValidationIssue] = None


def _key(value: Optional[str]) -> str:
    return value.strip().lower() if value else ""


def _labels(account: Account) -> tuple[str, str]:
    return _key(account.subcategory), _key(account.category)


def _in_table(account: Account, table: frozenset) -> bool:
    return any(label in table for label in _labels(account) if label)


def classify(account: Account, simplified_mode: bool = False) -> AccountClassification:
    """Classify an account into a statement bucket and current/non-current split.

    Args:
        account: Chart-of-accounts entry
        simplified_mode: Tenant uses the legacy two-category Income/Expense
            model, so every income account is revenue and every expense
            account an operating expense

    Returns:
        AccountClassification, carrying a warning issue when a balance sheet
        account fell back to non-current
    """
    if account.type == AccountType.REVENUE:
        if simplified_mode:
            bucket = StatementBucket.REVENUE
        elif _in_table(account, OCI_CATEGORIES):
            bucket = StatementBucket.OTHER_COMPREHENSIVE_INCOME
        elif _in_table(account, OTHER_INCOME_CATEGORIES):
            bucket = StatementBucket.OTHER_INCOME
        else:
            bucket = StatementBucket.REVENUE
        return AccountClassification(bucket, Classification.NOT_APPLICABLE)

    if account.type == AccountType.EXPENSE:
        if simplified_mode:
            bucket = StatementBucket.OPERATING_EXPENSE
        elif _in_table(account, OCI_CATEGORIES):
            bucket = StatementBucket.OTHER_COMPREHENSIVE_INCOME
        elif _in_table(account, COGS_CATEGORIES):
            bucket = StatementBucket.COGS
        elif _in_table(account, TAX_CATEGORIES):
            bucket = StatementBucket.TAX
        elif _in_table(account, OTHER_EXPENSE_CATEGORIES):
            bucket = StatementBucket.OTHER_EXPENSE
        else:
            bucket = StatementBucket.OPERATING_EXPENSE
        return AccountClassification(bucket, Classification.NOT_APPLICABLE)

    if account.type == AccountType.EQUITY:
        return AccountClassification(StatementBucket.EQUITY, Classification.NOT_APPLICABLE)

    if account.type == AccountType.ASSET:
        bucket = StatementBucket.ASSET
        current_table, non_current_table = CURRENT_ASSET_CATEGORIES, NON_CURRENT_ASSET_CATEGORIES
        keywords = CURRENT_ASSET_KEYWORDS
    else:
        bucket = StatementBucket.LIABILITY
        current_table, non_current_table = (
            CURRENT_LIABILITY_CATEGORIES,
            NON_CURRENT_LIABILITY_CATEGORIES,
        )
        keywords = CURRENT_LIABILITY_KEYWORDS

    if account.classification in (Classification.CURRENT, Classification.NON_CURRENT):
        return AccountClassification(bucket, account.classification)
    if _in_table(account, current_table):
        return AccountClassification(bucket, Classification.CURRENT)
    if _in_table(account, non_current_table):
        return AccountClassification(bucket, Classification.NON_CURRENT)

    name = _key(account.name)
    if any(word in name for word in NON_CURRENT_KEYWORDS):
        return AccountClassification(bucket, Classification.NON_CURRENT)
    if any(word in name for word in keywords):
        return AccountClassification(bucket, Classification.CURRENT)

    issue = ValidationIssue(
        severity=Severity.WARNING,
        message=(
            f"Account {account.code} '{account.name}' has no recognised current/non-current "
            "classification; presented as non-current"
        ),
        suggestion="Set the account's classification or IFRS subcategory",
        ifrs_reference="IAS 1.60",
        rule="classification-fallback",
    )
    return AccountClassification(bucket, Classification.NON_CURRENT, issue)


def is_cash_account(account: Account) -> bool:
    """True for asset accounts holding cash or cash equivalents."""
    if account.type != AccountType.ASSET:
        return False
    if _in_table(account, CASH_CATEGORIES):
        return True
    name = _key(account.name)
    return "cash" in name or "bank" in name


def is_borrowing_account(account: Account) -> bool:
    if account.type != AccountType.LIABILITY:
        return False
    if _in_table(account, BORROWING_CATEGORIES):
        return True
    name = _key(account.name)
    return any(word in name for word in BORROWING_KEYWORDS)


def is_depreciation_account(account: Account) -> bool:
    if account.type != AccountType.EXPENSE:
        return False
    if _in_table(account, DEPRECIATION_CATEGORIES):
        return True
    name = _key(account.name)
    return "depreciation" in name or "amortization" in name or "amortisation" in name


def is_contra_depreciation_account(account: Account) -> bool:
    """True for accumulated depreciation/amortisation asset accounts."""
    if account.type != AccountType.ASSET:
        return False
    if _in_table(account, ACCUMULATED_DEPRECIATION_CATEGORIES):
        return True
    return "accumulated" in _key(account.name)


def is_dividend_account(account: Account) -> bool:
    if account.type != AccountType.EQUITY:
        return False
    text = " ".join(label for label in (*_labels(account), _key(account.name)) if label)
    return any(word in text for word in DIVIDEND_KEYWORDS)


def equity_component(account: Account) -> EquityComponent:
    """Return the equity statement column an equity account belongs to."""
    text = " ".join(label for label in (*_labels(account), _key(account.name)) if label)
    if "retained" in text or is_dividend_account(account):
        return EquityComponent.RETAINED_EARNINGS
    if any(word in text for word in OCI_RESERVE_KEYWORDS):
        return EquityComponent.OCI_RESERVE
    if any(word in text for word in SHARE_CAPITAL_KEYWORDS):
        return EquityComponent.SHARE_CAPITAL
    return EquityComponent.OTHER_RESERVES
