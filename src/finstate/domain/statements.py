"""Types and ledger access shared by the statement builders."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Sequence, Union

from finstate.domain.balances import balance_as_of
from finstate.domain.classifier import (
    EXPENSE_BUCKETS,
    INCOME_BUCKETS,
    AccountClassification,
    EquityComponent,
    StatementBucket,
    classify,
    equity_component,
    is_cash_account,
)
from finstate.domain.currency import RateTable, convert
from finstate.domain.entities import (
    Account,
    AccountType,
    CurrencyRate,
    DateRange,
    InitialBalance,
    LedgerEntry,
    Period,
    Severity,
    ValidationIssue,
)
from finstate.domain.errors import AccountNotFoundError, UnknownCurrencyError
from finstate.domain.money import ZERO, variance, variance_percent
from finstate.domain.normalizer import to_reporting_currency
from finstate.domain.settings import InvalidEntryPolicy, ReportSettings

logger = logging.getLogger(__name__)

PeriodLike = Union[Period, DateRange]


@dataclass(frozen=True)
class StatementLine:
    """Single statement line, with comparatives when a prior period is given."""

    label: str
    amount: Decimal
    prior_amount: Optional[Decimal] = None
    variance: Optional[Decimal] = None
    variance_percent: Optional[Decimal] = None
    account_id: Optional[int] = None
    account_code: Optional[str] = None
    ifrs_reference: Optional[str] = None


@dataclass(frozen=True)
class StatementSection:
    """Group of lines with a total."""

    title: str
    lines: tuple[StatementLine, ...]
    total: StatementLine


@dataclass(frozen=True)
class StatementMetadata:
    """Header information for a generated statement."""

    company_name: str
    currency: str
    period_start: date
    period_end: date
    accounting_standard: str
    prior_period_start: Optional[date] = None
    prior_period_end: Optional[date] = None


def as_date_range(period: PeriodLike) -> DateRange:
    if isinstance(period, Period):
        return period.date_range
    return period


def make_line(
    label: str,
    amount: Decimal,
    prior: Optional[Decimal] = None,
    account: Optional[Account] = None,
    ifrs_reference: Optional[str] = None,
) -> StatementLine:
    """Build a line; a None prior means no comparative figures."""
    return StatementLine(
        label=label,
        amount=amount,
        prior_amount=prior,
        variance=variance(amount, prior),
        variance_percent=variance_percent(amount, prior),
        account_id=account.id if account else None,
        account_code=account.code if account else None,
        ifrs_reference=ifrs_reference if ifrs_reference else (account.ifrs_reference if account else None),
    )


def account_section(
    title: str,
    accounts: Sequence[Account],
    current: Mapping[int, Decimal],
    prior: Optional[Mapping[int, Decimal]] = None,
    total_label: Optional[str] = None,
    ifrs_reference: Optional[str] = None,
) -> StatementSection:
    """Section with one line per account that has a current or prior amount."""
    lines = []
    for account in sorted(accounts, key=lambda a: a.code):
        amount = current.get(account.id, ZERO)
        prior_amount = prior.get(account.id, ZERO) if prior is not None else None
        if amount == 0 and not prior_amount:
            continue
        lines.append(make_line(account.name, amount, prior_amount, account=account))
    return _section(title, lines, prior is not None, total_label, ifrs_reference)


def labelled_section(
    title: str,
    current: Mapping[str, Decimal],
    prior: Optional[Mapping[str, Decimal]] = None,
    total_label: Optional[str] = None,
    ifrs_reference: Optional[str] = None,
) -> StatementSection:
    """Section built from label -> amount mappings, keeping current order first."""
    labels = list(current)
    if prior is not None:
        labels += [label for label in prior if label not in current]
    lines = []
    for label in labels:
        amount = current.get(label, ZERO)
        prior_amount = prior.get(label, ZERO) if prior is not None else None
        if amount == 0 and not prior_amount:
            continue
        lines.append(make_line(label, amount, prior_amount))
    return _section(title, lines, prior is not None, total_label, ifrs_reference)


def _section(
    title: str,
    lines: list[StatementLine],
    with_prior: bool,
    total_label: Optional[str],
    ifrs_reference: Optional[str],
) -> StatementSection:
    total = sum((line.amount for line in lines), ZERO)
    prior_total = sum((line.prior_amount or ZERO for line in lines), ZERO) if with_prior else None
    return StatementSection(
        title=title,
        lines=tuple(lines),
        total=make_line(total_label or f"Total {title.lower()}", total, prior_total,
                        ifrs_reference=ifrs_reference),
    )


def comparative_issue(settings: ReportSettings, prior_period: Optional[PeriodLike]) -> list[ValidationIssue]:
    """Data-quality warning when comparatives are required but missing."""
    if prior_period is not None or not settings.ifrs.comparative_period_required:
        return []
    return [
        ValidationIssue(
            severity=Severity.WARNING,
            message="No comparative period supplied",
            suggestion="Generate the statement with the prior period for comparison",
            ifrs_reference="IAS 1.38",
            rule="missing-comparative",
        )
    ]


def build_metadata(
    settings: ReportSettings, period: DateRange, prior: Optional[DateRange]
) -> StatementMetadata:
    return StatementMetadata(
        company_name=settings.company.name,
        currency=settings.reporting_currency,
        period_start=period.start,
        period_end=period.end,
        accounting_standard=settings.ifrs.accounting_standard,
        prior_period_start=prior.start if prior else None,
        prior_period_end=prior.end if prior else None,
    )


class LedgerView:
    """Read-only snapshot of a ledger expressed in the reporting currency.

    Construction converts every entry and initial balance, checks that each
    entry references a known account, and classifies every account. After
    that the view is never mutated, so builders can share one safely.

    Converted amounts are kept exact. Rounding each entry on its own would
    let a journal that balances in its own currency drift by a cent once
    converted, so only presented figures are rounded.
    """

    def __init__(
        self,
        entries: Iterable[LedgerEntry],
        accounts: Iterable[Account],
        settings: ReportSettings,
        rates: Union[RateTable, Iterable[CurrencyRate], None] = None,
        initial_balances: Iterable[InitialBalance] = (),
        cash_account_ids: Iterable[int] = (),
    ):
        self.settings = settings
        self.currency = settings.reporting_currency.upper()
        self.places = settings.ifrs.rounding_precision
        self.accounts: dict[int, Account] = {a.id: a for a in accounts}
        self.issues: list[ValidationIssue] = []
        policy = settings.invalid_entry_policy

        if rates is None:
            rates = [CurrencyRate(self.currency, Decimal("1"), is_base=True)]
        table = rates if isinstance(rates, RateTable) else RateTable(rates)

        known = []
        for entry in entries:
            if entry.account_id in self.accounts:
                known.append(entry)
                continue
            if policy == InvalidEntryPolicy.ABORT:
                raise AccountNotFoundError(entry.account_id)
            logger.warning("Excluding entry %s for unknown account %s", entry.id, entry.account_id)
            self.issues.append(
                ValidationIssue(
                    severity=Severity.WARNING,
                    message=f"Entry {entry.id} excluded: account {entry.account_id} not found",
                    suggestion="Restore the account or reverse the entry",
                    rule="orphan-entry",
                )
            )

        converted, issues = to_reporting_currency(known, self.currency, table, policy, places=None)
        self.entries: tuple[LedgerEntry, ...] = tuple(converted)
        self.issues.extend(issues)

        balances = []
        for initial in initial_balances:
            if initial.account_id not in self.accounts:
                continue
            try:
                amount = convert(initial.amount, initial.currency, self.currency, table)
            except UnknownCurrencyError:
                if policy == InvalidEntryPolicy.ABORT:
                    raise
                self.issues.append(
                    ValidationIssue(
                        severity=Severity.WARNING,
                        message=(
                            f"Initial balance of account {initial.account_id} in "
                            f"{initial.currency} excluded: no exchange rate"
                        ),
                        rule="unknown-currency",
                    )
                )
                continue
            balances.append(InitialBalance(initial.account_id, self.currency, amount))
        self.initial_balances: dict[int, Decimal] = defaultdict(lambda: ZERO)
        for initial in balances:
            self.initial_balances[initial.account_id] += initial.amount

        self.classifications: dict[int, AccountClassification] = {
            account_id: classify(account, settings.simplified_mode)
            for account_id, account in self.accounts.items()
        }
        self.cash_account_ids = frozenset(
            {i for i in cash_account_ids if i in self.accounts}
            | {a.id for a in self.accounts.values() if is_cash_account(a)}
        )

        self._by_account: dict[int, list[LedgerEntry]] = defaultdict(list)
        for entry in self.entries:
            self._by_account[entry.account_id].append(entry)

    def bucket(self, account_id: int) -> StatementBucket:
        return self.classifications[account_id].bucket

    def accounts_in(self, *buckets: StatementBucket) -> list[Account]:
        return [a for a in self.accounts.values() if self.bucket(a.id) in buckets]

    def movements(self, date_range: DateRange) -> dict[int, Decimal]:
        """Sum of entry amounts per account within the range."""
        totals: dict[int, Decimal] = defaultdict(lambda: ZERO)
        for entry in self.entries:
            if date_range.contains(entry.date):
                totals[entry.account_id] += entry.amount
        return dict(totals)

    def balance(self, account_id: int, as_of: date) -> Decimal:
        initial = InitialBalance(account_id, self.currency, self.initial_balances.get(account_id, ZERO))
        snapshot = balance_as_of(
            account_id, as_of, initial, self._by_account.get(account_id, ()), currency=self.currency
        )
        return snapshot.final_balance

    def balances(self, as_of: date) -> dict[int, Decimal]:
        """Balance of every account as of a date."""
        return {account_id: self.balance(account_id, as_of) for account_id in self.accounts}

    def cash_total(self, as_of: date) -> Decimal:
        return sum((self.balance(i, as_of) for i in self.cash_account_ids), ZERO)

    def classification_issues(self, account_ids: Iterable[int]) -> list[ValidationIssue]:
        """Fallback-classification warnings for the given accounts."""
        issues = []
        for account_id in sorted(set(account_ids)):
            issue = self.classifications[account_id].issue
            if issue is not None:
                issues.append(issue)
        return issues

    def profit(self, amounts: Mapping[int, Decimal]) -> Decimal:
        """Net income from per-account amounts, excluding OCI."""
        income = sum(
            (v for k, v in amounts.items() if self.bucket(k) in INCOME_BUCKETS), ZERO
        )
        expense = sum(
            (v for k, v in amounts.items() if self.bucket(k) in EXPENSE_BUCKETS), ZERO
        )
        return income - expense

    def other_comprehensive_income(self, amounts: Mapping[int, Decimal]) -> Decimal:
        total = ZERO
        for account_id, amount in amounts.items():
            if self.bucket(account_id) != StatementBucket.OTHER_COMPREHENSIVE_INCOME:
                continue
            if self.accounts[account_id].type == AccountType.REVENUE:
                total += amount
            else:
                total -= amount
        return total

    def opening_balance_offset(self) -> Decimal:
        """Equity implied by initial balances that have no counter entry."""
        total = ZERO
        for account_id, amount in self.initial_balances.items():
            if self.accounts[account_id].type.is_debit_normal:
                total += amount
            else:
                total -= amount
        return total

    def equity_components(self, as_of: date) -> dict[EquityComponent, Decimal]:
        """Equity as of a date split into statement-of-changes columns.

        Earnings not yet closed into an equity account sit in retained
        earnings, OCI in the OCI reserve, and the opening balance offset in
        other reserves. The components always sum to balance sheet equity.
        """
        balances = self.balances(as_of)
        components = {component: ZERO for component in EquityComponent}
        for account_id, amount in balances.items():
            account = self.accounts[account_id]
            if account.type == AccountType.EQUITY:
                components[equity_component(account)] += amount
        components[EquityComponent.RETAINED_EARNINGS] += self.profit(balances)
        components[EquityComponent.OCI_RESERVE] += self.other_comprehensive_income(balances)
        components[EquityComponent.OTHER_RESERVES] += self.opening_balance_offset()
        return components
