"""Statement of cash flows, indirect or direct method."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from finstate.domain.classifier import (
    INCOME_BUCKETS,
    StatementBucket,
    is_borrowing_account,
    is_contra_depreciation_account,
)
from finstate.domain.entities import (
    Account,
    AccountType,
    Classification,
    CurrencyRate,
    DateRange,
    InitialBalance,
    LedgerEntry,
    Severity,
    StatementResult,
    StatementUnavailable,
    ValidationIssue,
)
from finstate.domain.money import ZERO, quantize, within_tolerance
from finstate.domain.period_resolver import day_before
from finstate.domain.settings import CashFlowMethod, ReportSettings
from finstate.domain.statements import (
    LedgerView,
    PeriodLike,
    StatementLine,
    StatementMetadata,
    StatementSection,
    as_date_range,
    build_metadata,
    comparative_issue,
    labelled_section,
    make_line,
)

logger = logging.getLogger(__name__)

NET_INCOME_LABEL = "Net income"
DEPRECIATION_LABEL = "Depreciation and amortisation"
OCI_LABEL = "Other comprehensive income items"
UNALLOCATED_LABEL = "Unallocated cash movements"


class _Activity:
    OPERATING = "operating"
    INVESTING = "investing"
    FINANCING = "financing"


@dataclass(frozen=True)
class CashFlowStatement:
    """Cash movements for a period grouped by activity."""

    metadata: StatementMetadata
    method: CashFlowMethod
    starting_point: Optional[Decimal]
    operating: StatementSection
    investing: StatementSection
    financing: StatementSection
    net_change: StatementLine
    opening_cash: Decimal
    closing_cash: Decimal
    closing_cash_per_ledger: Decimal

    @property
    def difference(self) -> Decimal:
        return self.closing_cash - self.closing_cash_per_ledger


def _activity(view: LedgerView, account: Account) -> str:
    """Activity a non-cash balance sheet account's movements belong to."""
    classification = view.classifications[account.id].classification
    if account.type == AccountType.EQUITY:
        return _Activity.FINANCING
    if account.type == AccountType.LIABILITY:
        if is_borrowing_account(account) or classification == Classification.NON_CURRENT:
            return _Activity.FINANCING
        return _Activity.OPERATING
    if classification == Classification.NON_CURRENT:
        return _Activity.INVESTING
    return _Activity.OPERATING


def _indirect(view: LedgerView, date_range: DateRange) -> tuple[Decimal, dict[str, dict[str, Decimal]]]:
    """Reconcile net income to the change in cash.

    Every non-cash account's movement in the period is placed in exactly one
    line, so for a balanced ledger the three sections sum to the change in
    cash.
    """
    movements = view.movements(date_range)
    net_income = view.profit(movements)
    sections: dict[str, dict[str, Decimal]] = {
        _Activity.OPERATING: {
            NET_INCOME_LABEL: net_income,
            DEPRECIATION_LABEL: ZERO,
            OCI_LABEL: view.other_comprehensive_income(movements),
        },
        _Activity.INVESTING: {},
        _Activity.FINANCING: {},
    }
    operating = sections[_Activity.OPERATING]

    depreciation = ZERO
    for account in sorted(view.accounts.values(), key=lambda a: a.code):
        amount = movements.get(account.id, ZERO)
        if amount == 0 or account.id in view.cash_account_ids:
            continue
        if account.type in (AccountType.REVENUE, AccountType.EXPENSE):
            continue
        if is_contra_depreciation_account(account):
            depreciation -= amount
            continue
        activity = _activity(view, account)
        if account.type == AccountType.ASSET:
            label = (
                f"(Increase)/decrease in {account.name}"
                if activity == _Activity.OPERATING
                else f"Purchase/disposal of {account.name}"
            )
            sections[activity][label] = sections[activity].get(label, ZERO) - amount
        else:
            label = (
                f"Increase/(decrease) in {account.name}"
                if activity == _Activity.OPERATING
                else account.name
            )
            sections[activity][label] = sections[activity].get(label, ZERO) + amount

    operating[DEPRECIATION_LABEL] = depreciation
    return net_income, sections


def _direct_label(view: LedgerView, account: Account) -> tuple[str, str]:
    bucket = view.bucket(account.id)
    if bucket in INCOME_BUCKETS:
        return _Activity.OPERATING, "Receipts from customers"
    if bucket == StatementBucket.TAX:
        return _Activity.OPERATING, "Income taxes paid"
    if bucket == StatementBucket.OTHER_COMPREHENSIVE_INCOME:
        return _Activity.OPERATING, "Other operating cash flows"
    if account.type == AccountType.EXPENSE:
        return _Activity.OPERATING, "Payments to suppliers and employees"
    activity = _activity(view, account)
    if account.type == AccountType.ASSET:
        if activity == _Activity.OPERATING:
            return activity, "Receipts from customers"
        return activity, "Acquisition and disposal of non-current assets"
    if account.type == AccountType.LIABILITY:
        if activity == _Activity.OPERATING:
            return activity, "Payments to suppliers and employees"
        return activity, "Proceeds from and repayments of borrowings"
    return _Activity.FINANCING, "Equity contributions and distributions"


def _direct(view: LedgerView, date_range: DateRange) -> dict[str, dict[str, Decimal]]:
    """Attribute each journal's cash movement to its counter accounts."""
    journals: dict[str, list[LedgerEntry]] = defaultdict(list)
    for index, entry in enumerate(view.entries):
        if date_range.contains(entry.date):
            key = entry.journal_id or f"entry-{entry.id if entry.id is not None else index}"
            journals[key].append(entry)

    sections: dict[str, dict[str, Decimal]] = {
        _Activity.OPERATING: defaultdict(lambda: ZERO),
        _Activity.INVESTING: defaultdict(lambda: ZERO),
        _Activity.FINANCING: defaultdict(lambda: ZERO),
    }
    for key in sorted(journals):
        lines = journals[key]
        cash = sum((e.amount for e in lines if e.account_id in view.cash_account_ids), ZERO)
        if cash == 0:
            continue
        allocated = ZERO
        for entry in lines:
            if entry.account_id in view.cash_account_ids:
                continue
            activity, label = _direct_label(view, view.accounts[entry.account_id])
            inflow = -entry.debit_amount
            sections[activity][label] += inflow
            allocated += inflow
        if allocated != cash:
            sections[_Activity.OPERATING][UNALLOCATED_LABEL] += cash - allocated
    return {name: dict(values) for name, values in sections.items()}


def build_cash_flow(
    period: PeriodLike,
    entries: Iterable[LedgerEntry],
    accounts: Iterable[Account],
    settings: ReportSettings,
    prior_period: Optional[PeriodLike] = None,
    rates: Optional[Iterable[CurrencyRate]] = None,
    initial_balances: Iterable[InitialBalance] = (),
    cash_account_ids: Iterable[int] = (),
) -> StatementResult[CashFlowStatement]:
    """Build the cash flow statement for a period.

    Opening cash is the aggregated cash balance on the day before the
    period starts. The statement's closing cash (opening plus net change)
    is compared with the aggregated cash balance at period end; a mismatch
    is reported as an error issue, never adjusted.

    Args:
        cash_account_ids: Ledger accounts backing bank accounts and wallets;
            accounts classified as cash are added automatically

    Returns:
        StatementResult, or StatementUnavailable in simplified mode
    """
    if settings.simplified_mode:
        return StatementUnavailable.because(
            "Cash flow statement is not available in simplified mode",
            suggestion="Set up a chart of accounts with cash and balance sheet accounts",
        )

    method = settings.ifrs.cash_flow_method
    date_range = as_date_range(period)
    prior_range = as_date_range(prior_period) if prior_period is not None else None
    view = LedgerView(entries, accounts, settings, rates, initial_balances, cash_account_ids)

    def figures(rng: DateRange) -> tuple[Optional[Decimal], dict[str, dict[str, Decimal]]]:
        if method == CashFlowMethod.DIRECT:
            return None, _direct(view, rng)
        return _indirect(view, rng)

    starting_point, current = figures(date_range)
    prior = figures(prior_range)[1] if prior_range is not None else None

    def section(title: str, activity: str, ifrs_reference: str) -> StatementSection:
        return labelled_section(
            title,
            current[activity],
            prior[activity] if prior is not None else None,
            total_label=f"Net cash from {activity} activities",
            ifrs_reference=ifrs_reference,
        )

    operating = section("Operating activities", _Activity.OPERATING, "IAS 7.18")
    investing = section("Investing activities", _Activity.INVESTING, "IAS 7.16")
    financing = section("Financing activities", _Activity.FINANCING, "IAS 7.17")
    totals = [operating.total, investing.total, financing.total]
    net_change = make_line(
        "Net change in cash",
        sum((t.amount for t in totals), ZERO),
        sum((t.prior_amount or ZERO for t in totals), ZERO) if prior is not None else None,
    )

    opening_cash = view.cash_total(day_before(date_range.start))
    closing_cash = opening_cash + net_change.amount
    closing_per_ledger = view.cash_total(date_range.end)

    statement = CashFlowStatement(
        metadata=build_metadata(settings, date_range, prior_range),
        method=method,
        starting_point=starting_point,
        operating=operating,
        investing=investing,
        financing=financing,
        net_change=net_change,
        opening_cash=opening_cash,
        closing_cash=closing_cash,
        closing_cash_per_ledger=closing_per_ledger,
    )

    issues = list(view.issues)
    issues.extend(comparative_issue(settings, prior_period))
    if not view.cash_account_ids:
        issues.append(
            ValidationIssue(
                severity=Severity.WARNING,
                message="No cash accounts found; cash flows cannot be measured",
                suggestion="Link bank accounts and wallets to ledger accounts",
                ifrs_reference="IAS 7.45",
                rule="no-cash-accounts",
            )
        )
    for account_id in sorted(view.cash_account_ids):
        balance = view.balance(account_id, date_range.end)
        if balance < 0:
            issues.append(
                ValidationIssue(
                    severity=Severity.WARNING,
                    message=(
                        f"Cash account '{view.accounts[account_id].name}' has a negative "
                        f"balance {quantize(balance, view.places)}"
                    ),
                    suggestion="Check for missing receipts or classify the overdraft as borrowing",
                    ifrs_reference="IAS 7.8",
                    rule="negative-cash",
                )
            )
    if not within_tolerance(closing_cash, closing_per_ledger):
        logger.warning(
            "Cash flow for %s to %s does not reconcile: %s vs %s",
            date_range.start, date_range.end, closing_cash, closing_per_ledger,
        )
        places = view.places
        issues.append(
            ValidationIssue(
                severity=Severity.ERROR,
                message=(
                    f"Cash flow does not reconcile: opening cash {quantize(opening_cash, places)} "
                    f"+ net change {quantize(net_change.amount, places)} = "
                    f"{quantize(closing_cash, places)}, but cash accounts total "
                    f"{quantize(closing_per_ledger, places)} "
                    f"(difference {quantize(statement.difference, places)})"
                ),
                suggestion="Look for unbalanced journals touching cash accounts",
                ifrs_reference="IAS 7.45",
                rule="cash-flow-closing",
            )
        )
    return StatementResult(data=statement, validation=tuple(issues))
