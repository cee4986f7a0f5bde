"""Statement of profit or loss."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from finstate.domain.classifier import StatementBucket
from finstate.domain.entities import (
    Account,
    AccountType,
    CurrencyRate,
    InitialBalance,
    LedgerEntry,
    Severity,
    StatementResult,
    ValidationIssue,
)
from finstate.domain.money import HUNDRED, ZERO, quantize
from finstate.domain.settings import ReportSettings
from finstate.domain.statements import (
    LedgerView,
    PeriodLike,
    StatementLine,
    StatementMetadata,
    StatementSection,
    account_section,
    as_date_range,
    build_metadata,
    comparative_issue,
    make_line,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfitAndLoss:
    """Profit or loss for a period, with other comprehensive income below it."""

    metadata: StatementMetadata
    revenue: StatementSection
    cost_of_sales: StatementSection
    gross_profit: StatementLine
    operating_expenses: StatementSection
    operating_profit: StatementLine
    other_income: StatementSection
    other_expenses: StatementSection
    profit_before_tax: StatementLine
    tax: StatementSection
    net_income: StatementLine
    other_comprehensive_income: StatementSection
    total_comprehensive_income: StatementLine
    gross_margin: Optional[Decimal]
    operating_margin: Optional[Decimal]
    net_margin: Optional[Decimal]


@dataclass(frozen=True)
class _Figures:
    revenue: Decimal
    cost_of_sales: Decimal
    gross_profit: Decimal
    operating_expenses: Decimal
    operating_profit: Decimal
    profit_before_tax: Decimal
    tax: Decimal
    net_income: Decimal
    other_comprehensive_income: Decimal


def _margin(amount: Decimal, revenue: Decimal) -> Optional[Decimal]:
    if revenue == 0:
        return None
    return quantize(amount / revenue * HUNDRED)


def _income_signed(view: LedgerView, amounts: Mapping[int, Decimal]) -> dict[int, Decimal]:
    return {
        k: v if view.accounts[k].type == AccountType.REVENUE else -v for k, v in amounts.items()
    }


def _figures(view: LedgerView, amounts: Mapping[int, Decimal], tax_below_the_line: bool) -> _Figures:
    def total(*buckets: StatementBucket) -> Decimal:
        return sum((v for k, v in amounts.items() if view.bucket(k) in buckets), ZERO)

    revenue = total(StatementBucket.REVENUE)
    cost_of_sales = total(StatementBucket.COGS)
    tax = total(StatementBucket.TAX)
    operating_expenses = total(StatementBucket.OPERATING_EXPENSE)
    if not tax_below_the_line:
        operating_expenses += tax
    gross_profit = revenue - cost_of_sales
    operating_profit = gross_profit - operating_expenses
    profit_before_tax = (
        operating_profit + total(StatementBucket.OTHER_INCOME) - total(StatementBucket.OTHER_EXPENSE)
    )
    net_income = profit_before_tax - tax if tax_below_the_line else profit_before_tax
    return _Figures(
        revenue=revenue,
        cost_of_sales=cost_of_sales,
        gross_profit=gross_profit,
        operating_expenses=operating_expenses,
        operating_profit=operating_profit,
        profit_before_tax=profit_before_tax,
        tax=tax if tax_below_the_line else ZERO,
        net_income=net_income,
        other_comprehensive_income=view.other_comprehensive_income(amounts),
    )


def build_profit_loss(
    period: PeriodLike,
    entries: Iterable[LedgerEntry],
    accounts: Iterable[Account],
    settings: ReportSettings,
    prior_period: Optional[PeriodLike] = None,
    rates: Optional[Iterable[CurrencyRate]] = None,
    initial_balances: Iterable[InitialBalance] = (),
    cash_account_ids: Iterable[int] = (),
) -> StatementResult[ProfitAndLoss]:
    """Build the profit or loss statement for a period.

    Tax accounts are presented below profit before tax when
    ``settings.tax_below_the_line`` is set and folded into operating
    expenses otherwise; net income is the same either way. In simplified
    mode every income account is revenue and every expense operating.

    Raises:
        InputError: If an entry cannot be converted or references an unknown
            account and the invalid-entry policy is abort
    """
    date_range = as_date_range(period)
    prior_range = as_date_range(prior_period) if prior_period is not None else None
    view = LedgerView(entries, accounts, settings, rates, initial_balances, cash_account_ids)
    below = settings.tax_below_the_line

    current = view.movements(date_range)
    prior = view.movements(prior_range) if prior_range is not None else None
    now = _figures(view, current, below)
    before = _figures(view, prior, below) if prior is not None else None

    def section(title: str, *buckets: StatementBucket, ifrs_reference: Optional[str] = None) -> StatementSection:
        return account_section(title, view.accounts_in(*buckets), current, prior, ifrs_reference=ifrs_reference)

    def line(label: str, attribute: str, ifrs_reference: Optional[str] = None) -> StatementLine:
        prior_amount = getattr(before, attribute) if before is not None else None
        return make_line(label, getattr(now, attribute), prior_amount, ifrs_reference=ifrs_reference)

    operating_buckets = [StatementBucket.OPERATING_EXPENSE]
    tax_buckets = [StatementBucket.TAX]
    if not below:
        operating_buckets, tax_buckets = operating_buckets + tax_buckets, []

    statement = ProfitAndLoss(
        metadata=build_metadata(settings, date_range, prior_range),
        revenue=section("Revenue", StatementBucket.REVENUE, ifrs_reference="IAS 1.82(a)"),
        cost_of_sales=section("Cost of sales", StatementBucket.COGS, ifrs_reference="IAS 1.103"),
        gross_profit=line("Gross profit", "gross_profit"),
        operating_expenses=section("Operating expenses", *operating_buckets),
        operating_profit=line("Operating profit", "operating_profit"),
        other_income=section("Other income", StatementBucket.OTHER_INCOME),
        other_expenses=section("Other expenses", StatementBucket.OTHER_EXPENSE),
        profit_before_tax=line("Profit before tax", "profit_before_tax"),
        tax=section("Income tax expense", *tax_buckets, ifrs_reference="IAS 1.82(d)"),
        net_income=line("Net income", "net_income", ifrs_reference="IAS 1.81A(a)"),
        other_comprehensive_income=account_section(
            "Other comprehensive income",
            view.accounts_in(StatementBucket.OTHER_COMPREHENSIVE_INCOME),
            _income_signed(view, current),
            _income_signed(view, prior) if prior is not None else None,
            ifrs_reference="IAS 1.82A",
        ),
        total_comprehensive_income=make_line(
            "Total comprehensive income",
            now.net_income + now.other_comprehensive_income,
            before.net_income + before.other_comprehensive_income if before is not None else None,
            ifrs_reference="IAS 1.81A(c)",
        ),
        gross_margin=_margin(now.gross_profit, now.revenue),
        operating_margin=_margin(now.operating_profit, now.revenue),
        net_margin=_margin(now.net_income, now.revenue),
    )

    issues = list(view.issues)
    issues.extend(comparative_issue(settings, prior_period))
    if now.revenue == 0:
        issues.append(
            ValidationIssue(
                severity=Severity.INFO,
                message="No revenue recorded in the period",
                ifrs_reference="IFRS 15",
                rule="no-revenue",
            )
        )
    logger.debug("P&L %s to %s: net income %s", date_range.start, date_range.end, now.net_income)
    return StatementResult(data=statement, validation=tuple(issues))
