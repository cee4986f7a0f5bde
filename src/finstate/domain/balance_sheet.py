"""Statement of financial position."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from finstate.domain.classifier import StatementBucket
from finstate.domain.entities import (
    Account,
    AccountType,
    Classification,
    CurrencyRate,
    InitialBalance,
    LedgerEntry,
    Severity,
    StatementResult,
    StatementUnavailable,
    ValidationIssue,
)
from finstate.domain.money import EPSILON, ZERO, quantize
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

RETAINED_EARNINGS_LABEL = "Retained earnings (accumulated profit)"
OCI_LABEL = "Accumulated other comprehensive income"
OPENING_BALANCES_LABEL = "Opening balances"


@dataclass(frozen=True)
class BalanceSheet:
    """Assets, liabilities and equity at the end of a period."""

    metadata: StatementMetadata
    as_of: date
    current_assets: StatementSection
    non_current_assets: StatementSection
    total_assets: StatementLine
    current_liabilities: StatementSection
    non_current_liabilities: StatementSection
    total_liabilities: StatementLine
    equity: StatementSection
    total_equity: StatementLine
    total_liabilities_and_equity: StatementLine
    difference: Decimal

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) < EPSILON


def _equity_section(
    view: LedgerView, balances: dict[int, Decimal], prior: Optional[dict[int, Decimal]]
) -> StatementSection:
    accounts_section = account_section("Equity", view.accounts_in(StatementBucket.EQUITY), balances, prior)

    def computed(source: dict[int, Decimal]) -> dict[str, Decimal]:
        return {
            RETAINED_EARNINGS_LABEL: view.profit(source),
            OCI_LABEL: view.other_comprehensive_income(source),
            OPENING_BALANCES_LABEL: view.opening_balance_offset(),
        }

    current_extra = computed(balances)
    prior_extra = computed(prior) if prior is not None else None
    lines = list(accounts_section.lines)
    for label, amount in current_extra.items():
        prior_amount = prior_extra[label] if prior_extra is not None else None
        if amount == 0 and not prior_amount:
            continue
        lines.append(make_line(label, amount, prior_amount))

    total = sum((line.amount for line in lines), ZERO)
    prior_total = sum((line.prior_amount or ZERO for line in lines), ZERO) if prior is not None else None
    return StatementSection(
        title="Equity",
        lines=tuple(lines),
        total=make_line("Total equity", total, prior_total, ifrs_reference="IAS 1.54(r)"),
    )


def build_balance_sheet(
    period: PeriodLike,
    entries: Iterable[LedgerEntry],
    accounts: Iterable[Account],
    settings: ReportSettings,
    prior_period: Optional[PeriodLike] = None,
    rates: Optional[Iterable[CurrencyRate]] = None,
    initial_balances: Iterable[InitialBalance] = (),
    cash_account_ids: Iterable[int] = (),
) -> StatementResult[BalanceSheet]:
    """Build the balance sheet as of the end of a period.

    Earnings not yet closed into an equity account are shown as accumulated
    profit, and initial balances without a counter entry as an opening
    balances line, so the statement balances for any balanced ledger. A
    mismatch is reported as an error issue carrying the difference; it is
    never rounded away.

    Returns:
        StatementResult, or StatementUnavailable in simplified mode
    """
    if settings.simplified_mode:
        return StatementUnavailable.because(
            "Balance sheet is not available in simplified mode: there are no asset, "
            "liability or equity accounts",
            suggestion="Set up a chart of accounts to produce a balance sheet",
        )

    date_range = as_date_range(period)
    prior_range = as_date_range(prior_period) if prior_period is not None else None
    view = LedgerView(entries, accounts, settings, rates, initial_balances, cash_account_ids)

    balances = view.balances(date_range.end)
    prior = view.balances(prior_range.end) if prior_range is not None else None

    def accounts_for(account_type: AccountType, classification: Classification) -> list[Account]:
        return [
            a
            for a in view.accounts.values()
            if a.type == account_type and view.classifications[a.id].classification == classification
        ]

    current_assets = account_section(
        "Current assets", accounts_for(AccountType.ASSET, Classification.CURRENT), balances, prior,
        ifrs_reference="IAS 1.66",
    )
    non_current_assets = account_section(
        "Non-current assets", accounts_for(AccountType.ASSET, Classification.NON_CURRENT), balances, prior,
    )
    current_liabilities = account_section(
        "Current liabilities", accounts_for(AccountType.LIABILITY, Classification.CURRENT), balances, prior,
        ifrs_reference="IAS 1.69",
    )
    non_current_liabilities = account_section(
        "Non-current liabilities",
        accounts_for(AccountType.LIABILITY, Classification.NON_CURRENT),
        balances,
        prior,
    )
    equity = _equity_section(view, balances, prior)

    def add(label: str, *sections: StatementSection) -> StatementLine:
        amount = sum((s.total.amount for s in sections), ZERO)
        prior_amount = (
            sum((s.total.prior_amount or ZERO for s in sections), ZERO) if prior is not None else None
        )
        return make_line(label, amount, prior_amount)

    total_assets = add("Total assets", current_assets, non_current_assets)
    total_liabilities = add("Total liabilities", current_liabilities, non_current_liabilities)
    total_liabilities_and_equity = add(
        "Total liabilities and equity", current_liabilities, non_current_liabilities, equity
    )
    difference = total_assets.amount - total_liabilities_and_equity.amount

    statement = BalanceSheet(
        metadata=build_metadata(settings, date_range, prior_range),
        as_of=date_range.end,
        current_assets=current_assets,
        non_current_assets=non_current_assets,
        total_assets=total_assets,
        current_liabilities=current_liabilities,
        non_current_liabilities=non_current_liabilities,
        total_liabilities=total_liabilities,
        equity=equity,
        total_equity=equity.total,
        total_liabilities_and_equity=total_liabilities_and_equity,
        difference=difference,
    )

    issues = list(view.issues)
    used = [
        a.id
        for a in view.accounts.values()
        if a.type in (AccountType.ASSET, AccountType.LIABILITY)
        and (balances.get(a.id) or (prior or {}).get(a.id))
    ]
    issues.extend(view.classification_issues(used))
    issues.extend(comparative_issue(settings, prior_period))
    if not statement.is_balanced:
        logger.warning("Balance sheet as of %s out of balance by %s", date_range.end, difference)
        assets, claims, gap = (
            quantize(amount, view.places)
            for amount in (total_assets.amount, total_liabilities_and_equity.amount, difference)
        )
        issues.append(
            ValidationIssue(
                severity=Severity.ERROR,
                message=(
                    f"Balance sheet does not balance: assets {assets} vs "
                    f"liabilities and equity {claims} (difference {gap})"
                ),
                suggestion="Look for unbalanced journals or entries excluded during conversion",
                ifrs_reference="IAS 1.54",
                rule="balance-sheet-equation",
            )
        )
    return StatementResult(data=statement, validation=tuple(issues))
