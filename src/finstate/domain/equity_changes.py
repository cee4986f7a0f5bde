"""Statement of changes in equity."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from finstate.domain.classifier import EquityComponent, equity_component, is_dividend_account
from finstate.domain.entities import (
    Account,
    AccountType,
    CurrencyRate,
    InitialBalance,
    LedgerEntry,
    Severity,
    StatementResult,
    StatementUnavailable,
    ValidationIssue,
)
from finstate.domain.money import ZERO
from finstate.domain.period_resolver import day_before
from finstate.domain.settings import ReportSettings
from finstate.domain.statements import (
    LedgerView,
    PeriodLike,
    StatementMetadata,
    as_date_range,
    build_metadata,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EquityRow:
    """One row of the statement, split by equity component."""

    label: str
    share_capital: Decimal = ZERO
    retained_earnings: Decimal = ZERO
    oci_reserve: Decimal = ZERO
    other_reserves: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.share_capital + self.retained_earnings + self.oci_reserve + self.other_reserves

    @classmethod
    def from_components(cls, label: str, components: Mapping[EquityComponent, Decimal]) -> "EquityRow":
        return cls(
            label=label,
            share_capital=components.get(EquityComponent.SHARE_CAPITAL, ZERO),
            retained_earnings=components.get(EquityComponent.RETAINED_EARNINGS, ZERO),
            oci_reserve=components.get(EquityComponent.OCI_RESERVE, ZERO),
            other_reserves=components.get(EquityComponent.OTHER_RESERVES, ZERO),
        )


@dataclass(frozen=True)
class EquityChanges:
    """Opening equity, the period's movements, and closing equity."""

    metadata: StatementMetadata
    opening: EquityRow
    movements: tuple[EquityRow, ...]
    closing: EquityRow
    profit_for_period: Decimal
    prior_closing_balance: Optional[Decimal] = None

    @property
    def opening_balance(self) -> Decimal:
        return self.opening.total

    @property
    def closing_balance(self) -> Decimal:
        return self.closing.total


def build_equity_changes(
    period: PeriodLike,
    entries: Iterable[LedgerEntry],
    accounts: Iterable[Account],
    settings: ReportSettings,
    prior_period: Optional[PeriodLike] = None,
    rates: Optional[Iterable[CurrencyRate]] = None,
    initial_balances: Iterable[InitialBalance] = (),
    cash_account_ids: Iterable[int] = (),
) -> StatementResult[EquityChanges]:
    """Build the statement of changes in equity for a period.

    Opening equity is the ledger's equity on the day before the period
    starts, which is zero for a first period without initial balances.
    Rows for profit, OCI, dividends and share issues come from the period's
    movements; anything else that moved a component is shown as other
    movements so each column closes to the balance sheet figure.

    Returns:
        StatementResult, or StatementUnavailable in simplified mode
    """
    if settings.simplified_mode:
        return StatementUnavailable.because(
            "Statement of changes in equity is not available in simplified mode",
            suggestion="Set up a chart of accounts with equity accounts",
        )

    date_range = as_date_range(period)
    prior_range = as_date_range(prior_period) if prior_period is not None else None
    view = LedgerView(entries, accounts, settings, rates, initial_balances, cash_account_ids)

    opening = view.equity_components(day_before(date_range.start))
    closing = view.equity_components(date_range.end)
    movements = view.movements(date_range)

    profit = view.profit(movements)
    oci = view.other_comprehensive_income(movements)
    dividends = ZERO
    share_issues = ZERO
    for account_id, amount in movements.items():
        account = view.accounts[account_id]
        if account.type != AccountType.EQUITY:
            continue
        if is_dividend_account(account):
            dividends += amount
        elif equity_component(account) == EquityComponent.SHARE_CAPITAL:
            share_issues += amount

    explained = {component: ZERO for component in EquityComponent}
    explained[EquityComponent.RETAINED_EARNINGS] += profit + dividends
    explained[EquityComponent.OCI_RESERVE] += oci
    explained[EquityComponent.SHARE_CAPITAL] += share_issues
    other = {
        component: closing[component] - opening[component] - explained[component]
        for component in EquityComponent
    }

    rows = [
        EquityRow("Profit for the period", retained_earnings=profit),
        EquityRow("Other comprehensive income", oci_reserve=oci),
        EquityRow("Dividends and distributions", retained_earnings=dividends),
        EquityRow("Issue of share capital", share_capital=share_issues),
        EquityRow.from_components("Other movements", other),
    ]
    rows = [row for row in rows if any(
        (row.share_capital, row.retained_earnings, row.oci_reserve, row.other_reserves)
    )]

    prior_closing = None
    if prior_range is not None:
        prior_closing = sum(view.equity_components(prior_range.end).values(), ZERO)

    statement = EquityChanges(
        metadata=build_metadata(settings, date_range, prior_range),
        opening=EquityRow.from_components("Opening balance", opening),
        movements=tuple(rows),
        closing=EquityRow.from_components("Closing balance", closing),
        profit_for_period=profit,
        prior_closing_balance=prior_closing,
    )

    issues = list(view.issues)
    if prior_range is not None and prior_range.end != day_before(date_range.start):
        issues.append(
            ValidationIssue(
                severity=Severity.INFO,
                message=(
                    f"Prior period ends {prior_range.end.isoformat()}, not the day before this "
                    f"period; opening equity is taken from the ledger as of "
                    f"{day_before(date_range.start).isoformat()}"
                ),
                ifrs_reference="IAS 1.106(d)",
                rule="non-contiguous-prior",
            )
        )
    logger.debug(
        "Equity %s to %s: opening %s closing %s",
        date_range.start, date_range.end, statement.opening_balance, statement.closing_balance,
    )
    return StatementResult(data=statement, validation=tuple(issues))
