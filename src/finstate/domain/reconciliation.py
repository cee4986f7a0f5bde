"""Cross-checks between independently built statements.

Failures are returned as error-severity validation issues and never raised;
whether to block publishing on them is the caller's decision.
"""

import logging
from decimal import Decimal
from typing import Optional

from finstate.domain.balance_sheet import BalanceSheet
from finstate.domain.cash_flow import CashFlowStatement
from finstate.domain.entities import Severity, StatementResult, ValidationIssue
from finstate.domain.equity_changes import EquityChanges
from finstate.domain.money import EPSILON, quantize, within_tolerance
from finstate.domain.profit_loss import ProfitAndLoss

logger = logging.getLogger(__name__)


def _data(result: Optional[StatementResult]):
    if result is None or not result.available:
        return None
    return result.data


def _mismatch(
    rule: str, message: str, left: Decimal, right: Decimal, ifrs_reference: str, suggestion: str
) -> ValidationIssue:
    logger.warning("Reconciliation check %s failed: %s vs %s", rule, left, right)
    return ValidationIssue(
        severity=Severity.ERROR,
        message=(
            f"{message}: {quantize(left)} vs {quantize(right)} "
            f"(difference {quantize(left - right)})"
        ),
        suggestion=suggestion,
        ifrs_reference=ifrs_reference,
        rule=rule,
    )


def reconcile(
    profit_loss: Optional[StatementResult[ProfitAndLoss]] = None,
    balance_sheet: Optional[StatementResult[BalanceSheet]] = None,
    cash_flow: Optional[StatementResult[CashFlowStatement]] = None,
    equity_changes: Optional[StatementResult[EquityChanges]] = None,
    cash_accounts_total: Optional[Decimal] = None,
    epsilon: Decimal = EPSILON,
) -> list[ValidationIssue]:
    """Check that statements agree with each other.

    Args:
        profit_loss: P&L result
        balance_sheet: Balance sheet result
        cash_flow: Cash flow result
        equity_changes: Statement of changes in equity result
        cash_accounts_total: Aggregated cash balance at period end; defaults
            to the figure the cash flow builder aggregated itself
        epsilon: Tolerance, one minor currency unit

    Returns:
        Error issues for every failed check; empty when all agree. Missing or
        unavailable statements skip the checks that need them.
    """
    pl = _data(profit_loss)
    bs = _data(balance_sheet)
    cf = _data(cash_flow)
    eq = _data(equity_changes)
    issues: list[ValidationIssue] = []

    if eq is not None and bs is not None:
        if not within_tolerance(eq.closing_balance, bs.total_equity.amount, epsilon):
            issues.append(
                _mismatch(
                    "equity-closing",
                    "Closing equity does not match balance sheet equity",
                    eq.closing_balance,
                    bs.total_equity.amount,
                    "IAS 1.106(d)",
                    "Check equity accounts posted outside the period's statements",
                )
            )

    if cf is not None:
        expected = cash_accounts_total if cash_accounts_total is not None else cf.closing_cash_per_ledger
        if not within_tolerance(cf.closing_cash, expected, epsilon):
            issues.append(
                _mismatch(
                    "cash-closing",
                    "Cash flow closing cash does not match bank and wallet balances",
                    cf.closing_cash,
                    expected,
                    "IAS 7.45",
                    "Check for cash entries without a balancing counter entry",
                )
            )

    if pl is not None and cf is not None and cf.starting_point is not None:
        if not within_tolerance(pl.net_income.amount, cf.starting_point, epsilon):
            issues.append(
                _mismatch(
                    "net-income-cash-flow",
                    "Net income does not match the cash flow starting point",
                    pl.net_income.amount,
                    cf.starting_point,
                    "IAS 7.20",
                    "Regenerate both statements for the same period and settings",
                )
            )

    if pl is not None and eq is not None:
        if not within_tolerance(pl.net_income.amount, eq.profit_for_period, epsilon):
            issues.append(
                _mismatch(
                    "net-income-equity",
                    "Net income does not match profit in the statement of changes in equity",
                    pl.net_income.amount,
                    eq.profit_for_period,
                    "IAS 1.106(d)(i)",
                    "Regenerate both statements for the same period and settings",
                )
            )

    return issues
