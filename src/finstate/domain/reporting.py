"""Generate the full set of financial statements for a period.

The four builders are pure functions of the same immutable inputs, so they
may run in parallel. The reconciler runs only after every builder finished.
Cancellation is cooperative and checked between stages; a cancelled run
raises instead of returning a partial bundle.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Callable, Optional

from finstate.database.base import Database
from finstate.domain.balance_sheet import BalanceSheet, build_balance_sheet
from finstate.domain.balances import cash_accounts_total
from finstate.domain.cash_flow import CashFlowStatement, build_cash_flow
from finstate.domain.classifier import is_cash_account
from finstate.domain.currency import RateTable
from finstate.domain.entities import (
    Account,
    CurrencyRate,
    InitialBalance,
    LedgerEntry,
    MoneyAccount,
    Period,
    Severity,
    StatementResult,
    ValidationIssue,
    to_jsonable,
)
from finstate.domain.equity_changes import EquityChanges, build_equity_changes
from finstate.domain.errors import (
    GenerationCancelled,
    NotFoundError,
    ReconciliationError,
    company_not_found,
    period_not_found,
)
from finstate.domain.money import minor_unit
from finstate.domain.period_resolver import EARLIEST_LEDGER_DATE
from finstate.domain.profit_loss import ProfitAndLoss, build_profit_loss
from finstate.domain.reconciliation import reconcile
from finstate.domain.settings import InvalidEntryPolicy, ReportSettings
from finstate.domain.statements import PeriodLike, as_date_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatementInputs:
    """Immutable snapshot everything is computed from."""

    period: PeriodLike
    entries: tuple[LedgerEntry, ...]
    accounts: tuple[Account, ...]
    settings: ReportSettings
    rates: tuple[CurrencyRate, ...] = ()
    prior_period: Optional[PeriodLike] = None
    initial_balances: tuple[InitialBalance, ...] = ()
    money_accounts: tuple[MoneyAccount, ...] = ()

    @property
    def cash_account_ids(self) -> tuple[int, ...]:
        return tuple(m.ledger_account_id for m in self.money_accounts)

    def builder_kwargs(self) -> dict[str, Any]:
        return dict(
            period=self.period,
            entries=self.entries,
            accounts=self.accounts,
            settings=self.settings,
            prior_period=self.prior_period,
            rates=self.rates or None,
            initial_balances=self.initial_balances,
            cash_account_ids=self.cash_account_ids,
        )


@dataclass(frozen=True)
class FinancialStatements:
    """Complete, reconciled statement bundle."""

    profit_loss: StatementResult[ProfitAndLoss]
    balance_sheet: StatementResult[BalanceSheet]
    cash_flow: StatementResult[CashFlowStatement]
    equity_changes: StatementResult[EquityChanges]
    reconciliation: tuple[ValidationIssue, ...] = ()
    cash_accounts_total: Optional[Decimal] = None
    places: int = 2
    statements: tuple[str, ...] = field(
        default=("profit_loss", "balance_sheet", "cash_flow", "equity_changes")
    )

    def results(self) -> dict[str, StatementResult]:
        return {name: getattr(self, name) for name in self.statements}

    @property
    def errors(self) -> tuple[ValidationIssue, ...]:
        found = [issue for result in self.results().values() for issue in result.errors]
        found.extend(i for i in self.reconciliation if i.severity == Severity.ERROR)
        return tuple(found)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def raise_for_errors(self) -> None:
        """Raise ReconciliationError when any statement or check failed."""
        if self.has_errors:
            raise ReconciliationError(self.errors)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            name: result.to_dict(self.places) for name, result in self.results().items()
        }
        data["reconciliation"] = [to_jsonable(issue) for issue in self.reconciliation]
        data["cash_accounts_total"] = to_jsonable(self.cash_accounts_total, self.places)
        return data


BUILDERS: dict[str, Callable[..., StatementResult]] = {
    "profit_loss": build_profit_loss,
    "balance_sheet": build_balance_sheet,
    "cash_flow": build_cash_flow,
    "equity_changes": build_equity_changes,
}


def _check_cancelled(cancel_event: Optional[threading.Event], stage: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info("Statement generation cancelled %s", stage)
        raise GenerationCancelled(f"Statement generation cancelled {stage}")


def _cash_accounts_total(inputs: StatementInputs) -> Optional[Decimal]:
    """Cash at period end from native-currency balances, converted once.

    This goes through the balance aggregator rather than a statement view,
    so it checks the cash flow statement against an independent figure.
    """
    settings = inputs.settings
    if settings.simplified_mode:
        return None
    currency = settings.reporting_currency.upper()
    table = RateTable(inputs.rates or [CurrencyRate(currency, Decimal("1"), is_base=True)])
    known = {a.id for a in inputs.accounts}
    cash_ids = {i for i in inputs.cash_account_ids if i in known}
    cash_ids.update(a.id for a in inputs.accounts if is_cash_account(a))

    entries = [e for e in inputs.entries if e.account_id in cash_ids]
    initial_balances = [b for b in inputs.initial_balances if b.account_id in cash_ids]
    if settings.invalid_entry_policy == InvalidEntryPolicy.EXCLUDE:
        # Same entries the statements dropped for lack of a rate
        entries = [e for e in entries if e.currency in table]
        initial_balances = [b for b in initial_balances if b.currency in table]

    return cash_accounts_total(
        cash_ids,
        as_date_range(inputs.period).end,
        initial_balances,
        entries,
        currency,
        table,
        settings.ifrs.rounding_precision,
    )


def generate_statements(
    inputs: StatementInputs,
    cancel_event: Optional[threading.Event] = None,
    max_workers: Optional[int] = None,
) -> FinancialStatements:
    """Build all four statements and reconcile them.

    Args:
        inputs: Snapshot of entries, accounts, rates and settings
        cancel_event: Set by the caller to abandon generation
        max_workers: Run builders in a thread pool of this size when greater
            than one; sequentially otherwise

    Returns:
        FinancialStatements with every statement and the reconciliation issues

    Raises:
        GenerationCancelled: If ``cancel_event`` was set before completion
        InputError: If the inputs cannot be used (no partial bundle is returned)
    """
    _check_cancelled(cancel_event, "before start")
    kwargs = inputs.builder_kwargs()
    results: dict[str, StatementResult] = {}

    if max_workers is not None and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {name: pool.submit(builder, **kwargs) for name, builder in BUILDERS.items()}
            try:
                for name, future in futures.items():
                    results[name] = future.result()
                    _check_cancelled(cancel_event, f"after {name}")
            except BaseException:
                for future in futures.values():
                    future.cancel()
                raise
    else:
        for name, builder in BUILDERS.items():
            results[name] = builder(**kwargs)
            _check_cancelled(cancel_event, f"after {name}")

    cash_total = _cash_accounts_total(inputs)
    _check_cancelled(cancel_event, "before reconciliation")
    issues = reconcile(
        profit_loss=results["profit_loss"],
        balance_sheet=results["balance_sheet"],
        cash_flow=results["cash_flow"],
        equity_changes=results["equity_changes"],
        cash_accounts_total=cash_total,
        epsilon=minor_unit(inputs.settings.ifrs.rounding_precision),
    )
    _check_cancelled(cancel_event, "after reconciliation")
    return FinancialStatements(
        profit_loss=results["profit_loss"],
        balance_sheet=results["balance_sheet"],
        cash_flow=results["cash_flow"],
        equity_changes=results["equity_changes"],
        reconciliation=tuple(issues),
        cash_accounts_total=cash_total,
        places=inputs.settings.ifrs.rounding_precision,
    )


class ReportingService:
    """Fetch a company's ledger from the database and generate statements."""

    def __init__(self, db: Database, settings: Optional[ReportSettings] = None):
        """Initialize reporting service.

        Args:
            db: Database instance
            settings: Report settings; company name and currency default
                from the company record
        """
        self.db = db
        self.settings = settings or ReportSettings()

    def settings_for(self, company_id: int) -> ReportSettings:
        """Fill company details and currencies from the company record."""
        company = self.db.get_company(company_id)
        if company is None:
            raise NotFoundError(company_not_found(company_id))
        settings = self.settings
        ifrs = replace(
            settings.ifrs,
            functional_currency=settings.ifrs.functional_currency or company.functional_currency,
        )
        company_info = replace(
            settings.company,
            name=settings.company.name or company.name,
            company_id=company.id,
        )
        return replace(settings, ifrs=ifrs, company=company_info)

    def load_inputs(
        self, company_id: int, period: PeriodLike, prior_period: Optional[PeriodLike] = None
    ) -> StatementInputs:
        """Fetch everything the builders need; all I/O happens here."""
        settings = self.settings_for(company_id)
        date_range = as_date_range(period)
        entries = self.db.get_entries(company_id, EARLIEST_LEDGER_DATE, date_range.end)
        rates = self.db.get_rates(as_of=date_range.end)
        if not rates:
            rates = [CurrencyRate(settings.reporting_currency, Decimal("1"), is_base=True)]
        return StatementInputs(
            period=period,
            prior_period=prior_period,
            entries=tuple(entries),
            accounts=tuple(self.db.list_accounts(company_id, include_inactive=True)),
            settings=settings,
            rates=tuple(RateTable(rates).to_rates()),
            initial_balances=tuple(self.db.list_initial_balances(company_id)),
            money_accounts=tuple(self.db.list_money_accounts(company_id)),
        )

    def generate(
        self,
        company_id: int,
        period: PeriodLike,
        prior_period: Optional[PeriodLike] = None,
        cancel_event: Optional[threading.Event] = None,
        max_workers: Optional[int] = None,
    ) -> FinancialStatements:
        """Generate all statements for a company and date range or period."""
        inputs = self.load_inputs(company_id, period, prior_period)
        return generate_statements(inputs, cancel_event=cancel_event, max_workers=max_workers)

    def prior_period_for(self, period: Period) -> Optional[Period]:
        """Latest period of the same type ending before ``period`` starts."""
        candidates = [
            p
            for p in self.db.list_periods(period.company_id)
            if p.period_type == period.period_type and p.end_date < period.start_date
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda p: p.end_date)

    def generate_for_period(
        self,
        period_id: int,
        compare: bool = True,
        cancel_event: Optional[threading.Event] = None,
        max_workers: Optional[int] = None,
    ) -> FinancialStatements:
        """Generate statements for a stored period, comparing with the one before it."""
        period = self.db.get_period(period_id)
        if period is None:
            raise NotFoundError(period_not_found(period_id))
        prior = self.prior_period_for(period) if compare else None
        return self.generate(
            period.company_id,
            period,
            prior_period=prior,
            cancel_event=cancel_event,
            max_workers=max_workers,
        )
