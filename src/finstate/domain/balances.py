"""Per-account balances as of a date.

A balance is the initial balance plus every signed movement dated on or
before the as-of date. Balances are always per currency; combining
currencies only happens through the converter.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Hashable, Iterable, Mapping, Optional, Sequence, Union

from dateutil.relativedelta import relativedelta

from finstate.domain.currency import RateTable, as_rate_table, convert
from finstate.domain.entities import (
    Account,
    AccountType,
    BalanceSnapshot,
    CurrencyRate,
    InitialBalance,
    LedgerEntry,
    MoneyAccount,
    MoneyAccountKind,
    Severity,
    ValidationIssue,
)
from finstate.domain.errors import InputError, MixedCurrencyError
from finstate.domain.money import ZERO, quantize

logger = logging.getLogger(__name__)

STALE_AFTER_MONTHS = 6


@dataclass(frozen=True)
class BalanceSummary:
    """Totals across a set of balances, expressed in one currency."""

    currency: str
    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal
    by_currency: dict[str, Decimal]


def balance_as_of(
    account_id: int,
    as_of_date: date,
    initial_balance: Optional[InitialBalance],
    entries: Iterable[LedgerEntry],
    currency: Optional[str] = None,
) -> BalanceSnapshot:
    """Compute an account's balance in a single currency.

    Args:
        account_id: Account to aggregate
        as_of_date: Last date included
        initial_balance: Opening balance record, if any
        entries: Ledger entries; other accounts and later dates are ignored
        currency: Currency segment to aggregate. Defaults to the initial
            balance's currency, then to the only currency among the entries

    Returns:
        BalanceSnapshot for the account and currency

    Raises:
        MixedCurrencyError: If no currency is given and the entries span several
        InputError: If no currency is given and none can be inferred
    """
    relevant = [e for e in entries if e.account_id == account_id and e.date <= as_of_date]

    if currency is None and initial_balance is not None:
        currency = initial_balance.currency
    if currency is None:
        currencies = {e.currency for e in relevant}
        if len(currencies) > 1:
            raise MixedCurrencyError(
                f"Account {account_id} has entries in {', '.join(sorted(currencies))}; "
                "request one currency at a time"
            )
        if not currencies:
            raise InputError(f"Cannot infer a currency for account {account_id}")
        currency = currencies.pop()

    initial = ZERO
    if initial_balance is not None and initial_balance.currency == currency:
        initial = initial_balance.amount
    movements = sum((e.amount for e in relevant if e.currency == currency), ZERO)
    return BalanceSnapshot(
        account_id=account_id,
        as_of_date=as_of_date,
        initial_balance=initial,
        movements_sum=movements,
        final_balance=initial + movements,
        currency=currency,
    )


def balances_by_currency(
    account_id: int,
    as_of_date: date,
    initial_balances: Iterable[InitialBalance],
    entries: Iterable[LedgerEntry],
) -> list[BalanceSnapshot]:
    """Return one snapshot per currency the account has seen, sorted by code."""
    entries = [e for e in entries if e.account_id == account_id and e.date <= as_of_date]
    initials = {b.currency: b for b in initial_balances if b.account_id == account_id}
    currencies = sorted(set(initials) | {e.currency for e in entries})
    return [
        balance_as_of(account_id, as_of_date, initials.get(code), entries, currency=code)
        for code in currencies
    ]


def cash_accounts_total(
    account_ids: Iterable[int],
    as_of_date: date,
    initial_balances: Iterable[InitialBalance],
    entries: Iterable[LedgerEntry],
    currency: str,
    rate_table: Union[RateTable, Iterable[CurrencyRate]],
    places: int = 2,
) -> Decimal:
    """Total cash across accounts and currency segments, in ``currency``.

    Each segment is converted exactly and only the total is rounded to
    ``places``.
    """
    table = as_rate_table(rate_table)
    entries = list(entries)
    initial_balances = list(initial_balances)
    account_ids = sorted(set(account_ids))
    total = ZERO
    for account_id in account_ids:
        for snapshot in balances_by_currency(account_id, as_of_date, initial_balances, entries):
            total += convert(snapshot.final_balance, snapshot.currency, currency, table)
    total = quantize(total, places)
    logger.debug(
        "Cash across %d accounts as of %s: %s %s", len(account_ids), as_of_date, total, currency
    )
    return total


def summarize_balances(
    snapshots: Iterable[BalanceSnapshot],
    accounts: Mapping[int, Account],
    currency: str,
    rate_table: Union[RateTable, Iterable[CurrencyRate]],
) -> BalanceSummary:
    """Total assets, liabilities and net worth across snapshots.

    ``by_currency`` holds the native-currency net position per currency.
    """
    table = as_rate_table(rate_table)
    assets = ZERO
    liabilities = ZERO
    by_currency: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for snapshot in snapshots:
        account = accounts.get(snapshot.account_id)
        if account is None or account.type not in (AccountType.ASSET, AccountType.LIABILITY):
            continue
        amount = quantize(convert(snapshot.final_balance, snapshot.currency, currency, table))
        if account.type == AccountType.ASSET:
            assets += amount
            by_currency[snapshot.currency] += snapshot.final_balance
        else:
            liabilities += amount
            by_currency[snapshot.currency] -= snapshot.final_balance
    return BalanceSummary(
        currency=currency,
        total_assets=assets,
        total_liabilities=liabilities,
        net_worth=assets - liabilities,
        by_currency=dict(sorted(by_currency.items())),
    )


def group_snapshots(
    snapshots: Iterable[BalanceSnapshot], key: Callable[[BalanceSnapshot], Hashable]
) -> dict[Hashable, list[BalanceSnapshot]]:
    grouped: dict[Hashable, list[BalanceSnapshot]] = defaultdict(list)
    for snapshot in snapshots:
        grouped[key(snapshot)].append(snapshot)
    return dict(grouped)


def group_by_kind(
    snapshots: Iterable[BalanceSnapshot], money_accounts: Sequence[MoneyAccount]
) -> dict[MoneyAccountKind, list[BalanceSnapshot]]:
    """Group snapshots of bank and wallet ledger accounts by account kind."""
    kinds = {m.ledger_account_id: m.kind for m in money_accounts}
    return group_snapshots(
        (s for s in snapshots if s.account_id in kinds),
        lambda s: kinds[s.account_id],
    )


def stale_account_issues(
    money_accounts: Sequence[MoneyAccount],
    entries: Iterable[LedgerEntry],
    as_of_date: date,
    months: int = STALE_AFTER_MONTHS,
) -> list[ValidationIssue]:
    """Warn about accounts whose last movement is older than ``months``."""
    last_seen: dict[int, date] = {}
    for entry in entries:
        if entry.date <= as_of_date:
            current = last_seen.get(entry.account_id)
            if current is None or entry.date > current:
                last_seen[entry.account_id] = entry.date

    cutoff = as_of_date - relativedelta(months=months)
    issues = []
    for money_account in money_accounts:
        last = last_seen.get(money_account.ledger_account_id)
        if last is not None and last < cutoff:
            issues.append(
                ValidationIssue(
                    severity=Severity.WARNING,
                    message=(
                        f"No transactions recorded for '{money_account.name}' "
                        f"since {last.isoformat()}"
                    ),
                    suggestion="Import recent statements for this account",
                    rule="stale-account",
                )
            )
    return issues
