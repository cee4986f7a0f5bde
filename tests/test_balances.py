"""Tests for balance aggregation."""

import random

import pytest
from datetime import date
from decimal import Decimal

from finstate.domain.balances import (
    balance_as_of,
    balances_by_currency,
    cash_accounts_total,
    group_by_kind,
    stale_account_issues,
    summarize_balances,
)
from finstate.domain.entities import (
    Account,
    AccountType,
    CurrencyRate,
    InitialBalance,
    LedgerEntry,
    MoneyAccount,
    MoneyAccountKind,
)
from finstate.domain.errors import InputError, MixedCurrencyError

RATES = [
    CurrencyRate("USD", Decimal("1"), is_base=True),
    CurrencyRate("EUR", Decimal("1.10")),
]


def _entry(account_id: int, amount: str, day: date, currency: str = "USD") -> LedgerEntry:
    return LedgerEntry(None, account_id, Decimal(amount), currency, day, AccountType.ASSET)


@pytest.fixture
def entries():
    return [
        _entry(1, "100", date(2024, 1, 5)),
        _entry(1, "-30", date(2024, 1, 20)),
        _entry(1, "50", date(2024, 2, 1)),
        _entry(2, "999", date(2024, 1, 1)),
        _entry(1, "40", date(2024, 1, 10), "EUR"),
    ]


class TestBalanceAsOf:
    """Tests for balance_as_of."""

    def test_initial_plus_movements(self, entries):
        snapshot = balance_as_of(
            1, date(2024, 1, 31), InitialBalance(1, "USD", Decimal("1000")), entries
        )
        assert snapshot.initial_balance == Decimal("1000")
        assert snapshot.movements_sum == Decimal("70")
        assert snapshot.final_balance == Decimal("1070")
        assert snapshot.currency == "USD"

    def test_as_of_date_is_inclusive(self, entries):
        snapshot = balance_as_of(1, date(2024, 2, 1), None, entries, currency="USD")
        assert snapshot.final_balance == Decimal("120")

    def test_no_entries_is_initial_balance(self):
        snapshot = balance_as_of(1, date(2024, 1, 1), InitialBalance(1, "EUR", Decimal("5")), [])
        assert snapshot.final_balance == Decimal("5")
        assert snapshot.currency == "EUR"

    def test_other_currency_segment(self, entries):
        snapshot = balance_as_of(1, date(2024, 12, 31), None, entries, currency="EUR")
        assert snapshot.final_balance == Decimal("40")

    def test_mixed_currencies_need_explicit_currency(self, entries):
        with pytest.raises(MixedCurrencyError):
            balance_as_of(1, date(2024, 12, 31), None, entries)

    def test_currency_cannot_be_inferred(self):
        with pytest.raises(InputError):
            balance_as_of(1, date(2024, 12, 31), None, [])

    def test_order_independent(self, entries):
        expected = balance_as_of(1, date(2024, 12, 31), None, entries, currency="USD")
        shuffled = list(entries)
        random.Random(42).shuffle(shuffled)
        assert balance_as_of(1, date(2024, 12, 31), None, shuffled, currency="USD") == expected
        assert balance_as_of(
            1, date(2024, 12, 31), None, list(reversed(entries)), currency="USD"
        ) == expected


def test_balances_by_currency(entries):
    snapshots = balances_by_currency(
        1, date(2024, 12, 31), [InitialBalance(1, "GBP", Decimal("7"))], entries
    )
    assert [(s.currency, s.final_balance) for s in snapshots] == [
        ("EUR", Decimal("40")),
        ("GBP", Decimal("7")),
        ("USD", Decimal("120")),
    ]


def test_cash_accounts_total(entries):
    total = cash_accounts_total(
        [1], date(2024, 12, 31), [InitialBalance(1, "USD", Decimal("10"))], entries, "USD", RATES
    )
    # 130 USD + 40 EUR at 1.10
    assert total == Decimal("174.00")


def test_cash_accounts_total_rounds_once():
    rates = [CurrencyRate("USD", Decimal("1"), is_base=True), CurrencyRate("EUR", Decimal("1.005"))]
    entries = [_entry(1, "1.00", date(2024, 1, 1), "EUR"), _entry(2, "1.00", date(2024, 1, 1), "EUR")]

    # 1.005 + 1.005, not 1.01 + 1.01
    assert cash_accounts_total([1, 2], date(2024, 12, 31), [], entries, "USD", rates) == Decimal("2.01")


def test_summarize_balances(entries):
    accounts = {
        1: Account(1, "1010", "Bank", AccountType.ASSET),
        3: Account(3, "2300", "Overdraft", AccountType.LIABILITY),
    }
    liability = LedgerEntry(None, 3, Decimal("20"), "USD", date(2024, 1, 1), AccountType.LIABILITY)
    snapshots = balances_by_currency(1, date(2024, 12, 31), [], entries)
    snapshots += balances_by_currency(3, date(2024, 12, 31), [], [liability])

    summary = summarize_balances(snapshots, accounts, "USD", RATES)
    assert summary.total_assets == Decimal("164.00")
    assert summary.total_liabilities == Decimal("20.00")
    assert summary.net_worth == Decimal("144.00")
    assert summary.by_currency == {"EUR": Decimal("40"), "USD": Decimal("100")}


def test_group_by_kind(entries):
    money_accounts = [
        MoneyAccount(1, MoneyAccountKind.BANK, "Main", 1, ("USD", "EUR")),
        MoneyAccount(2, MoneyAccountKind.WALLET, "Treasury", 2, ("USD",)),
    ]
    snapshots = balances_by_currency(1, date(2024, 12, 31), [], entries)
    snapshots += balances_by_currency(2, date(2024, 12, 31), [], entries)

    grouped = group_by_kind(snapshots, money_accounts)
    assert len(grouped[MoneyAccountKind.BANK]) == 2
    assert grouped[MoneyAccountKind.WALLET][0].final_balance == Decimal("999")


def test_stale_account_issues(entries):
    money_accounts = [
        MoneyAccount(1, MoneyAccountKind.BANK, "Main", 1, ("USD",)),
        MoneyAccount(2, MoneyAccountKind.BANK, "Old", 2, ("USD",)),
    ]
    issues = stale_account_issues(money_accounts, entries, date(2024, 7, 15))
    assert len(issues) == 1
    assert "'Old'" in issues[0].message
