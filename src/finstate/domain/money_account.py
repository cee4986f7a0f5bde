"""Bank account and wallet domain service."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from finstate.database.base import Database
from finstate.domain.balances import (
    BalanceSummary,
    balances_by_currency,
    group_by_kind,
    stale_account_issues,
    summarize_balances,
)
from finstate.domain.currency import RateTable
from finstate.domain.entities import (
    AccountType,
    BalanceSnapshot,
    CurrencyRate,
    MoneyAccount,
    MoneyAccountKind,
    ValidationIssue,
)
from finstate.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    company_not_found,
    money_account_not_found,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoneyAccountBalances:
    """Balances of every bank account and wallet as of a date."""

    as_of: date
    snapshots: tuple[BalanceSnapshot, ...]
    by_kind: dict[MoneyAccountKind, list[BalanceSnapshot]]
    summary: BalanceSummary
    issues: tuple[ValidationIssue, ...] = ()


class MoneyAccountService:
    """Service for managing bank accounts, wallets and their balances."""

    def __init__(self, db: Database):
        """Initialize money account service.

        Args:
            db: Database instance
        """
        self.db = db

    def _create(
        self,
        company_id: int,
        kind: MoneyAccountKind,
        name: str,
        ledger_account_id: int,
        currencies: Sequence[str],
        bank_name: Optional[str] = None,
        wallet_address: Optional[str] = None,
    ) -> int:
        if self.db.get_company(company_id) is None:
            raise NotFoundError(company_not_found(company_id))
        name = name.strip()
        if not name:
            raise ValidationError("Name cannot be empty")
        currencies = [c.strip().upper() for c in currencies if c.strip()]
        if not currencies:
            raise ValidationError(f"A {kind.value} needs at least one currency")

        ledger_account = self.db.get_account(ledger_account_id)
        if ledger_account is None or ledger_account.company_id != company_id:
            raise NotFoundError(account_not_found(ledger_account_id))
        if ledger_account.type != AccountType.ASSET:
            raise ValidationError(
                f"Ledger account {ledger_account.code} must be an asset account, "
                f"not {ledger_account.type.value}"
            )

        for existing in self.db.list_money_accounts(company_id):
            if existing.kind == kind and existing.name == name:
                raise ConflictError(f"A {kind.value} named '{name}' already exists")

        return self.db.create_money_account(
            company_id=company_id,
            kind=kind,
            name=name,
            ledger_account_id=ledger_account_id,
            currencies=currencies,
            bank_name=bank_name,
            wallet_address=wallet_address,
        )

    def create_bank_account(
        self,
        company_id: int,
        name: str,
        ledger_account_id: int,
        currencies: Sequence[str],
        bank_name: Optional[str] = None,
    ) -> int:
        """Create a bank account backed by an asset ledger account.

        Returns:
            Money account ID

        Raises:
            NotFoundError: If the company or ledger account does not exist
            ValidationError: If the ledger account is not an asset or no
                currency is given
            ConflictError: If a bank account with that name exists
        """
        return self._create(
            company_id, MoneyAccountKind.BANK, name, ledger_account_id, currencies, bank_name=bank_name
        )

    def create_wallet(
        self,
        company_id: int,
        name: str,
        ledger_account_id: int,
        currencies: Sequence[str],
        wallet_address: Optional[str] = None,
    ) -> int:
        """Create a wallet backed by an asset ledger account."""
        return self._create(
            company_id,
            MoneyAccountKind.WALLET,
            name,
            ledger_account_id,
            currencies,
            wallet_address=wallet_address,
        )

    def get_money_account(self, money_account_id: int) -> Optional[MoneyAccount]:
        return self.db.get_money_account(money_account_id)

    def list_money_accounts(self, company_id: int) -> list[MoneyAccount]:
        return self.db.list_money_accounts(company_id)

    def set_initial_balance(self, account_id: int, currency: str, amount: Decimal) -> None:
        """Set an account's opening balance in one currency.

        ``amount`` follows the account's normal balance direction.

        Raises:
            NotFoundError: If the account does not exist
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        currency = currency.strip().upper()
        if not currency:
            raise ValidationError("Currency cannot be empty")
        self.db.set_initial_balance(account_id, currency, amount)
        logger.info("Initial balance of account %s set to %s %s", account_id, amount, currency)

    def balances(
        self,
        company_id: int,
        as_of: Optional[date] = None,
        currency: Optional[str] = None,
    ) -> MoneyAccountBalances:
        """Balances of every bank account and wallet, per currency.

        Args:
            company_id: Owning company
            as_of: Last date included; defaults to today
            currency: Currency for the summary; defaults to the company's
                functional currency

        Raises:
            NotFoundError: If the company does not exist
            UnknownCurrencyError: If a balance currency has no rate
        """
        company = self.db.get_company(company_id)
        if company is None:
            raise NotFoundError(company_not_found(company_id))
        as_of = as_of or date.today()
        currency = (currency or company.functional_currency).upper()

        money_accounts = self.db.list_money_accounts(company_id)
        entries = self.db.get_entries(company_id, None, as_of)
        initial_balances = self.db.list_initial_balances(company_id)
        rates = self.db.get_rates(as_of=as_of) or [CurrencyRate(currency, Decimal("1"), is_base=True)]

        snapshots: list[BalanceSnapshot] = []
        for ledger_account_id in dict.fromkeys(m.ledger_account_id for m in money_accounts):
            snapshots.extend(
                balances_by_currency(ledger_account_id, as_of, initial_balances, entries)
            )

        accounts = {a.id: a for a in self.db.list_accounts(company_id, include_inactive=True)}
        return MoneyAccountBalances(
            as_of=as_of,
            snapshots=tuple(snapshots),
            by_kind=group_by_kind(snapshots, money_accounts),
            summary=summarize_balances(snapshots, accounts, currency, RateTable(rates)),
            issues=tuple(stale_account_issues(money_accounts, entries, as_of)),
        )
