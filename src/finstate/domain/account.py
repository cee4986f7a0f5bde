"""Chart of accounts domain service."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from finstate.database.base import Database
from finstate.domain.entities import Account, AccountType, Classification
from finstate.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    company_not_found,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountTemplate:
    """Account definition used to seed a chart of accounts."""

    code: str
    name: str
    type: AccountType
    classification: Optional[Classification] = None
    category: Optional[str] = None
    ifrs_reference: Optional[str] = None
    subcategory: Optional[str] = None


class AccountService:
    """Service for managing a company's chart of accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        company_id: int,
        code: str,
        name: str,
        account_type: AccountType | str,
        classification: Optional[Classification | str] = None,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        ifrs_reference: Optional[str] = None,
    ) -> int:
        """Create a new account.

        Args:
            company_id: Owning company
            code: Account code, unique within the company
            name: Account name
            account_type: asset, liability, equity, revenue or expense
            classification: Current/non-current split for balance sheet accounts
            category: IFRS category used by the classifier
            subcategory: Optional finer grouping
            ifrs_reference: Standard paragraph shown on statements

        Returns:
            Account ID

        Raises:
            NotFoundError: If the company does not exist
            ValidationError: If the code, name or type is invalid
            ConflictError: If the code is already used in the company
        """
        if self.db.get_company(company_id) is None:
            raise NotFoundError(company_not_found(company_id))
        code = code.strip()
        name = name.strip()
        if not code or not name:
            raise ValidationError("Account code and name are required")
        try:
            account_type = AccountType(account_type)
            classification = Classification(classification) if classification else None
        except ValueError as e:
            raise ValidationError(str(e)) from None
        if classification is not None and account_type in (AccountType.REVENUE, AccountType.EXPENSE):
            if classification != Classification.NOT_APPLICABLE:
                raise ValidationError(
                    f"{account_type.value.capitalize()} accounts cannot be classified as "
                    f"{classification.value}"
                )

        if self.db.get_account_by_code(company_id, code) is not None:
            raise ConflictError(f"Account with code '{code}' already exists")

        return self.db.create_account(
            company_id=company_id,
            code=code,
            name=name,
            account_type=account_type,
            classification=classification,
            category=category,
            subcategory=subcategory,
            ifrs_reference=ifrs_reference,
        )

    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def get_account_by_code(self, company_id: int, code: str) -> Optional[Account]:
        return self.db.get_account_by_code(company_id, code)

    def list_accounts(self, company_id: int, include_inactive: bool = False) -> list[Account]:
        """List a company's accounts ordered by code.

        Args:
            company_id: Owning company
            include_inactive: Also return deactivated accounts

        Returns:
            List of account entities
        """
        return self.db.list_accounts(company_id, include_inactive=include_inactive)

    def deactivate_account(self, account_id: int) -> None:
        """Deactivate an account so no new entries can be posted to it.

        Accounts are never deleted once they carry entries; history stays
        reportable.

        Raises:
            NotFoundError: If the account does not exist
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        self.db.set_account_active(account_id, False)

    def activate_account(self, account_id: int) -> None:
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        self.db.set_account_active(account_id, True)

    def seed_chart(self, company_id: int, templates: Iterable[AccountTemplate]) -> int:
        """Create every template account whose code is not taken yet.

        Returns:
            Number of accounts created
        """
        created = 0
        for template in templates:
            if self.db.get_account_by_code(company_id, template.code) is not None:
                continue
            self.create_account(
                company_id=company_id,
                code=template.code,
                name=template.name,
                account_type=template.type,
                classification=template.classification,
                category=template.category,
                subcategory=template.subcategory,
                ifrs_reference=template.ifrs_reference,
            )
            created += 1
        logger.info("Seeded %d accounts for company %s", created, company_id)
        return created
