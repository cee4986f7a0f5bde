"""Company domain service."""

from typing import Optional
from finstate.database.base import Database
from finstate.domain.entities import Company
from finstate.domain.errors import ConflictError, ValidationError


class CompanyService:
    """Service for managing tenant companies."""

    def __init__(self, db: Database):
        """Initialize company service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_company(self, name: str, functional_currency: str = "USD") -> int:
        """Create a new company.

        Args:
            name: Company name
            functional_currency: Currency the company books in (ISO code)

        Returns:
            Company ID

        Raises:
            ValidationError: If the name or currency is empty
            ConflictError: If a company with that name already exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Company name cannot be empty")
        functional_currency = functional_currency.strip().upper()
        if not functional_currency:
            raise ValidationError("Functional currency cannot be empty")
        if self.db.get_company_by_name(name) is not None:
            raise ConflictError(f"Company with name '{name}' already exists")
        return self.db.create_company(name=name, functional_currency=functional_currency)

    def get_company(self, company_id: int) -> Optional[Company]:
        return self.db.get_company(company_id)

    def get_company_by_name(self, name: str) -> Optional[Company]:
        return self.db.get_company_by_name(name)

    def list_companies(self) -> list[Company]:
        return self.db.list_companies()
