"""Utility for resolving company names to IDs."""

from typing import Optional

from finstate.domain.company import CompanyService


def resolve_company(company_service: CompanyService, company: Optional[str | int]) -> int:
    """Resolve company name or ID to company ID.

    When no company is given and exactly one exists, that one is used.

    Args:
        company_service: CompanyService instance
        company: Company name (str) or ID (int or string representation of int)

    Returns:
        Company ID

    Raises:
        ValueError: If company is not found or ambiguous
    """
    if company is None:
        companies = company_service.list_companies()
        if len(companies) == 1:
            return companies[0].id
        if not companies:
            raise ValueError("No companies found. Create one with 'finstate company create'")
        raise ValueError("Several companies exist; specify one with --company")

    if isinstance(company, int):
        if company_service.get_company(company) is None:
            raise ValueError(f"Company ID {company} not found")
        return company

    by_name = company_service.get_company_by_name(company)
    if by_name is not None:
        return by_name.id

    try:
        company_id = int(company)
    except (ValueError, TypeError):
        raise ValueError(f"Company '{company}' not found") from None
    if company_service.get_company(company_id) is None:
        raise ValueError(f"Company ID {company_id} not found")
    return company_id
