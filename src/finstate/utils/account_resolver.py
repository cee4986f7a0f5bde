"""Utility for resolving account codes to IDs."""

from finstate.domain.account import AccountService


def resolve_account(account_service: AccountService, company_id: int, account: str | int) -> int:
    """Resolve account code or ID to account ID.

    Codes are tried first, since account codes are usually numeric too
    ("1000"); a value that matches no code is treated as an ID.

    Args:
        account_service: AccountService instance
        company_id: Company the account must belong to
        account: Account code (str) or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        ValueError: If account is not found
    """
    if not isinstance(account, int):
        by_code = account_service.get_account_by_code(company_id, account.strip())
        if by_code is not None:
            return by_code.id

    try:
        account_id = int(account)
    except (ValueError, TypeError):
        raise ValueError(f"Account '{account}' not found") from None

    account_obj = account_service.get_account(account_id)
    if account_obj is None or account_obj.company_id != company_id:
        raise ValueError(f"Account '{account}' not found")
    return account_id
