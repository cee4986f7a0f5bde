"""Utility functions for finstate."""

from finstate.utils.date_parser import parse_date
from finstate.utils.amount_parser import parse_amount, parse_money
from finstate.utils.account_resolver import resolve_account
from finstate.utils.company_resolver import resolve_company

__all__ = ["parse_date", "parse_amount", "parse_money", "resolve_account", "resolve_company"]
