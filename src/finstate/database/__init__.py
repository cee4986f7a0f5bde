"""Database layer for finstate."""

from finstate.database.base import Database
from finstate.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
