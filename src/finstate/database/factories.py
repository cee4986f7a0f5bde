"""Database factory functions for creating database instances."""

import logging
import os
from pathlib import Path
from typing import Union

from finstate.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)

DB_PATH_ENV = "FINSTATE_DB_PATH"


def default_database_path() -> Path:
    """Ledger location when neither ``--db-path`` nor FINSTATE_DB_PATH is set."""
    return Path.home() / ".finstate" / "finstate.db"


def resolve_database_path(database_path: Union[str, Path, None] = None) -> Path:
    """Decide which SQLite file holds the ledger.

    An explicit path wins over the FINSTATE_DB_PATH environment variable,
    which wins over the default. ``~`` is expanded and the parent directory
    is created, so a fresh path can be opened straight away.
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV) or default_database_path()
    path = Path(database_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def create_sqlite_database(database_path: Union[str, Path, None] = None) -> SQLAlchemyDatabase:
    """Create a SQLite-backed ledger database.

    Args:
        database_path: SQLite file; see ``resolve_database_path`` for the fallbacks

    Returns:
        SQLAlchemyDatabase instance, not yet connected
    """
    path = resolve_database_path(database_path)
    logger.debug("Opening ledger database at %s", path)
    return SQLAlchemyDatabase(f"sqlite:///{path}")
