"""Database factory functions for creating database instances."""

from typing import Optional

from finledger.config import LedgerSettings
from finledger.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks FINLEDGER_DB_PATH
            environment variable, then defaults to ~/.finledger/finledger.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = LedgerSettings.from_env().resolved_database_path()

    return SQLAlchemyDatabase(f"sqlite:///{database_path}")
