"""Factory functions for creating local record stores."""

import logging
import os
from pathlib import Path
from typing import Optional

from cashbook.database.resilient import ResilientRecordStore
from cashbook.database.sqlalchemy_store import SQLAlchemyRecordStore
from cashbook.domain.errors import StorageUnavailable

logger = logging.getLogger(__name__)


def default_database_path() -> str:
    """Return the database path from CASHBOOK_DB_PATH or ~/.cashbook/cashbook.db."""
    database_path = os.environ.get("CASHBOOK_DB_PATH")
    if database_path:
        return database_path

    home = Path(os.environ.get("CASHBOOK_HOME") or Path.home() / ".cashbook")
    home.mkdir(parents=True, exist_ok=True)
    return str(home / "cashbook.db")


def create_sqlite_store(database_path: Optional[str] = None) -> ResilientRecordStore:
    """Create a SQLite-backed local store.

    Args:
        database_path: Path to SQLite database file. If None, checks CASHBOOK_DB_PATH
            environment variable, then defaults to ~/.cashbook/cashbook.db

    Returns:
        ResilientRecordStore wrapping the SQLite store, or an in-memory store if
        the database file cannot be opened
    """
    if database_path is None:
        database_path = default_database_path()

    try:
        primary = SQLAlchemyRecordStore(f"sqlite:///{database_path}")
    except StorageUnavailable as e:
        logger.warning("Falling back to in-memory store: %s", e)
        primary = None
    return ResilientRecordStore(primary)
