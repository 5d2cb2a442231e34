"""Builds the ledger store the CLI and tests run against."""

import os
from pathlib import Path
from typing import Optional

from fundtrack.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV_VAR = "FUNDTRACK_DB_PATH"
DEFAULT_DB_DIR_NAME = ".fundtrack"
DEFAULT_DB_FILE_NAME = "fundtrack.db"


def resolve_database_path(database_path: Optional[str] = None) -> Path:
    """Pick the ledger file: explicit path, then FUNDTRACK_DB_PATH, then the home default.

    The parent directory is created so a fresh install can write its first entry.
    """
    chosen = database_path or os.environ.get(DB_PATH_ENV_VAR)
    path = Path(chosen).expanduser() if chosen else Path.home() / DEFAULT_DB_DIR_NAME / DEFAULT_DB_FILE_NAME
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Open the SQLite-backed ledger store.

    Args:
        database_path: Ledger file. Falls back to FUNDTRACK_DB_PATH, then
            ~/.fundtrack/fundtrack.db

    Returns:
        Store bound to the resolved file (not yet connected)
    """
    return SQLAlchemyDatabase(f"sqlite:///{resolve_database_path(database_path)}")
