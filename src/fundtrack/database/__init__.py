"""Database layer for fundtrack application."""

from fundtrack.database.base import Database
from fundtrack.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
