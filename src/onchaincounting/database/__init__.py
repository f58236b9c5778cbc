"""Database layer for onchaincounting."""

from onchaincounting.database.base import Database
from onchaincounting.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
