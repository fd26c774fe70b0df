"""Database layer for ledgerly application."""

from ledgerly.database.base import Database
from ledgerly.database.factories import create_sqlite_database
from ledgerly.database.persistence import PersistenceManager

__all__ = ["Database", "PersistenceManager", "create_sqlite_database"]
