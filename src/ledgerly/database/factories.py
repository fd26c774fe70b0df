"""Database factory functions for creating database instances."""

from dataclasses import replace
from pathlib import Path
from typing import Optional

from ledgerly.config import Settings
from ledgerly.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(
    database_path: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> SQLAlchemyDatabase:
    """Create an in-memory SQLite store backed by a snapshot file.

    Args:
        database_path: Path to the backing file. If None, checks LEDGERLY_DB_PATH
            environment variable, then defaults to ~/.ledgerly/ledgerly.db
        settings: Explicit settings; built from the environment when omitted

    Returns:
        SQLAlchemyDatabase instance; call connect() and initialize_schema() before use
    """
    if settings is None:
        settings = Settings.from_env(database_path=database_path)
    elif database_path is not None:
        settings = replace(settings, database_path=Path(database_path))

    db = SQLAlchemyDatabase(settings.database_path, checkpoint_interval=settings.checkpoint_interval)
    db.settings = settings
    return db
