"""Runtime settings sourced from environment variables."""

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".ledgerly" / "ledgerly.db"


@dataclass(frozen=True)
class Settings:
    """Settings for the ledger store and its collaborators.

    Attributes:
        database_path: Backing file of the in-memory store.
        attachments_path: Directory holding uploaded attachment files.
        checkpoint_interval: Seconds between periodic checkpoints; 0 disables them.
        max_file_size_mb: Largest accepted attachment, in megabytes.
        log_level: Root log level name used by the command line.
    """

    database_path: Path
    attachments_path: Path
    checkpoint_interval: float = 5.0
    max_file_size_mb: int = 10
    log_level: str = "WARNING"

    @property
    def max_file_size_bytes(self) -> int:
        """Attachment size limit in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @classmethod
    def from_env(cls, database_path: Optional[str | Path] = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            database_path: Explicit backing file; overrides LEDGERLY_DB_PATH.

        Returns:
            Settings: Settings sourced from environment variables.
        """
        raw_db_path = database_path or os.getenv("LEDGERLY_DB_PATH")
        db_path = Path(raw_db_path).expanduser() if raw_db_path else DEFAULT_DB_PATH

        raw_attachments = os.getenv("LEDGERLY_ATTACHMENTS_PATH")
        attachments_path = (
            Path(raw_attachments).expanduser() if raw_attachments else db_path.parent / "attachments"
        )

        return cls(
            database_path=db_path,
            attachments_path=attachments_path,
            checkpoint_interval=cls._read_number(
                "LEDGERLY_CHECKPOINT_INTERVAL", 5.0, float
            ),
            max_file_size_mb=cls._read_number("LEDGERLY_MAX_FILE_SIZE_MB", 10, int),
            log_level=os.getenv("LEDGERLY_LOG_LEVEL", "WARNING").strip().upper(),
        )

    @staticmethod
    def _read_number(name: str, default, cast):
        """Read a numeric environment variable, falling back on bad input."""
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            return default
        try:
            value = cast(raw.strip())
        except ValueError:
            logger.warning(f"Ignoring {name}={raw!r}: not a number, using {default}")
            return default
        if value < 0:
            logger.warning(f"Ignoring {name}={raw!r}: negative, using {default}")
            return default
        return value


__all__ = ["Settings"]
