"""Attachment domain service.

Attachment metadata lives in the store; file bytes live under the
attachments directory as ``YYYY/MM/<entry id>_<uuid>.<ext>``.
"""

import logging
import mimetypes
import uuid
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

from ledgerly.config import Settings
from ledgerly.database.base import Database
from ledgerly.domain.audit import AuditService
from ledgerly.domain.entities import Attachment as AttachmentEntity
from ledgerly.domain.errors import (
    NotFoundError,
    PersistenceError,
    ValidationError,
    attachment_not_found,
    journal_entry_not_found,
)
from ledgerly.domain.validation import require_text

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


class AttachmentService:
    """Service for files attached to journal entries."""

    def __init__(self, db: Database, settings: Optional[Settings] = None):
        """Initialize attachment service.

        Args:
            db: Database instance
            settings: Storage location and size limit; taken from the database
                (or the environment) when omitted
        """
        self.db = db
        self.audit = AuditService(db)
        if settings is None:
            settings = getattr(db, "settings", None) or Settings.from_env(
                database_path=getattr(db, "database_path", None)
            )
        self.storage_dir = Path(settings.attachments_path)
        self.max_file_size = settings.max_file_size_bytes

    def file_path(self, attachment: AttachmentEntity) -> Path:
        """Return the on-disk location of an attachment's bytes."""
        return self.storage_dir / attachment.stored_filename

    def add_attachment(
        self,
        journal_entry_id: int,
        filename: str,
        content: bytes,
        mime_type: Optional[str] = None,
        source: str = "API",
    ) -> int:
        """Store a file and bind it to a journal entry.

        Args:
            journal_entry_id: Entry to attach to
            filename: Original file name
            content: File bytes
            mime_type: Media type (guessed from the file name when omitted)
            source: Audit source

        Returns:
            Attachment ID

        Raises:
            NotFoundError: If the journal entry doesn't exist
            ValidationError: If the file is empty, too large, or has no name
            PersistenceError: If the file cannot be written to the attachments directory
        """
        filename = require_text(Path(filename or "").name, "Filename", 255)
        if not content:
            raise ValidationError("Attachment is empty")
        if len(content) > self.max_file_size:
            limit_mb = self.max_file_size // (1024 * 1024)
            raise ValidationError(f"File size exceeds {limit_mb}MB limit")
        if mime_type is None:
            mime_type = mimetypes.guess_type(filename)[0] or DEFAULT_MIME_TYPE

        today = date.today()
        extension = Path(filename).suffix.lstrip(".") or "bin"
        stored_filename = (
            f"{today.year}/{today.month:02d}/{journal_entry_id}_{uuid.uuid4()}.{extension}"
        )
        target = self.storage_dir / stored_filename

        with self.db.mutation():
            if self.db.get_journal_entry(journal_entry_id) is None:
                raise NotFoundError(journal_entry_not_found(journal_entry_id))

            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(content)
            except OSError as e:
                if target.exists():
                    target.unlink()
                raise PersistenceError(f"Cannot store attachment file {stored_filename}: {e}") from e
            try:
                attachment_id = self.db.create_attachment(
                    journal_entry_id=journal_entry_id,
                    filename=filename,
                    stored_filename=stored_filename,
                    mime_type=mime_type,
                    file_size=len(content),
                )
                self.audit.record(
                    "CREATE",
                    "attachment",
                    attachment_id,
                    source=source,
                    new_data=self.db.get_attachment(attachment_id),
                )
            except Exception:
                target.unlink(missing_ok=True)
                raise

        logger.info("Attached %s to journal entry %s", filename, journal_entry_id)
        return attachment_id

    def add_attachment_from_path(
        self,
        journal_entry_id: int,
        path: str | Path,
        mime_type: Optional[str] = None,
        source: str = "API",
    ) -> int:
        """Attach a file read from disk. See add_attachment."""
        path = Path(path)
        if path.stat().st_size > self.max_file_size:
            limit_mb = self.max_file_size // (1024 * 1024)
            raise ValidationError(f"File size exceeds {limit_mb}MB limit")
        return self.add_attachment(
            journal_entry_id, path.name, path.read_bytes(), mime_type=mime_type, source=source
        )

    def get_attachment(self, attachment_id: int) -> Optional[AttachmentEntity]:
        """Get attachment by ID.

        Returns:
            Attachment entity or None if not found
        """
        return self.db.get_attachment(attachment_id)

    def list_attachments(self, journal_entry_id: Optional[int] = None) -> list[AttachmentEntity]:
        """List attachments, optionally for one journal entry."""
        return self.db.list_attachments(journal_entry_id=journal_entry_id)

    def read_attachment(self, attachment_id: int) -> bytes:
        """Return an attachment's bytes.

        Raises:
            NotFoundError: If the attachment or its file doesn't exist
        """
        attachment = self.db.get_attachment(attachment_id)
        if attachment is None:
            raise NotFoundError(attachment_not_found(attachment_id))
        path = self.file_path(attachment)
        if not path.exists():
            raise NotFoundError(f"File for attachment {attachment_id} is missing")
        return path.read_bytes()

    def delete_attachment(self, attachment_id: int, source: str = "API") -> None:
        """Delete an attachment and its stored file.

        Raises:
            NotFoundError: If the attachment doesn't exist
        """
        with self.db.mutation():
            existing = self.db.get_attachment(attachment_id)
            if existing is None:
                raise NotFoundError(attachment_not_found(attachment_id))
            self.db.delete_attachment(attachment_id)
            self.audit.record("DELETE", "attachment", attachment_id, source=source, old_data=existing)

        self.remove_files([existing])

    def remove_files(self, attachments: Iterable[AttachmentEntity]) -> None:
        """Unlink stored files whose rows are already gone.

        A file that cannot be removed is logged and left behind; the store
        no longer references it.
        """
        for attachment in attachments:
            path = self.file_path(attachment)
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove attachment file %s: %s", path, e)
