"""Audit trail domain service."""

import dataclasses
import json
import uuid
from datetime import date
from typing import Any, Optional

from ledgerly.database.base import Database
from ledgerly.domain.entities import AuditLog as AuditLogEntity
from ledgerly.domain.errors import ValidationError

OPERATIONS = ("CREATE", "UPDATE", "DELETE")
RESOURCE_TYPES = ("currency", "gl_account", "subledger_account", "journal_entry", "attachment")
SOURCES = ("Web UI", "CSV Import", "API", "CLI")


def generate_batch_id() -> str:
    """Return a new identifier grouping the audit records of one batch."""
    return str(uuid.uuid4())


def serialize_audit_data(data: Any) -> Optional[str]:
    """Serialize an entity snapshot to JSON text.

    Dataclass entities are converted field by field; dates, decimals and
    enums fall back to their string form.
    """
    if data is None:
        return None
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        data = dataclasses.asdict(data)
    return json.dumps(data, default=str, sort_keys=True)


def describe(operation: str, resource_type: str, resource_id: Any) -> str:
    """Return a one-line description such as "journal entry 12 created"."""
    verb = {"CREATE": "created", "UPDATE": "updated", "DELETE": "deleted"}[operation]
    return f"{resource_type.replace('_', ' ')} {resource_id} {verb}"


class AuditService:
    """Service for recording and querying the audit trail."""

    def __init__(self, db: Database):
        """Initialize audit service.

        Args:
            db: Database instance
        """
        self.db = db

    def record(
        self,
        operation: str,
        resource_type: str,
        resource_id: Any,
        source: str = "API",
        old_data: Any = None,
        new_data: Any = None,
        description: Optional[str] = None,
        batch_id: Optional[str] = None,
        batch_summary: Optional[str] = None,
    ) -> int:
        """Write one audit record.

        Callers invoke this inside their own ``db.mutation()`` block so the
        record commits, or rolls back, together with the change it describes.

        Args:
            operation: CREATE, UPDATE or DELETE
            resource_type: Kind of record changed
            resource_id: Identifier of the record changed
            source: Where the change came from
            old_data: Entity (or dict) before the change
            new_data: Entity (or dict) after the change
            description: Free-text description; generated when omitted
            batch_id: Identifier shared by all records of one import
            batch_summary: Summary of the batch, used as description when given

        Returns:
            Audit log ID

        Raises:
            ValidationError: If operation, resource type or source is unknown
        """
        if operation not in OPERATIONS:
            raise ValidationError(f"Unknown audit operation '{operation}'")
        if resource_type not in RESOURCE_TYPES:
            raise ValidationError(f"Unknown audit resource type '{resource_type}'")
        if source not in SOURCES:
            raise ValidationError(
                f"Unknown audit source '{source}'. Expected one of: {', '.join(SOURCES)}"
            )

        if description is None:
            description = batch_summary or describe(operation, resource_type, resource_id)

        return self.db.create_audit_log(
            operation=operation,
            resource_type=resource_type,
            resource_id=str(resource_id),
            source=source,
            old_data=serialize_audit_data(old_data),
            new_data=serialize_audit_data(new_data),
            description=description,
            batch_id=batch_id,
            batch_summary=batch_summary,
        )

    def list_logs(
        self,
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None,
        operation: Optional[str] = None,
        source: Optional[str] = None,
        batch_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[AuditLogEntity]:
        """List audit records, newest first.

        Args:
            start_date: Earliest day to include
            end_date: Latest day to include

        Returns:
            List of audit log entities
        """
        return self.db.list_audit_logs(
            resource_type=resource_type,
            resource_id=None if resource_id is None else str(resource_id),
            operation=operation,
            source=source,
            batch_id=batch_id,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
        )
