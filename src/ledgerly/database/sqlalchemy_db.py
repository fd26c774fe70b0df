"""SQLAlchemy implementation of the ledger store.

The store is an in-memory SQLite database made durable by whole-image
checkpoints (see ``persistence``). One re-entrant lock serializes every
mutation together with its checkpoint, so writers never interleave and a
checkpoint never exports a half-applied change.
"""

import logging
import threading
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path
from typing import Optional, Any, Iterator
from datetime import date, datetime, time, timedelta

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ledgerly.config import Settings
from ledgerly.database.base import Database
from ledgerly.database.models import (
    Currency,
    GLAccount,
    SubledgerAccount,
    JournalEntry,
    Attachment,
    AuditLog,
    create_memory_engine,
    create_session_factory,
    install_schema,
)
from ledgerly.database.mappers import (
    currency_to_domain,
    gl_account_to_domain,
    subledger_to_domain,
    posting_account_to_domain,
    journal_entry_to_domain,
    attachment_to_domain,
    audit_log_to_domain,
)
from ledgerly.database.persistence import PersistenceManager
from ledgerly.domain.account_types import AccountType
from ledgerly.domain.entities import (
    Currency as DomainCurrency,
    GLAccount as DomainGLAccount,
    SubledgerAccount as DomainSubledgerAccount,
    PostingAccount as DomainPostingAccount,
    JournalEntry as DomainJournalEntry,
    Attachment as DomainAttachment,
    AuditLog as DomainAuditLog,
    LedgerSnapshot,
)
from ledgerly.domain.errors import (
    ConflictError,
    DomainError,
    InvariantViolation,
    ValidationError,
    same_debit_credit,
    currency_not_found,
    gl_account_not_found,
    subledger_not_found,
    journal_entry_not_found,
    attachment_not_found,
    NotFoundError,
)

logger = logging.getLogger(__name__)

REPORTING_CURRENCY = {
    "code": "USD",
    "name": "US Dollar",
    "symbol": "$",
    "exchange_rate": Decimal("1"),
    "is_default": True,
}

_CURRENCY_COLUMNS = frozenset({"name", "symbol", "exchange_rate", "is_default"})
_GL_ACCOUNT_COLUMNS = frozenset({"account_number", "name", "type", "description", "is_active"})
_SUBLEDGER_COLUMNS = frozenset(
    {"account_number", "name", "gl_account_id", "currency_code", "description", "is_active"}
)
_JOURNAL_ENTRY_COLUMNS = frozenset(
    {
        "entry_date",
        "amount",
        "currency_code",
        "amount_in_usd",
        "debit_account_id",
        "credit_account_id",
        "description",
        "category",
        "comment",
    }
)

_TRIGGER_MESSAGES = (same_debit_credit(), "Amount must be positive")


def translate_integrity_error(error: IntegrityError) -> DomainError:
    """Map a storage constraint failure onto a domain error."""
    message = str(error.orig)
    for trigger_message in _TRIGGER_MESSAGES:
        if trigger_message in message:
            return InvariantViolation(trigger_message)
    if "UNIQUE constraint failed" in message:
        return ConflictError(f"Duplicate value: {message}")
    if "FOREIGN KEY constraint failed" in message:
        return ConflictError(
            "Operation violates a reference: the referenced record is missing or still in use"
        )
    return ValidationError(message)


def _apply_changes(obj: Any, changes: dict[str, Any], allowed: frozenset[str]) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Unknown fields for {type(obj).__name__}: {', '.join(sorted(unknown))}")
    for field_name, value in changes.items():
        setattr(obj, field_name, value)


class SQLAlchemyDatabase(Database):
    """SQLAlchemy-based implementation of Database interface."""

    def __init__(self, database_path: str | Path, checkpoint_interval: float = 5.0):
        """Initialize SQLAlchemy database.

        Args:
            database_path: Backing file the in-memory store is loaded from
                and checkpointed to
            checkpoint_interval: Seconds between periodic checkpoints (0 disables)
        """
        self.database_path = Path(database_path)
        self.engine = create_memory_engine()
        self.session_factory = create_session_factory(self.engine)
        self._session: Optional[Session] = None
        self._lock = threading.RLock()
        self._mutation_depth = 0
        self.settings: Optional[Settings] = None

        raw = self.engine.raw_connection()
        driver_connection = raw.driver_connection
        raw.close()
        self.persistence = PersistenceManager(
            self.database_path, driver_connection, self._lock, checkpoint_interval
        )

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def connect(self) -> None:
        """Load the store image from its backing file, if any.

        Raises:
            CorruptStoreError: If the backing file is unreadable or corrupt
        """
        self.persistence.load()

    def disconnect(self) -> None:
        """Stop the checkpoint timer, write a final checkpoint and close."""
        try:
            self.persistence.shutdown()
        finally:
            if self._session is not None:
                self._session.close()
                self._session = None

    def initialize_schema(self) -> None:
        """Install tables and triggers, seed USD on a new store, start the timer."""
        with self.mutation():
            session = self._get_session()
            install_schema(session.connection())
            if session.query(Currency).count() == 0:
                session.add(Currency(**REPORTING_CURRENCY))
                logger.info("New store at %s, seeded reporting currency USD", self.database_path)
        self.persistence.start()

    @contextmanager
    def mutation(self) -> Iterator[None]:
        """Hold the store lock for one atomic mutation.

        The outermost block commits on success, rolls back on any exception
        and then checkpoints while still holding the lock. A checkpoint
        failure raises PersistenceError after the commit; the change stays
        in memory and is retried by the next checkpoint.
        """
        with self._lock:
            outermost = self._mutation_depth == 0
            self._mutation_depth += 1
            try:
                yield
                if outermost:
                    self._get_session().commit()
            except IntegrityError as e:
                if outermost:
                    self._get_session().rollback()
                raise translate_integrity_error(e) from e
            except BaseException:
                if outermost:
                    self._get_session().rollback()
                raise
            finally:
                self._mutation_depth -= 1

            if outermost:
                self.persistence.checkpoint()

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold the store lock across several queries."""
        with self._lock:
            yield

    def checkpoint(self) -> int:
        """Write the whole store to its backing file. Returns bytes written."""
        return self.persistence.checkpoint()

    # Currency operations
    def create_currency(
        self,
        code: str,
        name: str,
        symbol: str,
        exchange_rate: Decimal,
        is_default: bool = False,
    ) -> str:
        """Create a new currency. Returns currency code."""
        with self.mutation():
            session = self._get_session()
            currency = Currency(
                code=code,
                name=name,
                symbol=symbol,
                exchange_rate=exchange_rate,
                is_default=is_default,
            )
            session.add(currency)
            session.flush()
            return currency.code

    def get_currency(self, code: str) -> Optional[DomainCurrency]:
        """Get currency by code."""
        with self._lock:
            session = self._get_session()
            currency = session.query(Currency).filter(Currency.code == code).first()
            if currency is None:
                return None
            return currency_to_domain(currency)

    def get_default_currency(self) -> Optional[DomainCurrency]:
        """Get the default (reporting) currency."""
        with self._lock:
            session = self._get_session()
            currency = session.query(Currency).filter(Currency.is_default.is_(True)).first()
            if currency is None:
                return None
            return currency_to_domain(currency)

    def list_currencies(self) -> list[DomainCurrency]:
        """List all currencies."""
        with self._lock:
            session = self._get_session()
            currencies = session.query(Currency).order_by(Currency.code).all()
            return [currency_to_domain(c) for c in currencies]

    def update_currency(self, code: str, **changes: Any) -> None:
        """Update currency columns given as keyword arguments."""
        with self.mutation():
            session = self._get_session()
            currency = session.query(Currency).filter(Currency.code == code).first()
            if currency is None:
                raise NotFoundError(currency_not_found(code))
            _apply_changes(currency, changes, _CURRENCY_COLUMNS)
            session.flush()

    def clear_default_currency(self) -> None:
        """Unset the default flag on every currency."""
        with self.mutation():
            session = self._get_session()
            for currency in session.query(Currency).filter(Currency.is_default.is_(True)).all():
                currency.is_default = False
            session.flush()

    def delete_currency(self, code: str) -> None:
        """Delete a currency."""
        with self.mutation():
            session = self._get_session()
            currency = session.query(Currency).filter(Currency.code == code).first()
            if currency is None:
                raise NotFoundError(currency_not_found(code))
            session.delete(currency)
            session.flush()

    def count_currency_references(self, code: str) -> dict[str, int]:
        """Count subledger accounts and journal entries using a currency."""
        with self._lock:
            session = self._get_session()
            return {
                "subledger account": session.query(SubledgerAccount)
                .filter(SubledgerAccount.currency_code == code)
                .count(),
                "journal entry": session.query(JournalEntry)
                .filter(JournalEntry.currency_code == code)
                .count(),
            }

    # GL account operations
    def create_gl_account(
        self,
        account_number: str,
        name: str,
        account_type: AccountType,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> int:
        """Create a new GL account. Returns account ID."""
        with self.mutation():
            session = self._get_session()
            account = GLAccount(
                account_number=account_number,
                name=name,
                type=AccountType(account_type).value,
                description=description,
                is_active=is_active,
            )
            session.add(account)
            session.flush()
            return account.id

    def get_gl_account(self, account_id: int) -> Optional[DomainGLAccount]:
        """Get GL account by ID."""
        with self._lock:
            session = self._get_session()
            account = session.query(GLAccount).filter(GLAccount.id == account_id).first()
            if account is None:
                return None
            return gl_account_to_domain(account)

    def get_gl_account_by_number(self, account_number: str) -> Optional[DomainGLAccount]:
        """Get GL account by account number."""
        with self._lock:
            session = self._get_session()
            account = (
                session.query(GLAccount).filter(GLAccount.account_number == account_number).first()
            )
            if account is None:
                return None
            return gl_account_to_domain(account)

    def list_gl_accounts(
        self,
        active: Optional[bool] = None,
        account_type: Optional[AccountType] = None,
    ) -> list[DomainGLAccount]:
        """List GL accounts, optionally filtered."""
        with self._lock:
            session = self._get_session()
            query = session.query(GLAccount)
            if active is not None:
                query = query.filter(GLAccount.is_active.is_(active))
            if account_type is not None:
                query = query.filter(GLAccount.type == AccountType(account_type).value)
            accounts = query.order_by(GLAccount.account_number).all()
            return [gl_account_to_domain(acc) for acc in accounts]

    def update_gl_account(self, account_id: int, **changes: Any) -> None:
        """Update GL account columns given as keyword arguments."""
        if "type" in changes:
            changes["type"] = AccountType(changes["type"]).value
        with self.mutation():
            session = self._get_session()
            account = session.query(GLAccount).filter(GLAccount.id == account_id).first()
            if account is None:
                raise NotFoundError(gl_account_not_found(account_id))
            _apply_changes(account, changes, _GL_ACCOUNT_COLUMNS)
            session.flush()

    def delete_gl_account(self, account_id: int) -> None:
        """Delete a GL account."""
        with self.mutation():
            session = self._get_session()
            account = session.query(GLAccount).filter(GLAccount.id == account_id).first()
            if account is None:
                raise NotFoundError(gl_account_not_found(account_id))
            session.delete(account)
            session.flush()

    def count_gl_account_subledgers(self, account_id: int) -> int:
        """Count subledger accounts under a GL account."""
        with self._lock:
            session = self._get_session()
            return (
                session.query(SubledgerAccount)
                .filter(SubledgerAccount.gl_account_id == account_id)
                .count()
            )

    # Subledger account operations
    def create_subledger_account(
        self,
        account_number: str,
        name: str,
        gl_account_id: int,
        currency_code: str,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> int:
        """Create a new subledger account. Returns account ID."""
        with self.mutation():
            session = self._get_session()
            account = SubledgerAccount(
                account_number=account_number,
                name=name,
                gl_account_id=gl_account_id,
                currency_code=currency_code,
                description=description,
                is_active=is_active,
            )
            session.add(account)
            session.flush()
            return account.id

    def get_subledger_account(self, account_id: int) -> Optional[DomainSubledgerAccount]:
        """Get subledger account by ID."""
        with self._lock:
            session = self._get_session()
            account = (
                session.query(SubledgerAccount).filter(SubledgerAccount.id == account_id).first()
            )
            if account is None:
                return None
            return subledger_to_domain(account)

    def get_subledger_account_by_number(
        self, account_number: str
    ) -> Optional[DomainSubledgerAccount]:
        """Get subledger account by account number."""
        with self._lock:
            session = self._get_session()
            account = (
                session.query(SubledgerAccount)
                .filter(SubledgerAccount.account_number == account_number)
                .first()
            )
            if account is None:
                return None
            return subledger_to_domain(account)

    def list_subledger_accounts(
        self,
        active: Optional[bool] = None,
        gl_account_id: Optional[int] = None,
        currency_code: Optional[str] = None,
    ) -> list[DomainSubledgerAccount]:
        """List subledger accounts, optionally filtered."""
        with self._lock:
            session = self._get_session()
            query = session.query(SubledgerAccount)
            if active is not None:
                query = query.filter(SubledgerAccount.is_active.is_(active))
            if gl_account_id is not None:
                query = query.filter(SubledgerAccount.gl_account_id == gl_account_id)
            if currency_code is not None:
                query = query.filter(SubledgerAccount.currency_code == currency_code)
            accounts = query.order_by(SubledgerAccount.account_number).all()
            return [subledger_to_domain(acc) for acc in accounts]

    def update_subledger_account(self, account_id: int, **changes: Any) -> None:
        """Update subledger account columns given as keyword arguments."""
        with self.mutation():
            session = self._get_session()
            account = (
                session.query(SubledgerAccount).filter(SubledgerAccount.id == account_id).first()
            )
            if account is None:
                raise NotFoundError(subledger_not_found(account_id))
            _apply_changes(account, changes, _SUBLEDGER_COLUMNS)
            session.flush()

    def delete_subledger_account(self, account_id: int) -> None:
        """Delete a subledger account."""
        with self.mutation():
            session = self._get_session()
            account = (
                session.query(SubledgerAccount).filter(SubledgerAccount.id == account_id).first()
            )
            if account is None:
                raise NotFoundError(subledger_not_found(account_id))
            session.delete(account)
            session.flush()

    def count_subledger_entries(self, account_id: int) -> int:
        """Count journal entries posting to a subledger account on either leg."""
        with self._lock:
            session = self._get_session()
            return (
                session.query(JournalEntry)
                .filter(
                    or_(
                        JournalEntry.debit_account_id == account_id,
                        JournalEntry.credit_account_id == account_id,
                    )
                )
                .count()
            )

    def get_posting_account(self, account_id: int) -> Optional[DomainPostingAccount]:
        """Get a subledger account joined with its GL account."""
        with self._lock:
            session = self._get_session()
            account = (
                session.query(SubledgerAccount)
                .options(joinedload(SubledgerAccount.gl_account))
                .filter(SubledgerAccount.id == account_id)
                .first()
            )
            if account is None:
                return None
            return posting_account_to_domain(account)

    def list_posting_accounts(self) -> list[DomainPostingAccount]:
        """List every subledger account joined with its GL account."""
        with self._lock:
            session = self._get_session()
            accounts = (
                session.query(SubledgerAccount)
                .options(joinedload(SubledgerAccount.gl_account))
                .order_by(SubledgerAccount.account_number)
                .all()
            )
            return [posting_account_to_domain(acc) for acc in accounts]

    # Journal entry operations
    def create_journal_entry(
        self,
        entry_date: date,
        amount: Decimal,
        currency_code: str,
        amount_in_usd: Decimal,
        debit_account_id: int,
        credit_account_id: int,
        description: str,
        category: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> int:
        """Create a new journal entry. Returns entry ID."""
        with self.mutation():
            session = self._get_session()
            entry = JournalEntry(
                entry_date=entry_date,
                amount=amount,
                currency_code=currency_code,
                amount_in_usd=amount_in_usd,
                debit_account_id=debit_account_id,
                credit_account_id=credit_account_id,
                description=description,
                category=category,
                comment=comment,
            )
            session.add(entry)
            session.flush()
            return entry.id

    def get_journal_entry(self, entry_id: int) -> Optional[DomainJournalEntry]:
        """Get journal entry by ID."""
        with self._lock:
            session = self._get_session()
            entry = session.query(JournalEntry).filter(JournalEntry.id == entry_id).first()
            if entry is None:
                return None
            return journal_entry_to_domain(entry)

    def list_journal_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        debit_account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        category: Optional[str] = None,
        currency_code: Optional[str] = None,
    ) -> list[DomainJournalEntry]:
        """List journal entries newest first, with optional filters."""
        with self._lock:
            session = self._get_session()
            query = session.query(JournalEntry)
            if start_date is not None:
                query = query.filter(JournalEntry.entry_date >= start_date)
            if end_date is not None:
                query = query.filter(JournalEntry.entry_date <= end_date)
            if account_id is not None:
                query = query.filter(
                    or_(
                        JournalEntry.debit_account_id == account_id,
                        JournalEntry.credit_account_id == account_id,
                    )
                )
            if debit_account_id is not None:
                query = query.filter(JournalEntry.debit_account_id == debit_account_id)
            if credit_account_id is not None:
                query = query.filter(JournalEntry.credit_account_id == credit_account_id)
            if category is not None:
                query = query.filter(JournalEntry.category == category)
            if currency_code is not None:
                query = query.filter(JournalEntry.currency_code == currency_code)
            entries = query.order_by(JournalEntry.entry_date.desc(), JournalEntry.id.desc()).all()
            return [journal_entry_to_domain(e) for e in entries]

    def update_journal_entry(self, entry_id: int, **changes: Any) -> None:
        """Update journal entry columns given as keyword arguments."""
        with self.mutation():
            session = self._get_session()
            entry = session.query(JournalEntry).filter(JournalEntry.id == entry_id).first()
            if entry is None:
                raise NotFoundError(journal_entry_not_found(entry_id))
            _apply_changes(entry, changes, _JOURNAL_ENTRY_COLUMNS)
            session.flush()

    def delete_journal_entry(self, entry_id: int) -> None:
        """Delete a journal entry and its attachment rows."""
        with self.mutation():
            session = self._get_session()
            entry = session.query(JournalEntry).filter(JournalEntry.id == entry_id).first()
            if entry is None:
                raise NotFoundError(journal_entry_not_found(entry_id))
            session.delete(entry)
            session.flush()

    # Attachment operations
    def create_attachment(
        self,
        journal_entry_id: int,
        filename: str,
        stored_filename: str,
        mime_type: str,
        file_size: int,
    ) -> int:
        """Create attachment metadata. Returns attachment ID."""
        with self.mutation():
            session = self._get_session()
            attachment = Attachment(
                journal_entry_id=journal_entry_id,
                filename=filename,
                stored_filename=stored_filename,
                mime_type=mime_type,
                file_size=file_size,
            )
            session.add(attachment)
            session.flush()
            return attachment.id

    def get_attachment(self, attachment_id: int) -> Optional[DomainAttachment]:
        """Get attachment by ID."""
        with self._lock:
            session = self._get_session()
            attachment = session.query(Attachment).filter(Attachment.id == attachment_id).first()
            if attachment is None:
                return None
            return attachment_to_domain(attachment)

    def list_attachments(self, journal_entry_id: Optional[int] = None) -> list[DomainAttachment]:
        """List attachments, optionally for one journal entry."""
        with self._lock:
            session = self._get_session()
            query = session.query(Attachment)
            if journal_entry_id is not None:
                query = query.filter(Attachment.journal_entry_id == journal_entry_id)
            attachments = query.order_by(Attachment.uploaded_at, Attachment.id).all()
            return [attachment_to_domain(a) for a in attachments]

    def delete_attachment(self, attachment_id: int) -> None:
        """Delete attachment metadata."""
        with self.mutation():
            session = self._get_session()
            attachment = session.query(Attachment).filter(Attachment.id == attachment_id).first()
            if attachment is None:
                raise NotFoundError(attachment_not_found(attachment_id))
            session.delete(attachment)
            session.flush()

    # Audit operations
    def create_audit_log(
        self,
        operation: str,
        resource_type: str,
        resource_id: str,
        source: str,
        old_data: Optional[str] = None,
        new_data: Optional[str] = None,
        description: Optional[str] = None,
        batch_id: Optional[str] = None,
        batch_summary: Optional[str] = None,
    ) -> int:
        """Create an audit log record. Returns log ID."""
        with self.mutation():
            session = self._get_session()
            log = AuditLog(
                operation=operation,
                resource_type=resource_type,
                resource_id=str(resource_id),
                source=source,
                old_data=old_data,
                new_data=new_data,
                description=description,
                batch_id=batch_id,
                batch_summary=batch_summary,
            )
            session.add(log)
            session.flush()
            return log.id

    def list_audit_logs(
        self,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        operation: Optional[str] = None,
        source: Optional[str] = None,
        batch_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[DomainAuditLog]:
        """List audit logs newest first, optionally filtered.

        Dates bound the record timestamp by whole days, both ends inclusive.
        """
        with self._lock:
            session = self._get_session()
            query = session.query(AuditLog)
            if resource_type is not None:
                query = query.filter(AuditLog.resource_type == resource_type)
            if resource_id is not None:
                query = query.filter(AuditLog.resource_id == str(resource_id))
            if operation is not None:
                query = query.filter(AuditLog.operation == operation)
            if source is not None:
                query = query.filter(AuditLog.source == source)
            if batch_id is not None:
                query = query.filter(AuditLog.batch_id == batch_id)
            if start_date is not None:
                query = query.filter(AuditLog.timestamp >= datetime.combine(start_date, time.min))
            if end_date is not None:
                next_day = datetime.combine(end_date + timedelta(days=1), time.min)
                query = query.filter(AuditLog.timestamp < next_day)
            query = query.order_by(AuditLog.id.desc())
            if limit is not None:
                query = query.limit(limit)
            return [audit_log_to_domain(log) for log in query.all()]

    # Snapshot
    def build_snapshot(self) -> LedgerSnapshot:
        """Capture accounts and currencies for validating a batch without the lock."""
        with self._lock:
            currencies = self.list_currencies()
            accounts = self.list_subledger_accounts()
        default = next((c.code for c in currencies if c.is_default), None)
        return LedgerSnapshot(
            accounts_by_number={acc.account_number: acc for acc in accounts},
            currencies={c.code: c for c in currencies},
            default_currency_code=default,
        )
