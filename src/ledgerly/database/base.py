"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Any
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerly.domain.account_types import AccountType
from ledgerly.domain.entities import (
    Currency,
    GLAccount,
    SubledgerAccount,
    PostingAccount,
    JournalEntry,
    Attachment,
    AuditLog,
    LedgerSnapshot,
)


class Database(ABC):
    """Abstract database interface for ledgerly.

    Write methods are self-contained: each one runs as its own mutation
    unless the caller already holds an enclosing ``mutation()`` block, in
    which case everything commits (and checkpoints) together when the
    outermost block exits.
    """

    @abstractmethod
    def connect(self) -> None:
        """Load the store image from its backing file, if any."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Stop the checkpoint timer, write a final checkpoint and close."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Install tables and triggers, and seed the reporting currency on a new store."""
        pass

    @abstractmethod
    def mutation(self) -> AbstractContextManager[None]:
        """Context manager for one atomic, checkpointed mutation."""
        pass

    @abstractmethod
    def read(self) -> AbstractContextManager[None]:
        """Context manager holding the store lock for a consistent multi-query read."""
        pass

    @abstractmethod
    def checkpoint(self) -> int:
        """Write the whole store to its backing file. Returns bytes written."""
        pass

    # Currency operations
    @abstractmethod
    def create_currency(
        self,
        code: str,
        name: str,
        symbol: str,
        exchange_rate: Decimal,
        is_default: bool = False,
    ) -> str:
        """Create a new currency. Returns currency code."""
        pass

    @abstractmethod
    def get_currency(self, code: str) -> Optional[Currency]:
        """Get currency by code."""
        pass

    @abstractmethod
    def get_default_currency(self) -> Optional[Currency]:
        """Get the default (reporting) currency."""
        pass

    @abstractmethod
    def list_currencies(self) -> list[Currency]:
        """List all currencies."""
        pass

    @abstractmethod
    def update_currency(self, code: str, **changes: Any) -> None:
        """Update currency columns given as keyword arguments."""
        pass

    @abstractmethod
    def clear_default_currency(self) -> None:
        """Unset the default flag on every currency."""
        pass

    @abstractmethod
    def delete_currency(self, code: str) -> None:
        """Delete a currency."""
        pass

    @abstractmethod
    def count_currency_references(self, code: str) -> dict[str, int]:
        """Count subledger accounts and journal entries using a currency."""
        pass

    # GL account operations
    @abstractmethod
    def create_gl_account(
        self,
        account_number: str,
        name: str,
        account_type: AccountType,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> int:
        """Create a new GL account. Returns account ID."""
        pass

    @abstractmethod
    def get_gl_account(self, account_id: int) -> Optional[GLAccount]:
        """Get GL account by ID."""
        pass

    @abstractmethod
    def get_gl_account_by_number(self, account_number: str) -> Optional[GLAccount]:
        """Get GL account by account number."""
        pass

    @abstractmethod
    def list_gl_accounts(
        self,
        active: Optional[bool] = None,
        account_type: Optional[AccountType] = None,
    ) -> list[GLAccount]:
        """List GL accounts, optionally filtered."""
        pass

    @abstractmethod
    def update_gl_account(self, account_id: int, **changes: Any) -> None:
        """Update GL account columns given as keyword arguments."""
        pass

    @abstractmethod
    def delete_gl_account(self, account_id: int) -> None:
        """Delete a GL account."""
        pass

    @abstractmethod
    def count_gl_account_subledgers(self, account_id: int) -> int:
        """Count subledger accounts under a GL account."""
        pass

    # Subledger account operations
    @abstractmethod
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
        pass

    @abstractmethod
    def get_subledger_account(self, account_id: int) -> Optional[SubledgerAccount]:
        """Get subledger account by ID."""
        pass

    @abstractmethod
    def get_subledger_account_by_number(self, account_number: str) -> Optional[SubledgerAccount]:
        """Get subledger account by account number."""
        pass

    @abstractmethod
    def list_subledger_accounts(
        self,
        active: Optional[bool] = None,
        gl_account_id: Optional[int] = None,
        currency_code: Optional[str] = None,
    ) -> list[SubledgerAccount]:
        """List subledger accounts, optionally filtered."""
        pass

    @abstractmethod
    def update_subledger_account(self, account_id: int, **changes: Any) -> None:
        """Update subledger account columns given as keyword arguments."""
        pass

    @abstractmethod
    def delete_subledger_account(self, account_id: int) -> None:
        """Delete a subledger account."""
        pass

    @abstractmethod
    def count_subledger_entries(self, account_id: int) -> int:
        """Count journal entries posting to a subledger account on either leg."""
        pass

    @abstractmethod
    def get_posting_account(self, account_id: int) -> Optional[PostingAccount]:
        """Get a subledger account joined with its GL account."""
        pass

    @abstractmethod
    def list_posting_accounts(self) -> list[PostingAccount]:
        """List every subledger account joined with its GL account."""
        pass

    # Journal entry operations
    @abstractmethod
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
        pass

    @abstractmethod
    def get_journal_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get journal entry by ID."""
        pass

    @abstractmethod
    def list_journal_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        debit_account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        category: Optional[str] = None,
        currency_code: Optional[str] = None,
    ) -> list[JournalEntry]:
        """List journal entries newest first (entry date, then ID, descending).

        account_id matches entries posting to the account on either leg.
        Date bounds are inclusive.
        """
        pass

    @abstractmethod
    def update_journal_entry(self, entry_id: int, **changes: Any) -> None:
        """Update journal entry columns given as keyword arguments."""
        pass

    @abstractmethod
    def delete_journal_entry(self, entry_id: int) -> None:
        """Delete a journal entry and its attachment rows."""
        pass

    # Attachment operations
    @abstractmethod
    def create_attachment(
        self,
        journal_entry_id: int,
        filename: str,
        stored_filename: str,
        mime_type: str,
        file_size: int,
    ) -> int:
        """Create attachment metadata. Returns attachment ID."""
        pass

    @abstractmethod
    def get_attachment(self, attachment_id: int) -> Optional[Attachment]:
        """Get attachment by ID."""
        pass

    @abstractmethod
    def list_attachments(self, journal_entry_id: Optional[int] = None) -> list[Attachment]:
        """List attachments, optionally for one journal entry."""
        pass

    @abstractmethod
    def delete_attachment(self, attachment_id: int) -> None:
        """Delete attachment metadata."""
        pass

    # Audit operations
    @abstractmethod
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
        pass

    @abstractmethod
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
    ) -> list[AuditLog]:
        """List audit logs newest first, optionally filtered.

        Dates bound the record timestamp by whole days, both ends inclusive.
        """
        pass

    # Snapshot
    @abstractmethod
    def build_snapshot(self) -> LedgerSnapshot:
        """Capture accounts and currencies for validating a batch without the lock."""
        pass
