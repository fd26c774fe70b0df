"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic so the ledger entities stay stable
when the table layout changes.
"""

from decimal import Decimal

from ledgerly.domain import entities as domain
from ledgerly.domain.account_types import AccountType
from ledgerly.database.models import (
    Currency as ORMCurrency,
    GLAccount as ORMGLAccount,
    SubledgerAccount as ORMSubledgerAccount,
    JournalEntry as ORMJournalEntry,
    Attachment as ORMAttachment,
    AuditLog as ORMAuditLog,
)


def _decimal(value) -> Decimal:
    """Return a Decimal for a numeric column value, normalising floats via str."""
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def currency_to_domain(orm_currency: ORMCurrency) -> domain.Currency:
    """Convert SQLAlchemy Currency model to domain Currency entity."""
    return domain.Currency(
        code=orm_currency.code,
        name=orm_currency.name,
        symbol=orm_currency.symbol,
        exchange_rate=_decimal(orm_currency.exchange_rate),
        is_default=bool(orm_currency.is_default),
        created_at=orm_currency.created_at,
        updated_at=orm_currency.updated_at,
    )


def gl_account_to_domain(orm_account: ORMGLAccount) -> domain.GLAccount:
    """Convert SQLAlchemy GLAccount model to domain GLAccount entity."""
    return domain.GLAccount(
        id=orm_account.id,
        account_number=orm_account.account_number,
        name=orm_account.name,
        type=AccountType(orm_account.type),
        description=orm_account.description,
        is_active=bool(orm_account.is_active),
        created_at=orm_account.created_at,
        updated_at=orm_account.updated_at,
    )


def subledger_to_domain(orm_account: ORMSubledgerAccount) -> domain.SubledgerAccount:
    """Convert SQLAlchemy SubledgerAccount model to domain SubledgerAccount entity."""
    return domain.SubledgerAccount(
        id=orm_account.id,
        account_number=orm_account.account_number,
        name=orm_account.name,
        currency_code=orm_account.currency_code,
        gl_account_id=orm_account.gl_account_id,
        description=orm_account.description,
        is_active=bool(orm_account.is_active),
        created_at=orm_account.created_at,
        updated_at=orm_account.updated_at,
    )


def posting_account_to_domain(orm_account: ORMSubledgerAccount) -> domain.PostingAccount:
    """Convert a subledger account and its GL account into a PostingAccount."""
    gl_account = orm_account.gl_account
    return domain.PostingAccount(
        id=orm_account.id,
        account_number=orm_account.account_number,
        name=orm_account.name,
        gl_account_id=gl_account.id,
        gl_account_number=gl_account.account_number,
        gl_account_name=gl_account.name,
        gl_account_type=AccountType(gl_account.type),
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model to domain JournalEntry entity."""
    return domain.JournalEntry(
        id=orm_entry.id,
        entry_date=orm_entry.entry_date,
        amount=_decimal(orm_entry.amount),
        currency_code=orm_entry.currency_code,
        amount_in_usd=_decimal(orm_entry.amount_in_usd),
        debit_account_id=orm_entry.debit_account_id,
        credit_account_id=orm_entry.credit_account_id,
        description=orm_entry.description,
        category=orm_entry.category,
        comment=orm_entry.comment,
        created_at=orm_entry.created_at,
        updated_at=orm_entry.updated_at,
    )


def attachment_to_domain(orm_attachment: ORMAttachment) -> domain.Attachment:
    """Convert SQLAlchemy Attachment model to domain Attachment entity."""
    return domain.Attachment(
        id=orm_attachment.id,
        journal_entry_id=orm_attachment.journal_entry_id,
        filename=orm_attachment.filename,
        stored_filename=orm_attachment.stored_filename,
        mime_type=orm_attachment.mime_type,
        file_size=orm_attachment.file_size,
        uploaded_at=orm_attachment.uploaded_at,
    )


def audit_log_to_domain(orm_log: ORMAuditLog) -> domain.AuditLog:
    """Convert SQLAlchemy AuditLog model to domain AuditLog entity."""
    return domain.AuditLog(
        id=orm_log.id,
        operation=orm_log.operation,
        resource_type=orm_log.resource_type,
        resource_id=orm_log.resource_id,
        source=orm_log.source,
        batch_id=orm_log.batch_id,
        batch_summary=orm_log.batch_summary,
        old_data=orm_log.old_data,
        new_data=orm_log.new_data,
        description=orm_log.description,
        timestamp=orm_log.timestamp,
    )
