"""SQLAlchemy models for the ledgerly store."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    CheckConstraint,
    DDL,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ledgerly.domain.account_types import AccountType

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


_ACCOUNT_TYPE_CHECK = "type IN ({})".format(
    ", ".join(f"'{member.value}'" for member in AccountType)
)


class Currency(Base):
    """Currency model."""

    __tablename__ = "currencies"

    code = Column(String(3), primary_key=True)
    name = Column(String(100), nullable=False)
    symbol = Column(String(10), nullable=False)
    exchange_rate = Column(Numeric(18, 8), nullable=False, default=1)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class GLAccount(Base):
    """GL (type) account model."""

    __tablename__ = "gl_accounts"

    id = Column(Integer, primary_key=True)
    account_number = Column(String(50), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    type = Column(String, nullable=False)
    description = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_gl_accounts_type", "type"),
        Index("idx_gl_accounts_active", "is_active"),
        CheckConstraint(_ACCOUNT_TYPE_CHECK, name="ck_gl_accounts_type"),
    )

    # Deletion is left to the RESTRICT foreign key instead of nulling children
    subledger_accounts = relationship(
        "SubledgerAccount", back_populates="gl_account", passive_deletes="all"
    )


class SubledgerAccount(Base):
    """Subledger (detail) account model."""

    __tablename__ = "subledger_accounts"

    id = Column(Integer, primary_key=True)
    gl_account_id = Column(
        Integer, ForeignKey("gl_accounts.id", ondelete="RESTRICT"), nullable=False
    )
    account_number = Column(String(50), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    currency_code = Column(
        String(3), ForeignKey("currencies.code", ondelete="RESTRICT"), nullable=False
    )
    description = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_subledger_gl_account", "gl_account_id"),
        Index("idx_subledger_currency", "currency_code"),
        Index("idx_subledger_active", "is_active"),
    )

    gl_account = relationship("GLAccount", back_populates="subledger_accounts")


class JournalEntry(Base):
    """Journal entry model."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    entry_date = Column(Date, nullable=False)
    amount = Column(Numeric(18, 6), nullable=False)
    currency_code = Column(
        String(3), ForeignKey("currencies.code", ondelete="RESTRICT"), nullable=False
    )
    amount_in_usd = Column(Numeric(18, 2), nullable=False)
    debit_account_id = Column(
        Integer, ForeignKey("subledger_accounts.id", ondelete="RESTRICT"), nullable=False
    )
    credit_account_id = Column(
        Integer, ForeignKey("subledger_accounts.id", ondelete="RESTRICT"), nullable=False
    )
    description = Column(String(500), nullable=False)
    category = Column(String(100), nullable=True)
    comment = Column(String(1000), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_journal_entries_date", "entry_date"),
        Index("idx_journal_entries_debit", "debit_account_id"),
        Index("idx_journal_entries_credit", "credit_account_id"),
        Index("idx_journal_entries_category", "category"),
        Index("idx_journal_entries_currency", "currency_code"),
    )

    attachments = relationship(
        "Attachment",
        back_populates="journal_entry",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Attachment(Base):
    """Attachment metadata model; file bytes live under the attachments root."""

    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True)
    journal_entry_id = Column(
        Integer, ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False
    )
    filename = Column(String, nullable=False)
    stored_filename = Column(String, nullable=False)
    mime_type = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    uploaded_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (Index("idx_attachments_journal", "journal_entry_id"),)

    journal_entry = relationship("JournalEntry", back_populates="attachments")


class AuditLog(Base):
    """Audit log model."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    operation = Column(String, nullable=False)
    resource_type = Column(String, nullable=False)
    resource_id = Column(String, nullable=False)
    source = Column(String, nullable=False, default="API")
    batch_id = Column(String, nullable=True)
    batch_summary = Column(String, nullable=True)
    old_data = Column(String, nullable=True)
    new_data = Column(String, nullable=True)
    description = Column(String, nullable=True)
    timestamp = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_audit_logs_timestamp", "timestamp"),
        Index("idx_audit_logs_resource", "resource_type", "resource_id"),
        Index("idx_audit_logs_batch", "batch_id"),
    )


INTEGRITY_TRIGGERS = (
    DDL(
        """
        CREATE TRIGGER IF NOT EXISTS prevent_same_account_debit_credit
        BEFORE INSERT ON journal_entries
        WHEN NEW.debit_account_id = NEW.credit_account_id
        BEGIN
            SELECT RAISE(ABORT, 'Debit and credit accounts must be different');
        END
        """
    ),
    DDL(
        """
        CREATE TRIGGER IF NOT EXISTS prevent_same_account_debit_credit_update
        BEFORE UPDATE ON journal_entries
        WHEN NEW.debit_account_id = NEW.credit_account_id
        BEGIN
            SELECT RAISE(ABORT, 'Debit and credit accounts must be different');
        END
        """
    ),
    DDL(
        """
        CREATE TRIGGER IF NOT EXISTS ensure_positive_amount
        BEFORE INSERT ON journal_entries
        WHEN NEW.amount <= 0
        BEGIN
            SELECT RAISE(ABORT, 'Amount must be positive');
        END
        """
    ),
    DDL(
        """
        CREATE TRIGGER IF NOT EXISTS ensure_positive_amount_update
        BEFORE UPDATE ON journal_entries
        WHEN NEW.amount <= 0
        BEGIN
            SELECT RAISE(ABORT, 'Amount must be positive');
        END
        """
    ),
)


def install_schema(connection) -> None:
    """Create tables, indexes and integrity triggers if they are missing."""
    Base.metadata.create_all(connection)
    for trigger in INTEGRITY_TRIGGERS:
        connection.execute(trigger)


def create_memory_engine() -> Engine:
    """Create an engine over one shared in-memory SQLite connection.

    StaticPool hands every checkout the same connection, so the session and
    the persistence manager see the same database.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    return sessionmaker(bind=engine)
