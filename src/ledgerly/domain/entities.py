"""Domain model entities for ledgerly.

These are pure data classes representing ledger concepts, independent of the
database schema. Services and reports only ever see these types; the ORM
models stay behind the database layer.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional

from ledgerly.domain.account_types import AccountType


@dataclass(frozen=True)
class Currency:
    """Currency with a static conversion rate to the reporting currency."""

    code: str
    name: str
    symbol: str
    exchange_rate: Decimal
    is_default: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class GLAccount:
    """General-ledger (type) account."""

    id: int
    account_number: str
    name: str
    type: AccountType
    description: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class SubledgerAccount:
    """Detail account that journal entries post to."""

    id: int
    account_number: str
    name: str
    currency_code: str
    gl_account_id: int
    description: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class JournalEntry:
    """One double-entry transaction: a single debit leg and a single credit leg."""

    id: int
    entry_date: date
    amount: Decimal
    currency_code: str
    amount_in_usd: Decimal
    debit_account_id: int
    credit_account_id: int
    description: str
    category: Optional[str]
    comment: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Attachment:
    """File bound to a journal entry."""

    id: int
    journal_entry_id: int
    filename: str
    stored_filename: str
    mime_type: str
    file_size: int
    uploaded_at: datetime


@dataclass(frozen=True)
class AuditLog:
    """Record of a single mutation."""

    id: int
    operation: str
    resource_type: str
    resource_id: str
    source: str
    batch_id: Optional[str]
    batch_summary: Optional[str]
    old_data: Optional[str]
    new_data: Optional[str]
    description: Optional[str]
    timestamp: datetime


@dataclass(frozen=True)
class PostingAccount:
    """Subledger account joined with its GL account, as the reports need it."""

    id: int
    account_number: str
    name: str
    gl_account_id: int
    gl_account_number: str
    gl_account_name: str
    gl_account_type: AccountType


@dataclass(frozen=True)
class AccountBalance:
    """Signed balance of one subledger account in the reporting currency."""

    account: PostingAccount
    balance: Decimal


@dataclass(frozen=True)
class ReportSection:
    """Group of account balances with their total."""

    accounts: tuple[AccountBalance, ...]
    total: Decimal


@dataclass(frozen=True)
class BalanceSheet:
    """Balance sheet as of a date."""

    as_of: date
    currency_code: str
    assets: ReportSection
    liabilities: ReportSection
    equity: ReportSection
    retained_earnings: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    balanced: bool


@dataclass(frozen=True)
class ProfitLoss:
    """Profit and loss over a period."""

    start_date: Optional[date]
    end_date: date
    currency_code: str
    revenue: ReportSection
    expenses: ReportSection
    net_income: Decimal


@dataclass(frozen=True)
class TrialBalanceLine:
    """Account balance mapped onto the debit or credit column."""

    account: PostingAccount
    balance: Decimal
    debit: Decimal
    credit: Decimal


@dataclass(frozen=True)
class TrialBalance:
    """Trial balance as of a date."""

    as_of: date
    currency_code: str
    lines: tuple[TrialBalanceLine, ...]
    total_debits: Decimal
    total_credits: Decimal
    balanced: bool


@dataclass(frozen=True)
class LedgerLine:
    """Journal entry annotated with its effect on one account."""

    entry: JournalEntry
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class AccountLedger:
    """Chronological history of one account with running balance."""

    account: PostingAccount
    start_date: Optional[date]
    end_date: Optional[date]
    lines: tuple[LedgerLine, ...]
    final_balance: Decimal


@dataclass(frozen=True)
class ImportRow:
    """One externally supplied transaction row, before validation.

    Values are kept as the caller supplied them; the import service parses
    and validates them.
    """

    date: str
    debit_account: str
    credit_account: str
    amount: str
    currency: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class LedgerSnapshot:
    """Immutable view of accounts and currencies used to validate an import."""

    accounts_by_number: dict[str, SubledgerAccount] = field(default_factory=dict)
    currencies: dict[str, Currency] = field(default_factory=dict)
    default_currency_code: Optional[str] = None
