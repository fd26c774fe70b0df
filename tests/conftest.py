"""Shared pytest fixtures for ledgerly tests."""

from datetime import date
from pathlib import Path
import pytest

from ledgerly.config import Settings
from ledgerly.database.factories import create_sqlite_database
from ledgerly.domain.account import GLAccountService, SubledgerAccountService
from ledgerly.domain.attachment import AttachmentService
from ledgerly.domain.audit import AuditService
from ledgerly.domain.csv_export import CSVExportService
from ledgerly.domain.csv_import import CSVImportService
from ledgerly.domain.currency import CurrencyService
from ledgerly.domain.journal import JournalEntryService
from ledgerly.domain.reports import ReportService


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a temporary directory, with the checkpoint timer off."""
    return Settings(
        database_path=tmp_path / "ledger.db",
        attachments_path=tmp_path / "attachments",
        checkpoint_interval=0,
        max_file_size_mb=1,
    )


@pytest.fixture
def open_db(settings):
    """Factory that opens a store on the temporary backing file."""
    opened = []

    def _open(database_path=None):
        db = create_sqlite_database(database_path=database_path, settings=settings)
        db.connect()
        db.initialize_schema()
        opened.append(db)
        return db

    yield _open

    for db in reversed(opened):
        db.disconnect()


@pytest.fixture
def temp_db(open_db):
    """Create a temporary store for testing."""
    return open_db()


@pytest.fixture
def currency_service(temp_db):
    """Create a CurrencyService with a temporary store."""
    return CurrencyService(temp_db)


@pytest.fixture
def gl_service(temp_db):
    """Create a GLAccountService with a temporary store."""
    return GLAccountService(temp_db)


@pytest.fixture
def account_service(temp_db):
    """Create a SubledgerAccountService with a temporary store."""
    return SubledgerAccountService(temp_db)


@pytest.fixture
def journal_service(temp_db):
    """Create a JournalEntryService with a temporary store."""
    return JournalEntryService(temp_db)


@pytest.fixture
def report_service(temp_db):
    """Create a ReportService with a temporary store."""
    return ReportService(temp_db)


@pytest.fixture
def attachment_service(temp_db):
    """Create an AttachmentService with a temporary store."""
    return AttachmentService(temp_db)


@pytest.fixture
def audit_service(temp_db):
    """Create an AuditService with a temporary store."""
    return AuditService(temp_db)


@pytest.fixture
def import_service(temp_db):
    """Create a CSVImportService with a temporary store."""
    return CSVImportService(temp_db)


@pytest.fixture
def export_service(temp_db):
    """Create a CSVExportService with a temporary store."""
    return CSVExportService(temp_db)


# Account number, name, GL account number
SAMPLE_GL_ACCOUNTS = [
    ("1000", "Cash", "Cash"),
    ("1200", "Receivables", "Accounts Receivable"),
    ("1500", "Equipment", "Asset"),
    ("2000", "Payables", "Accounts Payable"),
    ("3000", "Owner's Equity", "Equity"),
    ("3900", "Opening Balances", "Opening Balance"),
    ("4000", "Revenue", "Profit"),
    ("5000", "Expenses", "Loss"),
]

SAMPLE_SUBLEDGER_ACCOUNTS = [
    ("1010", "Checking", "1000"),
    ("1020", "Savings", "1000"),
    ("1210", "Customer A", "1200"),
    ("1510", "Laptops", "1500"),
    ("2010", "Supplier B", "2000"),
    ("3010", "Owner Capital", "3000"),
    ("3910", "Opening Balance", "3900"),
    ("4010", "Consulting Revenue", "4000"),
    ("5010", "Office Supplies", "5000"),
    ("5020", "Rent", "5000"),
]


def create_chart(gl_service, account_service):
    """Create the sample chart of accounts.

    Returns:
        Dict mapping subledger account number to account ID, plus "gl" mapping
        GL account number to GL account ID
    """
    gl_ids = {}
    for number, name, account_type in SAMPLE_GL_ACCOUNTS:
        gl_ids[number] = gl_service.create_account(
            account_number=number, name=name, account_type=account_type
        )

    chart = {"gl": gl_ids}
    for number, name, gl_number in SAMPLE_SUBLEDGER_ACCOUNTS:
        chart[number] = account_service.create_account(
            account_number=number, name=name, gl_account_id=gl_ids[gl_number]
        )
    return chart


@pytest.fixture
def sample_chart(gl_service, account_service):
    """Create a small chart of accounts in the temporary store."""
    return create_chart(gl_service, account_service)


@pytest.fixture
def chart_builder():
    """Factory that creates the sample chart of accounts in any store."""

    def _build(db):
        return create_chart(GLAccountService(db), SubledgerAccountService(db))

    return _build


@pytest.fixture
def eur(currency_service):
    """Create EUR at 1.10 USD."""
    return currency_service.create_currency("EUR", "Euro", "€", exchange_rate="1.10")


@pytest.fixture
def sample_entries(journal_service, sample_chart):
    """Book owner investment, revenue and an expense.

    Cash ends at 1000 + 2000 - 300 = 2700, equity at 1000 and net income at 1700.
    """
    ids = [
        journal_service.create_entry(
            entry_date=date(2024, 1, 1),
            amount="1000",
            debit_account_id=sample_chart["1010"],
            credit_account_id=sample_chart["3010"],
            description="Owner investment",
        ),
        journal_service.create_entry(
            entry_date=date(2024, 1, 15),
            amount="2000",
            debit_account_id=sample_chart["1010"],
            credit_account_id=sample_chart["4010"],
            description="Consulting invoice paid",
            category="Sales",
        ),
        journal_service.create_entry(
            entry_date=date(2024, 2, 1),
            amount="300",
            debit_account_id=sample_chart["5010"],
            credit_account_id=sample_chart["1010"],
            description="Printer paper",
            category="Office",
        ),
    ]
    return ids


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner with the checkpoint timer off."""
    from click.testing import CliRunner

    return CliRunner(env={"LEDGERLY_CHECKPOINT_INTERVAL": "0", "LEDGERLY_DB_PATH": None})


@pytest.fixture
def db_path(temp_db):
    """Backing file of the temporary store, as a CLI argument."""
    return str(temp_db.database_path)


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
