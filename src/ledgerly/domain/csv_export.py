"""CSV export domain service."""

import csv
import io
from datetime import date
from typing import Optional

from ledgerly.database.base import Database
from ledgerly.domain.reports import ReportService

JOURNAL_EXPORT_COLUMNS = (
    "Date",
    "Debit Account",
    "Debit Account Name",
    "Credit Account",
    "Credit Account Name",
    "Amount",
    "Currency",
    "Description",
    "Category",
    "Comment",
)
LEDGER_EXPORT_COLUMNS = ("Date", "Description", "Debit", "Credit", "Balance")
TRIAL_BALANCE_EXPORT_COLUMNS = ("Account", "Name", "Type", "Debit", "Credit")


def _write_csv(columns: tuple[str, ...], rows: list[dict]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


def _money(value) -> str:
    return f"{value:.2f}"


class CSVExportService:
    """Service for exporting entries and reports as CSV text."""

    def __init__(self, db: Database):
        """Initialize CSV export service.

        Args:
            db: Database instance
        """
        self.db = db
        self.report_service = ReportService(db)

    def export_journal_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        debit_account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        category: Optional[str] = None,
        currency_code: Optional[str] = None,
    ) -> str:
        """Export journal entries, newest first.

        The Date, account number, Amount, Currency, Description, Category and
        Comment columns can be fed back to the CSV import.

        Returns:
            CSV text with a header row
        """
        with self.db.read():
            entries = self.db.list_journal_entries(
                start_date=start_date,
                end_date=end_date,
                debit_account_id=debit_account_id,
                credit_account_id=credit_account_id,
                category=category,
                currency_code=currency_code,
            )
            accounts = {account.id: account for account in self.db.list_subledger_accounts()}

        rows = []
        for entry in entries:
            debit = accounts.get(entry.debit_account_id)
            credit = accounts.get(entry.credit_account_id)
            rows.append(
                {
                    "Date": entry.entry_date.isoformat(),
                    "Debit Account": debit.account_number if debit else "",
                    "Debit Account Name": debit.name if debit else "",
                    "Credit Account": credit.account_number if credit else "",
                    "Credit Account Name": credit.name if credit else "",
                    "Amount": format(entry.amount.normalize(), "f"),
                    "Currency": entry.currency_code,
                    "Description": entry.description,
                    "Category": entry.category or "",
                    "Comment": entry.comment or "",
                }
            )
        return _write_csv(JOURNAL_EXPORT_COLUMNS, rows)

    def export_account_ledger(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> str:
        """Export one account's ledger with running balance, oldest first.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        ledger = self.report_service.account_ledger(account_id, start_date, end_date)
        rows = [
            {
                "Date": line.entry.entry_date.isoformat(),
                "Description": line.entry.description,
                "Debit": _money(line.debit) if line.debit else "",
                "Credit": _money(line.credit) if line.credit else "",
                "Balance": _money(line.balance),
            }
            for line in ledger.lines
        ]
        return _write_csv(LEDGER_EXPORT_COLUMNS, rows)

    def export_trial_balance(
        self, as_of: Optional[date] = None, currency_code: Optional[str] = None
    ) -> str:
        """Export the trial balance as of a date."""
        trial_balance = self.report_service.trial_balance(as_of, currency_code)
        rows = [
            {
                "Account": line.account.account_number,
                "Name": line.account.name,
                "Type": line.account.gl_account_type.value,
                "Debit": _money(line.debit) if line.debit else "",
                "Credit": _money(line.credit) if line.credit else "",
            }
            for line in trial_balance.lines
        ]
        return _write_csv(TRIAL_BALANCE_EXPORT_COLUMNS, rows)
