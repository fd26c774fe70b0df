"""CSV import domain service.

Imports are all-or-nothing. Every row is validated first, against an
immutable snapshot of accounts and currencies, and the complete list of
row errors is returned. Only when no row fails are the entries written,
in input order, inside a single atomic block followed by one checkpoint.
"""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Optional

from ledgerly.database.base import Database
from ledgerly.domain.audit import generate_batch_id
from ledgerly.domain.entities import ImportRow, LedgerSnapshot
from ledgerly.domain.errors import DomainError, ValidationError
from ledgerly.domain.journal import (
    JournalEntryService,
    admit_entry,
    check_entry_text,
    reporting_amount,
)
from ledgerly.utils.amount_parser import parse_amount
from ledgerly.utils.date_parser import parse_date

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    "Date",
    "Debit Account",
    "Credit Account",
    "Amount",
    "Currency",
    "Description",
    "Category",
    "Comment",
)
REQUIRED_COLUMNS = ("Date", "Debit Account", "Credit Account", "Amount")
DEFAULT_DESCRIPTION = "Imported from CSV"


@dataclass(frozen=True)
class ValidatedRow:
    """Import row that passed every admission check."""

    row_number: int
    entry_date: date
    amount: Decimal
    currency_code: str
    debit_account_id: int
    credit_account_id: int
    description: str
    category: Optional[str]
    comment: Optional[str]


def validate_row(row: ImportRow, snapshot: LedgerSnapshot, row_number: int = 0) -> ValidatedRow:
    """Validate one import row against a snapshot.

    Raises:
        DomainError: The first problem found in the row
    """
    try:
        entry_date = parse_date(row.date)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {row.date}") from e

    try:
        amount = parse_amount(row.amount)
    except ValueError as e:
        raise ValidationError(f"Invalid amount: {row.amount}") from e

    debit_number = (row.debit_account or "").strip()
    debit_account = snapshot.accounts_by_number.get(debit_number)
    if debit_account is None:
        raise ValidationError(f"Debit account not found: {debit_number}")

    credit_number = (row.credit_account or "").strip()
    credit_account = snapshot.accounts_by_number.get(credit_number)
    if credit_account is None:
        raise ValidationError(f"Credit account not found: {credit_number}")

    currency_code = (row.currency or "").strip().upper() or snapshot.default_currency_code
    if currency_code is None:
        raise ValidationError("No currency given and no default currency is configured")

    known_ids = {account.id for account in snapshot.accounts_by_number.values()}
    amount, currency = admit_entry(
        amount,
        currency_code,
        debit_account.id,
        credit_account.id,
        get_currency=snapshot.currencies.get,
        account_exists=known_ids.__contains__,
    )
    reporting_amount(amount, currency)
    description, category, comment = check_entry_text(
        (row.description or "").strip() or DEFAULT_DESCRIPTION, row.category, row.comment
    )

    return ValidatedRow(
        row_number=row_number,
        entry_date=entry_date,
        amount=amount,
        currency_code=currency.code,
        debit_account_id=debit_account.id,
        credit_account_id=credit_account.id,
        description=description,
        category=category,
        comment=comment,
    )


def validate_rows(
    rows: Iterable[ImportRow], snapshot: LedgerSnapshot
) -> tuple[list[ValidatedRow], list[str]]:
    """Validate every row; never stops at the first failure.

    Rows are numbered from 1 in input order.

    Returns:
        (validated rows, error messages of the form "Row k: reason")
    """
    validated = []
    errors = []
    for row_number, row in enumerate(rows, start=1):
        try:
            validated.append(validate_row(row, snapshot, row_number))
        except DomainError as e:
            errors.append(f"Row {row_number}: {e}")
    return validated, errors


def parse_csv_rows(csv_text: str) -> list[ImportRow]:
    """Parse import CSV text into rows.

    Raises:
        ValidationError: If the header lacks a required column
    """
    reader = csv.DictReader(io.StringIO(csv_text))
    if reader.fieldnames is None:
        return []

    reader.fieldnames = [name.strip() for name in reader.fieldnames]
    missing = [column for column in REQUIRED_COLUMNS if column not in reader.fieldnames]
    if missing:
        raise ValidationError(f"CSV file missing required columns: {', '.join(missing)}")

    rows = []
    for record in reader:
        values = {
            column: (record.get(column) or "").strip() or None for column in CSV_COLUMNS
        }
        if not any(values.values()):
            continue
        rows.append(
            ImportRow(
                date=values["Date"] or "",
                debit_account=values["Debit Account"] or "",
                credit_account=values["Credit Account"] or "",
                amount=values["Amount"] or "",
                currency=values["Currency"],
                description=values["Description"],
                category=values["Category"],
                comment=values["Comment"],
            )
        )
    return rows


class CSVImportService:
    """Service for all-or-nothing batch imports of journal entries."""

    def __init__(self, db: Database):
        """Initialize CSV import service.

        Args:
            db: Database instance
        """
        self.db = db
        self.journal_service = JournalEntryService(db)

    def import_rows(self, rows: Iterable[ImportRow], source: str = "CSV Import") -> dict[str, Any]:
        """Validate and, if every row is valid, commit a batch of entries.

        Args:
            rows: Rows in the order they should be booked
            source: Audit source recorded on every entry

        Returns:
            Dict with import statistics:
            - attempted: number of rows received
            - succeeded: number of entries written (all rows or none)
            - failed: number of invalid rows
            - errors: list of "Row k: reason" messages
        """
        rows = list(rows)
        snapshot = self.db.build_snapshot()
        validated, errors = validate_rows(rows, snapshot)

        result = {"attempted": len(rows), "succeeded": 0, "failed": len(errors), "errors": errors}
        if errors or not validated:
            if errors:
                logger.info(
                    "Import rejected: %d of %d rows invalid, nothing written", len(errors), len(rows)
                )
            return result

        batch_id = generate_batch_id()
        summary = f"Imported {len(validated)} journal entries"
        current = None
        try:
            with self.db.mutation():
                for current in validated:
                    self.journal_service.create_entry(
                        entry_date=current.entry_date,
                        amount=current.amount,
                        debit_account_id=current.debit_account_id,
                        credit_account_id=current.credit_account_id,
                        description=current.description,
                        currency_code=current.currency_code,
                        category=current.category,
                        comment=current.comment,
                        source=source,
                        batch_id=batch_id,
                        batch_summary=summary,
                    )
        except DomainError as e:
            # The store changed after validation; the block rolled back as a whole
            result["failed"] = 1
            result["errors"] = [f"Row {current.row_number}: {e}"]
            logger.info("Import rolled back at row %d: %s", current.row_number, e)
            return result

        result["succeeded"] = len(validated)
        logger.info("Imported %d journal entries (batch %s)", len(validated), batch_id)
        return result

    def import_csv(self, csv_text: str, source: str = "CSV Import") -> dict[str, Any]:
        """Import entries from CSV text. See import_rows for the result.

        Header: Date, Debit Account, Credit Account, Amount, Currency,
        Description, Category, Comment. Only the first four are required.

        Raises:
            ValidationError: If the header lacks a required column
        """
        return self.import_rows(parse_csv_rows(csv_text), source=source)

    def import_csv_file(self, csv_file_path: str | Path, source: str = "CSV Import") -> dict[str, Any]:
        """Import entries from a CSV file. See import_csv.

        Raises:
            FileNotFoundError: If CSV file doesn't exist
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")
        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            return self.import_csv(f.read(), source=source)
