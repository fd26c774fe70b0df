"""Domain tests for CSV import service."""

import pytest
from datetime import date
from decimal import Decimal

from ledgerly.domain.csv_import import CSVImportService, parse_csv_rows, validate_rows
from ledgerly.domain.entities import ImportRow
from ledgerly.domain.errors import ValidationError


def test_import_service_result_contract(import_service, journal_service, sample_chart, fixtures_dir):
    """Import returns a structured result contract and books every row in order."""
    result = import_service.import_csv_file(fixtures_dir / "sample_entries.csv")

    assert result == {"attempted": 3, "succeeded": 3, "failed": 0, "errors": []}
    entries = journal_service.list_entries()
    assert [e.description for e in reversed(entries)] == [
        "Owner investment",
        "Consulting invoice paid",
        "Printer paper",
    ]
    invoice = next(e for e in entries if e.category == "Sales")
    assert invoice.currency_code == "USD"
    assert invoice.comment == "Invoice 17"


def test_import_row_two_unknown_account(import_service, journal_service, sample_chart, sample_entries, fixtures_dir):
    """One bad row rejects the whole batch and leaves entries unchanged."""
    before = journal_service.list_entries()

    result = import_service.import_csv_file(fixtures_dir / "sample_entries_bad_row.csv")

    assert result["attempted"] == 3
    assert result["succeeded"] == 0
    assert result["failed"] == 1
    assert result["errors"] == ["Row 2: Debit account not found: 9999"]
    assert journal_service.list_entries() == before


def test_import_collects_every_row_error(import_service, sample_chart):
    """Validation never stops at the first failure."""
    rows = [
        ImportRow(date="not a date", debit_account="1010", credit_account="4010", amount="1"),
        ImportRow(date="2024-01-01", debit_account="1010", credit_account="4010", amount="ten"),
        ImportRow(date="2024-01-01", debit_account="1010", credit_account="1010", amount="1"),
        ImportRow(date="2024-01-01", debit_account="1010", credit_account="4010", amount="-3"),
        ImportRow(date="2024-01-01", debit_account="1010", credit_account="4010", amount="1", currency="JPY"),
        ImportRow(date="2024-01-01", debit_account="1010", credit_account="8888", amount="1"),
        ImportRow(date="2024-01-01", debit_account="1010", credit_account="4010", amount="1"),
    ]

    result = import_service.import_rows(rows)

    assert result["attempted"] == 7
    assert result["succeeded"] == 0
    assert result["failed"] == 6
    assert result["errors"][0] == "Row 1: Invalid date: not a date"
    assert result["errors"][1] == "Row 2: Invalid amount: ten"
    assert result["errors"][2].startswith("Row 3: Debit and credit accounts must be different")
    assert result["errors"][3].startswith("Row 4: Amount must be positive")
    assert result["errors"][4] == "Row 5: Currency JPY not found"
    assert result["errors"][5] == "Row 6: Credit account not found: 8888"


def test_import_rejects_unstorable_amounts(import_service, journal_service, sample_chart):
    """Amounts out of range or too precise are row errors, not crashes."""
    rows = [
        ImportRow(date="2024-01-01", debit_account="1010", credit_account="4010", amount="1e30"),
        ImportRow(date="2024-01-02", debit_account="1010", credit_account="4010", amount="0.0000001"),
        ImportRow(date="2024-01-03", debit_account="1010", credit_account="4010", amount="12.50"),
    ]

    result = import_service.import_rows(rows)

    assert result["attempted"] == 3
    assert result["succeeded"] == 0
    assert result["failed"] == 2
    assert result["errors"][0].startswith("Row 1: Amount must be less than")
    assert result["errors"][1].startswith("Row 2: Amount can have at most 6 decimal places")
    assert journal_service.list_entries() == []


def test_import_defaults(import_service, journal_service, sample_chart, eur):
    """Blank currency uses the default and blank description gets a placeholder."""
    rows = [
        ImportRow(date="2024-03-01", debit_account="1010", credit_account="4010", amount="10.005"),
        ImportRow(date="2024-03-02", debit_account="1010", credit_account="4010", amount="100", currency="eur"),
    ]

    result = import_service.import_rows(rows)

    assert result["succeeded"] == 2
    first, second = sorted(journal_service.list_entries(), key=lambda e: e.entry_date)
    assert first.currency_code == "USD"
    assert first.description == "Imported from CSV"
    assert first.amount_in_usd == Decimal("10.01")
    assert second.amount_in_usd == Decimal("110.00")


def test_import_shares_batch_id(import_service, audit_service, sample_chart, fixtures_dir):
    """Every entry of one import is audited under one batch."""
    import_service.import_csv_file(fixtures_dir / "sample_entries.csv")

    logs = audit_service.list_logs(resource_type="journal_entry")
    assert len(logs) == 3
    assert len({log.batch_id for log in logs}) == 1
    assert logs[0].batch_id is not None
    assert all(log.source == "CSV Import" for log in logs)
    assert all(log.batch_summary == "Imported 3 journal entries" for log in logs)


def test_import_checkpoints_once(import_service, temp_db, sample_chart, fixtures_dir):
    """A batch is written with a single checkpoint."""
    before = temp_db.persistence.checkpoint_count

    import_service.import_csv_file(fixtures_dir / "sample_entries.csv")

    assert temp_db.persistence.checkpoint_count == before + 1


def test_import_service_missing_columns_raises(import_service, fixtures_dir):
    """Missing required columns raises a validation error."""
    with pytest.raises(ValidationError) as excinfo:
        import_service.import_csv_file(fixtures_dir / "sample_entries_missing_cols.csv")

    assert "missing required columns" in str(excinfo.value).lower()
    assert "Credit Account" in str(excinfo.value)


def test_import_missing_file(import_service, tmp_path):
    """A missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        import_service.import_csv_file(tmp_path / "nope.csv")


def test_parse_csv_rows_skips_blank_lines():
    """Blank rows are skipped and headers are trimmed."""
    rows = parse_csv_rows(
        " Date , Debit Account,Credit Account,Amount\n"
        "2024-01-01,1010,4010,5\n"
        ",,,\n"
    )

    assert rows == [ImportRow(date="2024-01-01", debit_account="1010", credit_account="4010", amount="5")]


def test_validate_rows_uses_snapshot(temp_db, sample_chart):
    """Validation runs against the snapshot it is given."""
    snapshot = temp_db.build_snapshot()
    rows = [ImportRow(date="2024-01-01", debit_account="1010", credit_account="4010", amount="5")]

    validated, errors = validate_rows(rows, snapshot)

    assert errors == []
    assert validated[0].debit_account_id == sample_chart["1010"]
    assert validated[0].entry_date == date(2024, 1, 1)


def test_empty_import(import_service):
    """An empty CSV imports nothing."""
    assert import_service.import_csv("") == {"attempted": 0, "succeeded": 0, "failed": 0, "errors": []}
