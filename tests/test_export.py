"""Tests for the CSV export command."""

import csv
import io

from ledgerly.cli.main import cli


def test_export_entries_to_stdout(cli_runner, db_path, sample_entries):
    """Test exporting entries writes CSV to stdout."""
    result = cli_runner.invoke(cli, ["--db-path", db_path, "export"])

    assert result.exit_code == 0
    rows = list(csv.DictReader(io.StringIO(result.output)))
    assert len(rows) == 3
    assert rows[0]["Description"] == "Printer paper"


def test_export_entries_to_file(cli_runner, db_path, sample_entries, tmp_path):
    """Test exporting entries to a file."""
    output = tmp_path / "entries.csv"

    result = cli_runner.invoke(
        cli, ["--db-path", db_path, "export", "--output", str(output), "--start-date", "2024-01-10"]
    )

    assert result.exit_code == 0
    assert "Exported to" in result.output
    rows = list(csv.DictReader(output.open(encoding="utf-8")))
    assert [row["Date"] for row in rows] == ["2024-02-01", "2024-01-15"]


def test_export_ledger(cli_runner, db_path, sample_entries):
    """Test exporting an account ledger."""
    result = cli_runner.invoke(
        cli, ["--db-path", db_path, "export", "--what", "ledger", "--account", "1010"]
    )

    assert result.exit_code == 0
    rows = list(csv.DictReader(io.StringIO(result.output)))
    assert rows[-1]["Balance"] == "2700.00"


def test_export_ledger_requires_account(cli_runner, db_path):
    """Test a ledger export without --account fails."""
    result = cli_runner.invoke(cli, ["--db-path", db_path, "export", "--what", "ledger"])

    assert result.exit_code == 1
    assert "--account is required" in result.output


def test_export_trial_balance(cli_runner, db_path, sample_entries):
    """Test exporting the trial balance."""
    result = cli_runner.invoke(
        cli, ["--db-path", db_path, "export", "--what", "trial-balance", "--end-date", "2024-12-31"]
    )

    assert result.exit_code == 0
    rows = list(csv.DictReader(io.StringIO(result.output)))
    assert {row["Account"] for row in rows} == {"1010", "3010", "4010", "5010"}
