"""End-to-end workflows through the command line."""

import pytest

from ledgerly.cli.main import cli


@pytest.fixture
def run(cli_runner, tmp_path):
    """Invoke the CLI against one store, failing loudly on errors."""
    db_path = str(tmp_path / "books.db")

    def _run(*args, expect=0, input=None):
        result = cli_runner.invoke(cli, ["--db-path", db_path, *args], input=input)
        assert result.exit_code == expect, result.output
        return result.output

    return _run


def _build_chart(run):
    run("gl", "create", "1000", "Bank", "--type", "Cash")
    run("gl", "create", "2000", "Payables", "--type", "Accounts Payable")
    run("gl", "create", "3000", "Equity", "--type", "Equity")
    run("gl", "create", "3900", "Opening", "--type", "Opening Balance")
    run("gl", "create", "4000", "Revenue", "--type", "Profit")
    run("gl", "create", "5000", "Expenses", "--type", "Loss")
    run("account", "create", "1010", "Checking", "--gl", "1000")
    run("account", "create", "1020", "Euro Account", "--gl", "1000", "--currency", "EUR")
    run("account", "create", "2010", "Landlord", "--gl", "2000")
    run("account", "create", "3010", "Owner Capital", "--gl", "3000")
    run("account", "create", "3910", "Opening Balance", "--gl", "3900")
    run("account", "create", "4010", "Sales", "--gl", "4000")
    run("account", "create", "5010", "Rent", "--gl", "5000")


def test_bookkeeping_month(run):
    """Test a month of bookkeeping ends with balanced reports."""
    run("currency", "create", "EUR", "--name", "Euro", "--symbol", "€", "--rate", "1.10")
    _build_chart(run)

    run("entry", "add", "--date", "2024-01-01", "--debit", "1010", "--credit", "3010",
        "--amount", "5000", "--description", "Owner investment")
    run("entry", "add", "--date", "2024-01-10", "--debit", "1020", "--credit", "4010",
        "--amount", "1000", "--currency", "EUR", "--description", "Invoice 1")
    run("entry", "add", "--date", "2024-01-31", "--debit", "5010", "--credit", "2010",
        "--amount", "1200", "--description", "January rent", "--category", "Rent")

    balance_sheet = run("report", "balance-sheet", "--as-of", "2024-01-31")
    assert "Total Assets" in balance_sheet
    assert "$6,100.00" in balance_sheet
    assert "WARNING" not in balance_sheet

    profit_loss = run("report", "profit-loss", "--start-date", "2024-01-01", "--end-date", "2024-01-31")
    net_line = next(line for line in profit_loss.splitlines() if line.startswith("Net Income"))
    assert net_line.endswith("-$100.00")

    trial_balance = run("report", "trial-balance", "--as-of", "2024-01-31")
    assert "Balanced" in trial_balance
    assert "NOT BALANCED" not in trial_balance


def test_opening_balances_are_not_reported(run):
    """Test entries against Opening Balance seed balances without showing up."""
    run("currency", "create", "EUR", "--name", "Euro", "--symbol", "€", "--rate", "1.10")
    _build_chart(run)

    run("entry", "add", "--date", "2024-01-01", "--debit", "1010", "--credit", "3910",
        "--amount", "750", "--description", "Carried over")

    balance_sheet = run("report", "balance-sheet", "--as-of", "2024-01-31")
    assert "1010 Checking" in balance_sheet
    assert "Opening Balance" not in balance_sheet

    ledger = run("report", "ledger", "3910")
    assert "Final balance: $750.00" in ledger


def test_import_then_delete_workflow(run, fixtures_dir):
    """Test importing a batch, then refusing and allowing deletes."""
    run("currency", "create", "EUR", "--name", "Euro", "--symbol", "€", "--rate", "1.10")
    run("gl", "create", "1000", "Cash", "--type", "Cash")
    run("gl", "create", "3000", "Equity", "--type", "Equity")
    run("gl", "create", "4000", "Revenue", "--type", "Profit")
    run("gl", "create", "5000", "Expenses", "--type", "Loss")
    run("account", "create", "1010", "Checking", "--gl", "1000")
    run("account", "create", "3010", "Owner Capital", "--gl", "3000")
    run("account", "create", "4010", "Consulting Revenue", "--gl", "4000")
    run("account", "create", "5010", "Office Supplies", "--gl", "5000")

    imported = run("import", str(fixtures_dir / "sample_entries.csv"))
    assert "Imported: 3 journal entries" in imported

    blocked = run("account", "delete", "5010", "--yes", expect=1)
    assert "1 journal entry" in blocked

    entries = run("entry", "list", "--account", "5010")
    entry_id = next(
        line.split()[0] for line in entries.splitlines() if line[:1].isdigit()
    )
    run("entry", "delete", entry_id, "--yes")
    run("account", "delete", "5010", "--yes")

    accounts = run("account", "list")
    assert "Office Supplies" not in accounts


def test_changes_persist_between_invocations(run, tmp_path):
    """Test each command sees what the previous one committed."""
    run("gl", "create", "1000", "Cash", "--type", "Cash")
    run("account", "create", "1010", "Checking", "--gl", "1000")
    run("account", "update", "1010", "--name", "Main Checking")

    listing = run("account", "list")
    assert "Main Checking" in listing
    assert (tmp_path / "books.db").exists()
