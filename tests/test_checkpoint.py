"""Tests for the checkpoint command and store opening in the CLI."""

from ledgerly.cli.main import cli


def test_checkpoint(cli_runner, db_path):
    """Test an explicit checkpoint reports the image size."""
    result = cli_runner.invoke(cli, ["--db-path", db_path, "checkpoint"])

    assert result.exit_code == 0
    assert "Checkpoint written to" in result.output
    assert "bytes)" in result.output


def test_new_store_created_on_first_use(cli_runner, tmp_path):
    """Test the CLI creates the backing file for a new store."""
    path = tmp_path / "fresh" / "ledger.db"

    result = cli_runner.invoke(cli, ["--db-path", str(path), "currency", "list"])

    assert result.exit_code == 0
    assert "USD" in result.output
    assert path.exists()


def test_corrupt_store_is_not_overwritten(cli_runner, tmp_path):
    """Test a corrupt backing file makes every command fail untouched."""
    path = tmp_path / "broken.db"
    garbage = b"\x00garbage\x00" * 200
    path.write_bytes(garbage)

    result = cli_runner.invoke(cli, ["--db-path", str(path), "currency", "list"])

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert path.read_bytes() == garbage


def test_db_path_from_environment(cli_runner, tmp_path):
    """Test LEDGERLY_DB_PATH selects the store when --db-path is omitted."""
    path = tmp_path / "env.db"

    result = cli_runner.invoke(
        cli, ["checkpoint"], env={"LEDGERLY_DB_PATH": str(path), "LEDGERLY_CHECKPOINT_INTERVAL": "0"}
    )

    assert result.exit_code == 0
    assert path.exists()


def test_help_does_not_open_store(cli_runner, tmp_path, monkeypatch):
    """Test top-level help works without touching any store."""
    monkeypatch.setenv("HOME", str(tmp_path))

    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Double-entry bookkeeping" in result.output
