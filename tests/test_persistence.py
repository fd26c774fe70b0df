"""Tests for snapshot persistence of the in-memory store."""

import logging
import shutil
import threading
import time
from datetime import date

import pytest

from ledgerly.database.factories import create_sqlite_database
from ledgerly.domain.currency import CurrencyService
from ledgerly.domain.errors import ConflictError, CorruptStoreError, PersistenceError
from ledgerly.domain.journal import JournalEntryService


def test_new_store_writes_backing_file(temp_db):
    """Test initializing a new store checkpoints it to disk."""
    assert temp_db.database_path.exists()
    assert temp_db.persistence.checkpoint_count >= 1


def test_committed_changes_survive_reopen(open_db, currency_service):
    """Test every committed change is on disk when the mutation returns."""
    currency_service.create_currency("EUR", "Euro", "€", exchange_rate="1.10")

    reopened = open_db()
    currency = reopened.get_currency("EUR")

    assert currency is not None
    assert currency.name == "Euro"
    assert str(currency.exchange_rate.normalize()) == "1.1"


def test_entries_survive_reopen(open_db, sample_entries):
    """Test journal entries are restored from the image."""
    reopened = open_db()

    entries = JournalEntryService(reopened).list_entries()

    assert [e.id for e in entries] == list(reversed(sample_entries))
    assert entries[-1].entry_date == date(2024, 1, 1)


def test_one_checkpoint_per_mutation(temp_db, currency_service):
    """Test a successful mutation writes exactly one checkpoint."""
    before = temp_db.persistence.checkpoint_count

    currency_service.create_currency("GBP", "Pound", "£", exchange_rate="1.25")

    assert temp_db.persistence.checkpoint_count == before + 1


def test_failed_mutation_does_not_checkpoint(temp_db, currency_service):
    """Test a rejected mutation leaves memory and disk untouched."""
    before = temp_db.persistence.checkpoint_count
    image = temp_db.database_path.read_bytes()

    with pytest.raises(ConflictError):
        currency_service.create_currency("USD", "Dollar again", "$")

    assert temp_db.persistence.checkpoint_count == before
    assert temp_db.database_path.read_bytes() == image


def test_corrupt_backing_file_refuses_to_load(settings, tmp_path):
    """Test a damaged image is reported instead of silently replaced."""
    path = tmp_path / "corrupt.db"
    garbage = b"this is not a database image" * 64
    path.write_bytes(garbage)

    db = create_sqlite_database(database_path=path, settings=settings)
    with pytest.raises(CorruptStoreError):
        db.connect()

    assert path.read_bytes() == garbage


def test_empty_backing_file_starts_new_store(open_db, tmp_path):
    """Test a zero-byte backing file is treated as a new store."""
    path = tmp_path / "empty.db"
    path.write_bytes(b"")

    db = open_db(path)

    assert db.get_currency("USD").is_default
    assert path.stat().st_size > 0


def test_failed_checkpoint_keeps_memory(settings, tmp_path):
    """Test a write failure raises PersistenceError but keeps the change in memory."""
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("occupied")
    db = create_sqlite_database(database_path=blocker / "ledger.db", settings=settings)
    db.connect()

    with pytest.raises(PersistenceError):
        db.initialize_schema()

    assert db.get_currency("USD") is not None
    assert db.persistence.last_error is not None
    assert db.persistence.checkpoint_count == 0

    with pytest.raises(PersistenceError):
        db.disconnect()


def test_no_temp_files_left_behind(temp_db, currency_service):
    """Test the atomic write cleans up its temporary file."""
    currency_service.create_currency("CHF", "Franc", "Fr", exchange_rate="1.12")

    leftovers = [p.name for p in temp_db.database_path.parent.iterdir() if p.suffix == ".tmp"]
    assert leftovers == []


def test_concurrent_writers_are_serialized(open_db, temp_db, sample_chart):
    """Test concurrent mutations all land and the final image holds every one."""
    service = JournalEntryService(temp_db)
    errors = []

    def book(worker):
        try:
            for i in range(10):
                service.create_entry(
                    entry_date=date(2024, 3, 1),
                    amount=f"{worker + 1}.{i:02d}",
                    debit_account_id=sample_chart["1010"],
                    credit_account_id=sample_chart["4010"],
                    description=f"Worker {worker} entry {i}",
                )
        except Exception as e:  # surfaced below
            errors.append(e)

    threads = [threading.Thread(target=book, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(service.list_entries()) == 40

    reopened = open_db()
    assert len(JournalEntryService(reopened).list_entries()) == 40


def test_manual_checkpoint_during_writes_is_consistent(open_db, temp_db, sample_chart):
    """Test an explicit checkpoint racing with writers never exports a torn image."""
    service = JournalEntryService(temp_db)
    done = threading.Event()

    def book():
        for i in range(20):
            service.create_entry(
                entry_date=date(2024, 4, 1),
                amount="5",
                debit_account_id=sample_chart["1010"],
                credit_account_id=sample_chart["4010"],
                description=f"Entry {i}",
            )
        done.set()

    writer = threading.Thread(target=book)
    writer.start()
    while not done.is_set():
        temp_db.checkpoint()
    writer.join()

    reopened = open_db()
    assert len(JournalEntryService(reopened).list_entries()) == 20


def test_timer_checkpoints_periodically(settings, tmp_path):
    """Test the background timer writes checkpoints and stops on shutdown."""
    db = create_sqlite_database(database_path=tmp_path / "timed.db", settings=settings)
    db.persistence.interval_seconds = 0.05
    db.connect()
    db.initialize_schema()
    try:
        assert db.persistence.is_running
        start = db.persistence.checkpoint_count
        deadline = time.monotonic() + 5
        while db.persistence.checkpoint_count < start + 2 and time.monotonic() < deadline:
            time.sleep(0.02)
        assert db.persistence.checkpoint_count >= start + 2
    finally:
        db.disconnect()

    assert not db.persistence.is_running


def test_disconnect_writes_final_checkpoint(settings, tmp_path):
    """Test shutting down flushes the store one last time."""
    db = create_sqlite_database(database_path=tmp_path / "final.db", settings=settings)
    db.connect()
    db.initialize_schema()
    CurrencyService(db).create_currency("JPY", "Yen", "¥", exchange_rate="0.0067")
    before = db.persistence.checkpoint_count

    db.disconnect()

    assert db.persistence.checkpoint_count == before + 1


def test_timer_logs_failure_and_retries(settings, tmp_path, caplog):
    """Test a failing periodic checkpoint is logged and retried on the next tick."""
    store_dir = tmp_path / "store"
    db = create_sqlite_database(database_path=store_dir / "ledger.db", settings=settings)
    db.connect()
    db.initialize_schema()
    shutil.rmtree(store_dir)
    store_dir.write_text("in the way")
    caplog.set_level(logging.ERROR, logger="ledgerly.database.persistence")
    db.persistence.interval_seconds = 0.05
    db.persistence.start()
    try:
        deadline = time.monotonic() + 5
        while time.monotonic() < deadline and not any(
            "Periodic checkpoint failed" in record.getMessage() for record in caplog.records
        ):
            time.sleep(0.02)

        assert any(
            record.levelno == logging.ERROR and "Periodic checkpoint failed" in record.getMessage()
            for record in caplog.records
        )
        assert db.persistence.is_running
        assert db.persistence.last_error is not None

        before = db.persistence.checkpoint_count
        store_dir.unlink()
        deadline = time.monotonic() + 5
        while db.persistence.checkpoint_count == before and time.monotonic() < deadline:
            time.sleep(0.02)

        assert db.persistence.checkpoint_count > before
        assert db.persistence.last_error is None
        assert (store_dir / "ledger.db").exists()
    finally:
        db.disconnect()
