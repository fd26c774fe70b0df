"""Snapshot persistence for the in-memory ledger store.

The whole database lives in an in-memory SQLite connection. Durability comes
from checkpoints: the complete image is serialized and atomically swapped
in for the backing file. There is no write-ahead log; anything committed
after the last successful checkpoint exists only in memory.

Every checkpoint runs under the store lock. Mutations hold the same lock from
their first write through their own post-commit checkpoint, so a checkpoint
always exports a committed, untorn image and two checkpoints never race to
overwrite each other.
"""

import logging
import os
import sqlite3
import tempfile
import threading
from pathlib import Path
from typing import Optional

from ledgerly.domain.errors import CorruptStoreError, PersistenceError

logger = logging.getLogger(__name__)


class PersistenceManager:
    """Loads the in-memory store from disk and checkpoints it back."""

    def __init__(
        self,
        database_path: str | Path,
        connection: sqlite3.Connection,
        lock: threading.RLock,
        interval_seconds: float = 5.0,
    ):
        """Initialize persistence manager.

        Args:
            database_path: Backing file for the store image
            connection: The raw in-memory SQLite connection holding the store
            lock: Store lock shared with the mutation path
            interval_seconds: Period of the checkpoint timer (0 disables it)
        """
        self.database_path = Path(database_path)
        self.connection = connection
        self.lock = lock
        self.interval_seconds = interval_seconds
        self.checkpoint_count = 0
        self.last_error: Optional[PersistenceError] = None
        self._stop_event = threading.Event()
        self._timer_thread: Optional[threading.Thread] = None

    def backing_file_exists(self) -> bool:
        """Return True if a previous checkpoint exists on disk."""
        return self.database_path.exists()

    def load(self) -> bool:
        """Replace the in-memory image with the backing file, if one exists.

        Returns:
            True if an image was loaded, False if the store starts empty

        Raises:
            CorruptStoreError: If the file cannot be read or fails its integrity check
        """
        if not self.backing_file_exists():
            logger.info("No store image at %s, starting empty", self.database_path)
            return False

        try:
            image = self.database_path.read_bytes()
        except OSError as e:
            raise CorruptStoreError(f"Cannot read store image {self.database_path}: {e}") from e

        if not image:
            logger.info("Store image %s is empty, starting empty", self.database_path)
            return False

        with self.lock:
            try:
                self.connection.deserialize(image)
            except sqlite3.DatabaseError as e:
                raise CorruptStoreError(
                    f"Store image {self.database_path} is not a valid database: {e}"
                ) from e
            self.verify_integrity()

        logger.info("Store loaded from %s (%d bytes)", self.database_path, len(image))
        return True

    def verify_integrity(self) -> None:
        """Run SQLite's integrity check against the in-memory image.

        Raises:
            CorruptStoreError: If the check does not report "ok"
        """
        try:
            rows = self.connection.execute("PRAGMA integrity_check").fetchall()
        except sqlite3.DatabaseError as e:
            raise CorruptStoreError(f"Store integrity check failed: {e}") from e

        if not rows or rows[0][0] != "ok":
            detail = "; ".join(str(row[0]) for row in rows) or "no result"
            raise CorruptStoreError(f"Store integrity check failed: {detail}")

    def checkpoint(self) -> int:
        """Serialize the whole store and atomically replace the backing file.

        Returns:
            Number of bytes written

        Raises:
            PersistenceError: If the image cannot be written; memory is untouched
        """
        with self.lock:
            try:
                image = self.connection.serialize()
            except sqlite3.Error as e:
                raise PersistenceError(f"Cannot serialize store: {e}") from e

            try:
                self._write_atomically(image)
            except OSError as e:
                self.last_error = PersistenceError(
                    f"Checkpoint to {self.database_path} failed: {e}"
                )
                raise self.last_error from e

            self.checkpoint_count += 1
            self.last_error = None

        logger.debug("Checkpoint written to %s (%d bytes)", self.database_path, len(image))
        return len(image)

    def _write_atomically(self, image: bytes) -> None:
        """Write image to a sibling temp file, fsync, then rename over the target."""
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            prefix=f".{self.database_path.name}.", suffix=".tmp", dir=self.database_path.parent
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(image)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, self.database_path)
        except OSError:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

    # Timer
    def start(self) -> None:
        """Start the periodic checkpoint thread (no-op if disabled or running)."""
        if self.interval_seconds <= 0 or self.is_running:
            return
        self._stop_event.clear()
        self._timer_thread = threading.Thread(
            target=self._run_timer, name="ledgerly-checkpoint", daemon=True
        )
        self._timer_thread.start()
        logger.debug("Checkpoint timer started (every %ss)", self.interval_seconds)

    @property
    def is_running(self) -> bool:
        """Return True while the checkpoint thread is alive."""
        return self._timer_thread is not None and self._timer_thread.is_alive()

    def stop(self) -> None:
        """Stop the periodic checkpoint thread and wait for it to exit."""
        self._stop_event.set()
        if self._timer_thread is not None:
            self._timer_thread.join()
            self._timer_thread = None

    def shutdown(self) -> None:
        """Stop the timer and write one final checkpoint."""
        self.stop()
        self.checkpoint()

    def _run_timer(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.checkpoint()
            except PersistenceError as e:
                # Memory still holds the data; the next tick retries
                logger.error("Periodic checkpoint failed: %s", e)
