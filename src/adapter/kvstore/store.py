"""Ordered, transactional string key-value store backed by a single SQLite file.

Every transaction runs on its own connection. Write transactions take the
SQLite reserved lock up front (``BEGIN IMMEDIATE``), so writers are serialized
against each other while readers keep working from WAL snapshots.
"""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)

TABLE_NAME = 'kv'

# Seconds a writer waits for the reserved lock before giving up.
BUSY_TIMEOUT = 30.0


class StoreError(Exception):
    """Base class for key-value store failures."""


class KeyNotFoundError(StoreError):
    """The key is not present in the store."""


class ReadOnlyTransactionError(StoreError):
    """A write was attempted inside a read transaction."""


class StoreClosedError(StoreError):
    """The store has been closed."""


class Transaction:
    """Operations bound to one open transaction."""

    def __init__(self, conn: sqlite3.Connection, writable: bool):
        self._conn = conn
        self.writable = writable

    def _check_writable(self) -> None:
        if not self.writable:
            raise ReadOnlyTransactionError("transaction is read-only")

    def get(self, key: str) -> str:
        row = self._conn.execute(
            f"SELECT value FROM {TABLE_NAME} WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            raise KeyNotFoundError(key)
        return row[0]

    def set(self, key: str, value: str) -> str | None:
        """Upsert key and return the previous value, or None if it was new."""
        self._check_writable()
        try:
            previous = self.get(key)
        except KeyNotFoundError:
            previous = None
        self._conn.execute(
            f"INSERT INTO {TABLE_NAME} (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )
        return previous

    def delete(self, key: str) -> str:
        """Remove key and return its value."""
        self._check_writable()
        previous = self.get(key)
        self._conn.execute(f"DELETE FROM {TABLE_NAME} WHERE key = ?", (key,))
        return previous

    def ascend(self) -> Iterator[tuple[str, str]]:
        """Yield every (key, value) pair in ascending key order."""
        cursor = self._conn.execute(
            f"SELECT key, value FROM {TABLE_NAME} ORDER BY key ASC"
        )
        for key, value in cursor:
            yield key, value

    def len(self) -> int:
        return self._conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()[0]


class KeyValueStore:
    """Single-file key-value store.

    Construct once at startup, call open(), and pass the instance to whatever
    needs it. Safe to share between threads.
    """

    def __init__(self, path: str):
        self.path = str(path)
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def _connect(self) -> sqlite3.Connection:
        if self._closed:
            raise StoreClosedError(f"store {self.path} is closed")
        # isolation_level=None: transactions are started explicitly below
        try:
            return sqlite3.connect(
                self.path,
                timeout=BUSY_TIMEOUT,
                isolation_level=None,
                check_same_thread=False,
            )
        except sqlite3.Error as e:
            raise StoreError(f"cannot connect to {self.path}: {e}") from e

    def open(self) -> 'KeyValueStore':
        self._closed = False
        try:
            conn = self._connect()
            try:
                conn.execute("PRAGMA journal_mode = WAL")
                conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} "
                    "(key TEXT PRIMARY KEY NOT NULL, value TEXT NOT NULL) WITHOUT ROWID"
                )
            finally:
                conn.close()
        except StoreError:
            self._closed = True
            raise
        except sqlite3.Error as e:
            self._closed = True
            raise StoreError(f"failed to open store {self.path}: {e}") from e
        logger.debug("Key-value store opened", extra={"path": self.path})
        return self

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            logger.debug("Key-value store closed", extra={"path": self.path})

    def __enter__(self) -> 'KeyValueStore':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextmanager
    def view(self) -> Iterator[Transaction]:
        """Run a read-only transaction."""
        conn = self._connect()
        try:
            conn.execute("BEGIN")
            yield Transaction(conn, writable=False)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        finally:
            if conn.in_transaction:
                conn.rollback()
            conn.close()

    @contextmanager
    def update(self) -> Iterator[Transaction]:
        """Run a read-write transaction.

        Commits when the block exits normally, rolls back if it raises.
        """
        conn = self._connect()
        try:
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield Transaction(conn, writable=True)
                conn.commit()
            except sqlite3.Error as e:
                raise StoreError(str(e)) from e
        finally:
            if conn.in_transaction:
                conn.rollback()
            conn.close()

    def ping(self) -> bool:
        try:
            with self.view() as tx:
                tx.len()
            return True
        except StoreError as e:
            logger.warning("Key-value store ping failed", extra={"path": self.path, "error": str(e)})
            return False
