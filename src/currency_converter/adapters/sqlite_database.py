"""SQLite connection management.

Owns the one connection the process uses, creates and upgrades the
schema on first open, and lends the connection to stores one operation
at a time through :meth:`SqliteDatabase.transaction`.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from currency_converter.adapters.sqlite_schema import MIGRATIONS, SCHEMA_VERSION
from currency_converter.domain.errors import (
    CurrencyConverterError,
    SchemaVersionError,
    StorageFaultError,
)

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"
_SIDE_FILE_SUFFIXES = ("-wal", "-shm", "-journal")


@dataclass
class SqliteDatabase:
    """Lazily opened, shared SQLite connection."""

    path: Path | str = MEMORY_PATH
    schema_version: int = SCHEMA_VERSION
    migrations: dict[tuple[int, int], list[str]] = field(
        default_factory=lambda: dict(MIGRATIONS)
    )
    _connection: sqlite3.Connection | None = field(default=None, init=False, repr=False)
    _open_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _operation_lock: threading.RLock = field(
        default_factory=threading.RLock, init=False, repr=False
    )

    @property
    def in_memory(self) -> bool:
        return str(self.path) == MEMORY_PATH

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def open(self) -> sqlite3.Connection:
        """Return the live connection, creating and migrating it on first use.

        Safe to call from several threads at once: every caller receives the
        same connection instance.
        """
        connection = self._connection
        if connection is not None:
            return connection
        with self._open_lock:
            if self._connection is None:
                self._connection = self._initialize()
            return self._connection

    def close(self) -> None:
        """Release the connection; a later open() starts from scratch."""
        with self._operation_lock, self._open_lock:
            if self._connection is None:
                return
            self._connection.close()
            self._connection = None
            logger.info("Database closed at %s", self.path)

    def delete_all(self) -> None:
        """Close the connection and remove the database files.

        Raises:
            StorageFaultError: If a file exists but cannot be removed.

        """
        self.close()
        if self.in_memory:
            return
        path = Path(self.path)
        targets = [path, *(Path(f"{path}{suffix}") for suffix in _SIDE_FILE_SUFFIXES)]
        for target in targets:
            try:
                target.unlink(missing_ok=True)
            except OSError as exc:
                logger.exception("Failed to remove database file %s", target)
                raise StorageFaultError("delete_all") from exc
        logger.info("Database deleted at %s", path)

    def stored_version(self) -> int:
        """Return the schema version recorded in the database."""
        with self.transaction("stored_version") as conn:
            return int(conn.execute("PRAGMA user_version").fetchone()[0])

    @contextmanager
    def transaction(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Lend the connection for one store operation.

        Commits on success and rolls back on any error. Unexpected SQLite
        errors are logged and re-raised as :class:`StorageFaultError` naming
        the operation; application errors pass through unchanged.
        """
        with self._operation_lock:
            conn = self.open()
            try:
                yield conn
                conn.commit()
            except CurrencyConverterError:
                conn.rollback()
                raise
            except sqlite3.Error as exc:
                conn.rollback()
                logger.exception("Storage failure during %s", operation)
                raise StorageFaultError(operation) from exc
            except Exception:
                conn.rollback()
                raise

    def _initialize(self) -> sqlite3.Connection:
        if not self.in_memory:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(str(self.path), check_same_thread=False)
        except sqlite3.Error as exc:
            logger.exception("Failed to open database at %s", self.path)
            raise StorageFaultError("open") from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            self._migrate(conn)
        except SchemaVersionError:
            conn.close()
            raise
        except sqlite3.Error as exc:
            conn.close()
            logger.exception("Failed to initialize schema at %s", self.path)
            raise StorageFaultError("open") from exc
        logger.info("Database initialized at %s (schema v%d)", self.path, self.schema_version)
        return conn

    def _migrate(self, conn: sqlite3.Connection) -> None:
        current = int(conn.execute("PRAGMA user_version").fetchone()[0])
        if current > self.schema_version:
            raise SchemaVersionError(
                "open",
                f"Database schema v{current} is newer than supported v{self.schema_version}",
            )
        for version in range(current, self.schema_version):
            step = (version, version + 1)
            statements = self.migrations.get(step)
            if statements is None:
                raise SchemaVersionError(
                    "open", f"No migration from v{step[0]} to v{step[1]}"
                )
            with conn:
                for statement in statements:
                    conn.execute(statement)
                conn.execute(f"PRAGMA user_version = {step[1]}")
            logger.info("Migrated database schema v%d -> v%d", *step)
