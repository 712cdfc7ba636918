"""SQLite-backed conversion history repository."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from currency_converter.adapters.sqlite_database import SqliteDatabase
from currency_converter.domain.errors import InvalidArgumentError, NotFoundError
from currency_converter.domain.models import ConversionRecord
from currency_converter.services.conversions import ConversionHistoryRepository


@dataclass
class SqliteConversionRepository(ConversionHistoryRepository):
    """SQLite implementation of the append-only conversion log."""

    database: SqliteDatabase

    def append(self, record: ConversionRecord) -> None:
        """Append a record for an existing account."""
        if record.account_id is None:
            raise InvalidArgumentError("Conversion record has no account id")
        with self.database.transaction("append conversion") as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO conversion_history
                        (account_id, from_code, to_code, amount, result, timestamp)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.account_id,
                        record.from_code,
                        record.to_code,
                        str(record.amount),
                        str(record.result),
                        record.timestamp.isoformat(),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise NotFoundError("account", record.account_id) from exc

    def list_for_account(
        self, account_id: int, limit: int | None = None
    ) -> list[ConversionRecord]:
        """Return an account's conversions, oldest first.

        With ``limit`` only the most recent ``limit`` records are returned,
        still oldest first.
        """
        query = (
            "SELECT account_id, from_code, to_code, amount, result, timestamp "
            "FROM conversion_history WHERE account_id = ? "
            "ORDER BY timestamp DESC, id DESC"
        )
        params: list[object] = [account_id]
        if limit is not None:
            if limit < 0:
                raise InvalidArgumentError(f"History limit cannot be negative: {limit}")
            query += " LIMIT ?"
            params.append(limit)
        with self.database.transaction("list conversions") as conn:
            rows = conn.execute(query, params).fetchall()
        return [_to_record(row) for row in reversed(rows)]


def _to_record(row: sqlite3.Row) -> ConversionRecord:
    return ConversionRecord(
        account_id=row["account_id"],
        from_code=row["from_code"],
        to_code=row["to_code"],
        amount=Decimal(row["amount"]),
        result=Decimal(row["result"]),
        timestamp=datetime.fromisoformat(row["timestamp"]),
    )
