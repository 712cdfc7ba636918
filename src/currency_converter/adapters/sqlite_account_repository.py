"""SQLite-backed account repository."""

import sqlite3
from dataclasses import dataclass

from currency_converter.adapters.sqlite_database import SqliteDatabase
from currency_converter.domain.errors import (
    DuplicateEmailError,
    InvalidArgumentError,
    NotFoundError,
)
from currency_converter.domain.models import Account
from currency_converter.services.credentials import CredentialHasher
from currency_converter.services.identity import AccountRepository

_COLUMNS = "id, name, email, credential"


@dataclass
class SqliteAccountRepository(AccountRepository):
    """SQLite implementation for account persistence."""

    database: SqliteDatabase
    hasher: CredentialHasher

    def get(self, account_id: int) -> Account | None:
        """Return the account with the given id, if present."""
        with self.database.transaction("get account") as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM accounts WHERE id = ?", (account_id,)
            ).fetchone()
        return _to_account(row) if row else None

    def find_by_email(self, email: str) -> Account | None:
        """Return the account whose email matches regardless of case."""
        with self.database.transaction("find account by email") as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM accounts WHERE email = ? COLLATE NOCASE",
                (email.strip(),),
            ).fetchone()
        return _to_account(row) if row else None

    def find_by_credentials(self, email: str, credential: str) -> Account | None:
        """Return the account only when both email and credential match."""
        account = self.find_by_email(email)
        if account is None or not self.hasher.verify(credential, account.credential):
            return None
        return account

    def insert(self, account: Account) -> int:
        """Insert a new account and return its assigned id."""
        with self.database.transaction("insert account") as conn:
            try:
                cursor = conn.execute(
                    "INSERT INTO accounts (name, email, credential) VALUES (?, ?, ?)",
                    (account.name, account.email, account.credential),
                )
            except sqlite3.IntegrityError as exc:
                if not _is_duplicate_email(exc):
                    raise
                raise DuplicateEmailError(account.email) from exc
            if cursor.lastrowid is None:
                raise RuntimeError("SQLite did not assign an account id")
            return cursor.lastrowid

    def update(self, account: Account) -> None:
        """Overwrite the stored fields of an existing account."""
        if not account.persisted:
            raise InvalidArgumentError("Cannot update an account without an id")
        with self.database.transaction("update account") as conn:
            try:
                cursor = conn.execute(
                    "UPDATE accounts SET name = ?, email = ?, credential = ? WHERE id = ?",
                    (account.name, account.email, account.credential, account.id),
                )
            except sqlite3.IntegrityError as exc:
                if not _is_duplicate_email(exc):
                    raise
                raise DuplicateEmailError(account.email) from exc
            if cursor.rowcount == 0:
                raise NotFoundError("account", account.id)

    def delete(self, account_id: int) -> None:
        """Delete an account together with its conversion history."""
        with self.database.transaction("delete account") as conn:
            conn.execute(
                "DELETE FROM conversion_history WHERE account_id = ?", (account_id,)
            )
            cursor = conn.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("account", account_id)


def _to_account(row: sqlite3.Row) -> Account:
    return Account(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        credential=row["credential"],
    )


def _is_duplicate_email(exc: sqlite3.IntegrityError) -> bool:
    return "accounts.email" in str(exc)
