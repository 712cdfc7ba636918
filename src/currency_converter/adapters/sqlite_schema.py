"""SQLite schema definitions and forward-only migrations.

Tables:
- accounts: registered users, email unique regardless of case
- conversion_history: append-only conversion log per account
"""

SCHEMA_VERSION = 1

CREATE_ACCOUNTS = """
CREATE TABLE IF NOT EXISTS accounts (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT NOT NULL,
    email       TEXT NOT NULL UNIQUE COLLATE NOCASE,
    credential  TEXT NOT NULL
);
"""

CREATE_CONVERSION_HISTORY = """
CREATE TABLE IF NOT EXISTS conversion_history (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    account_id  INTEGER NOT NULL
                REFERENCES accounts(id) ON DELETE CASCADE,
    from_code   TEXT NOT NULL,
    to_code     TEXT NOT NULL,
    amount      TEXT NOT NULL,
    result      TEXT NOT NULL,
    timestamp   TEXT NOT NULL
);
"""

CREATE_HISTORY_INDEX = """
CREATE INDEX IF NOT EXISTS idx_conversion_history_account
    ON conversion_history (account_id, timestamp);
"""

# (old_version, new_version) -> statements, applied one step at a time
MIGRATIONS: dict[tuple[int, int], list[str]] = {
    (0, 1): [CREATE_ACCOUNTS, CREATE_CONVERSION_HISTORY, CREATE_HISTORY_INDEX],
}
