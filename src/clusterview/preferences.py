"""
Key/value preference storage.

Provides PreferenceStore implementations used to persist operator
choices (the refresh interval) across restarts:
- InMemoryPreferenceStore: process-local dict, used as fallback and in tests
- SqlitePreferenceStore: single-table SQLite file

Both store plain strings; callers parse and validate values themselves.
"""

import sqlite3
from pathlib import Path
from typing import Any

from clusterview.errors import PreferenceStoreError

PREFERENCES_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS preferences (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


class InMemoryPreferenceStore:
    """Dict-backed PreferenceStore."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class SqlitePreferenceStore:
    """
    Synchronous SQLite-backed PreferenceStore.

    Can be used as a context manager to keep one connection open, or
    called directly, in which case each get/set opens its own connection.
    Last write wins; there is no locking beyond SQLite's own.

    Example:
        with SqlitePreferenceStore(Path("~/.clusterview/preferences.db")) as prefs:
            prefs.set("clusterview-refresh-interval", "30000")
            prefs.get("clusterview-refresh-interval")  # "30000"
    """

    def __init__(self, db_path: Path) -> None:
        """
        Initialize the store.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path).expanduser()
        self._conn: sqlite3.Connection | None = None

    def __enter__(self) -> "SqlitePreferenceStore":
        """Open database connection and ensure schema exists."""
        try:
            self._conn = self._connect()
        except (sqlite3.Error, OSError) as e:
            raise PreferenceStoreError(None, str(e)) from e
        return self

    def __exit__(self, *args: Any) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.executescript(PREFERENCES_SCHEMA_SQL)
        conn.commit()
        return conn

    def _run(self, key: str, sql: str, params: tuple[Any, ...]) -> list[tuple[Any, ...]]:
        try:
            if self._conn is not None:
                rows = self._conn.execute(sql, params).fetchall()
                self._conn.commit()
                return rows
            conn = self._connect()
            try:
                rows = conn.execute(sql, params).fetchall()
                conn.commit()
                return rows
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            raise PreferenceStoreError(key, str(e)) from e

    def get(self, key: str) -> str | None:
        rows = self._run(key, "SELECT value FROM preferences WHERE key = ?", (key,))
        return rows[0][0] if rows else None

    def set(self, key: str, value: str) -> None:
        self._run(
            key,
            """
            INSERT INTO preferences (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                updated_at = datetime('now')
            """,
            (key, value),
        )
