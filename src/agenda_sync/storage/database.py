"""
SQLite implementation of the local record store.

Exposes the generic select/insert/update/delete contract used by the
credential and event stores.
"""

import logging
import sqlite3
import threading
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

import pytz

from ..utils.exceptions import StoreError

logger = logging.getLogger(__name__)

# table -> primary key column
TABLE_KEYS = {
    "credentials": "user_id",
    "events": "id",
    "sync_locks": "user_id",
}

_OPERATORS = {"=", "!=", "<", "<=", ">", ">="}

SCHEMA = """
    CREATE TABLE IF NOT EXISTS credentials (
        user_id TEXT PRIMARY KEY,
        access_token TEXT NOT NULL,
        refresh_token TEXT NOT NULL,
        token_expires_at TEXT NOT NULL,
        remote_calendar_id TEXT NOT NULL DEFAULT 'primary',
        sync_enabled INTEGER NOT NULL DEFAULT 1,
        last_sync_at TEXT,
        remote_account_email TEXT
    );
    CREATE TABLE IF NOT EXISTS events (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        color TEXT,
        remote_id TEXT,
        sync_status TEXT NOT NULL DEFAULT 'unsynced',
        last_synced_at TEXT,
        updated_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_events_user_id ON events (user_id);
    CREATE INDEX IF NOT EXISTS idx_events_remote_id ON events (remote_id);
    CREATE TABLE IF NOT EXISTS sync_locks (
        user_id TEXT PRIMARY KEY,
        acquired_at TEXT NOT NULL
    );
"""

Where = dict[str, Union[Any, tuple[str, Any]]]


def to_db_value(value: Any) -> Any:
    """Convert a Python value to its stored representation.

    Aware datetimes are normalised to UTC with fixed microsecond precision so
    that lexical order of the stored strings matches chronological order.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(pytz.utc).isoformat(timespec="microseconds")
        return value.isoformat(timespec="seconds")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


class LocalStore:
    """Ordered collection of typed records backed by SQLite."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def connect(self):
        """Open the database and create the schema if needed."""
        if self.db_path != Path(":memory:"):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        # Web requests run in a thread pool; access is serialised by self._lock
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.executescript(SCHEMA)
        self.conn.commit()
        logger.debug(f"Local store opened at {self.db_path}")

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None

    # ------------------------------------------------------------------ #
    # Record operations                                                    #
    # ------------------------------------------------------------------ #

    def select(
        self,
        table: str,
        where: Optional[Where] = None,
        order_by: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Return rows of ``table`` matching every condition in ``where``.

        A condition value is compared for equality (``None`` matches NULL) or
        is an ``(operator, value)`` tuple such as ``(">=", since)``.
        """
        self._check_table(table)
        clause, params = self._where_clause(where or {})
        sql = f"SELECT * FROM {table}{clause}"
        if order_by:
            self._check_identifier(order_by)
            sql += f" ORDER BY {order_by}"
        with self._lock:
            rows = self._execute(sql, params).fetchall()
        return [dict(row) for row in rows]

    def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert ``row`` and return it as stored."""
        self._check_table(table)
        columns = list(row)
        for column in columns:
            self._check_identifier(column)
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
        self._execute(sql, [to_db_value(row[c]) for c in columns], commit=True)
        return {c: to_db_value(row[c]) for c in columns}

    def update(self, table: str, key: str, patch: dict[str, Any]) -> None:
        """Apply ``patch`` to the row whose primary key is ``key``."""
        self._check_table(table)
        if not patch:
            return
        for column in patch:
            self._check_identifier(column)
        assignments = ", ".join(f"{c} = ?" for c in patch)
        params = [to_db_value(v) for v in patch.values()] + [key]
        sql = f"UPDATE {table} SET {assignments} WHERE {TABLE_KEYS[table]} = ?"
        self._execute(sql, params, commit=True)

    def update_where(self, table: str, where: Where, patch: dict[str, Any]) -> int:
        """Apply ``patch`` to every row matching ``where``; return the row count."""
        self._check_table(table)
        for column in patch:
            self._check_identifier(column)
        clause, params = self._where_clause(where)
        assignments = ", ".join(f"{c} = ?" for c in patch)
        sql = f"UPDATE {table} SET {assignments}{clause}"
        cursor = self._execute(
            sql, [to_db_value(v) for v in patch.values()] + params, commit=True
        )
        return cursor.rowcount

    def delete(self, table: str, key: str) -> None:
        """Delete the row whose primary key is ``key``."""
        self._check_table(table)
        sql = f"DELETE FROM {table} WHERE {TABLE_KEYS[table]} = ?"
        self._execute(sql, [key], commit=True)

    # ------------------------------------------------------------------ #
    # Internals                                                            #
    # ------------------------------------------------------------------ #

    def _execute(self, sql: str, params: list, commit: bool = False) -> sqlite3.Cursor:
        if self.conn is None:
            raise StoreError("Local store is not connected")
        with self._lock:
            try:
                cursor = self.conn.execute(sql, params)
                if commit:
                    self.conn.commit()
                return cursor
            except sqlite3.IntegrityError:
                self.conn.rollback()
                raise
            except sqlite3.Error as e:
                self.conn.rollback()
                raise StoreError(f"Local store operation failed: {e}") from e

    def _where_clause(self, where: Where) -> tuple[str, list]:
        parts = []
        params = []
        for column, condition in where.items():
            self._check_identifier(column)
            if isinstance(condition, tuple):
                operator, value = condition
                if operator not in _OPERATORS:
                    raise StoreError(f"Unsupported operator: {operator}")
                parts.append(f"{column} {operator} ?")
                params.append(to_db_value(value))
            elif condition is None:
                parts.append(f"{column} IS NULL")
            else:
                parts.append(f"{column} = ?")
                params.append(to_db_value(condition))
        if not parts:
            return "", []
        return " WHERE " + " AND ".join(parts), params

    @staticmethod
    def _check_table(table: str) -> None:
        if table not in TABLE_KEYS:
            raise StoreError(f"Unknown table: {table}")

    @staticmethod
    def _check_identifier(name: str) -> None:
        if not name.replace("_", "").isalnum():
            raise StoreError(f"Invalid column name: {name}")
