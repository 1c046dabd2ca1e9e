"""SQLite-backed relational store shared by every sandbox request.

The store wraps a single `sqlite3` connection opened in autocommit mode, so
each statement is its own unit of work. Rows are materialized as plain
dictionaries keyed by output column name, with BLOB values rendered as hex
text and infinite REALs as None so responses stay JSON-serializable.
"""

from __future__ import annotations

import math
import sqlite3
from dataclasses import dataclass, field
from typing import Any

SYSTEM_TABLE_PREFIX = "sqlite_"

Scalar = None | bool | int | float | str


def _to_scalar(value: Any) -> Scalar:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, float) and not math.isfinite(value):
        # JSON has no infinity; render overflowed REALs as null.
        return None
    return value


def _dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Scalar]:
    return {column[0]: _to_scalar(value) for column, value in zip(cursor.description, row)}


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


@dataclass(slots=True)
class SQLiteStore:
    """Process-wide relational store backed by an in-memory SQLite database."""

    path: str = ":memory:"
    _connection: sqlite3.Connection | None = field(init=False, default=None)

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            connection = sqlite3.connect(
                self.path,
                isolation_level=None,
                check_same_thread=False,
            )
            connection.row_factory = _dict_factory
            connection.execute("PRAGMA foreign_keys = ON")
            self._connection = connection
        return self._connection

    def run(self, statement: str) -> list[dict[str, Scalar]]:
        """Execute *statement* and return every produced row."""

        cursor = self.connection.execute(statement)
        try:
            return cursor.fetchall()
        finally:
            cursor.close()

    def run_write(self, statement: str) -> int:
        """Execute *statement* and return the number of rows it changed."""

        cursor = self.connection.execute(statement)
        try:
            # RETURNING clauses only finish once their rows are consumed.
            cursor.fetchall()
            return max(cursor.rowcount, 0)
        finally:
            cursor.close()

    def execute_script(self, script: str) -> None:
        self.connection.executescript(script)

    def insert(self, statement: str, params: tuple[Any, ...]) -> int:
        """Run a parameterized insert and return the new row id."""

        cursor = self.connection.execute(statement, params)
        try:
            return int(cursor.lastrowid or 0)
        finally:
            cursor.close()

    def count(self, table: str) -> int:
        rows = self.run(f"SELECT COUNT(*) AS count FROM {_quote_identifier(table)}")
        return int(rows[0]["count"]) if rows else 0

    def list_tables(self) -> list[str]:
        """Return user tables in catalog order, skipping engine-internal ones."""

        rows = self.run("SELECT name FROM sqlite_master WHERE type = 'table'")
        return [
            str(row["name"])
            for row in rows
            if not str(row["name"]).startswith(SYSTEM_TABLE_PREFIX)
        ]

    def table_info(self, table: str) -> list[dict[str, Scalar]]:
        return self.run(f"PRAGMA table_info({_quote_identifier(table)})")

    def foreign_key_list(self, table: str) -> list[dict[str, Scalar]]:
        return self.run(f"PRAGMA foreign_key_list({_quote_identifier(table)})")

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
