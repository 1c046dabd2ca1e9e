"""Runs guarded statements against the shared store."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Protocol

from src.core.errors import ExecutionError
from src.sandbox.guard import StatementKind


class SQLExecutor(Protocol):
    """Abstracts the relational engine that backs the sandbox."""

    def run(self, statement: str) -> list[dict[str, Any]]:  # pragma: no cover - interface
        """Execute a SQL statement and return row dictionaries."""

    def run_write(self, statement: str) -> int:  # pragma: no cover - interface
        """Execute a SQL statement and return the affected row count."""


@dataclass(frozen=True, slots=True)
class RowSet:
    rows: list[dict[str, Any]]


@dataclass(frozen=True, slots=True)
class MutationCount:
    changes: int


RawResult = RowSet | MutationCount


@dataclass(slots=True)
class QueryExecutor:
    """Executes one statement per call; engine errors become `ExecutionError`."""

    engine: SQLExecutor

    def run(self, statement: str, kind: StatementKind) -> RawResult:
        try:
            if kind == "read":
                return RowSet(rows=list(self.engine.run(statement)))
            return MutationCount(changes=int(self.engine.run_write(statement)))
        except (sqlite3.Error, sqlite3.Warning, ValueError) as exc:
            raise ExecutionError(str(exc)) from exc
