"""Builds the uniform `{columns, rows, metadata}` response envelope."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.sandbox.executor import MutationCount, RawResult, RowSet

RESULT_COLUMN = "Result"


class HighlightedCell(BaseModel):
    row: int
    col: int


class ExecutionMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    execution_time: int = Field(..., ge=0, alias="executionTime")
    highlighted_rows: list[int] | None = Field(None, alias="highlightedRows")
    highlighted_cells: list[HighlightedCell] | None = Field(None, alias="highlightedCells")
    changes: int | None = Field(None, ge=0)


class ExecutionEnvelope(BaseModel):
    columns: list[str]
    rows: list[dict[str, Any]]
    metadata: ExecutionMetadata

    def to_payload(self) -> dict[str, Any]:
        """Return the wire representation; absent metadata keys are omitted."""

        return {
            "columns": list(self.columns),
            "rows": [dict(row) for row in self.rows],
            "metadata": self.metadata.model_dump(by_alias=True, exclude_none=True),
        }


def to_milliseconds(elapsed_seconds: float) -> int:
    return max(int(round(elapsed_seconds * 1000)), 0)


def normalize_read(rows: list[dict[str, Any]], execution_time: int) -> ExecutionEnvelope:
    # With no rows there is nothing to read column names from.
    columns = list(rows[0].keys()) if rows else []
    return ExecutionEnvelope(
        columns=columns,
        rows=rows,
        metadata=ExecutionMetadata(
            execution_time=execution_time,
            highlighted_rows=[],
            highlighted_cells=[],
        ),
    )


def normalize_write(changes: int, execution_time: int) -> ExecutionEnvelope:
    message = f"Query executed successfully. {changes} row(s) affected."
    return ExecutionEnvelope(
        columns=[RESULT_COLUMN],
        rows=[{RESULT_COLUMN: message}],
        metadata=ExecutionMetadata(execution_time=execution_time, changes=changes),
    )


def normalize(raw: RawResult, execution_time: int) -> ExecutionEnvelope:
    if isinstance(raw, RowSet):
        return normalize_read(raw.rows, execution_time)
    if isinstance(raw, MutationCount):
        return normalize_write(raw.changes, execution_time)
    raise TypeError(f"Unsupported execution result: {type(raw).__name__}")
