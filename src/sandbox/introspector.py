"""Describes the store's tables, columns and foreign keys from its catalog."""

from __future__ import annotations

import sqlite3
from typing import Any, Protocol

from pydantic import BaseModel, Field

from src.core.errors import CatalogError


class CatalogSource(Protocol):
    def list_tables(self) -> list[str]:  # pragma: no cover - interface
        ...

    def table_info(self, table: str) -> list[dict[str, Any]]:  # pragma: no cover - interface
        ...

    def foreign_key_list(self, table: str) -> list[dict[str, Any]]:  # pragma: no cover - interface
        ...


class ColumnDescriptor(BaseModel):
    name: str
    type: str
    is_primary: bool = Field(..., alias="isPrimary")


class ForeignKeyReference(BaseModel):
    table: str
    column: str | None


class ForeignKeyDescriptor(BaseModel):
    column: str
    reference: ForeignKeyReference


class TableDescriptor(BaseModel):
    columns: list[ColumnDescriptor]
    foreign_keys: list[ForeignKeyDescriptor] = Field(..., alias="foreignKeys")


class SchemaDescription(BaseModel):
    tables: dict[str, TableDescriptor]

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def describe_table(catalog: CatalogSource, table: str) -> TableDescriptor:
    columns = [
        ColumnDescriptor(
            name=str(column["name"]),
            type=str(column["type"] or ""),
            isPrimary=column["pk"] == 1,
        )
        for column in catalog.table_info(table)
    ]
    foreign_keys = [
        ForeignKeyDescriptor(
            column=str(key["from"]),
            # "to" is NULL when the reference targets the parent's primary key implicitly.
            reference=ForeignKeyReference(
                table=str(key["table"]),
                column=None if key["to"] is None else str(key["to"]),
            ),
        )
        for key in catalog.foreign_key_list(table)
    ]
    return TableDescriptor(columns=columns, foreignKeys=foreign_keys)


def describe_schema(catalog: CatalogSource) -> SchemaDescription:
    """Snapshot every user table; recomputed on each call."""

    try:
        tables = {name: describe_table(catalog, name) for name in catalog.list_tables()}
    except sqlite3.Error as exc:
        raise CatalogError(str(exc)) from exc
    return SchemaDescription(tables=tables)
