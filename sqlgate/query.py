"""Catalog statements and row shaping shared by the gateway."""

from __future__ import annotations

from typing import Any, Iterable

Row = dict[str, Any]

LIST_TABLES_QUERY = """
    SELECT table_catalog AS database_name,
           table_schema AS schema_name,
           table_name AS name,
           table_type AS kind
    FROM information_schema.tables
    WHERE table_schema NOT IN ('pg_catalog', 'information_schema')
    ORDER BY table_schema, table_name
"""

DESCRIBE_TABLE_QUERY = """
    SELECT column_name AS name,
           data_type AS type,
           is_nullable AS nullable,
           column_default AS "default"
    FROM information_schema.columns
    WHERE table_name = $1
      AND table_schema = COALESCE($2::text, current_schema())
      AND ($3::text IS NULL OR table_catalog = $3::text)
    ORDER BY ordinal_position
"""


class UpstreamExecutionError(RuntimeError):
    """Raised when an accepted statement fails inside the database."""


def describe_args(identifier: str) -> tuple[str, str | None, str | None]:
    """Split `table`, `schema.table` or `db.schema.table` into query parameters.

    Parts are folded to lower case, the way unquoted identifiers resolve.
    """

    parts = identifier.lower().split(".")
    table = parts[-1]
    schema = parts[-2] if len(parts) >= 2 else None
    database = parts[-3] if len(parts) >= 3 else None
    return table, schema, database


def records_to_rows(records: Iterable[Any]) -> list[Row]:
    return [dict(record) for record in records]


__all__ = [
    "DESCRIBE_TABLE_QUERY",
    "LIST_TABLES_QUERY",
    "Row",
    "UpstreamExecutionError",
    "describe_args",
    "records_to_rows",
]
