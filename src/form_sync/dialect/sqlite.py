"""
sqlite.py - SQLite dialect.

Requires SQLite 3.35+ for ALTER TABLE ... DROP COLUMN. Generated tables
and views live in the "main" database, which is the only schema served.
"""

from typing import Any, Final, Mapping

from form_sync.dialect.base import Dialect
from form_sync.schema.tables import ColumnKind

# Dates and times are kept as ISO-8601 text so they compare and sort correctly
SQLITE_TYPES: Final[dict[ColumnKind, str]] = {
    ColumnKind.TEXT: "TEXT",
    ColumnKind.INTEGER: "INTEGER",
    ColumnKind.DOUBLE: "REAL",
    ColumnKind.DATE: "TEXT",
    ColumnKind.TIME: "TEXT",
    ColumnKind.TIMESTAMP: "TEXT",
}


class SQLiteDialect(Dialect):
    """SQL generator for SQLite."""

    @property
    def name(self) -> str:
        return "sqlite"

    def ident(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def column_type(self, kind: ColumnKind) -> str:
        return SQLITE_TYPES[kind]

    def upsert(self, table: str, key_column: str, values: Mapping[str, Any]) -> str:
        insert = self.insert(table, values).rstrip(";")
        updates = ", ".join(
            f"{self.ident(column)} = excluded.{self.ident(column)}"
            for column in values
            if column != key_column
        )
        if not updates:
            return f"{insert} ON CONFLICT ({self.ident(key_column)}) DO NOTHING;"
        return f"{insert} ON CONFLICT ({self.ident(key_column)}) DO UPDATE SET {updates};"

    def list_tables_sql(self, schema: str) -> str:
        return (
            f"SELECT name AS name FROM {self.ident(schema)}.sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
        )
