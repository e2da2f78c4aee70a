"""
base.py - Contract every SQL dialect generator must satisfy.

Generators only build SQL text; they never execute anything. Values are
rendered as literals because the store driver accepts plain SQL.
"""

import math
from abc import ABC, abstractmethod
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Mapping, Sequence

from form_sync.schema.tables import ColumnDef, ColumnKind


class Dialect(ABC):
    """
    Abstract SQL dialect.

    Subclasses must provide identifier quoting, type mapping, upserts
    and the table-listing query. Everything else is plain SQL that most
    engines accept and may be overridden where a target differs.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Dialect name for logging."""
        pass

    @abstractmethod
    def ident(self, name: str) -> str:
        """Quote an identifier."""
        pass

    @abstractmethod
    def column_type(self, kind: ColumnKind) -> str:
        """Concrete SQL type for a logical column kind."""
        pass

    @abstractmethod
    def upsert(self, table: str, key_column: str, values: Mapping[str, Any]) -> str:
        """Insert a row or overwrite every listed column when the key exists."""
        pass

    @abstractmethod
    def list_tables_sql(self, schema: str) -> str:
        """Query returning one row per table in schema, with a `name` column."""
        pass

    def qualified(self, schema: str | None, name: str) -> str:
        if schema:
            return f"{self.ident(schema)}.{self.ident(name)}"
        return self.ident(name)

    def literal(self, value: Any) -> str:
        """Render a Python value as a SQL literal."""
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            if math.isnan(value) or math.isinf(value):
                return "NULL"
            return repr(value)
        if isinstance(value, Decimal):
            return str(value) if value.is_finite() else "NULL"
        if isinstance(value, (datetime, date, time)):
            return self.quote_string(value.isoformat())
        return self.quote_string(str(value))

    def quote_string(self, text: str) -> str:
        return "'" + text.replace("'", "''") + "'"

    def column_definition(self, column: ColumnDef) -> str:
        parts = [self.ident(column.name), self.column_type(column.kind)]
        if column.primary_key:
            parts.append("PRIMARY KEY")
        elif not column.nullable:
            parts.append("NOT NULL")
        if column.references is not None:
            table, target = column.references
            parts.append(f"REFERENCES {self.ident(table)} ({self.ident(target)}) ON DELETE CASCADE")
        return " ".join(parts)

    def create_table(self, table: str, columns: Sequence[ColumnDef]) -> str:
        body = ", ".join(self.column_definition(column) for column in columns)
        return f"CREATE TABLE {self.ident(table)} ({body});"

    def create_index(self, index: str, table: str, column: str) -> str:
        return f"CREATE INDEX {self.ident(index)} ON {self.ident(table)} ({self.ident(column)});"

    def drop_table(self, table: str) -> str:
        return f"DROP TABLE IF EXISTS {self.ident(table)};"

    def add_column(self, table: str, column: ColumnDef) -> str:
        return f"ALTER TABLE {self.ident(table)} ADD COLUMN {self.column_definition(column)};"

    def drop_column(self, table: str, column: str) -> str:
        return f"ALTER TABLE {self.ident(table)} DROP COLUMN {self.ident(column)};"

    def create_view(self, view: str, select_sql: str, schema: str | None = None) -> str:
        return f"CREATE VIEW {self.qualified(schema, view)} AS {select_sql};"

    def drop_view(self, view: str, schema: str | None = None) -> str:
        return f"DROP VIEW IF EXISTS {self.qualified(schema, view)};"

    def select_aliased(self, table: str, columns: Sequence[tuple[str, str]]) -> str:
        """SELECT listing (column, alias) pairs from table."""
        projection = ", ".join(
            f"{self.ident(column)} AS {self.ident(alias)}" for column, alias in columns
        )
        return f"SELECT {projection} FROM {self.ident(table)}"

    def insert(self, table: str, values: Mapping[str, Any]) -> str:
        columns = ", ".join(self.ident(column) for column in values)
        literals = ", ".join(self.literal(value) for value in values.values())
        return f"INSERT INTO {self.ident(table)} ({columns}) VALUES ({literals});"

    def delete(self, table: str, column: str, value: Any) -> str:
        return f"DELETE FROM {self.ident(table)} WHERE {self.ident(column)} = {self.literal(value)};"
