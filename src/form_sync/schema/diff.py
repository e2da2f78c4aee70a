"""
diff.py - Schema statements for moving between two form versions.

Pure computation: given the account and the old/new form versions it
returns the DDL needed, in the exact order it must run. Nothing here
touches the database.

Ordering rules:
- full projection views are dropped before any table or column change
- dependent (child) tables are dropped before their parents
- parents are created before children
- a column whose kind changed is dropped and re-added, never altered
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from form_sync.dialect.base import Dialect
from form_sync.dialect.sqlite import SQLiteDialect
from form_sync.config import RECORD_ID_COLUMN
from form_sync.errors import InvalidNameInputError
from form_sync.model.form import FormVersion
from form_sync.schema.naming import index_name, view_full_name
from form_sync.schema.tables import TableSpec, build_tables

if TYPE_CHECKING:
    from form_sync.host import Account


@dataclass
class SchemaChange:
    """Ordered statements plus a summary of what they do."""
    statements: list[str] = field(default_factory=list)
    tables_created: list[str] = field(default_factory=list)
    tables_dropped: list[str] = field(default_factory=list)
    columns_added: list[tuple[str, str]] = field(default_factory=list)
    columns_dropped: list[tuple[str, str]] = field(default_factory=list)


def view_full_select(table: TableSpec, dialect: Dialect) -> str:
    """
    Projection of a table with columns labelled by their data names.

    A data name that is already taken falls back to the column name.
    """
    pairs = []
    used: set[str] = set()
    for column in table.columns:
        alias = column.label
        if alias in used:
            alias = column.name
        used.add(alias)
        pairs.append((column.name, alias))
    return dialect.select_aliased(table.name, pairs)


def _create(change: SchemaChange, table: TableSpec, dialect: Dialect) -> None:
    change.statements.append(dialect.create_table(table.name, table.columns))
    if not table.is_root:
        change.statements.append(dialect.create_index(
            index_name(table.name, RECORD_ID_COLUMN), table.name, RECORD_ID_COLUMN
        ))
    change.tables_created.append(table.name)


def _drop(change: SchemaChange, table: TableSpec, dialect: Dialect) -> None:
    change.statements.append(dialect.drop_table(table.name))
    change.tables_dropped.append(table.name)


def _alter(change: SchemaChange, old: TableSpec, new: TableSpec, dialect: Dialect) -> None:
    old_columns = old.column_map()
    new_columns = new.column_map()

    for name, column in old_columns.items():
        replacement = new_columns.get(name)
        if replacement is None or replacement.kind != column.kind:
            change.statements.append(dialect.drop_column(old.name, name))
            change.columns_dropped.append((old.name, name))

    for name, column in new_columns.items():
        previous = old_columns.get(name)
        if previous is None or previous.kind != column.kind:
            change.statements.append(dialect.add_column(new.name, column))
            change.columns_added.append((new.name, name))


def _create_views(change: SchemaChange, tables: list[TableSpec], dialect: Dialect) -> None:
    for table in tables:
        change.statements.append(
            dialect.create_view(view_full_name(table.name), view_full_select(table, dialect))
        )


def _drop_views(change: SchemaChange, tables: list[TableSpec], dialect: Dialect) -> None:
    for table in reversed(tables):
        change.statements.append(dialect.drop_view(view_full_name(table.name)))


def diff_tables(
    account: "Account",
    old_version: FormVersion | None,
    new_version: FormVersion | None,
    dialect: Dialect | None = None,
) -> SchemaChange:
    """
    Compute the schema change between two form versions.

    Args:
        account: Owning account (provides row_id)
        old_version: Version currently materialized, or None
        new_version: Version to migrate to, or None to drop everything
        dialect: SQL dialect (SQLite by default)

    Returns:
        SchemaChange with statements in execution order

    Raises:
        InvalidNameInputError: If the account or ids are missing
        UnsupportedFieldTypeError: If an element has no column mapping
    """
    dialect = dialect or SQLiteDialect()
    change = SchemaChange()

    if old_version is None and new_version is None:
        return change
    if account is None:
        raise InvalidNameInputError("Cannot generate a schema without an account", field="account")

    old_tables = build_tables(account.row_id, old_version) if old_version is not None else []
    new_tables = build_tables(account.row_id, new_version) if new_version is not None else []

    _drop_views(change, old_tables, dialect)

    new_by_name = {table.name: table for table in new_tables}
    old_by_name = {table.name: table for table in old_tables}

    # Children come after their parents in build order, so reverse it
    for table in reversed(old_tables):
        if table.name not in new_by_name:
            _drop(change, table, dialect)

    for table in new_tables:
        previous = old_by_name.get(table.name)
        if previous is not None:
            _alter(change, previous, table, dialect)

    for table in new_tables:
        if table.name not in old_by_name:
            _create(change, table, dialect)

    _create_views(change, new_tables, dialect)

    return change


def generate_schema_statements(
    account: "Account",
    old_version: FormVersion | None,
    new_version: FormVersion | None,
    dialect: Dialect | None = None,
) -> list[str]:
    """
    Ordered DDL statements migrating old_version to new_version.

    (None, new) creates every table, (old, None) drops every table and
    (old, new) applies the incremental difference.
    """
    return diff_tables(account, old_version, new_version, dialect).statements


def describe(change: SchemaChange) -> dict[str, Any]:
    """Summary of a change suitable for structured logging."""
    return {
        "tables_created": len(change.tables_created),
        "tables_dropped": len(change.tables_dropped),
        "columns_added": len(change.columns_added),
        "columns_dropped": len(change.columns_dropped),
        "statements": len(change.statements),
    }
