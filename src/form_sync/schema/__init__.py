"""
schema - Relational layout of forms and the DDL that maintains it.

The diff generator lives in form_sync.schema.diff and is imported from
there directly, since it depends on the dialect package.
"""

from form_sync.schema.naming import (
    build_table_name,
    table_name,
    table_name_with_form,
    view_full_name,
    column_name,
    friendly_view_name,
)
from form_sync.schema.tables import (
    ColumnKind,
    ColumnDef,
    TableSpec,
    build_tables,
    column_kind,
)

__all__ = [
    # naming
    "build_table_name",
    "table_name",
    "table_name_with_form",
    "view_full_name",
    "column_name",
    "friendly_view_name",
    # tables
    "ColumnKind",
    "ColumnDef",
    "TableSpec",
    "build_tables",
    "column_kind",
]
