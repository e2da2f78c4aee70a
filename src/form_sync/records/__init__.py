"""
records - Statements that materialize records into generated tables.
"""

from form_sync.records.materializer import (
    ChildRow,
    serialize_value,
    root_row,
    child_rows,
    update_for_record_statements,
    delete_for_record_statements,
)

__all__ = [
    "ChildRow",
    "serialize_value",
    "root_row",
    "child_rows",
    "update_for_record_statements",
    "delete_for_record_statements",
]
