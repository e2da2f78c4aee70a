"""
materializer.py - Statements that write a record into its tables.

A record is always written with replace semantics: the root row is
upserted, every child row belonging to the record is deleted, and the
current repeatable items are inserted again. Re-applying the same
record therefore yields the same rows.
"""

import json
import math
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Iterator

from form_sync.config import (
    CHILD_ID_COLUMN,
    INDEX_COLUMN,
    PARENT_ID_COLUMN,
    RECORD_ID_COLUMN,
)
from form_sync.dialect.base import Dialect
from form_sync.dialect.sqlite import SQLiteDialect
from form_sync.errors import UnsupportedFieldTypeError
from form_sync.model.elements import OPAQUE_FIELDS, Element, child_repeatables, data_elements
from form_sync.model.form import Form
from form_sync.model.record import Record, repeatable_items
from form_sync.schema.naming import column_name, table_name_with_form


TEXT_FIELDS = frozenset({"TextField", "YesNoField"})
TEMPORAL_FIELDS = frozenset({"DateField", "TimeField"})
NUMBER_FIELD = "NumberField"
CHOICE_FIELD = "ChoiceField"
SERIALIZABLE_FIELDS = TEXT_FIELDS | TEMPORAL_FIELDS | OPAQUE_FIELDS | {NUMBER_FIELD, CHOICE_FIELD}

# Integral values with more digits are stored as floats (INTEGER is 64-bit)
INTEGER_DIGITS = 18


@dataclass(frozen=True)
class ChildRow:
    """One repeatable item flattened into a child table row."""
    table: str
    values: dict[str, Any]


# =============================================================================
# Value serialization
# =============================================================================

def _number(value: Any, numeric: bool) -> int | float | None:
    if isinstance(value, bool):
        return int(value)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    integral = number.adjusted() < INTEGER_DIGITS and number == number.to_integral_value()
    if not numeric and integral:
        return int(number)
    result = float(number)
    return result if math.isfinite(result) else None


def _choice(value: Any) -> str | None:
    if isinstance(value, dict):
        parts = list(value.get("choice_values") or []) + list(value.get("other_values") or [])
        return ",".join(str(part) for part in parts) if parts else None
    if isinstance(value, (list, tuple)):
        return ",".join(str(part) for part in value) if value else None
    return str(value)


def _opaque(value: Any) -> str | None:
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, sort_keys=True, default=str) if value else None
    return str(value)


def _temporal(value: Any) -> str:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def serialize_value(element: Element, value: Any) -> Any:
    """
    Convert a form value into the Python value stored in its column.

    Raises:
        UnsupportedFieldTypeError: If the element type has no rule
    """
    if element.type not in SERIALIZABLE_FIELDS:
        raise UnsupportedFieldTypeError(
            f"Cannot serialize values of element type {element.type!r}",
            element_type=element.type,
            element_key=element.key,
        )

    if value is None or value == "":
        return None
    if element.type == NUMBER_FIELD:
        return _number(value, element.numeric)
    if element.type == CHOICE_FIELD:
        return _choice(value)
    if element.type in TEMPORAL_FIELDS:
        return _temporal(value)
    if element.type in OPAQUE_FIELDS:
        return _opaque(value)
    return str(value)


def _timestamp(value: datetime | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def field_values(elements: tuple[Element, ...], form_values: dict[str, Any]) -> dict[str, Any]:
    """Column -> value for the data fields of one table level."""
    return {
        column_name(element): serialize_value(element, form_values.get(element.key))
        for element in data_elements(elements)
    }


# =============================================================================
# Row building
# =============================================================================

def root_row(record: Record) -> dict[str, Any]:
    row = {
        RECORD_ID_COLUMN: record.id,
        "_status": record.status,
        "_version": record.version,
        "_created_at": _timestamp(record.created_at),
        "_updated_at": _timestamp(record.updated_at),
        "_latitude": record.latitude,
        "_longitude": record.longitude,
    }
    row.update(field_values(record.form.element_tree, record.form_values))
    return row


def _walk_children(
    form: Form,
    record_id: str,
    elements: tuple[Element, ...],
    form_values: dict[str, Any],
    parent_id: str,
    path: tuple[str, ...],
) -> Iterator[ChildRow]:
    for repeatable in child_repeatables(elements):
        child_path = path + (repeatable.key,)
        table = table_name_with_form(form, child_path)

        for index, item in enumerate(repeatable_items(form_values, repeatable.key)):
            child_id = item.get("id") or f"{parent_id}/{repeatable.key}/{index}"
            item_values = item.get("form_values") or {}

            values = {
                CHILD_ID_COLUMN: str(child_id),
                RECORD_ID_COLUMN: record_id,
                PARENT_ID_COLUMN: parent_id,
                INDEX_COLUMN: index,
            }
            values.update(field_values(repeatable.elements, item_values))
            yield ChildRow(table=table, values=values)

            yield from _walk_children(
                form, record_id, repeatable.elements, item_values, str(child_id), child_path
            )


def child_rows(record: Record) -> list[ChildRow]:
    """Child rows of a record in pre-order (parents before their items)."""
    return list(_walk_children(
        record.form, record.id, record.form.element_tree, record.form_values, record.id, ()
    ))


def child_tables_deepest_first(form: Form) -> list[str]:
    """Every child table of a form, deepest nesting first."""
    paths = [path for path, _ in form.repeatables()]
    paths.sort(key=len, reverse=True)
    return [table_name_with_form(form, path) for path in paths]


# =============================================================================
# Statement generation
# =============================================================================

def update_for_record_statements(record: Record, dialect: Dialect | None = None) -> list[str]:
    """
    Statements that make the stored rows match the record.

    Order: root upsert, child deletes (deepest first), child inserts
    (pre-order, so parent items precede their nested items).

    Raises:
        InvalidNameInputError: If the record's form lacks ids
        UnsupportedFieldTypeError: If a field type cannot be serialized
    """
    dialect = dialect or SQLiteDialect()
    root = table_name_with_form(record.form)

    statements = [dialect.upsert(root, RECORD_ID_COLUMN, root_row(record))]
    statements.extend(
        dialect.delete(table, RECORD_ID_COLUMN, record.id)
        for table in child_tables_deepest_first(record.form)
    )
    statements.extend(dialect.insert(row.table, row.values) for row in child_rows(record))
    return statements


def delete_for_record_statements(
    record: Record, form: Form | None = None, dialect: Dialect | None = None
) -> list[str]:
    """
    Statements removing every row of a record, children first.

    Deleting a record that has no rows matches nothing and is a no-op.
    """
    dialect = dialect or SQLiteDialect()
    form = form or record.form

    statements = [
        dialect.delete(table, RECORD_ID_COLUMN, record.id)
        for table in child_tables_deepest_first(form)
    ]
    statements.append(dialect.delete(table_name_with_form(form), RECORD_ID_COLUMN, record.id))
    return statements
