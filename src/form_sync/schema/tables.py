"""
tables.py - Relational layout derived from a form version.

One root table per form and one child table per Repeatable, nested
Repeatables included. Every child row carries the root record id so a
record's rows can be removed from any table with one predicate.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final

from form_sync.config import (
    CHILD_ID_COLUMN,
    INDEX_COLUMN,
    PARENT_ID_COLUMN,
    RECORD_ID_COLUMN,
    ROOT_SYSTEM_COLUMNS,
)
from form_sync.errors import UnsupportedFieldTypeError
from form_sync.model.elements import (
    OPAQUE_FIELDS,
    Element,
    data_elements,
    repeatables_with_paths,
)
from form_sync.model.form import FormVersion
from form_sync.schema.naming import build_table_name, column_name


class ColumnKind(Enum):
    """Logical column types; dialects map them to concrete SQL types."""
    TEXT = "text"
    INTEGER = "integer"
    DOUBLE = "double"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"


# Element type -> column kind. NumberField is resolved by its numeric flag.
FIELD_KINDS: Final[dict[str, ColumnKind]] = {
    "TextField": ColumnKind.TEXT,
    "ChoiceField": ColumnKind.TEXT,
    "YesNoField": ColumnKind.TEXT,
    "DateField": ColumnKind.DATE,
    "TimeField": ColumnKind.TIME,
    **{name: ColumnKind.TEXT for name in OPAQUE_FIELDS},
}

NUMBER_FIELD: Final[str] = "NumberField"


@dataclass(frozen=True)
class ColumnDef:
    """A column of a generated table."""
    name: str
    kind: ColumnKind
    nullable: bool = True
    primary_key: bool = False
    references: tuple[str, str] | None = None
    data_name: str | None = field(default=None, compare=False)

    @property
    def label(self) -> str:
        return self.data_name or self.name


@dataclass(frozen=True)
class TableSpec:
    """
    A generated table.

    path is empty for the root table and holds the Repeatable key path
    for child tables.
    """
    name: str
    path: tuple[str, ...]
    columns: tuple[ColumnDef, ...]
    root: str
    parent: str | None = None

    @property
    def is_root(self) -> bool:
        return not self.path

    def column_map(self) -> dict[str, ColumnDef]:
        return {column.name: column for column in self.columns}


def column_kind(element: Element) -> ColumnKind:
    """
    Column kind for a data element.

    Raises:
        UnsupportedFieldTypeError: If the element type has no column mapping
    """
    if element.type == NUMBER_FIELD:
        return ColumnKind.DOUBLE if element.numeric else ColumnKind.INTEGER
    kind = FIELD_KINDS.get(element.type)
    if kind is None:
        raise UnsupportedFieldTypeError(
            f"No column type for element type {element.type!r}",
            element_type=element.type,
            element_key=element.key,
        )
    return kind


def field_columns(elements: Any) -> list[ColumnDef]:
    return [
        ColumnDef(name=column_name(element), kind=column_kind(element), data_name=element.data_name)
        for element in data_elements(elements)
    ]


def root_columns(elements: tuple[Element, ...]) -> tuple[ColumnDef, ...]:
    columns = [ColumnDef(name=RECORD_ID_COLUMN, kind=ColumnKind.TEXT, nullable=False, primary_key=True)]
    columns.extend(ColumnDef(name=name, kind=ColumnKind[kind]) for name, kind in ROOT_SYSTEM_COLUMNS)
    columns.extend(field_columns(elements))
    return tuple(columns)


def child_columns(repeatable: Element, root_table: str) -> tuple[ColumnDef, ...]:
    columns = [
        ColumnDef(name=CHILD_ID_COLUMN, kind=ColumnKind.TEXT, nullable=False, primary_key=True),
        ColumnDef(
            name=RECORD_ID_COLUMN,
            kind=ColumnKind.TEXT,
            nullable=False,
            references=(root_table, RECORD_ID_COLUMN),
        ),
        ColumnDef(name=PARENT_ID_COLUMN, kind=ColumnKind.TEXT),
        ColumnDef(name=INDEX_COLUMN, kind=ColumnKind.INTEGER),
    ]
    columns.extend(field_columns(repeatable.elements))
    return tuple(columns)


def build_tables(account_row_id: Any, version: FormVersion) -> list[TableSpec]:
    """
    Lay out every table a form version needs, parents before children.

    Args:
        account_row_id: Row id of the owning account
        version: Form version snapshot

    Returns:
        TableSpecs in creation order (root first, then Repeatables pre-order)

    Raises:
        InvalidNameInputError: If ids or keys are missing
        UnsupportedFieldTypeError: If an element has no column mapping
    """
    tree = version.element_tree
    root = build_table_name(account_row_id, version.row_id)
    tables = [TableSpec(name=root, path=(), columns=root_columns(tree), root=root)]

    for path, repeatable in repeatables_with_paths(tree):
        tables.append(TableSpec(
            name=build_table_name(account_row_id, version.row_id, path),
            path=path,
            columns=child_columns(repeatable, root),
            root=root,
            parent=build_table_name(account_row_id, version.row_id, path[:-1]),
        ))

    return tables
