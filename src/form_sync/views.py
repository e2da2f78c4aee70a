"""
views.py - Friendly views over the generated tables.

A friendly view exposes a table's full projection under the form's (or
repeatable's) display name. Views are derived and can always be
regenerated, so drop and create report an outcome instead of raising;
the caller decides what to log.
"""

from dataclasses import dataclass
from enum import Enum

from form_sync.db.store import Store
from form_sync.dialect.base import Dialect
from form_sync.errors import StatementFailedError
from form_sync.model.elements import Element
from form_sync.model.form import Form, FormVersion
from form_sync.schema.naming import friendly_view_name, table_name_with_form, view_full_name


class ViewStatus(Enum):
    APPLIED = "applied"
    NOT_NEEDED = "not_needed"
    FAILED = "failed"


@dataclass(frozen=True)
class ViewOutcome:
    """Result of one friendly view operation."""
    status: ViewStatus
    view_name: str
    error: StatementFailedError | None = None

    @property
    def failed(self) -> bool:
        return self.status is ViewStatus.FAILED


async def drop_friendly_view(
    store: Store,
    dialect: Dialect,
    schema: str,
    form_name: str | None,
    repeatable: Element | None = None,
) -> ViewOutcome:
    """Drop the friendly view for a form (or one of its repeatables)."""
    if not form_name:
        return ViewOutcome(ViewStatus.NOT_NEEDED, "")

    view = friendly_view_name(form_name, repeatable)
    try:
        await store.run(dialect.drop_view(view, schema))
    except StatementFailedError as e:
        return ViewOutcome(ViewStatus.FAILED, view, e)
    return ViewOutcome(ViewStatus.APPLIED, view)


async def create_friendly_view(
    store: Store,
    dialect: Dialect,
    schema: str,
    form: Form,
    version: FormVersion | None,
    repeatable_path: tuple[str, ...] = (),
    repeatable: Element | None = None,
) -> ViewOutcome:
    """
    Create the friendly view selecting from a table's full projection.

    Nothing is created when the form no longer has a version.
    """
    if version is None:
        return ViewOutcome(ViewStatus.NOT_NEEDED, "")

    view = friendly_view_name(version.name, repeatable)
    source = view_full_name(table_name_with_form(form, repeatable_path))
    select_sql = f"SELECT * FROM {dialect.ident(source)}"
    try:
        await store.run(dialect.create_view(view, select_sql, schema))
    except StatementFailedError as e:
        return ViewOutcome(ViewStatus.FAILED, view, e)
    return ViewOutcome(ViewStatus.APPLIED, view)
