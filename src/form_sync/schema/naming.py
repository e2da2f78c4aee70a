"""
naming.py - Deterministic names for generated tables, columns and views.

Every generated identifier is a pure function of (account, form,
repeatable path). Names look like

    account_<account row id>_form_<form row id>[_<key>...]

Element keys are reduced to [a-z0-9]. Whenever that reduction changes a
key, or the name would not fit the identifier limit, a "__" separator
and a short digest of the raw inputs are appended. Clean names never
contain "__", so digested and plain names cannot collide.
"""

import re
from typing import TYPE_CHECKING, Any, Iterable

from form_sync.config import MAX_IDENTIFIER_LENGTH, NAME_DIGEST_LENGTH, VIEW_FULL_SUFFIX
from form_sync.errors import InvalidNameInputError
from form_sync.model.elements import Element
from form_sync.utils.hashing import short_digest

if TYPE_CHECKING:
    from form_sync.host import Account
    from form_sync.model.form import Form

_UNSAFE_CHARS = re.compile(r"[^a-z0-9]+")

# Table names must leave room for the view suffix
TABLE_NAME_LIMIT = MAX_IDENTIFIER_LENGTH - len(VIEW_FULL_SUFFIX)


def _require_row_id(value: Any, field: str) -> str:
    if value is None or isinstance(value, bool):
        raise InvalidNameInputError(f"Missing {field}", field=field, value=value)
    text = str(value)
    if not text.isdigit():
        raise InvalidNameInputError(f"{field} must be a non-negative integer", field=field, value=value)
    return text


def _clean_key(key: str) -> tuple[str, bool]:
    """Reduce a key to [a-z0-9]; the flag reports whether it changed."""
    if not key:
        raise InvalidNameInputError("Empty repeatable key", field="repeatable_path", value=key)
    clean = _UNSAFE_CHARS.sub("", key.lower())
    return clean, clean != key


def _finish(name: str, raw_parts: Iterable[str], altered: bool, limit: int) -> str:
    if not altered and len(name) <= limit:
        return name
    suffix = "__" + short_digest(raw_parts, NAME_DIGEST_LENGTH)
    return name[: limit - len(suffix)].rstrip("_") + suffix


def build_table_name(
    account_row_id: Any, form_row_id: Any, repeatable_path: Iterable[str] = ()
) -> str:
    """
    Build a table name from raw ids.

    Raises:
        InvalidNameInputError: If an id is missing or a key is empty
    """
    account_part = _require_row_id(account_row_id, "account_row_id")
    form_part = _require_row_id(form_row_id, "form_row_id")
    path = tuple(repeatable_path)

    name = f"account_{account_part}_form_{form_part}"
    altered = False
    for key in path:
        clean, changed = _clean_key(key)
        altered = altered or changed
        if clean:
            name += f"_{clean}"

    return _finish(name, (account_part, form_part, *path), altered, TABLE_NAME_LIMIT)


def table_name(account: "Account", form: "Form", repeatable_path: Iterable[str] = ()) -> str:
    """
    Name of the table holding a form's root rows, or a repeatable's rows.

    Args:
        account: Owning account (provides row_id)
        form: Form (provides row_id)
        repeatable_path: Keys of the enclosing Repeatables, outermost first

    Raises:
        InvalidNameInputError: If account or form is missing
    """
    if form is None:
        raise InvalidNameInputError("Cannot name a table without a form", field="form")
    if account is None:
        raise InvalidNameInputError("Cannot name a table without an account", field="account")
    return build_table_name(account.row_id, form.row_id, repeatable_path)


def table_name_with_form(form: "Form", repeatable_path: Iterable[str] = ()) -> str:
    """Like table_name, taking the account row id from the form itself."""
    if form is None:
        raise InvalidNameInputError("Cannot name a table without a form", field="form")
    return build_table_name(form.account_row_id, form.row_id, repeatable_path)


def view_full_name(table: str) -> str:
    return table + VIEW_FULL_SUFFIX


def index_name(table: str, column: str) -> str:
    """Index on a table column, digested like table names when too long."""
    return _finish(f"idx_{table}{column}", (table, column), False, MAX_IDENTIFIER_LENGTH)


def column_name(element: Element) -> str:
    """Column holding an element's value: "f" followed by the cleaned key."""
    clean, changed = _clean_key(element.key)
    return _finish("f" + clean, (element.key,), changed, MAX_IDENTIFIER_LENGTH)


def friendly_view_name(form_name: str, repeatable: Element | None = None) -> str:
    """Human-readable view name: the form name, or "<form> - <repeatable>"."""
    if repeatable is None:
        return form_name
    return f"{form_name} - {repeatable.data_name}"
