"""
record.py - Data records conforming to a form.

form_values maps element keys to values. A Repeatable's value is a list
of items, each shaped {"id": ..., "form_values": {...}}, so the value
tree mirrors the element tree.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from form_sync.model.form import Form


@dataclass
class Record:
    """One data instance of a form."""
    id: str
    form: Form
    form_values: dict[str, Any] = field(default_factory=dict)
    status: str | None = None
    version: int = 1
    created_at: datetime | str | None = None
    updated_at: datetime | str | None = None
    latitude: float | None = None
    longitude: float | None = None


def repeatable_items(form_values: dict[str, Any], key: str) -> list[dict[str, Any]]:
    """Return the items stored under a Repeatable key, or an empty list."""
    items = form_values.get(key)
    if not items:
        return []
    return [item for item in items if isinstance(item, dict)]
