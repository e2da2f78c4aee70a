"""
form.py - Forms and form version snapshots.
"""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from form_sync.model.elements import Element, iter_elements, parse_elements, repeatables_with_paths


@dataclass(frozen=True)
class FormVersion:
    """
    Snapshot of a form's schema at one point in time.

    The element tree is kept in its serialized (JSON) form so that two
    snapshots can be compared or stored as-is.
    """
    id: str
    row_id: int
    name: str
    elements: list[dict[str, Any]] = field(default_factory=list)

    @cached_property
    def element_tree(self) -> tuple[Element, ...]:
        return parse_elements(self.elements)


@dataclass
class Form:
    """A form as exposed by the host system."""
    id: str
    row_id: int
    account_row_id: int
    name: str
    elements: list[dict[str, Any]] = field(default_factory=list)
    status: str = "active"

    @cached_property
    def element_tree(self) -> tuple[Element, ...]:
        return parse_elements(self.elements)

    def version(self) -> FormVersion:
        return FormVersion(
            id=self.id,
            row_id=self.row_id,
            name=self.name,
            elements=self.elements,
        )

    def elements_of_type(self, type_name: str) -> list[Element]:
        return [e for e in iter_elements(self.element_tree) if e.type == type_name]

    def repeatables(self) -> list[tuple[tuple[str, ...], Element]]:
        return list(repeatables_with_paths(self.element_tree))


def form_version(form: Form | None) -> FormVersion | None:
    """Snapshot a form, passing None through."""
    if form is None:
        return None
    return form.version()
