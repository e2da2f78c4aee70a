"""
model - Forms, elements and records handed over by the host.
"""

from form_sync.model.elements import (
    Element,
    REPEATABLE,
    SECTION,
    LABEL,
    parse_element,
    parse_elements,
    iter_elements,
    data_elements,
    repeatables_with_paths,
    child_repeatables,
)
from form_sync.model.form import Form, FormVersion, form_version
from form_sync.model.record import Record, repeatable_items

__all__ = [
    # elements
    "Element",
    "REPEATABLE",
    "SECTION",
    "LABEL",
    "parse_element",
    "parse_elements",
    "iter_elements",
    "data_elements",
    "repeatables_with_paths",
    "child_repeatables",
    # forms
    "Form",
    "FormVersion",
    "form_version",
    # records
    "Record",
    "repeatable_items",
]
