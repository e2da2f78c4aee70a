"""
elements.py - Form element tree.

A form's schema is an ordered tree of elements. Data fields become
columns, Sections are flattened into the table that contains them,
Labels carry no data and Repeatables become child tables.
"""

from dataclasses import dataclass
from typing import Any, Final, Iterable, Iterator

from form_sync.errors import InvalidNameInputError

REPEATABLE: Final[str] = "Repeatable"
SECTION: Final[str] = "Section"
LABEL: Final[str] = "Label"

# Host field types stored as text; structured values (media lists,
# addresses) are kept as JSON
OPAQUE_FIELDS: Final[frozenset[str]] = frozenset({
    "PhotoField",
    "VideoField",
    "AudioField",
    "SignatureField",
    "CalculatedField",
    "AddressField",
    "HyperlinkField",
    "BarcodeField",
    "ClassificationField",
    "RecordLinkField",
})


@dataclass(frozen=True, slots=True)
class Element:
    """A single node of a form's element tree."""
    key: str
    type: str
    data_name: str
    label: str = ""
    numeric: bool = False
    elements: tuple["Element", ...] = ()

    @property
    def is_repeatable(self) -> bool:
        return self.type == REPEATABLE


def parse_element(data: dict[str, Any]) -> Element:
    """
    Build an Element from its JSON representation.

    Args:
        data: Element dict as stored in the form definition

    Returns:
        Parsed Element, children included

    Raises:
        InvalidNameInputError: If the element has no key
    """
    key = data.get("key")
    if not key:
        raise InvalidNameInputError("Element has no key", field="key", value=data.get("data_name"))

    return Element(
        key=str(key),
        type=str(data.get("type", "")),
        data_name=str(data.get("data_name") or key),
        label=str(data.get("label") or ""),
        numeric=bool(data.get("numeric", False)),
        elements=parse_elements(data.get("elements") or ()),
    )


def parse_elements(raw: Iterable[dict[str, Any]]) -> tuple[Element, ...]:
    return tuple(parse_element(item) for item in raw)


def iter_elements(elements: Iterable[Element]) -> Iterator[Element]:
    """Walk the whole tree depth-first, containers before their children."""
    for element in elements:
        yield element
        if element.elements:
            yield from iter_elements(element.elements)


def data_elements(elements: Iterable[Element]) -> Iterator[Element]:
    """
    Yield the data-carrying elements of one table level.

    Sections are flattened, Labels skipped, and Repeatables are not
    entered since their fields belong to the child table.
    """
    for element in elements:
        if element.type == SECTION:
            yield from data_elements(element.elements)
        elif element.type in (LABEL, REPEATABLE):
            continue
        else:
            yield element


def repeatables_with_paths(
    elements: Iterable[Element], path: tuple[str, ...] = ()
) -> Iterator[tuple[tuple[str, ...], Element]]:
    """
    Yield every Repeatable with its key path, parents before children.

    The path holds the keys of the enclosing Repeatables plus the
    Repeatable's own key. Sections do not contribute to the path.
    """
    for element in elements:
        if element.is_repeatable:
            child_path = path + (element.key,)
            yield child_path, element
            yield from repeatables_with_paths(element.elements, child_path)
        elif element.type == SECTION:
            yield from repeatables_with_paths(element.elements, path)


def child_repeatables(elements: Iterable[Element]) -> Iterator[Element]:
    """Yield the Repeatables directly nested at this level (through Sections)."""
    for element in elements:
        if element.is_repeatable:
            yield element
        elif element.type == SECTION:
            yield from child_repeatables(element.elements)
