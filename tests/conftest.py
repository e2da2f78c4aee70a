"""
conftest.py - pytest fixtures for form_sync tests.
"""

import asyncio
import os
import tempfile
import pytest

from form_sync import MemoryAccount, SQLiteStore, SyncOrchestrator
from form_sync.config import SyncConfig
from form_sync.model import Form, Record


SAMPLE_ELEMENTS = [
    {"key": "a1b2", "type": "TextField", "data_name": "site_name", "label": "Site name"},
    {"key": "c3d4", "type": "NumberField", "data_name": "count"},
    {
        "key": "s1",
        "type": "Section",
        "data_name": "details",
        "elements": [
            {"key": "e5f6", "type": "ChoiceField", "data_name": "condition"},
            {"key": "l1", "type": "Label", "data_name": "note"},
        ],
    },
    {
        "key": "r1",
        "type": "Repeatable",
        "data_name": "inspections",
        "elements": [
            {"key": "g7h8", "type": "DateField", "data_name": "inspected_on"},
            {
                "key": "r2",
                "type": "Repeatable",
                "data_name": "photos",
                "elements": [
                    {"key": "i9j0", "type": "TextField", "data_name": "caption"},
                ],
            },
        ],
    },
]

ROOT_TABLE = "account_3_form_7"
INSPECTIONS_TABLE = "account_3_form_7_r1"
PHOTOS_TABLE = "account_3_form_7_r1_r2"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test databases."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def db_path(temp_dir):
    return os.path.join(temp_dir, "test.db")


@pytest.fixture
def store(db_path):
    """SQLite store in a temp directory."""
    store = SQLiteStore(db_path)
    yield store
    asyncio.run(store.close())


@pytest.fixture
def form():
    """Form with scalar fields, a Section, and nested Repeatables."""
    return Form(id="form-1", row_id=7, account_row_id=3, name="Sites", elements=SAMPLE_ELEMENTS)


@pytest.fixture
def make_record(form):
    """Build records of the sample form with a number of inspections."""

    def _make(record_id: str, inspections: int = 0, photos: int = 0, **values) -> Record:
        items = [
            {
                "id": f"{record_id}-i{n}",
                "form_values": {
                    "g7h8": f"2024-05-{n + 1:02d}",
                    "r2": [
                        {"id": f"{record_id}-i{n}-p{m}", "form_values": {"i9j0": f"photo {m}"}}
                        for m in range(photos)
                    ],
                },
            }
            for n in range(inspections)
        ]
        form_values = {"a1b2": values.get("site_name", "North"), "c3d4": values.get("count", "4")}
        if items:
            form_values["r1"] = items
        return Record(
            id=record_id,
            form=form,
            form_values=form_values,
            status="complete",
            version=1,
            created_at="2024-05-01T10:00:00+00:00",
            updated_at="2024-05-02T10:00:00+00:00",
            latitude=51.5,
            longitude=-0.12,
        )

    return _make


@pytest.fixture
def account(form):
    return MemoryAccount(3, "Acme", forms=[form])


@pytest.fixture
def orchestrator(store):
    return SyncOrchestrator(store, SyncConfig())


def table_names(store) -> set[str]:
    rows = store.connection.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
    ).fetchall()
    return {row["name"] for row in rows}


def view_names(store) -> set[str]:
    rows = store.connection.execute("SELECT name FROM sqlite_master WHERE type = 'view'").fetchall()
    return {row["name"] for row in rows}


def column_names(store, table: str) -> list[str]:
    return [row["name"] for row in store.connection.execute(f'PRAGMA table_info("{table}")')]
