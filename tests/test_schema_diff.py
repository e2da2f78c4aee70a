"""
test_schema_diff.py - Tests for schema statement generation.

These tests check statement shape and order only; execution against
SQLite is covered in test_orchestrator.py.
"""

import copy

from conftest import INSPECTIONS_TABLE, PHOTOS_TABLE, ROOT_TABLE

from form_sync.host import MemoryAccount
from form_sync.model import FormVersion
from form_sync.schema.diff import diff_tables, generate_schema_statements


SIMPLE_ELEMENTS = [
    {"key": "a1", "type": "TextField", "data_name": "name"},
    {
        "key": "r1",
        "type": "Repeatable",
        "data_name": "items",
        "elements": [{"key": "b1", "type": "NumberField", "data_name": "qty"}],
    },
]


def simple_version(elements=None, name="Simple"):
    return FormVersion(id="form-1", row_id=7, name=name, elements=elements or SIMPLE_ELEMENTS)


def index_of(statements, prefix):
    for i, sql in enumerate(statements):
        if sql.startswith(prefix):
            return i
    raise AssertionError(f"No statement starts with {prefix!r}")


class TestFullCreate:
    """Tests for (None, new)."""

    def test_nothing_to_nothing(self):
        assert generate_schema_statements(MemoryAccount(3, "Acme"), None, None) == []

    def test_two_create_tables_child_references_root(self):
        statements = generate_schema_statements(MemoryAccount(3, "Acme"), None, simple_version())
        creates = [s for s in statements if s.startswith("CREATE TABLE")]

        assert len(creates) == 2
        assert creates[0].startswith(f'CREATE TABLE "{ROOT_TABLE}"')
        assert creates[1].startswith(f'CREATE TABLE "{ROOT_TABLE}_r1"')
        assert f'REFERENCES "{ROOT_TABLE}" ("_record_id") ON DELETE CASCADE' in creates[1]

    def test_child_index_and_views(self):
        statements = generate_schema_statements(MemoryAccount(3, "Acme"), None, simple_version())

        assert f'CREATE INDEX "idx_{ROOT_TABLE}_r1_record_id"' in statements[2]
        views = [s for s in statements if s.startswith("CREATE VIEW")]
        assert len(views) == 2
        assert f'"{ROOT_TABLE}_view_full"' in views[0]
        assert '"fa1" AS "name"' in views[0]
        assert '"fb1" AS "qty"' in views[1]

    def test_views_after_tables(self, form):
        statements = generate_schema_statements(MemoryAccount(3, "Acme"), None, form.version())

        last_table = max(i for i, s in enumerate(statements) if s.startswith("CREATE TABLE"))
        first_view = index_of(statements, "CREATE VIEW")
        assert last_table < first_view

    def test_nested_parents_first(self, form):
        change = diff_tables(MemoryAccount(3, "Acme"), None, form.version())
        assert change.tables_created == [ROOT_TABLE, INSPECTIONS_TABLE, PHOTOS_TABLE]

    def test_pure(self, form):
        account = MemoryAccount(3, "Acme")
        first = generate_schema_statements(account, None, form.version())
        second = generate_schema_statements(account, None, form.version())
        assert first == second


class TestFullDrop:
    """Tests for (old, None)."""

    def test_child_dropped_before_root(self):
        statements = generate_schema_statements(MemoryAccount(3, "Acme"), simple_version(), None)
        drops = [s for s in statements if s.startswith("DROP TABLE")]

        assert drops == [
            f'DROP TABLE IF EXISTS "{ROOT_TABLE}_r1";',
            f'DROP TABLE IF EXISTS "{ROOT_TABLE}";',
        ]

    def test_views_dropped_first(self):
        statements = generate_schema_statements(MemoryAccount(3, "Acme"), simple_version(), None)

        assert statements[0] == f'DROP VIEW IF EXISTS "{ROOT_TABLE}_r1_view_full";'
        assert statements[1] == f'DROP VIEW IF EXISTS "{ROOT_TABLE}_view_full";'

    def test_nested_children_first(self, form):
        change = diff_tables(MemoryAccount(3, "Acme"), form.version(), None)
        assert change.tables_dropped == [PHOTOS_TABLE, INSPECTIONS_TABLE, ROOT_TABLE]


class TestIncrementalDiff:
    """Tests for (old, new)."""

    def test_unchanged_only_refreshes_views(self):
        statements = generate_schema_statements(
            MemoryAccount(3, "Acme"), simple_version(), simple_version()
        )

        assert all(s.startswith(("DROP VIEW", "CREATE VIEW")) for s in statements)
        assert len(statements) == 4

    def test_add_column(self):
        elements = copy.deepcopy(SIMPLE_ELEMENTS)
        elements.append({"key": "c1", "type": "DateField", "data_name": "visited"})

        change = diff_tables(MemoryAccount(3, "Acme"), simple_version(), simple_version(elements))

        assert change.columns_added == [(ROOT_TABLE, "fc1")]
        assert change.columns_dropped == []
        assert f'ALTER TABLE "{ROOT_TABLE}" ADD COLUMN "fc1" TEXT;' in change.statements

    def test_drop_column(self):
        elements = [e for e in copy.deepcopy(SIMPLE_ELEMENTS) if e["key"] != "a1"]

        change = diff_tables(MemoryAccount(3, "Acme"), simple_version(), simple_version(elements))

        assert change.columns_dropped == [(ROOT_TABLE, "fa1")]
        assert f'ALTER TABLE "{ROOT_TABLE}" DROP COLUMN "fa1";' in change.statements

    def test_changed_kind_is_drop_then_add(self):
        elements = copy.deepcopy(SIMPLE_ELEMENTS)
        elements[1]["elements"][0]["numeric"] = True

        change = diff_tables(MemoryAccount(3, "Acme"), simple_version(), simple_version(elements))
        drop = index_of(change.statements, f'ALTER TABLE "{ROOT_TABLE}_r1" DROP COLUMN "fb1"')
        add = index_of(change.statements, f'ALTER TABLE "{ROOT_TABLE}_r1" ADD COLUMN "fb1" REAL')

        assert drop < add

    def test_added_repeatable_is_create(self):
        elements = copy.deepcopy(SIMPLE_ELEMENTS)
        elements.append({
            "key": "r9",
            "type": "Repeatable",
            "data_name": "visits",
            "elements": [{"key": "d1", "type": "TextField", "data_name": "who"}],
        })

        change = diff_tables(MemoryAccount(3, "Acme"), simple_version(), simple_version(elements))

        assert change.tables_created == [f"{ROOT_TABLE}_r9"]
        assert change.tables_dropped == []

    def test_removed_repeatable_is_drop_before_creates(self):
        elements = [e for e in copy.deepcopy(SIMPLE_ELEMENTS) if e["key"] != "r1"]

        change = diff_tables(MemoryAccount(3, "Acme"), simple_version(), simple_version(elements))

        assert change.tables_dropped == [f"{ROOT_TABLE}_r1"]
        drop_table = index_of(change.statements, "DROP TABLE")
        create_view = index_of(change.statements, "CREATE VIEW")
        assert drop_table < create_view

    def test_views_dropped_before_alters(self):
        elements = copy.deepcopy(SIMPLE_ELEMENTS)
        elements.append({"key": "c1", "type": "TextField", "data_name": "extra"})

        statements = generate_schema_statements(
            MemoryAccount(3, "Acme"), simple_version(), simple_version(elements)
        )

        assert index_of(statements, "DROP VIEW") < index_of(statements, "ALTER TABLE")
        assert index_of(statements, "ALTER TABLE") < index_of(statements, "CREATE VIEW")
