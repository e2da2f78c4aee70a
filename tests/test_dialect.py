"""
test_dialect.py - Tests for SQL rendering by the SQLite dialect.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from form_sync.dialect import SQLiteDialect
from form_sync.schema.tables import ColumnDef, ColumnKind


class TestLiterals:
    """Tests for value rendering."""

    def setup_method(self):
        self.dialect = SQLiteDialect()

    def test_null_and_bool(self):
        assert self.dialect.literal(None) == "NULL"
        assert self.dialect.literal(True) == "1"
        assert self.dialect.literal(False) == "0"

    def test_numbers(self):
        assert self.dialect.literal(42) == "42"
        assert self.dialect.literal(1.5) == "1.5"
        assert self.dialect.literal(float("nan")) == "NULL"
        assert self.dialect.literal(Decimal("2.50")) == "2.50"

    def test_strings_escaped(self):
        assert self.dialect.literal("it's") == "'it''s'"

    def test_temporal_iso(self):
        assert self.dialect.literal(date(2024, 5, 1)) == "'2024-05-01'"
        stamp = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert self.dialect.literal(stamp) == "'2024-05-01T10:00:00+00:00'"


class TestStatements:
    """Tests for DDL and DML shapes."""

    def setup_method(self):
        self.dialect = SQLiteDialect()

    def test_identifier_quoting(self):
        assert self.dialect.ident('a"b') == '"a""b"'
        assert self.dialect.qualified("main", "Sites") == '"main"."Sites"'
        assert self.dialect.qualified(None, "Sites") == '"Sites"'

    def test_column_types(self):
        assert self.dialect.column_type(ColumnKind.DOUBLE) == "REAL"
        assert self.dialect.column_type(ColumnKind.TIMESTAMP) == "TEXT"

    def test_create_table(self):
        sql = self.dialect.create_table("t", [
            ColumnDef("id", ColumnKind.TEXT, nullable=False, primary_key=True),
            ColumnDef("parent", ColumnKind.TEXT, nullable=False, references=("p", "id")),
        ])

        assert sql == (
            'CREATE TABLE "t" ("id" TEXT PRIMARY KEY, '
            '"parent" TEXT NOT NULL REFERENCES "p" ("id") ON DELETE CASCADE);'
        )

    def test_upsert(self):
        sql = self.dialect.upsert("t", "id", {"id": "a", "name": "b"})

        assert sql == (
            'INSERT INTO "t" ("id", "name") VALUES (\'a\', \'b\') '
            'ON CONFLICT ("id") DO UPDATE SET "name" = excluded."name";'
        )

    def test_upsert_key_only(self):
        assert self.dialect.upsert("t", "id", {"id": "a"}).endswith("DO NOTHING;")

    def test_friendly_view_statements(self):
        assert self.dialect.drop_view("Sites", "main") == 'DROP VIEW IF EXISTS "main"."Sites";'
        assert self.dialect.create_view("Sites", "SELECT 1", "main") == (
            'CREATE VIEW "main"."Sites" AS SELECT 1;'
        )

    def test_name(self):
        assert self.dialect.name == "sqlite"

    def test_list_tables_query(self):
        assert '"main".sqlite_master' in self.dialect.list_tables_sql("main")
