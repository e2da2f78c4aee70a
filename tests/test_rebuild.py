"""
test_rebuild.py - Tests for full form rebuilds.

These tests verify that rebuilding is idempotent, reports progress at
fixed intervals and tolerates failures while dropping old tables.
"""

import asyncio

import pytest

from conftest import INSPECTIONS_TABLE, PHOTOS_TABLE, ROOT_TABLE, column_names, table_names

from form_sync.config import SyncConfig
from form_sync.db.store import SQLiteStore
from form_sync.errors import StatementFailedError
from form_sync.orchestrator import SyncOrchestrator


class FailingDropStore(SQLiteStore):
    """Store that rejects DROP TABLE statements."""

    def __init__(self, db_path):
        super().__init__(db_path)
        self.rejected = []

    async def run(self, sql):
        if sql.startswith("DROP TABLE"):
            self.rejected.append(sql)
            raise StatementFailedError("drop rejected", sql=sql)
        return await super().run(sql)


def schema_state(store):
    return {table: column_names(store, table) for table in sorted(table_names(store))}


class TestRebuildIdempotence:
    """Rebuilding twice yields the same schema as rebuilding once."""

    def test_rebuild_twice_same_schema(self, orchestrator, store, form, account, make_record):
        account.records.extend(make_record(f"rec-{n}", inspections=1) for n in range(3))

        async def scenario():
            await orchestrator.activate()
            await orchestrator.rebuild_form(form, account)
            first = schema_state(store)
            await orchestrator.rebuild_form(form, account)
            return first

        first = asyncio.run(scenario())

        assert first == schema_state(store)
        assert set(first) == {ROOT_TABLE, INSPECTIONS_TABLE, PHOTOS_TABLE}

    def test_rebuild_reloads_records(self, orchestrator, store, form, account, make_record):
        account.records.extend(make_record(f"rec-{n}", inspections=2) for n in range(4))

        async def scenario():
            await orchestrator.activate()
            return await orchestrator.rebuild_form(form, account)

        assert asyncio.run(scenario()) == 4
        rows = store.connection.execute(f'SELECT COUNT(*) FROM "{INSPECTIONS_TABLE}"').fetchone()
        assert rows[0] == 8

    def test_rebuild_drops_stale_rows(self, orchestrator, store, form, account, make_record):
        async def scenario():
            await orchestrator.activate()
            await orchestrator.update_form(form, account, None, form.version())
            await orchestrator.update_record(make_record("stale"), account)
            await orchestrator.rebuild_form(form, account)

        asyncio.run(scenario())

        rows = store.connection.execute(f'SELECT COUNT(*) FROM "{ROOT_TABLE}"').fetchone()
        assert rows[0] == 0


class TestRebuildProgress:
    """Tests for progress reporting."""

    def test_progress_values(self, orchestrator, form, account, make_record):
        account.records.extend(make_record(f"rec-{n}") for n in range(25))
        seen = []

        async def scenario():
            await orchestrator.activate()
            return await orchestrator.rebuild_form(form, account, seen.append)

        assert asyncio.run(scenario()) == 25
        assert seen == [10, 20, 25]

    def test_progress_with_no_records(self, orchestrator, form, account):
        seen = []

        async def scenario():
            await orchestrator.activate()
            await orchestrator.rebuild_form(form, account, seen.append)

        asyncio.run(scenario())
        assert seen == [0]

    def test_async_progress_and_custom_interval(self, store, form, account, make_record):
        orchestrator = SyncOrchestrator(store, SyncConfig(progress_interval=3))
        account.records.extend(make_record(f"rec-{n}") for n in range(7))
        seen = []

        async def report(count):
            seen.append(count)

        async def scenario():
            await orchestrator.activate()
            await orchestrator.rebuild_form(form, account, report)

        asyncio.run(scenario())
        assert seen == [3, 6, 7]


class TestRecreateFormTables:
    """Drop failures are ignored; create failures are not."""

    def test_drop_failure_swallowed(self, db_path, form, account):
        store = FailingDropStore(db_path)
        orchestrator = SyncOrchestrator(store, SyncConfig(debug=True))

        async def scenario():
            await orchestrator.activate()
            await orchestrator.recreate_form_tables(form, account)
            await store.close()

        asyncio.run(scenario())

        assert store.rejected
        assert ROOT_TABLE in orchestrator.cache

    def test_create_failure_propagates(self, orchestrator, store, form, account):
        async def scenario():
            await orchestrator.activate()
            await store.run(f'CREATE VIEW "{ROOT_TABLE}" AS SELECT 1')
            await orchestrator.recreate_form_tables(form, account)

        with pytest.raises(StatementFailedError):
            asyncio.run(scenario())
