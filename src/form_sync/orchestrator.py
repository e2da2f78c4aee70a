"""
orchestrator.py - Keeps the relational tables in step with the host.

SyncOrchestrator reacts to form and record lifecycle events:

- form saved: drop friendly views, run the schema diff, recreate views
- record saved: rebuild the form first if its tables are missing, then
  write the record
- record deleted: remove the record's rows

Every statement is awaited before the next one is issued. Events, rebuilds
and direct calls share one lock so statement batches never interleave.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable

from form_sync.cache import TableCache
from form_sync.config import SyncConfig
from form_sync.db.store import Store
from form_sync.dialect.base import Dialect
from form_sync.dialect.sqlite import SQLiteDialect
from form_sync.errors import StatementFailedError
from form_sync.events import EventBus, FormSaved, RecordDeleted, RecordSaved, SyncEvent
from form_sync.metrics import SyncLogger, statements_executed_total
from form_sync.model.elements import REPEATABLE, Element, repeatables_with_paths
from form_sync.model.form import Form, FormVersion, form_version
from form_sync.model.record import Record
from form_sync.records.materializer import (
    delete_for_record_statements,
    update_for_record_statements,
)
from form_sync.schema.diff import describe, diff_tables
from form_sync.schema.naming import table_name_with_form
from form_sync.utils.hashing import fingerprint
from form_sync.views import ViewOutcome, create_friendly_view, drop_friendly_view

logger = logging.getLogger("form_sync.orchestrator")

ProgressCallback = Callable[[int], Any]


class SyncOrchestrator:
    """
    Drives schema and record synchronization against one store.

    Example:
        >>> store = SQLiteStore("fulcrumapp.db")
        >>> orchestrator = SyncOrchestrator(store)
        >>> await orchestrator.activate()
        >>> await orchestrator.rebuild_form(form, account)
    """

    def __init__(
        self,
        store: Store,
        config: SyncConfig | None = None,
        dialect: Dialect | None = None,
        cache: TableCache | None = None,
        sync_logger: SyncLogger | None = None,
    ):
        self.store = store
        self.config = config or SyncConfig()
        self.dialect = dialect or SQLiteDialect()
        self.cache = cache if cache is not None else TableCache()
        self.sync_logger = sync_logger or SyncLogger()
        self._lock = asyncio.Lock()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def activate(self) -> None:
        """Load the table list of the active schema."""
        await self.reload_table_list()
        logger.info(
            f"Activated {self.dialect.name} store on schema {self.config.schema!r} "
            f"({len(self.cache)} tables)"
        )

    async def reload_table_list(self) -> None:
        await self.cache.refresh(self.store, self.config.schema)

    async def close(self) -> None:
        await self.store.close()

    def attach(self, bus: EventBus) -> None:
        """Subscribe to the host's lifecycle events."""
        bus.subscribe(FormSaved, self.handle)
        bus.subscribe(RecordSaved, self.handle)
        bus.subscribe(RecordDeleted, self.handle)

    async def handle(self, event: SyncEvent) -> None:
        """
        Handle one lifecycle event to completion.

        Raises:
            TypeError: If the event type is not one the orchestrator knows
        """
        async with self._lock:
            if isinstance(event, FormSaved):
                await self._update_form(event.form, event.account, event.old_form, event.new_form)
            elif isinstance(event, RecordSaved):
                await self._update_record(event.record, event.account)
            elif isinstance(event, RecordDeleted):
                await self._delete_record(event.record)
            else:
                raise TypeError(f"Unsupported event: {type(event).__name__}")

    # =========================================================================
    # Statements
    # =========================================================================

    async def run(self, sql: str, phase: str = "statement") -> list[dict[str, Any]]:
        """
        Run one statement, recording its outcome.

        Raises:
            StatementFailedError: If the store rejects it
        """
        try:
            rows = await self.store.run(sql)
        except StatementFailedError as e:
            self.sync_logger.statement_failed(phase, sql, str(e), debug=self.config.debug)
            raise
        statements_executed_total.inc(1, phase=phase, status="ok")
        return rows

    async def run_statements(self, statements: list[str], phase: str) -> None:
        for sql in statements:
            await self.run(sql, phase)

    def root_table_exists(self, form: Form) -> bool:
        return table_name_with_form(form) in self.cache

    # =========================================================================
    # Forms
    # =========================================================================

    async def update_form(
        self,
        form: Form,
        account: Any,
        old_form: FormVersion | None,
        new_form: FormVersion | None,
    ) -> None:
        """
        Migrate a form's tables from old_form to new_form.

        When the root table is missing the form is treated as new, which
        recovers from an earlier partial sync.

        Raises:
            StatementFailedError: If a schema statement fails
        """
        async with self._lock:
            await self._update_form(form, account, old_form, new_form)

    async def _update_form(
        self,
        form: Form,
        account: Any,
        old_form: FormVersion | None,
        new_form: FormVersion | None,
    ) -> None:
        if not self.root_table_exists(form) and new_form is not None:
            old_form = None

        change = diff_tables(account, old_form, new_form, self.dialect)
        logger.debug(
            f"Schema change for {form.name}",
            extra={
                "form": form.name,
                "old_fingerprint": fingerprint(old_form.elements) if old_form else None,
                "new_fingerprint": fingerprint(new_form.elements) if new_form else None,
                **describe(change),
            },
        )

        await self._drop_friendly_views(form, old_form)

        try:
            await self.run_statements(change.statements, "schema")
        finally:
            await self.reload_table_list()

        await self._create_friendly_views(form, new_form)

    async def _drop_friendly_views(self, form: Form, old_form: FormVersion | None) -> None:
        names = [form.name]
        repeatables: list[Element] = list(form.elements_of_type(REPEATABLE))
        if old_form is not None:
            if old_form.name not in names:
                names.append(old_form.name)
            repeatables.extend(element for _, element in repeatables_with_paths(old_form.element_tree))

        seen = set()
        for name in names:
            for repeatable in [None, *repeatables]:
                data_name = repeatable.data_name if repeatable is not None else None
                if (name, data_name) in seen:
                    continue
                seen.add((name, data_name))
                self._report(
                    await drop_friendly_view(self.store, self.dialect, self.config.schema, name, repeatable),
                    "drop",
                )

    async def _create_friendly_views(self, form: Form, new_form: FormVersion | None) -> None:
        self._report(
            await create_friendly_view(self.store, self.dialect, self.config.schema, form, new_form),
            "create",
        )
        if new_form is None:
            return
        for path, repeatable in repeatables_with_paths(new_form.element_tree):
            self._report(
                await create_friendly_view(
                    self.store, self.dialect, self.config.schema, form, new_form, path, repeatable
                ),
                "create",
            )

    def _report(self, outcome: ViewOutcome, action: str) -> None:
        if outcome.failed:
            self.sync_logger.view_skipped(action, outcome.view_name, str(outcome.error))

    async def recreate_form_tables(self, form: Form, account: Any) -> None:
        """
        Drop every table of a form, then create them from its current version.

        Failures while dropping are logged and ignored: the tables may not
        exist yet. Failures while creating propagate.
        """
        async with self._lock:
            await self._recreate_form_tables(form, account)

    async def _recreate_form_tables(self, form: Form, account: Any) -> None:
        version = form_version(form)
        try:
            await self._update_form(form, account, version, None)
        except StatementFailedError as e:
            if self.config.debug:
                logger.error(f"Ignoring failure while dropping tables of {form.name}: {e}")
            else:
                logger.debug(f"Ignoring failure while dropping tables of {form.name}: {e}")

        await self._update_form(form, account, None, version)

    async def rebuild_form(
        self, form: Form, account: Any, progress: ProgressCallback | None = None
    ) -> int:
        """
        Recreate a form's tables and reload every record into them.

        Args:
            form: Form to rebuild
            account: Owning account, used to enumerate records
            progress: Called with the running count every progress
                interval, and once more with the final count

        Returns:
            Number of records written
        """
        async with self._lock:
            return await self._rebuild_form(form, account, progress)

    async def _rebuild_form(
        self, form: Form, account: Any, progress: ProgressCallback | None = None
    ) -> int:
        started = time.perf_counter()
        report = progress or (lambda count: None)
        interval = self.config.progress_interval

        await self._recreate_form_tables(form, account)
        await self.reload_table_list()

        index = 0

        async def write(record: Record) -> None:
            nonlocal index
            record.form = form
            index += 1
            if index % interval == 0:
                await _maybe_await(report(index))
            await self._update_record(record, account, skip_table_check=True)

        await account.find_each_record(form, {}, write)
        await _maybe_await(report(index))

        self.sync_logger.form_rebuilt(
            form.name, table_name_with_form(form), index, time.perf_counter() - started
        )
        return index

    # =========================================================================
    # Records
    # =========================================================================

    async def update_record(
        self, record: Record, account: Any, skip_table_check: bool = False
    ) -> None:
        """
        Write a record, rebuilding its form first when the tables are missing.

        Raises:
            StatementFailedError: If a statement fails
            UnsupportedFieldTypeError: If a value cannot be serialized
        """
        async with self._lock:
            await self._update_record(record, account, skip_table_check)

    async def _update_record(
        self, record: Record, account: Any, skip_table_check: bool = False
    ) -> None:
        if not skip_table_check and not self.root_table_exists(record.form):
            logger.info(f"Tables for {record.form.name} are missing, rebuilding")
            await self._rebuild_form(record.form, account)

        statements = update_for_record_statements(record, self.dialect)
        await self.run_statements(statements, "record")
        self.sync_logger.record_materialized(record.id, "update", len(statements))

    async def delete_record(self, record: Record) -> None:
        """
        Remove every row of a record.

        A form without tables holds no rows, so nothing is run for it.
        """
        async with self._lock:
            await self._delete_record(record)

    async def _delete_record(self, record: Record) -> None:
        if not self.root_table_exists(record.form):
            logger.debug(f"No tables for {record.form.name}, nothing to delete for {record.id}")
            return
        statements = delete_for_record_statements(record, record.form, self.dialect)
        await self.run_statements(statements, "record")
        self.sync_logger.record_materialized(record.id, "delete", len(statements))


async def _maybe_await(result: Awaitable[Any] | Any) -> None:
    if asyncio.iscoroutine(result) or isinstance(result, asyncio.Future):
        await result
