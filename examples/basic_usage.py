import asyncio
import os

from form_sync import EventBus, FormSaved, MemoryAccount, Record, RecordSaved, SQLiteStore, SyncOrchestrator
from form_sync.model import Form

ELEMENTS = [
    {"key": "a1b2", "type": "TextField", "data_name": "site_name"},
    {
        "key": "r1",
        "type": "Repeatable",
        "data_name": "inspections",
        "elements": [{"key": "c3d4", "type": "DateField", "data_name": "inspected_on"}],
    },
]


async def run_example():
    db_path = "example_basic.db"
    if os.path.exists(db_path):
        os.remove(db_path)

    print("--- Form Sync: Basic Example ---")

    # 1. Wire the orchestrator to an event bus
    store = SQLiteStore(db_path)
    orchestrator = SyncOrchestrator(store)
    bus = EventBus()
    orchestrator.attach(bus)
    await orchestrator.activate()

    # 2. A form is saved for the first time
    form = Form(id="sites", row_id=1, account_row_id=1, name="Sites", elements=ELEMENTS)
    account = MemoryAccount(1, "Acme", forms=[form])
    await bus.emit(FormSaved(form, account, None, form.version()))
    print(f"Tables: {sorted(orchestrator.cache.names)}")

    # 3. A record is saved
    record = Record(
        id="rec-1",
        form=form,
        form_values={
            "a1b2": "North yard",
            "r1": [{"id": "insp-1", "form_values": {"c3d4": "2024-05-01"}}],
        },
    )
    await bus.emit(RecordSaved(record, account))

    # 4. Query the friendly views
    for row in await store.run('SELECT * FROM "Sites"'):
        print(f"  {row['_record_id']}: {row['site_name']}")
    for row in await store.run('SELECT * FROM "Sites - inspections"'):
        print(f"  {row['_child_record_id']}: {row['inspected_on']}")

    await orchestrator.close()
    print("\nExample finished. Database saved to", db_path)


if __name__ == "__main__":
    asyncio.run(run_example())
