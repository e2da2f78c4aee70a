"""
form_sync - Mirror form definitions and records into relational tables.

Each form becomes a root table, each Repeatable a child table, and
every table gets a full projection view plus a friendly view named
after the form. Schema changes are applied as incremental diffs.
"""

from form_sync.orchestrator import SyncOrchestrator
from form_sync.bootstrap import sync_account, setup_database
from form_sync.config import SyncConfig
from form_sync.db.store import Store, SQLiteStore
from form_sync.events import EventBus, FormSaved, RecordSaved, RecordDeleted
from form_sync.host import Account, AccountSource, MemoryAccount, JSONAccountSource
from form_sync.model import Form, FormVersion, Record
from form_sync.errors import (
    FormSyncError,
    InvalidNameInputError,
    UnsupportedFieldTypeError,
    StatementFailedError,
    AccountNotFoundError,
    SourceError,
)

__version__ = "0.1.0"
__all__ = [
    # Core
    "SyncOrchestrator",
    "SyncConfig",
    "sync_account",
    "setup_database",
    # Store
    "Store",
    "SQLiteStore",
    # Host
    "Account",
    "AccountSource",
    "MemoryAccount",
    "JSONAccountSource",
    "EventBus",
    "FormSaved",
    "RecordSaved",
    "RecordDeleted",
    # Model
    "Form",
    "FormVersion",
    "Record",
    # Errors
    "FormSyncError",
    "InvalidNameInputError",
    "UnsupportedFieldTypeError",
    "StatementFailedError",
    "AccountNotFoundError",
    "SourceError",
]
