"""
config.py - Configuration for form_sync.

Constants are immutable and defined at module level. Per-run settings
live in SyncConfig, which is handed to the orchestrator explicitly.
No mutable global state is permitted.
"""

from dataclasses import dataclass
from typing import Final

# Defaults mirrored by the CLI options
DEFAULT_DATABASE: Final[str] = "fulcrumapp.db"
DEFAULT_SCHEMA: Final[str] = "main"

# Progress callback fires every N records during a rebuild
PROGRESS_INTERVAL: Final[int] = 10

# Longest identifier we generate (PostgreSQL's limit, the tightest target)
MAX_IDENTIFIER_LENGTH: Final[int] = 63

# Length of the digest suffix used to keep shortened names unique
NAME_DIGEST_LENGTH: Final[int] = 8

# SQLite PRAGMA settings for the target database
SQLITE_PRAGMAS: Final[dict[str, str]] = {
    "journal_mode": "WAL",
    "synchronous": "NORMAL",
    "foreign_keys": "ON",
    "busy_timeout": "5000",
}

# System columns present on every root table
RECORD_ID_COLUMN: Final[str] = "_record_id"
ROOT_SYSTEM_COLUMNS: Final[tuple[tuple[str, str], ...]] = (
    ("_status", "TEXT"),
    ("_version", "INTEGER"),
    ("_created_at", "TIMESTAMP"),
    ("_updated_at", "TIMESTAMP"),
    ("_latitude", "DOUBLE"),
    ("_longitude", "DOUBLE"),
)

# System columns present on every repeatable (child) table
CHILD_ID_COLUMN: Final[str] = "_child_record_id"
PARENT_ID_COLUMN: Final[str] = "_parent_id"
INDEX_COLUMN: Final[str] = "_index"

# Suffix of the full projection view generated for every table
VIEW_FULL_SUFFIX: Final[str] = "_view_full"


@dataclass(frozen=True)
class SyncConfig:
    """Settings for one sync run, passed to the orchestrator."""
    schema: str = DEFAULT_SCHEMA
    debug: bool = False
    progress_interval: int = PROGRESS_INTERVAL
