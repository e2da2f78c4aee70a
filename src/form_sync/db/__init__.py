"""
db - Store contract and the SQLite store.
"""

from form_sync.db.store import Store, SQLiteStore, create_connection, create_database

__all__ = [
    "Store",
    "SQLiteStore",
    "create_connection",
    "create_database",
]
