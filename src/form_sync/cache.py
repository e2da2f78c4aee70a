"""
cache.py - Which generated tables currently exist.

The orchestrator owns one TableCache and refreshes it explicitly, at
activation and after every schema change.
"""

import logging

from form_sync.db.store import Store

logger = logging.getLogger("form_sync.cache")


class TableCache:
    """Snapshot of the table names present in the active schema."""

    def __init__(self, names: frozenset[str] = frozenset()):
        self._names = frozenset(names)

    def __contains__(self, table: object) -> bool:
        return table in self._names

    def __len__(self) -> int:
        return len(self._names)

    @property
    def names(self) -> frozenset[str]:
        return self._names

    async def refresh(self, store: Store, schema: str) -> None:
        """Reload the table list from the store's metadata."""
        self._names = frozenset(await store.list_tables(schema))
        logger.debug(f"Table cache refreshed: {len(self._names)} tables in {schema}")
