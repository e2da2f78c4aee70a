"""
store.py - Statement execution against the target database.

The orchestrator only needs to run one SQL string at a time and to list
the tables of a schema. Store is that contract; SQLiteStore implements
it on the standard library driver.

Statements are executed in the default executor so callers can await
them from the event loop. Each call completes before it returns, so
statements are never pipelined.
"""

import asyncio
import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from form_sync.config import SQLITE_PRAGMAS
from form_sync.dialect.base import Dialect
from form_sync.dialect.sqlite import SQLiteDialect
from form_sync.errors import StatementFailedError

logger = logging.getLogger("form_sync.db")


class Store(ABC):
    """Executes SQL for the orchestrator."""

    @abstractmethod
    async def run(self, sql: str) -> list[dict[str, Any]]:
        """
        Execute one statement and return its rows.

        Raises:
            StatementFailedError: If the database rejects the statement
        """
        pass

    @abstractmethod
    async def list_tables(self, schema: str) -> list[str]:
        """Names of the tables present in schema."""
        pass

    @abstractmethod
    async def close(self) -> None:
        pass


def create_connection(db_path: str) -> sqlite3.Connection:
    """
    Create a new SQLite connection with the configured PRAGMAs.

    Args:
        db_path: Path to SQLite database file

    Returns:
        Configured sqlite3.Connection

    Raises:
        StatementFailedError: If connection fails
    """
    try:
        conn = sqlite3.connect(
            db_path,
            isolation_level=None,  # Autocommit, one statement at a time
            check_same_thread=False,
        )
    except sqlite3.Error as e:
        raise StatementFailedError(
            f"Failed to connect to database: {e}",
            operation="connect",
        ) from e

    conn.row_factory = sqlite3.Row
    _apply_pragmas(conn)
    return conn


def _apply_pragmas(conn: sqlite3.Connection) -> None:
    for pragma, value in SQLITE_PRAGMAS.items():
        try:
            conn.execute(f"PRAGMA {pragma} = {value}")
        except sqlite3.Error as e:
            raise StatementFailedError(
                f"Failed to set PRAGMA {pragma}: {e}",
                operation="pragma",
                sql=f"PRAGMA {pragma} = {value}",
            ) from e


def create_database(db_path: str) -> Path:
    """
    Create the database file (and its directory) if missing.

    Returns:
        Resolved path of the database
    """
    path = Path(db_path).expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = create_connection(str(path))
    conn.close()
    return path


class SQLiteStore(Store):
    """
    Store backed by a SQLite database file.

    The connection is opened lazily on first use.
    """

    def __init__(self, db_path: str, debug: bool = False, dialect: Dialect | None = None):
        self.db_path = db_path
        self.debug = debug
        self.dialect = dialect or SQLiteDialect()
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = create_connection(self.db_path)
        return self._conn

    def _execute(self, sql: str) -> list[dict[str, Any]]:
        try:
            cursor = self.connection.execute(sql)
            return [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise StatementFailedError(f"Statement failed: {e}", sql=sql, operation="run") from e

    async def run(self, sql: str) -> list[dict[str, Any]]:
        sql = sql.replace("\0", "")
        if self.debug:
            logger.debug(sql)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._execute, sql)

    async def list_tables(self, schema: str) -> list[str]:
        rows = await self.run(self.dialect.list_tables_sql(schema))
        return [row["name"] for row in rows]

    async def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
