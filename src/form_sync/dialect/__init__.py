"""
dialect - SQL generators for target databases.
"""

from form_sync.dialect.base import Dialect
from form_sync.dialect.sqlite import SQLiteDialect

__all__ = [
    "Dialect",
    "SQLiteDialect",
]
