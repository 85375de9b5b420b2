"""Scape storage: protocol, records and backends.

Example:
    >>> from scapekit.store import SQLiteScapeStore
    >>> store = SQLiteScapeStore("data/scapes.db")
    >>> store.initialize()
    >>> store.list_user_scapes("user-1")
    []
"""

from .memory import InMemoryScapeStore
from .models import ScapeFields, ScapeRecord, ScapeSummary, WidgetRecord
from .protocol import ScapeStore
from .sqlite import SQLiteScapeStore

__all__ = [
    # Protocol
    "ScapeStore",
    # Records
    "ScapeFields",
    "ScapeRecord",
    "ScapeSummary",
    "WidgetRecord",
    # Backends
    "SQLiteScapeStore",
    "InMemoryScapeStore",
]
