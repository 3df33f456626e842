# Infrastructure Adapters Package
from .json_session import JsonFileSessionStore
from .memory import InMemoryItemStore, InMemorySessionStore
from .sqlite_store import SqliteItemStore

__all__ = [
    "InMemoryItemStore",
    "InMemorySessionStore",
    "JsonFileSessionStore",
    "SqliteItemStore",
]
