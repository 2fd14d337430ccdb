"""Storage layer: statistics database and key-value session store."""

from nudge.storage.database import Database, init_database
from nudge.storage.kv_store import JsonFileStore, KeyValueStore, MemoryStore

__all__ = ["Database", "init_database", "JsonFileStore", "KeyValueStore", "MemoryStore"]
