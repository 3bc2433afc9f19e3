"""Local persistence of saved tests."""

from examgen_core.storage.kv import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from examgen_core.storage.store import DEFAULT_STORAGE_KEY, PersistenceStore, StoreResult

__all__ = [
    "DEFAULT_STORAGE_KEY",
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "PersistenceStore",
    "StoreResult",
]
