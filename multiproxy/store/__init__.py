"""State persistence: storage backends, migration and the state store."""

from multiproxy.store.migration import migrate_state
from multiproxy.store.state_store import StateStore, validate_state
from multiproxy.store.storage import JsonFileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "StateStore",
    "migrate_state",
    "validate_state",
]
