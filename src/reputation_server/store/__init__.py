"""Key-value store package.

Public surface
--------------
- :class:`KeyValueStore`        the async ``get``/``set`` contract.
- :class:`MemoryKeyValueStore`  in-process implementation.
- :class:`SqliteKeyValueStore`  file-backed implementation.
- :func:`create_store`          builds the configured backend.
- :func:`init_store`            creates the SQLite schema.
- :exc:`StoreError` and its read/write subclasses.
"""

from reputation_server.store.connection import init_store
from reputation_server.store.errors import (
    StoreError,
    StoreOperationContext,
    StoreReadError,
    StoreWriteError,
)
from reputation_server.store.kv import (
    KeyValueStore,
    MemoryKeyValueStore,
    SqliteKeyValueStore,
    create_store,
)

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "StoreError",
    "StoreOperationContext",
    "StoreReadError",
    "StoreWriteError",
    "create_store",
    "init_store",
]
