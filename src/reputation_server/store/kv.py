"""Key-value store contract and its two implementations.

Every persisted structure in the engine (faction records, both standing
stores, module settings) is a JSON-compatible value stored under a
``(namespace, key)`` pair.  The engine only depends on the
:class:`KeyValueStore` protocol:

    value = await store.get("reputation", "factions", {})
    await store.set("reputation", "factions", value)

Both implementations return *fresh* copies from ``get`` and snapshot the value
passed to ``set``, so callers may mutate what they read without touching the
stored state until they write it back.  Nested mappings keep structural
equality across a get/set round-trip.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from pathlib import Path
from typing import Any, NoReturn, Protocol, runtime_checkable

from reputation_server.store.connection import connection_scope, init_store
from reputation_server.store.errors import (
    StoreError,
    StoreOperationContext,
    StoreReadError,
    StoreWriteError,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """Asynchronous namespaced key-value store."""

    async def get(self, namespace: str, key: str, default: Any = None) -> Any:
        """Return the value stored under ``(namespace, key)`` or ``default``."""
        ...

    async def set(self, namespace: str, key: str, value: Any) -> None:
        """Persist ``value`` under ``(namespace, key)``."""
        ...


class MemoryKeyValueStore:
    """Process-local store backed by a dict.

    Used by tests and by ``backend = memory`` deployments where standing does
    not need to survive a restart.
    """

    def __init__(self, initial: dict[tuple[str, str], Any] | None = None) -> None:
        self._data: dict[tuple[str, str], Any] = copy.deepcopy(initial or {})

    async def get(self, namespace: str, key: str, default: Any = None) -> Any:
        if (namespace, key) not in self._data:
            return copy.deepcopy(default)
        return copy.deepcopy(self._data[(namespace, key)])

    async def set(self, namespace: str, key: str, value: Any) -> None:
        self._data[(namespace, key)] = copy.deepcopy(value)

    def snapshot(self) -> dict[tuple[str, str], Any]:
        """Return a deep copy of everything stored (test helper)."""
        return copy.deepcopy(self._data)


def _raise_store_error(
    error_cls: type[StoreError],
    operation: str,
    exc: Exception,
    *,
    details: str | None = None,
) -> NoReturn:
    """Raise a typed store error while preserving chained cause."""
    if isinstance(exc, StoreError):
        raise exc
    raise error_cls(
        context=StoreOperationContext(operation=operation, details=details),
        cause=exc,
    ) from exc


class SqliteKeyValueStore:
    """SQLite-backed store: one ``kv_entries`` row per key, JSON-encoded.

    The blocking sqlite3 calls run in a worker thread via
    :func:`asyncio.to_thread` so the event loop is never held while the file
    is locked.

    Args:
        path: Store file.  When ``None`` the configured
            ``store.path`` is resolved on every call, which lets
            :class:`~reputation_server.config.use_test_store` redirect an
            already-constructed store.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._initialised_for: Path | None = None

    def _resolve_path(self) -> Path:
        if self._path is not None:
            return self._path
        from reputation_server.store.connection import get_store_path

        return get_store_path()

    def _ensure_schema(self) -> Path:
        path = self._resolve_path()
        if self._initialised_for != path:
            init_store(path)
            self._initialised_for = path
        return path

    def _get_sync(self, namespace: str, key: str, default: Any) -> Any:
        details = f"namespace={namespace!r} key={key!r}"
        try:
            path = self._ensure_schema()
            with connection_scope(path) as conn:
                row = conn.execute(
                    "SELECT value_json FROM kv_entries WHERE namespace = ? AND key = ?",
                    (namespace, key),
                ).fetchone()
        except Exception as exc:
            _raise_store_error(StoreReadError, "kv.get", exc, details=details)

        if row is None:
            return copy.deepcopy(default)
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as exc:
            _raise_store_error(StoreReadError, "kv.get", exc, details=f"{details} (corrupt JSON)")

    def _set_sync(self, namespace: str, key: str, value: Any) -> None:
        details = f"namespace={namespace!r} key={key!r}"
        try:
            encoded = json.dumps(value, ensure_ascii=False, sort_keys=True)
        except (TypeError, ValueError) as exc:
            _raise_store_error(StoreWriteError, "kv.set", exc, details=f"{details} (not JSON)")

        try:
            path = self._ensure_schema()
            with connection_scope(path, write=True) as conn:
                conn.execute(
                    """
                    INSERT INTO kv_entries (namespace, key, value_json, updated_at)
                    VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(namespace, key) DO UPDATE SET
                        value_json = excluded.value_json,
                        updated_at = excluded.updated_at
                    """,
                    (namespace, key, encoded),
                )
        except Exception as exc:
            _raise_store_error(StoreWriteError, "kv.set", exc, details=details)

        logger.debug("kv: wrote %s/%s (%d bytes)", namespace, key, len(encoded))

    async def get(self, namespace: str, key: str, default: Any = None) -> Any:
        return await asyncio.to_thread(self._get_sync, namespace, key, default)

    async def set(self, namespace: str, key: str, value: Any) -> None:
        await asyncio.to_thread(self._set_sync, namespace, key, value)


def create_store(backend: str | None = None) -> KeyValueStore:
    """Build the store selected by ``store.backend`` (or ``backend``)."""
    from reputation_server.config import config

    backend = backend or config.store.backend
    if backend == "memory":
        return MemoryKeyValueStore()
    if backend == "sqlite":
        return SqliteKeyValueStore()
    raise ValueError(f"Unknown store backend: {backend!r}")
