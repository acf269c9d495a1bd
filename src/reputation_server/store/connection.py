"""SQLite connection primitives for the key-value store.

This module owns connection creation, low-level SQLite runtime pragmas and
schema creation so the store implementation can stay focused on reads and
writes.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS kv_entries (
        namespace TEXT NOT NULL,
        key TEXT NOT NULL,
        value_json TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (namespace, key)
    )
    """,
)


def get_store_path() -> Path:
    """Resolve the absolute SQLite store path from runtime configuration."""
    from reputation_server.config import config

    return config.store.absolute_path


def configure_connection(connection: sqlite3.Connection) -> sqlite3.Connection:
    """Apply connection-level SQLite pragmas required by the application.

    Notes:
        - ``busy_timeout`` reduces transient lock failures during short-lived
          concurrent writes in tests and local multi-process development.
    """
    connection.execute("PRAGMA busy_timeout = 5000")
    return connection


def get_connection(path: Path | None = None) -> sqlite3.Connection:
    """Create and configure a new SQLite connection."""
    connection = sqlite3.connect(str(path or get_store_path()))
    return configure_connection(connection)


@contextmanager
def connection_scope(
    path: Path | None = None, *, write: bool = False
) -> Iterator[sqlite3.Connection]:
    """Yield a configured connection with guaranteed cleanup semantics.

    Args:
        path: Store file; defaults to the configured store path.
        write: When True, commit on success and rollback on exceptions.

    Yields:
        Configured SQLite connection ready for cursor operations.

    Behavior:
        - Always closes the connection in ``finally``.
        - For write scopes, commits at the end of a successful block.
        - For write scopes, attempts rollback before re-raising failures.
    """
    connection = get_connection(path)
    try:
        yield connection
        if write:
            connection.commit()
    except Exception:
        if write:
            try:
                connection.rollback()
            except sqlite3.Error:
                # Preserve the original exception while best-effort rolling back.
                pass
        raise
    finally:
        connection.close()


def init_store(path: Path | None = None) -> Path:
    """Create the store file and schema if they do not exist.

    Returns:
        The absolute path of the initialised store.
    """
    store_path = path or get_store_path()
    store_path.parent.mkdir(parents=True, exist_ok=True)
    with connection_scope(store_path, write=True) as conn:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(statement)
    return store_path
