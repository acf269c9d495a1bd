"""Typed store exceptions for the key-value store package.

Store implementations raise these to signal infrastructure failures (SQLite
connection/query errors, unserialisable values) instead of returning
booleans.

Design intent:
    - Domain outcomes like "faction not found" stay ``None``/``False`` at the
      engine level.
    - Persistence failures raise typed exceptions so the API boundary can map
      them to a deterministic HTTP 503 and a log line.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class StoreOperationContext:
    """Structured operation metadata carried by store exceptions.

    Attributes:
        operation: Stable operation identifier (for example
            ``"kv.set"``).
        details: Optional human-readable context for logs and debugging.
    """

    operation: str
    details: str | None = None


class StoreError(RuntimeError):
    """Base exception for store-layer failures."""


class StoreOperationError(StoreError):
    """Base exception for store operation failures.

    Args:
        context: Structured operation metadata.
        cause: Optional underlying exception.
    """

    def __init__(
        self,
        *,
        context: StoreOperationContext,
        cause: Exception | None = None,
    ) -> None:
        message = context.operation
        if context.details:
            message = f"{message}: {context.details}"
        super().__init__(message)
        self.context = context
        self.cause = cause


class StoreReadError(StoreOperationError):
    """Store read/query failure."""


class StoreWriteError(StoreOperationError):
    """Store mutation failure."""
