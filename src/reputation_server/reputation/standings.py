"""The two standing stores.

A faction's standing values live in exactly one of two store keys, chosen by
its resolved storage mode:

- ``shared_standings``:  ``{faction_id: value}``, one value per faction.
- ``subject_standings``: ``{subject_id: {faction_id: value}}``.

Both variants implement :class:`StandingStore`, so the ledger picks one with
:func:`standing_store_for` and never branches on the mode again.  Every write
is a whole-key read-modify-write against the key-value store.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from reputation_server.reputation.constants import SHARED_STANDINGS_KEY, SUBJECT_STANDINGS_KEY
from reputation_server.reputation.types import StorageMode
from reputation_server.store.kv import KeyValueStore

logger = logging.getLogger(__name__)


class StandingStore(ABC):
    """Read/write access to one storage location of standing values."""

    key: str
    mode: StorageMode

    def __init__(self, store: KeyValueStore, namespace: str) -> None:
        self._store = store
        self._namespace = namespace

    async def _load(self) -> dict[str, Any]:
        data = await self._store.get(self._namespace, self.key, {})
        return data if isinstance(data, dict) else {}

    async def _save(self, data: dict[str, Any]) -> None:
        await self._store.set(self._namespace, self.key, data)

    @abstractmethod
    async def read(self, subject_id: str, faction_id: str) -> int | None:
        """Stored value, or ``None`` if nothing has been written yet."""

    @abstractmethod
    async def write(self, subject_id: str, faction_id: str, value: int) -> None:
        """Persist ``value``."""

    @abstractmethod
    async def initialize(self, faction_id: str, value: int, subject_ids: Iterable[str]) -> None:
        """Seed a new faction's starting value."""

    @abstractmethod
    async def purge(self, faction_id: str) -> int:
        """Remove every value for ``faction_id``; return how many were removed."""


class SharedStandingStore(StandingStore):
    """One value per faction; ``subject_id`` is ignored."""

    key = SHARED_STANDINGS_KEY
    mode = StorageMode.SHARED

    async def read(self, subject_id: str, faction_id: str) -> int | None:
        value = (await self._load()).get(faction_id)
        return int(value) if value is not None else None

    async def write(self, subject_id: str, faction_id: str, value: int) -> None:
        data = await self._load()
        data[faction_id] = value
        await self._save(data)

    async def initialize(self, faction_id: str, value: int, subject_ids: Iterable[str]) -> None:
        await self.write("", faction_id, value)

    async def purge(self, faction_id: str) -> int:
        data = await self._load()
        if faction_id not in data:
            return 0
        del data[faction_id]
        await self._save(data)
        return 1


class SubjectStandingStore(StandingStore):
    """One value per (subject, faction) pair."""

    key = SUBJECT_STANDINGS_KEY
    mode = StorageMode.PER_SUBJECT

    async def read(self, subject_id: str, faction_id: str) -> int | None:
        by_faction = (await self._load()).get(subject_id) or {}
        value = by_faction.get(faction_id)
        return int(value) if value is not None else None

    async def write(self, subject_id: str, faction_id: str, value: int) -> None:
        data = await self._load()
        data.setdefault(subject_id, {})[faction_id] = value
        await self._save(data)

    async def initialize(self, faction_id: str, value: int, subject_ids: Iterable[str]) -> None:
        subject_ids = list(subject_ids)
        if not subject_ids:
            return
        data = await self._load()
        for subject_id in subject_ids:
            data.setdefault(subject_id, {})[faction_id] = value
        await self._save(data)

    async def purge(self, faction_id: str) -> int:
        data = await self._load()
        removed = 0
        for by_faction in data.values():
            if isinstance(by_faction, dict) and faction_id in by_faction:
                del by_faction[faction_id]
                removed += 1
        if removed:
            await self._save(data)
        return removed

    async def subject_values(self, faction_id: str) -> dict[str, int]:
        """``{subject_id: value}`` for every subject with a value for the faction."""
        data = await self._load()
        return {
            subject_id: int(by_faction[faction_id])
            for subject_id, by_faction in data.items()
            if isinstance(by_faction, dict) and faction_id in by_faction
        }


def standing_store_for(mode: StorageMode, store: KeyValueStore, namespace: str) -> StandingStore:
    """Select the standing store for a *resolved* mode."""
    if mode is StorageMode.SHARED:
        return SharedStandingStore(store, namespace)
    if mode is StorageMode.PER_SUBJECT:
        return SubjectStandingStore(store, namespace)
    raise ValueError(f"Storage mode must be resolved before selecting a store, got {mode!r}")


async def purge_all(store: KeyValueStore, namespace: str, faction_id: str) -> int:
    """Remove a faction from *both* stores, whichever is authoritative."""
    removed = 0
    both = (SharedStandingStore(store, namespace), SubjectStandingStore(store, namespace))
    for standings in both:
        removed += await standings.purge(faction_id)
    logger.debug("standings: purged %d value(s) for faction %s", removed, faction_id)
    return removed
