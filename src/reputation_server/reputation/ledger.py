"""Reputation ledger: the single writer of standing values.

Each mutation follows the same sequence:

1. Look up the faction.  An unknown faction returns ``None``; nothing is
   written.
2. Resolve bounds and the effective storage mode (see
   :mod:`reputation_server.reputation.scale`).
3. Select the standing store for that mode.
4. Clamp, persist, then append an audit entry.

Logging rule: ``set_value`` appends an audit entry only when the value
actually changed.  ``apply_delta`` always appends, even when clamping turned
the delta into a no-op.

A store failure propagates as :class:`~reputation_server.store.StoreError`.
Because the value is written before the audit entry, a failed value write
never leaves an audit entry behind.

Reads clamp to the faction's current bounds, so a value stored before
the scale shrank is reported (and used as the old value of the next mutation)
at the nearest bound.

Concurrent mutations of the same (subject, faction) pair are read-modify-write
against the store and may lose updates.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from reputation_server.reputation.actors import ActorContext, StaticActorContext
from reputation_server.reputation.audit import AuditLog
from reputation_server.reputation.constants import GLOBAL_SUBJECT
from reputation_server.reputation.directory import FactionDirectory
from reputation_server.reputation.scale import (
    clamp,
    faction_bounds,
    initial_value,
    resolve_storage_mode,
)
from reputation_server.reputation.settings import ModuleSettings, load_settings
from reputation_server.reputation.standings import StandingStore, purge_all, standing_store_for
from reputation_server.reputation.types import ChangeLogEntry, Faction, StorageMode
from reputation_server.store.kv import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StandingChange:
    """Outcome of one ledger mutation.

    ``entry`` is ``None`` when no audit entry was written (a ``set_value``
    that did not change anything).
    """

    faction: Faction
    subject_id: str
    old_value: int
    new_value: int
    mode: StorageMode
    entry: ChangeLogEntry | None = None

    @property
    def changed(self) -> bool:
        return self.old_value != self.new_value

    @property
    def per_subject(self) -> bool:
        return self.mode is StorageMode.PER_SUBJECT


class ReputationLedger:
    """Applies deltas and absolute sets to standing values.

    Args:
        store: Backing key-value store.
        namespace: Store namespace.
        directory: Faction lookup.
        audit: Change log writer.
        actors: Source of the acting id when no ``actor=`` is passed.
        settings_defaults: Module settings used when nothing is stored.
    """

    def __init__(
        self,
        store: KeyValueStore,
        namespace: str,
        directory: FactionDirectory,
        audit: AuditLog,
        *,
        actors: ActorContext | None = None,
        settings_defaults: ModuleSettings | None = None,
    ) -> None:
        self._store = store
        self._namespace = namespace
        self._directory = directory
        self._audit = audit
        self._actors = actors or StaticActorContext()
        self._settings_defaults = settings_defaults

    async def _mode_for(self, faction: Faction) -> StorageMode:
        settings = await load_settings(self._store, self._namespace, self._settings_defaults)
        return resolve_storage_mode(faction, settings.per_subject_default)

    async def _standings_for(self, faction: Faction) -> StandingStore:
        mode = await self._mode_for(faction)
        return standing_store_for(mode, self._store, self._namespace)

    @staticmethod
    def _log_subject(standings: StandingStore, subject_id: str) -> str:
        if standings.mode is StorageMode.SHARED:
            return GLOBAL_SUBJECT
        return subject_id

    async def _current(self, standings: StandingStore, subject_id: str, faction: Faction) -> int:
        stored = await standings.read(subject_id, faction.id)
        if stored is None:
            return initial_value(faction)
        # stored values may predate a scale shrink
        return clamp(stored, faction_bounds(faction))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_value(self, subject_id: str, faction_id: str) -> int | None:
        """Current standing, or ``None`` for an unknown faction.

        A pair that has never been written reads as the faction's initial
        value.
        """
        faction = await self._directory.get_faction(faction_id)
        if faction is None:
            return None
        standings = await self._standings_for(faction)
        return await self._current(standings, subject_id, faction)

    async def subject_values(self, faction_id: str) -> dict[str, int]:
        """Every stored value for a faction, keyed by subject.

        In shared mode the single value is reported under ``"global"``.
        """
        faction = await self._directory.get_faction(faction_id)
        if faction is None:
            return {}
        standings = await self._standings_for(faction)
        if standings.mode is StorageMode.SHARED:
            return {GLOBAL_SUBJECT: await self._current(standings, GLOBAL_SUBJECT, faction)}
        scale = faction_bounds(faction)
        values = await standings.subject_values(faction_id)
        return {subject: clamp(value, scale) for subject, value in values.items()}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def record_delta(
        self,
        subject_id: str,
        faction_id: str,
        delta: int,
        *,
        actor: str | None = None,
    ) -> StandingChange | None:
        """Add ``delta`` to a standing and clamp; always audited."""
        faction = await self._directory.get_faction(faction_id)
        if faction is None:
            logger.debug("ledger: apply_delta on unknown faction %s", faction_id)
            return None

        standings = await self._standings_for(faction)
        old_value = await self._current(standings, subject_id, faction)
        new_value = clamp(old_value + int(delta), faction_bounds(faction))
        await standings.write(subject_id, faction.id, new_value)

        log_subject = self._log_subject(standings, subject_id)
        entry = await self._audit.append(
            faction.id,
            old_value=old_value,
            new_value=new_value,
            subject_id=log_subject,
            changed_by=actor or self._actors.current(),
        )
        logger.info(
            "ledger: %s %s %+d -> %d (was %d)",
            faction.id,
            log_subject,
            int(delta),
            new_value,
            old_value,
        )
        return StandingChange(faction, log_subject, old_value, new_value, standings.mode, entry)

    async def record_set(
        self,
        subject_id: str,
        faction_id: str,
        value: int,
        *,
        actor: str | None = None,
    ) -> StandingChange | None:
        """Set a standing to ``value`` (clamped); audited only on change."""
        faction = await self._directory.get_faction(faction_id)
        if faction is None:
            logger.debug("ledger: set_value on unknown faction %s", faction_id)
            return None

        standings = await self._standings_for(faction)
        old_value = await self._current(standings, subject_id, faction)
        new_value = clamp(int(value), faction_bounds(faction))
        await standings.write(subject_id, faction.id, new_value)

        log_subject = self._log_subject(standings, subject_id)
        entry = None
        if old_value != new_value:
            entry = await self._audit.append(
                faction.id,
                old_value=old_value,
                new_value=new_value,
                subject_id=log_subject,
                changed_by=actor or self._actors.current(),
            )
            logger.info(
                "ledger: %s %s set %d (was %d)", faction.id, log_subject, new_value, old_value
            )
        return StandingChange(faction, log_subject, old_value, new_value, standings.mode, entry)

    async def apply_delta(
        self, subject_id: str, faction_id: str, delta: int, *, actor: str | None = None
    ) -> int | None:
        change = await self.record_delta(subject_id, faction_id, delta, actor=actor)
        return change.new_value if change else None

    async def set_value(
        self, subject_id: str, faction_id: str, value: int, *, actor: str | None = None
    ) -> int | None:
        change = await self.record_set(subject_id, faction_id, value, actor=actor)
        return change.new_value if change else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize_faction(self, faction: Faction, subject_ids: Iterable[str] = ()) -> None:
        """Write a new faction's starting value.

        Shared mode writes the single entry.  Per-subject mode writes one entry
        per id in ``subject_ids``; subjects that appear later read the initial
        value implicitly.
        """
        standings = await self._standings_for(faction)
        await standings.initialize(faction.id, initial_value(faction), subject_ids)

    async def purge_faction(self, faction_id: str) -> int:
        """Remove a faction's values from both standing stores."""
        return await purge_all(self._store, self._namespace, faction_id)
