"""
Reputation service facade.

:class:`ReputationService` wires the engine components together over one
key-value store and exposes the operations the HTTP API and the CLI call.
After each successful mutation it emits an event on its own
:class:`~reputation_server.core.bus.StandingBus`, and, when the
``post_notifications`` setting is on, a rendered notice.

    service = ReputationService.from_config()
    faction = await service.create_faction("Iron Guild", steps=9)
    await service.apply_delta("player-1", faction.id, 2)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from reputation_server.core.bus import StandingBus
from reputation_server.core.events import Events
from reputation_server.reputation.actors import ActorContext, StaticActorContext
from reputation_server.reputation.audit import AuditLog
from reputation_server.reputation.directory import FactionDirectory
from reputation_server.reputation.display import (
    BarSegment,
    bar_segments,
    format_display_value,
    standing_tier,
)
from reputation_server.reputation.labels import Localizer, default_localize
from reputation_server.reputation.ledger import ReputationLedger, StandingChange
from reputation_server.reputation.lookup import (
    LookupTableProvider,
    YamlLookupTableProvider,
    build_default_lookup_entries,
)
from reputation_server.reputation.notifications import StandingNotice, build_notice
from reputation_server.reputation.ranks import RankResolver
from reputation_server.reputation.scale import faction_bounds, resolve_storage_mode
from reputation_server.reputation.settings import ModuleSettings, load_settings, save_settings
from reputation_server.reputation.types import (
    Bounds,
    ChangeLogEntry,
    Faction,
    LevelDefinition,
    StorageMode,
)
from reputation_server.store.kv import KeyValueStore, MemoryKeyValueStore, create_store

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StandingOverview:
    """Everything a display needs to render one standing."""

    faction: Faction
    subject_id: str
    value: int
    bounds: Bounds
    level: LevelDefinition
    mode: StorageMode
    tier: str
    display_value: str
    bar: list[BarSegment]


class ReputationService:
    """
    Engine facade over one store namespace.

    Args:
        store: Key-value store (defaults to an in-memory store).
        namespace: Store namespace for every key the engine writes.
        lookup_provider: External lookup tables; ``None`` disables that tier.
        actors: Default acting identity for audit stamps.
        bus: Event bus; a fresh one is created when omitted.
        localize: Label translator.
        settings_defaults: Module settings used when nothing is stored
            (defaults to the ``[reputation]`` config section).
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        *,
        namespace: str = "reputation",
        lookup_provider: LookupTableProvider | None = None,
        actors: ActorContext | None = None,
        bus: StandingBus | None = None,
        localize: Localizer = default_localize,
        settings_defaults: ModuleSettings | None = None,
    ) -> None:
        self.store = store if store is not None else MemoryKeyValueStore()
        self.namespace = namespace
        self.bus = bus if bus is not None else StandingBus()
        self.localize = localize
        self.actors = actors or StaticActorContext()
        self.lookup_provider = lookup_provider
        self.settings_defaults = settings_defaults

        self.directory = FactionDirectory(
            self.store, namespace, settings_defaults=settings_defaults
        )
        self.audit = AuditLog(self.store, namespace)
        self.ledger = ReputationLedger(
            self.store,
            namespace,
            self.directory,
            self.audit,
            actors=self.actors,
            settings_defaults=settings_defaults,
        )
        self.ranks = RankResolver(lookup_provider, localize)

    @classmethod
    def from_config(cls, cfg: Any = None, **kwargs: Any) -> ReputationService:
        """Build a service from the server config (store backend, namespace, lookup root)."""
        if cfg is None:
            from reputation_server.config import config as cfg

        kwargs.setdefault("store", create_store(cfg.store.backend))
        kwargs.setdefault("namespace", cfg.store.namespace)
        kwargs.setdefault("lookup_provider", YamlLookupTableProvider(cfg.lookup.absolute_root))
        return cls(**kwargs)

    def _actor(self, actor: str | None) -> str:
        return actor or self.actors.current()

    # =========================================================================
    # SETTINGS
    # =========================================================================

    async def get_settings(self) -> ModuleSettings:
        return await load_settings(self.store, self.namespace, self.settings_defaults)

    async def update_settings(self, **changes: Any) -> ModuleSettings:
        """Merge ``changes`` into the stored settings and persist them.

        Unknown keys and invalid values are ignored.
        """
        current = await self.get_settings()
        updated = current.merged(changes)
        await save_settings(self.store, self.namespace, updated)
        self.bus.emit(Events.SETTINGS_UPDATED, updated.as_dict())
        return updated

    # =========================================================================
    # FACTIONS
    # =========================================================================

    async def list_factions(self) -> list[Faction]:
        return await self.directory.list_factions()

    async def get_faction(self, faction_id: str) -> Faction | None:
        return await self.directory.get_faction(faction_id)

    async def create_faction(
        self,
        name: str,
        *,
        steps: Any = None,
        storage_mode: StorageMode | str | None = StorageMode.INHERIT,
        lookup_table_id: str | None = None,
        start_at_neutral: bool | None = None,
        icon: str | None = None,
        journal_id: str | None = None,
        subject_ids: Iterable[str] = (),
    ) -> Faction:
        """Create a faction and write its starting values.

        ``subject_ids`` lists the subjects to seed in per-subject mode.
        """
        faction = await self.directory.create_faction(
            name,
            steps=steps,
            storage_mode=storage_mode,
            lookup_table_id=lookup_table_id,
            start_at_neutral=start_at_neutral,
            icon=icon,
            journal_id=journal_id,
        )
        await self.ledger.initialize_faction(faction, subject_ids)
        self.bus.emit(
            Events.FACTION_CREATED,
            {
                "faction_id": faction.id,
                "name": faction.name,
                "steps": faction.steps,
                "storage_mode": faction.storage_mode.value,
            },
        )
        return faction

    async def update_faction(self, faction_id: str, **changes: Any) -> Faction | None:
        faction = await self.directory.update_faction(faction_id, **changes)
        if faction is not None:
            self.bus.emit(
                Events.FACTION_UPDATED, {"faction_id": faction_id, "fields": sorted(changes)}
            )
        return faction

    async def delete_faction(self, faction_id: str) -> bool:
        deleted = await self.directory.delete_faction(faction_id)
        if deleted:
            self.bus.emit(Events.FACTION_DELETED, {"faction_id": faction_id})
        return deleted

    # =========================================================================
    # SCALE & RANKS
    # =========================================================================

    async def get_bounds(self, faction_id: str) -> Bounds | None:
        faction = await self.directory.get_faction(faction_id)
        return faction_bounds(faction) if faction is not None else None

    async def get_levels(self, faction_id: str) -> list[LevelDefinition]:
        """Every level of the faction's scale, lowest first (empty if unknown)."""
        faction = await self.directory.get_faction(faction_id)
        if faction is None:
            return []
        return self.ranks.levels_for_faction(faction)

    async def resolve_level(self, faction_id: str, value: int) -> LevelDefinition | None:
        faction = await self.directory.get_faction(faction_id)
        if faction is None:
            return None
        return self.ranks.resolve_level(faction, value)

    async def seed_lookup_table(self, faction_id: str, table_id: str) -> Faction | None:
        """Write a generated lookup table for the faction and point the faction at it.

        Raises:
            RuntimeError: If the configured provider cannot save tables.
        """
        faction = await self.directory.get_faction(faction_id)
        if faction is None:
            return None
        save_table = getattr(self.lookup_provider, "save_table", None)
        if save_table is None:
            raise RuntimeError("The configured lookup provider does not support saving tables.")
        save_table(table_id, build_default_lookup_entries(faction.steps, self.localize))
        logger.info("service: seeded lookup table %r for faction %s", table_id, faction_id)
        return await self.update_faction(faction_id, lookup_table_id=table_id)

    # =========================================================================
    # STANDINGS
    # =========================================================================

    async def get_value(self, subject_id: str, faction_id: str) -> int | None:
        return await self.ledger.get_value(subject_id, faction_id)

    async def apply_delta(
        self, subject_id: str, faction_id: str, delta: int, *, actor: str | None = None
    ) -> int | None:
        """Add ``delta`` to a standing (clamped).  ``None`` for an unknown faction."""
        actor = self._actor(actor)
        change = await self.ledger.record_delta(subject_id, faction_id, delta, actor=actor)
        if change is None:
            return None
        await self._after_change(change, actor)
        return change.new_value

    async def set_value(
        self, subject_id: str, faction_id: str, value: int, *, actor: str | None = None
    ) -> int | None:
        """Set a standing to ``value`` (clamped).  ``None`` for an unknown faction."""
        actor = self._actor(actor)
        change = await self.ledger.record_set(subject_id, faction_id, value, actor=actor)
        if change is None:
            return None
        await self._after_change(change, actor)
        return change.new_value

    async def _after_change(self, change: StandingChange, actor: str) -> None:
        self.bus.emit(
            Events.REPUTATION_CHANGED,
            {
                "faction_id": change.faction.id,
                "subject_id": change.subject_id,
                "old_value": change.old_value,
                "new_value": change.new_value,
                "changed": change.changed,
                "entry_id": change.entry.id if change.entry else None,
                "actor": actor,
            },
        )
        settings = await self.get_settings()
        if settings.post_notifications:
            notice = self.build_notice(change, settings)
            self.bus.emit(Events.REPUTATION_NOTICE, notice.as_dict())

    def build_notice(self, change: StandingChange, settings: ModuleSettings) -> StandingNotice:
        level = self.ranks.resolve_level(change.faction, change.new_value)
        return build_notice(
            change.faction,
            change.subject_id,
            level,
            per_subject=change.per_subject,
            audience=settings.notification_visibility,
            localize=self.localize,
        )

    async def standing_overview(self, faction_id: str, subject_id: str) -> StandingOverview | None:
        """Value, rank, tier and bar for one standing; ``None`` for an unknown faction."""
        faction = await self.directory.get_faction(faction_id)
        if faction is None:
            return None
        value = await self.ledger.get_value(subject_id, faction_id)
        settings = await self.get_settings()
        scale = faction_bounds(faction)
        return StandingOverview(
            faction=faction,
            subject_id=subject_id,
            value=value,
            bounds=scale,
            level=self.ranks.resolve_level(faction, value),
            mode=resolve_storage_mode(faction, settings.per_subject_default),
            tier=standing_tier(value, scale),
            display_value=format_display_value(value),
            bar=bar_segments(scale, value),
        )

    async def subject_values(self, faction_id: str) -> dict[str, int]:
        return await self.ledger.subject_values(faction_id)

    # =========================================================================
    # AUDIT
    # =========================================================================

    async def get_audit_log(self, faction_id: str) -> list[ChangeLogEntry]:
        return await self.audit.entries(faction_id)

    async def annotate(
        self, faction_id: str, entry_id: str, comment: str, *, actor: str | None = None
    ) -> bool:
        actor = self._actor(actor)
        annotated = await self.audit.annotate(faction_id, entry_id, comment, actor=actor)
        if annotated:
            self.bus.emit(
                Events.AUDIT_ANNOTATED,
                {"faction_id": faction_id, "entry_id": entry_id, "actor": actor},
            )
        return annotated
