"""Faction directory: CRUD over faction records.

All faction records (including their change logs) live in a single store key,
``factions``, as ``{faction_id: faction_dict}``.  The directory is the only
writer of the record fields; :mod:`reputation_server.reputation.audit` writes
the ``change_log`` list through the same load/save helpers.

Every entry point that accepts a step count normalises it with
:func:`~reputation_server.reputation.scale.normalize_steps`.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from reputation_server.reputation.constants import FACTIONS_KEY
from reputation_server.reputation.scale import normalize_steps
from reputation_server.reputation.settings import ModuleSettings, load_settings
from reputation_server.reputation.standings import purge_all
from reputation_server.reputation.types import Faction, StorageMode, utc_now_iso
from reputation_server.store.kv import KeyValueStore

logger = logging.getLogger(__name__)

#: Fields ``update_faction`` accepts.
EDITABLE_FIELDS: frozenset[str] = frozenset(
    {"name", "steps", "storage_mode", "lookup_table_id", "start_at_neutral", "icon", "journal_id"}
)


async def load_faction_records(store: KeyValueStore, namespace: str) -> dict[str, dict[str, Any]]:
    """Raw ``{faction_id: record}`` mapping."""
    data = await store.get(namespace, FACTIONS_KEY, {})
    return data if isinstance(data, dict) else {}


async def save_faction_records(
    store: KeyValueStore, namespace: str, records: dict[str, dict[str, Any]]
) -> None:
    await store.set(namespace, FACTIONS_KEY, records)


class FactionDirectory:
    """Create, read, update and delete factions.

    Args:
        store: Backing key-value store.
        namespace: Store namespace.
        settings_defaults: Module settings used when nothing is stored;
            defaults to the server config.
    """

    def __init__(
        self,
        store: KeyValueStore,
        namespace: str,
        *,
        settings_defaults: ModuleSettings | None = None,
    ) -> None:
        self._store = store
        self._namespace = namespace
        self._settings_defaults = settings_defaults

    async def list_factions(self) -> list[Faction]:
        """All factions ordered by creation time, then name."""
        records = await load_faction_records(self._store, self._namespace)
        factions = [Faction.from_dict(record) for record in records.values()]
        return sorted(factions, key=lambda f: (f.created_at, f.name))

    async def get_faction(self, faction_id: str) -> Faction | None:
        record = (await load_faction_records(self._store, self._namespace)).get(faction_id)
        return Faction.from_dict(record) if record else None

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
    ) -> Faction:
        """Create and persist a faction.

        ``steps`` is normalised (``None`` means the default scale).
        ``start_at_neutral=None`` takes the module setting.

        Raises:
            ValueError: If ``name`` is blank.
        """
        if not name or not name.strip():
            raise ValueError("create_faction: name must be a non-empty string.")

        if start_at_neutral is None:
            settings = await load_settings(self._store, self._namespace, self._settings_defaults)
            start_at_neutral = settings.start_at_neutral

        faction = Faction(
            id=uuid.uuid4().hex,
            name=name.strip(),
            steps=normalize_steps(steps),
            storage_mode=StorageMode.parse(storage_mode),
            lookup_table_id=lookup_table_id or None,
            start_at_neutral=bool(start_at_neutral),
            icon=icon or None,
            journal_id=journal_id or None,
            created_at=utc_now_iso(),
        )

        records = await load_faction_records(self._store, self._namespace)
        records[faction.id] = faction.to_dict()
        await save_faction_records(self._store, self._namespace, records)

        logger.info(
            "directory: created faction %s %r (steps=%d, mode=%s)",
            faction.id,
            faction.name,
            faction.steps,
            faction.storage_mode.value,
        )
        return faction

    async def update_faction(self, faction_id: str, **changes: Any) -> Faction | None:
        """Apply ``changes`` to a faction; ``None`` if it does not exist.

        The change log is preserved.  Existing standing values are left as
        they are even when the scale shrinks; the ledger clamps them to the
        new bounds whenever they are read.

        Raises:
            ValueError: On an unknown field or a blank name.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"update_faction: unknown field(s) {sorted(unknown)}")

        records = await load_faction_records(self._store, self._namespace)
        record = records.get(faction_id)
        if not record:
            return None
        faction = Faction.from_dict(record)

        if "name" in changes:
            name = changes["name"]
            if not name or not str(name).strip():
                raise ValueError("update_faction: name must be a non-empty string.")
            faction.name = str(name).strip()
        if "steps" in changes:
            faction.steps = normalize_steps(changes["steps"])
        if "storage_mode" in changes:
            faction.storage_mode = StorageMode.parse(changes["storage_mode"])
        if "lookup_table_id" in changes:
            faction.lookup_table_id = changes["lookup_table_id"] or None
        if "start_at_neutral" in changes:
            faction.start_at_neutral = bool(changes["start_at_neutral"])
        if "icon" in changes:
            faction.icon = changes["icon"] or None
        if "journal_id" in changes:
            faction.journal_id = changes["journal_id"] or None

        records[faction_id] = faction.to_dict()
        await save_faction_records(self._store, self._namespace, records)
        logger.info("directory: updated faction %s (%s)", faction_id, ", ".join(sorted(changes)))
        return faction

    async def delete_faction(self, faction_id: str) -> bool:
        """Delete a faction, its change log and its standing values.

        Values are purged from both the shared and the per-subject store so
        a later storage-mode change cannot resurrect orphans.  Returns
        ``False`` if the faction does not exist.
        """
        records = await load_faction_records(self._store, self._namespace)
        if faction_id not in records:
            return False

        del records[faction_id]
        await save_faction_records(self._store, self._namespace, records)
        await purge_all(self._store, self._namespace, faction_id)

        logger.info("directory: deleted faction %s", faction_id)
        return True
