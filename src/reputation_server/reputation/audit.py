"""Per-faction append-only change log.

Entries are stored inside the faction record (``change_log``) newest first:
list order *is* display order.  There is no removal operation; a log only
disappears with its faction.

The one permitted amendment is :meth:`AuditLog.annotate`, which sets a single
free-text comment on an entry (a second call overwrites the first).
"""

from __future__ import annotations

import logging
import uuid

from reputation_server.reputation.directory import load_faction_records, save_faction_records
from reputation_server.reputation.types import ChangeLogEntry, Faction, utc_now_iso
from reputation_server.store.kv import KeyValueStore

logger = logging.getLogger(__name__)


class AuditLog:
    """Change-log access for all factions in one store namespace."""

    def __init__(self, store: KeyValueStore, namespace: str) -> None:
        self._store = store
        self._namespace = namespace

    async def append(
        self,
        faction_id: str,
        *,
        old_value: int,
        new_value: int,
        subject_id: str,
        changed_by: str,
    ) -> ChangeLogEntry | None:
        """Prepend a new entry to the faction's log.

        Returns:
            The stored entry, or ``None`` if the faction does not exist.
        """
        records = await load_faction_records(self._store, self._namespace)
        record = records.get(faction_id)
        if not record:
            return None

        entry = ChangeLogEntry(
            id=uuid.uuid4().hex,
            timestamp=utc_now_iso(),
            old_value=old_value,
            new_value=new_value,
            subject_id=subject_id,
            changed_by=changed_by,
        )
        faction = Faction.from_dict(record)
        faction.change_log.insert(0, entry)
        records[faction_id] = faction.to_dict()
        await save_faction_records(self._store, self._namespace, records)

        logger.debug(
            "audit: %s %s %d -> %d by %s",
            faction_id,
            subject_id,
            old_value,
            new_value,
            changed_by,
        )
        return entry

    async def annotate(self, faction_id: str, entry_id: str, comment: str, *, actor: str) -> bool:
        """Attach ``comment`` to an entry, overwriting any earlier comment.

        Returns:
            ``False`` if the faction or entry does not exist (nothing is
            written); ``True`` otherwise.
        """
        records = await load_faction_records(self._store, self._namespace)
        record = records.get(faction_id)
        if not record:
            return False

        faction = Faction.from_dict(record)
        entry = next((e for e in faction.change_log if e.id == entry_id), None)
        if entry is None:
            return False

        entry.comment = comment
        entry.commented_by = actor
        entry.commented_at = utc_now_iso()
        records[faction_id] = faction.to_dict()
        await save_faction_records(self._store, self._namespace, records)

        logger.info("audit: %s annotated entry %s in faction %s", actor, entry_id, faction_id)
        return True

    async def entries(self, faction_id: str) -> list[ChangeLogEntry]:
        """The faction's log, newest first (empty for an unknown faction)."""
        record = (await load_faction_records(self._store, self._namespace)).get(faction_id)
        if not record:
            return []
        return Faction.from_dict(record).change_log
