"""Record types for the reputation engine.

``Faction`` and ``ChangeLogEntry`` are persisted (as plain dicts inside the
``factions`` key of the store); ``Bounds`` and ``LevelDefinition`` are
computed on demand and never stored.

The dict layout is owned here: ``to_dict`` / ``from_dict`` are the only place
that knows the stored field names, so the directory, audit log and ledger
never poke at raw dict keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from reputation_server.reputation.constants import DEFAULT_STEPS


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC string (lexicographically sortable)."""
    return datetime.now(UTC).isoformat()


class StorageMode(str, Enum):
    """Where a faction's standing values live.

    ``INHERIT`` is only ever a *configured* value; resolution always turns it
    into ``SHARED`` or ``PER_SUBJECT``.
    """

    INHERIT = "inherit"
    SHARED = "shared"
    PER_SUBJECT = "per-subject"

    @classmethod
    def parse(cls, raw: Any) -> StorageMode:
        """Coerce stored/user input into a mode.

        Booleans are the legacy ``use_per_subject`` flag.  Anything
        unrecognised is ``INHERIT``.
        """
        if isinstance(raw, StorageMode):
            return raw
        if isinstance(raw, bool):
            return cls.PER_SUBJECT if raw else cls.SHARED
        try:
            return cls(str(raw).lower())
        except ValueError:
            return cls.INHERIT


@dataclass(frozen=True)
class Bounds:
    """Inclusive value range of a scale."""

    min: int
    max: int
    steps: int

    def as_dict(self) -> dict[str, int]:
        return {"min": self.min, "max": self.max, "steps": self.steps}


@dataclass(frozen=True)
class LevelDefinition:
    """Display metadata for one value on a faction's scale."""

    value: int
    label: str
    color: str


@dataclass
class ChangeLogEntry:
    """One recorded standing transition.

    Attributes:
        id:            32-char lowercase hex (UUID4 without hyphens).
        timestamp:     ISO-8601 UTC time of the change.
        old_value:     Standing before the change.
        new_value:     Standing after clamping.
        subject_id:    Subject whose standing changed, or ``"global"`` for
                       shared-mode factions.
        changed_by:    Actor that performed the change.
        comment:       Optional annotation (set via ``AuditLog.annotate``).
        commented_by:  Actor that wrote ``comment``.
        commented_at:  ISO-8601 UTC time ``comment`` was written.
    """

    id: str
    timestamp: str
    old_value: int
    new_value: int
    subject_id: str
    changed_by: str
    comment: str | None = None
    commented_by: str | None = None
    commented_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "subject_id": self.subject_id,
            "changed_by": self.changed_by,
        }
        if self.comment is not None:
            data["comment"] = self.comment
            data["commented_by"] = self.commented_by
            data["commented_at"] = self.commented_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChangeLogEntry:
        return cls(
            id=str(data["id"]),
            timestamp=str(data.get("timestamp", "")),
            old_value=int(data.get("old_value", 0)),
            new_value=int(data.get("new_value", 0)),
            subject_id=str(data.get("subject_id", "")),
            changed_by=str(data.get("changed_by", "")),
            comment=data.get("comment"),
            commented_by=data.get("commented_by"),
            commented_at=data.get("commented_at"),
        )


@dataclass
class Faction:
    """A tracked entity with its own reputation scale.

    Attributes:
        id:               Directory-assigned identifier.
        name:             Display name.
        steps:            Odd step count in [3, 21].
        storage_mode:     Configured storage mode (may be ``INHERIT``).
        lookup_table_id:  Optional external lookup table overriding rank
                          labels/colors.
        start_at_neutral: ``False`` initialises new standings at the scale
                          minimum instead of 0.
        icon:             Opaque icon reference for display layers.
        journal_id:       Opaque reference to an external notes document.
        created_at:       ISO-8601 UTC creation time.
        change_log:       Audit entries, newest first.
    """

    id: str
    name: str
    steps: int = DEFAULT_STEPS
    storage_mode: StorageMode = StorageMode.INHERIT
    lookup_table_id: str | None = None
    start_at_neutral: bool = True
    icon: str | None = None
    journal_id: str | None = None
    created_at: str = field(default_factory=utc_now_iso)
    change_log: list[ChangeLogEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "steps": self.steps,
            "storage_mode": self.storage_mode.value,
            "lookup_table_id": self.lookup_table_id,
            "start_at_neutral": self.start_at_neutral,
            "icon": self.icon,
            "journal_id": self.journal_id,
            "created_at": self.created_at,
            "change_log": [entry.to_dict() for entry in self.change_log],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Faction:
        # Older records carried a boolean ``use_per_subject`` and no ``steps``.
        if "storage_mode" in data:
            mode = StorageMode.parse(data["storage_mode"])
        elif isinstance(data.get("use_per_subject"), bool):
            mode = StorageMode.parse(data["use_per_subject"])
        else:
            mode = StorageMode.INHERIT

        steps = data.get("steps")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            steps=int(steps) if steps is not None else DEFAULT_STEPS,
            storage_mode=mode,
            lookup_table_id=data.get("lookup_table_id") or None,
            start_at_neutral=bool(data.get("start_at_neutral", True)),
            icon=data.get("icon") or None,
            journal_id=data.get("journal_id") or None,
            created_at=str(data.get("created_at") or utc_now_iso()),
            change_log=[ChangeLogEntry.from_dict(e) for e in data.get("change_log") or []],
        )
