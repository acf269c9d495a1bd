"""
Pydantic models for API requests and responses.

Request models validate what clients send; response models document what the
server returns (and drive FastAPI's OpenAPI schema).  The ``from_*`` class
methods are the only place engine dataclasses are turned into wire shapes.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from reputation_server.reputation.display import BarSegment, change_direction
from reputation_server.reputation.types import (
    Bounds,
    ChangeLogEntry,
    Faction,
    LevelDefinition,
)

StorageModeName = Literal["inherit", "shared", "per-subject"]

# ============================================================================
# REQUEST MODELS (Client → Server)
# ============================================================================


class FactionCreateRequest(BaseModel):
    """
    Request to create a faction.

    Attributes:
        name: Display name (non-empty).
        steps: Scale size; normalised to an odd number in [3, 21].
        storage_mode: ``inherit``, ``shared`` or ``per-subject``.
        lookup_table_id: Optional external lookup table for rank labels.
        start_at_neutral: ``False`` starts new standings at the minimum;
            omitted takes the module setting.
        subject_ids: Subjects to seed in per-subject mode.
    """

    name: str = Field(min_length=1)
    steps: int | None = None
    storage_mode: StorageModeName = "inherit"
    lookup_table_id: str | None = None
    start_at_neutral: bool | None = None
    icon: str | None = None
    journal_id: str | None = None
    subject_ids: list[str] = Field(default_factory=list)


class FactionUpdateRequest(BaseModel):
    """Partial faction update; only fields that are sent are changed."""

    name: str | None = Field(default=None, min_length=1)
    steps: int | None = None
    storage_mode: StorageModeName | None = None
    lookup_table_id: str | None = None
    start_at_neutral: bool | None = None
    icon: str | None = None
    journal_id: str | None = None


class DeltaRequest(BaseModel):
    """Add ``delta`` to a standing (the result is clamped)."""

    subject_id: str = "global"
    delta: int


class SetValueRequest(BaseModel):
    """Set a standing to ``value`` (clamped)."""

    subject_id: str = "global"
    value: int


class CommentRequest(BaseModel):
    """Attach a free-text comment to a change-log entry."""

    comment: str


class SettingsUpdateRequest(BaseModel):
    """Partial module settings update."""

    per_subject_default: bool | None = None
    start_at_neutral: bool | None = None
    post_notifications: bool | None = None
    notification_visibility: Literal["operators", "all", "subjects"] | None = None
    subject_access: Literal["none", "view", "edit"] | None = None


# ============================================================================
# RESPONSE MODELS (Server → Client)
# ============================================================================


class BoundsResponse(BaseModel):
    min: int
    max: int
    steps: int

    @classmethod
    def from_bounds(cls, scale: Bounds) -> BoundsResponse:
        return cls(**scale.as_dict())


class LevelResponse(BaseModel):
    """A rank on a faction's scale."""

    value: int
    label: str
    color: str

    @classmethod
    def from_level(cls, level: LevelDefinition) -> LevelResponse:
        return cls(value=level.value, label=level.label, color=level.color)


class FactionResponse(BaseModel):
    """
    A faction definition (without its change log).

    Attributes:
        id: 32-char hex id.
        storage_mode: As configured; ``inherit`` is resolved per operation.
        created_at: ISO-8601 UTC timestamp.
    """

    id: str
    name: str
    steps: int
    storage_mode: StorageModeName
    lookup_table_id: str | None = None
    start_at_neutral: bool
    icon: str | None = None
    journal_id: str | None = None
    created_at: str
    bounds: BoundsResponse

    @classmethod
    def from_faction(cls, faction: Faction, scale: Bounds) -> FactionResponse:
        return cls(
            id=faction.id,
            name=faction.name,
            steps=faction.steps,
            storage_mode=faction.storage_mode.value,
            lookup_table_id=faction.lookup_table_id,
            start_at_neutral=faction.start_at_neutral,
            icon=faction.icon,
            journal_id=faction.journal_id,
            created_at=faction.created_at,
            bounds=BoundsResponse.from_bounds(scale),
        )


class FactionListResponse(BaseModel):
    factions: list[FactionResponse]


class BarSegmentResponse(BaseModel):
    value: int
    color: str
    is_current: bool
    is_filled: bool

    @classmethod
    def from_segment(cls, segment: BarSegment) -> BarSegmentResponse:
        return cls(**segment.as_dict())


class StandingResponse(BaseModel):
    """
    One subject's standing with a faction, ready to render.

    Attributes:
        subject_id: ``"global"`` for shared factions.
        storage_mode: The *resolved* mode (``shared`` or ``per-subject``).
        tier: Style bucket (``bad``, ``warn``, ``neutral``, ``good``, ``ally``).
        display_value: Signed value (``+2``).
        bar: One segment per scale position, lowest first.
    """

    faction_id: str
    subject_id: str
    value: int
    display_value: str
    storage_mode: StorageModeName
    tier: str
    level: LevelResponse
    bounds: BoundsResponse
    bar: list[BarSegmentResponse]


class MutationResponse(BaseModel):
    """Result of a delta or set."""

    faction_id: str
    subject_id: str
    value: int


class ChangeLogEntryResponse(BaseModel):
    id: str
    timestamp: str
    old_value: int
    new_value: int
    direction: Literal["up", "down", "flat"]
    subject_id: str
    changed_by: str
    comment: str | None = None
    commented_by: str | None = None
    commented_at: str | None = None

    @classmethod
    def from_entry(cls, entry: ChangeLogEntry) -> ChangeLogEntryResponse:
        return cls(direction=change_direction(entry), **entry.to_dict())


class ChangeLogResponse(BaseModel):
    faction_id: str
    entries: list[ChangeLogEntryResponse]


class SettingsResponse(BaseModel):
    per_subject_default: bool
    start_at_neutral: bool
    post_notifications: bool
    notification_visibility: str
    subject_access: str


class DeleteResponse(BaseModel):
    success: bool
    message: str


class ErrorResponse(BaseModel):
    detail: str
    context: dict[str, Any] | None = None
