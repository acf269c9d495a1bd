"""Presentation helpers shared by the HTTP API and the CLI.

Nothing here touches the store; every function is a pure mapping from a value
(and its scale) to something a display layer can render directly.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

from reputation_server.reputation.colors import bar_segment_color
from reputation_server.reputation.types import Bounds, ChangeLogEntry

StandingTier = Literal["bad", "warn", "neutral", "good", "ally"]
ChangeDirection = Literal["up", "down", "flat"]


@dataclass(frozen=True, slots=True)
class BarSegment:
    """One position of a standing bar."""

    value: int
    color: str
    is_current: bool
    is_filled: bool

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def bar_segments(scale: Bounds, current: int) -> list[BarSegment]:
    """One segment per scale position, ``min`` first.

    A segment is *filled* when its value is at or below ``current``.
    """
    return [
        BarSegment(
            value=value,
            color=bar_segment_color(value, scale.min, scale.max),
            is_current=value == current,
            is_filled=value <= current,
        )
        for value in range(scale.min, scale.max + 1)
    ]


def standing_tier(value: int, scale: Bounds) -> StandingTier:
    """Coarse style bucket for a standing value.

    Checks run in order: the minimum wins over the +/-1 neutral band, the
    neutral band wins over the maximum.  On a 3-step scale -1 is therefore
    ``bad`` while +1 stays ``neutral``.
    """
    if value <= scale.min:
        return "bad"
    if value < -1:
        return "warn"
    if value in (-1, 0, 1):
        return "neutral"
    if value >= scale.max:
        return "ally"
    if value > 1:
        return "good"
    return "neutral"


def format_display_value(value: int) -> str:
    """``+2``, ``0``, ``-3``."""
    return f"+{value}" if value > 0 else str(value)


def change_direction(entry: ChangeLogEntry) -> ChangeDirection:
    if entry.new_value > entry.old_value:
        return "up"
    if entry.new_value < entry.old_value:
        return "down"
    return "flat"
