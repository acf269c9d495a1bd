"""Rank resolver: value -> display label and color.

Resolution is an ordered list of tiers.  Each tier is a callable
``(faction, value) -> LevelDefinition | None``; the first non-``None`` result
wins:

1. **External lookup** (``_lookup_tier``): the faction's attached lookup
   table, if any.  A missing table, an unreadable file or a value outside
   every range is a miss, never an error.
2. **Default scale table** (``_default_table_tier``): fixed label/color pairs,
   only for factions on the canonical 7-step scale.
3. **Generated fallback** (``_generated_tier``): a label chosen by the value's
   relative position on the scale and the algorithmic badge color.  Always
   hits.

The resolver is read-only and holds no per-call state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from reputation_server.reputation import labels
from reputation_server.reputation.colors import rank_color
from reputation_server.reputation.constants import DEFAULT_STEPS
from reputation_server.reputation.labels import Localizer, default_localize
from reputation_server.reputation.lookup import (
    LookupTableProvider,
    find_entry,
    parse_lookup_text,
)
from reputation_server.reputation.scale import bounds
from reputation_server.reputation.types import Faction, LevelDefinition

logger = logging.getLogger(__name__)

RankTier = Callable[[Faction, int], LevelDefinition | None]

#: Canonical 7-step table: value -> (label key, color).
DEFAULT_SCALE_TABLE: dict[int, tuple[str, str]] = {
    -3: (labels.HOSTILE, "#8B0000"),
    -2: (labels.UNFRIENDLY, "#FF4500"),
    -1: (labels.NEUTRAL_MINUS, "#FFA500"),
    0: (labels.NEUTRAL, "#808080"),
    1: (labels.NEUTRAL_PLUS, "#9ACD32"),
    2: (labels.FRIENDLY, "#32CD32"),
    3: (labels.ALLIED, "#228B22"),
}

#: Upper edge of each band on the normalised [0, 1] scale.
_GENERATED_BANDS: tuple[tuple[float, str], ...] = (
    (0.10, labels.HOSTILE),
    (0.25, labels.UNFRIENDLY),
    (0.40, labels.WARY),
    (0.60, labels.NEUTRAL),
    (0.75, labels.CORDIAL),
    (0.90, labels.FRIENDLY),
)


def generate_rank_label(value: int, steps: int, localize: Localizer = default_localize) -> str:
    """Label for ``value`` by its position on a ``steps`` scale.

    ``normalized = (value - min) / (max - min)``, then bucketed into seven
    bands from hostile (<= 0.10) to allied (> 0.90).
    """
    scale = bounds(steps)
    normalized = (value - scale.min) / (scale.max - scale.min)
    for upper, key in _GENERATED_BANDS:
        if normalized <= upper:
            return localize(key)
    return localize(labels.ALLIED)


class RankResolver:
    """Resolve :class:`LevelDefinition` objects for faction standings.

    Args:
        lookup_provider: Source of external lookup tables.  ``None`` disables
            the lookup tier.
        localize: Label-key translator.
    """

    def __init__(
        self,
        lookup_provider: LookupTableProvider | None = None,
        localize: Localizer = default_localize,
    ) -> None:
        self.lookup_provider = lookup_provider
        self.localize = localize
        self.tiers: tuple[RankTier, ...] = (
            self._lookup_tier,
            self._default_table_tier,
            self._generated_tier,
        )

    def resolve_level(self, faction: Faction, value: int) -> LevelDefinition:
        """Return the display level for ``value`` on ``faction``'s scale."""
        for tier in self.tiers:
            level = tier(faction, value)
            if level is not None:
                return level
        # The generated tier always hits; this is unreachable with the
        # default tier list.
        raise RuntimeError("no rank tier produced a level")

    def levels_for_faction(self, faction: Faction) -> list[LevelDefinition]:
        """Every level on the faction's scale, lowest value first."""
        scale = bounds(faction.steps)
        return [self.resolve_level(faction, value) for value in range(scale.min, scale.max + 1)]

    # ── Tiers ────────────────────────────────────────────────────────────────

    def _lookup_tier(self, faction: Faction, value: int) -> LevelDefinition | None:
        if not faction.lookup_table_id or self.lookup_provider is None:
            return None

        try:
            entries = self.lookup_provider.get_entries(faction.lookup_table_id)
        except Exception:
            logger.debug(
                "ranks: lookup table %r unavailable for faction %s",
                faction.lookup_table_id,
                faction.id,
                exc_info=True,
            )
            return None
        if not entries:
            return None

        entry = find_entry(entries, value)
        if entry is None:
            return None

        label, color = parse_lookup_text(entry.text)
        if not label:
            return None

        if color is None:
            scale = bounds(faction.steps)
            color = rank_color(value, scale.min, scale.max)
        return LevelDefinition(value=value, label=label, color=color)

    def _default_table_tier(self, faction: Faction, value: int) -> LevelDefinition | None:
        if faction.steps != DEFAULT_STEPS:
            return None
        row = DEFAULT_SCALE_TABLE.get(value)
        if row is None:
            return None
        key, color = row
        return LevelDefinition(value=value, label=self.localize(key), color=color)

    def _generated_tier(self, faction: Faction, value: int) -> LevelDefinition:
        scale = bounds(faction.steps)
        return LevelDefinition(
            value=value,
            label=generate_rank_label(value, faction.steps, self.localize),
            color=rank_color(value, scale.min, scale.max),
        )
