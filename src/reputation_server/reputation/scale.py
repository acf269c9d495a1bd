"""Scale resolver: step counts, bounds, clamping and storage mode.

All functions here are pure.  They are safe to call from any number of
concurrent readers and never raise on well-typed input.

A scale with ``steps`` positions is centred on 0::

    steps = 7   ->  -3 -2 -1 0 +1 +2 +3
    steps = 11  ->  -5 ... +5

``bounds`` assumes an odd step count in [3, 21].  Every entry point that
accepts a step count from outside (faction create/edit, CLI, API) must run it
through :func:`normalize_steps` first; an even count would produce an
asymmetric range.
"""

from __future__ import annotations

from typing import Any

from reputation_server.reputation.constants import DEFAULT_STEPS, MAX_STEPS, MIN_STEPS
from reputation_server.reputation.types import Bounds, Faction, StorageMode


def normalize_steps(raw: Any) -> int:
    """Coerce user input into a valid odd step count in [3, 21].

    Unparseable or zero input falls back to :data:`DEFAULT_STEPS`.  Values are
    clamped to the range first, then even values are rounded up to the next
    odd number (so ``20`` becomes ``21`` and ``2`` becomes ``3``).
    """
    try:
        steps = int(raw)
    except (TypeError, ValueError):
        steps = 0
    if not steps:
        steps = DEFAULT_STEPS

    steps = max(MIN_STEPS, min(MAX_STEPS, steps))
    if steps % 2 == 0:
        steps += 1
    return steps


def bounds(steps: int) -> Bounds:
    """Return ``Bounds(min=-floor(steps/2), max=floor(steps/2), steps)``."""
    half = steps // 2
    return Bounds(min=-half, max=half, steps=steps)


def faction_bounds(faction: Faction | None) -> Bounds:
    """Bounds of a faction's scale; an unknown faction gets the default scale."""
    return bounds(faction.steps if faction is not None else DEFAULT_STEPS)


def clamp(value: int, scale: Bounds) -> int:
    """Clamp ``value`` into ``[scale.min, scale.max]``."""
    return max(scale.min, min(scale.max, int(value)))


def initial_value(faction: Faction) -> int:
    """Standing a subject (or the shared entry) starts from."""
    if faction.start_at_neutral:
        return 0
    return faction_bounds(faction).min


def resolve_storage_mode(faction: Faction | None, per_subject_default: bool) -> StorageMode:
    """Resolve a faction's effective storage mode.

    An explicit ``SHARED``/``PER_SUBJECT`` on the faction wins.  ``INHERIT``
    (or no faction at all) falls back to the process-wide default.  The result
    is never ``INHERIT``.
    """
    if faction is not None and faction.storage_mode is not StorageMode.INHERIT:
        return faction.storage_mode
    return StorageMode.PER_SUBJECT if per_subject_default else StorageMode.SHARED
