"""Rank label and notice text keys with their built-in English text.

The engine never hard-codes display text: every label is looked up through a
``Localizer`` (``key -> text``).  Hosts with their own translation catalogue
pass a callable; everything else gets :func:`default_localize`.
"""

from __future__ import annotations

from collections.abc import Callable

Localizer = Callable[[str], str]

HOSTILE = "rank.hostile"
UNFRIENDLY = "rank.unfriendly"
WARY = "rank.wary"
NEUTRAL_MINUS = "rank.neutral_minus"
NEUTRAL = "rank.neutral"
NEUTRAL_PLUS = "rank.neutral_plus"
CORDIAL = "rank.cordial"
FRIENDLY = "rank.friendly"
ALLIED = "rank.allied"

NOTICE_CHANGED = "notice.changed"
NOTICE_SUBJECT_WITH = "notice.subject_with"
NOTICE_GROUP_WITH = "notice.group_with"
NOTICE_UNKNOWN = "notice.unknown"

DEFAULT_LABELS: dict[str, str] = {
    HOSTILE: "Hostile",
    UNFRIENDLY: "Unfriendly",
    WARY: "Wary",
    NEUTRAL_MINUS: "Neutral (-)",
    NEUTRAL: "Neutral",
    NEUTRAL_PLUS: "Neutral (+)",
    CORDIAL: "Cordial",
    FRIENDLY: "Friendly",
    ALLIED: "Allied",
    NOTICE_CHANGED: "Reputation changed:",
    NOTICE_SUBJECT_WITH: "{subject} with {faction}:",
    NOTICE_GROUP_WITH: "the group with {faction}:",
    NOTICE_UNKNOWN: "Unknown",
}


def default_localize(key: str) -> str:
    """Return the English label for ``key`` (the key itself if unknown)."""
    return DEFAULT_LABELS.get(key, key)
