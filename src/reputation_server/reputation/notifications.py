"""Human-readable notices for standing changes.

A :class:`StandingNotice` is what a chat feed or activity stream shows after a
mutation.  Delivery is not handled here: the service emits the notice on its
bus and whichever sink subscribed decides where it goes, using ``audience``
to pick recipients.
"""

from __future__ import annotations

import html
from dataclasses import asdict, dataclass
from typing import Any

from reputation_server.reputation import labels
from reputation_server.reputation.display import format_display_value
from reputation_server.reputation.labels import Localizer, default_localize
from reputation_server.reputation.types import Faction, LevelDefinition


@dataclass(frozen=True, slots=True)
class StandingNotice:
    """A rendered standing-change notice.

    Attributes:
        subject_id:   Subject whose standing changed (``"global"`` when shared).
        faction_id:   Faction id.
        faction_name: Faction display name at the time of the change.
        value:        New standing value.
        label:        Rank label for ``value``.
        color:        Rank color for ``value``.
        audience:     ``operators``, ``all`` or ``subjects``.
        per_subject:  Whether the faction tracks per-subject values.
        text:         Plain-text message.
        html:         Chat-style HTML with the label painted in its color.
    """

    subject_id: str
    faction_id: str
    faction_name: str
    value: int
    label: str
    color: str
    audience: str
    per_subject: bool
    text: str
    html: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def build_notice(
    faction: Faction,
    subject_id: str,
    level: LevelDefinition,
    *,
    per_subject: bool,
    audience: str,
    subject_name: str | None = None,
    localize: Localizer = default_localize,
) -> StandingNotice:
    """Render a notice for ``level`` on ``faction``.

    Per-subject factions name the subject (``subject_name`` if the caller
    knows a display name, else the id).  Shared factions speak of the group.
    """
    if per_subject:
        who = subject_name or subject_id or localize(labels.NOTICE_UNKNOWN)
        middle = localize(labels.NOTICE_SUBJECT_WITH).format(subject=who, faction=faction.name)
    else:
        middle = localize(labels.NOTICE_GROUP_WITH).format(faction=faction.name)

    headline = localize(labels.NOTICE_CHANGED)
    text = f"{headline} {middle} {level.label} ({level.value})"
    markup = (
        f"<p><strong>{html.escape(headline)}</strong> {html.escape(middle)} "
        f'<span style="color: {html.escape(level.color)}">{html.escape(level.label)}</span> '
        f"({level.value})</p>"
    )
    return StandingNotice(
        subject_id=subject_id,
        faction_id=faction.id,
        faction_name=faction.name,
        value=level.value,
        label=level.label,
        color=level.color,
        audience=audience,
        per_subject=per_subject,
        text=text,
        html=markup,
    )


def describe_value(level: LevelDefinition) -> str:
    """Short form used by the CLI: ``Friendly (+2)``."""
    return f"{level.label} ({format_display_value(level.value)})"
