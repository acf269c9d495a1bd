"""Operator-editable module settings.

Settings live in the key-value store under ``settings`` so they can be changed
at runtime (API ``PUT /settings``, CLI) without a restart.  Whatever is not
stored falls back to the ``[reputation]`` section of the server config.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any

from reputation_server.config import (
    NOTIFICATION_VISIBILITIES,
    SUBJECT_ACCESS_LEVELS,
    ReputationSettings,
)
from reputation_server.reputation.constants import SETTINGS_KEY
from reputation_server.store.kv import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleSettings:
    """Effective module settings.

    Attributes:
        per_subject_default:     Storage mode for factions set to ``inherit``
                                 (True = per-subject, False = shared).
        start_at_neutral:        Default for new factions' ``start_at_neutral``.
        post_notifications:      Emit ``reputation:notice`` after changes.
        notification_visibility: Audience for notices
                                 (``operators`` / ``all`` / ``subjects``).
        subject_access:          What non-operators may do
                                 (``none`` / ``view`` / ``edit``).
    """

    per_subject_default: bool = True
    start_at_neutral: bool = True
    post_notifications: bool = True
    notification_visibility: str = "operators"
    subject_access: str = "none"

    @classmethod
    def from_config(cls, section: ReputationSettings) -> ModuleSettings:
        return cls(
            per_subject_default=section.per_subject_default,
            start_at_neutral=section.start_at_neutral,
            post_notifications=section.post_notifications,
            notification_visibility=section.notification_visibility,
            subject_access=section.subject_access,
        )

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    def merged(self, overrides: dict[str, Any]) -> ModuleSettings:
        """Apply stored/user overrides, ignoring unknown keys and bad values."""
        values = asdict(self)
        for item in fields(self):
            if item.name not in overrides or overrides[item.name] is None:
                continue
            raw = overrides[item.name]
            if item.name == "notification_visibility":
                if raw in NOTIFICATION_VISIBILITIES:
                    values[item.name] = raw
            elif item.name == "subject_access":
                if raw in SUBJECT_ACCESS_LEVELS:
                    values[item.name] = raw
            elif isinstance(raw, bool):
                values[item.name] = raw
            else:
                logger.debug("settings: ignoring non-boolean %s=%r", item.name, raw)
        return ModuleSettings(**values)


def _defaults() -> ModuleSettings:
    from reputation_server.config import config

    return ModuleSettings.from_config(config.reputation)


async def load_settings(
    store: KeyValueStore, namespace: str, defaults: ModuleSettings | None = None
) -> ModuleSettings:
    """Effective settings: stored values over ``defaults`` (config by default)."""
    stored = await store.get(namespace, SETTINGS_KEY, {})
    base = defaults or _defaults()
    if not isinstance(stored, dict):
        return base
    return base.merged(stored)


async def save_settings(store: KeyValueStore, namespace: str, settings: ModuleSettings) -> None:
    """Persist every field of ``settings``."""
    await store.set(namespace, SETTINGS_KEY, settings.as_dict())
    logger.info("settings: saved %s", settings.as_dict())
