"""Reputation engine: scales, ranks, standings and the change log.

Layout
------
- ``scale``         step normalisation, bounds, clamping, storage mode.
- ``colors``        rank badge and bar segment color ramps.
- ``lookup``        external lookup tables (YAML provider, HTML stripping).
- ``ranks``         three-tier rank label resolution.
- ``standings``     shared and per-subject standing stores.
- ``directory``     faction CRUD.
- ``audit``         per-faction change log.
- ``ledger``        the single writer of standing values.
- ``settings``      operator-editable module settings.
- ``display``       bar segments, tiers, signed values.
- ``notifications`` standing-change notices.
"""

from reputation_server.reputation.audit import AuditLog
from reputation_server.reputation.directory import FactionDirectory
from reputation_server.reputation.ledger import ReputationLedger, StandingChange
from reputation_server.reputation.ranks import RankResolver
from reputation_server.reputation.settings import ModuleSettings
from reputation_server.reputation.types import (
    Bounds,
    ChangeLogEntry,
    Faction,
    LevelDefinition,
    StorageMode,
)

__all__ = [
    "AuditLog",
    "Bounds",
    "ChangeLogEntry",
    "Faction",
    "FactionDirectory",
    "LevelDefinition",
    "ModuleSettings",
    "RankResolver",
    "ReputationLedger",
    "StandingChange",
    "StorageMode",
]
