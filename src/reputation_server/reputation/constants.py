"""Shared constants for the reputation engine.

Keeping store keys and scale limits in one place prevents the directory, the
ledger and the audit log from drifting apart on what they read and write.
"""

from __future__ import annotations

# Canonical scale size.  Factions persisted without a step count read back
# with this value, and only this size uses the fixed default rank table.
DEFAULT_STEPS = 7

MIN_STEPS = 3
MAX_STEPS = 21

# Subject id recorded in audit entries for shared-mode factions.
GLOBAL_SUBJECT = "global"

# Actor stamped on changes when no identity context is supplied.
SYSTEM_ACTOR = "system"

# Store keys (all under the configured store namespace).
FACTIONS_KEY = "factions"
SHARED_STANDINGS_KEY = "shared_standings"
SUBJECT_STANDINGS_KEY = "subject_standings"
SETTINGS_KEY = "settings"
