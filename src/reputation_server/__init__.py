"""Faction Reputation Ledger Server.

Tracks bounded integer standing between factions and observers (a single
shared "global" standing, or one standing per subject), derives rank labels
and colors for display layers, and keeps an append-only, annotatable change
log per faction.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
``health.py`` and the CLI import ``__version__`` from here.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ---------------------------------------------------------------------------
# Package version, read from pyproject.toml via importlib.metadata.
#
# When the package is imported without being installed we fall back to the
# version declared in pyproject.toml so the application can still start.
# ---------------------------------------------------------------------------
try:
    __version__: str = version("reputation-server")
except PackageNotFoundError:
    __version__ = "0.3.0"
