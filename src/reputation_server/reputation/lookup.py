"""External lookup tables: ranged free-text overrides for rank display.

An operator can attach a lookup table to a faction to replace the generated
rank labels.  A table is an ordered list of :class:`LookupEntry` rows; the
entry whose inclusive ``[range_low, range_high]`` contains a standing value
supplies that value's display text.  When ranges overlap the first matching
entry wins.

Entry text format
-----------------
The text is free-form and may contain HTML (it is often authored in a rich
text editor).  Markup is stripped first; block-level tags and ``<br>`` count
as line breaks.  The remaining non-empty lines are then read as::

    Label words
    #228B22          <- optional last line, used as the color if it is a
                        hex / rgb(...) / named color token

If the last line is not a color token, every line is part of the label.

Providers
---------
:class:`InMemoryLookupTableProvider` holds tables in a dict (tests, embedding
hosts).  :class:`YamlLookupTableProvider` reads and writes one YAML file per
table under ``lookup.tables_root``::

    # data/lookup_tables/merchants.yaml
    entries:
      - range: [-3, -2]
        text: "Blacklisted\\n#8B0000"
      - range: [-1, 1]
        text: "Customer"
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from html.parser import HTMLParser
from pathlib import Path
from typing import Protocol, runtime_checkable

import yaml

from reputation_server.reputation.colors import is_color_token, rank_color
from reputation_server.reputation.labels import Localizer, default_localize
from reputation_server.reputation.scale import bounds

logger = logging.getLogger(__name__)

_TABLE_ID = re.compile(r"^[A-Za-z0-9_.-]+$")

_BLOCK_TAGS: frozenset[str] = frozenset(
    {"p", "div", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre"}
)


@dataclass(frozen=True)
class LookupEntry:
    """One row of a lookup table."""

    range_low: int
    range_high: int
    text: str

    def contains(self, value: int) -> bool:
        return self.range_low <= value <= self.range_high


@runtime_checkable
class LookupTableProvider(Protocol):
    """Source of lookup tables, addressed by table id."""

    def get_entries(self, table_id: str) -> Sequence[LookupEntry] | None:
        """Return the table's entries in order, or ``None`` if it does not exist."""
        ...


class InMemoryLookupTableProvider:
    """Lookup tables held in a dict."""

    def __init__(self, tables: dict[str, Sequence[LookupEntry]] | None = None) -> None:
        self._tables: dict[str, list[LookupEntry]] = {
            table_id: list(entries) for table_id, entries in (tables or {}).items()
        }

    def get_entries(self, table_id: str) -> Sequence[LookupEntry] | None:
        entries = self._tables.get(table_id)
        return list(entries) if entries is not None else None

    def save_table(self, table_id: str, entries: Iterable[LookupEntry]) -> None:
        self._tables[table_id] = list(entries)


class YamlLookupTableProvider:
    """One ``<table_id>.yaml`` file per table under ``root``.

    Args:
        root: Table directory.  ``None`` resolves ``lookup.tables_root`` from
            the runtime configuration on every call.
    """

    def __init__(self, root: Path | None = None) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        if self._root is not None:
            return self._root
        from reputation_server.config import config

        return config.lookup.absolute_root

    def _table_path(self, table_id: str) -> Path:
        if not _TABLE_ID.match(table_id):
            raise ValueError(f"Invalid lookup table id: {table_id!r}")
        return self.root / f"{table_id}.yaml"

    def get_entries(self, table_id: str) -> Sequence[LookupEntry] | None:
        """Load a table.

        Raises:
            ValueError: On an invalid table id or a malformed file.
        """
        path = self._table_path(table_id)
        if not path.exists():
            return None

        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return _parse_table(raw, source=path.name)

    def save_table(self, table_id: str, entries: Iterable[LookupEntry]) -> Path:
        """Write (or overwrite) a table file and return its path."""
        path = self._table_path(table_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "entries": [
                {"range": [entry.range_low, entry.range_high], "text": entry.text}
                for entry in entries
            ]
        }
        with path.open("w", encoding="utf-8") as fh:
            yaml.safe_dump(payload, fh, allow_unicode=True, sort_keys=False)
        logger.info("lookup: wrote table %r (%d entries)", table_id, len(payload["entries"]))
        return path


def _parse_table(raw: object, *, source: str) -> list[LookupEntry]:
    if not isinstance(raw, dict):
        raise ValueError(f"{source}: lookup table must be a YAML mapping at the top level.")
    rows = raw.get("entries")
    if not isinstance(rows, list):
        raise ValueError(f"{source}: missing required field 'entries' (must be a list).")

    entries: list[LookupEntry] = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValueError(f"{source}: entries[{index}] must be a mapping.")
        value_range = row.get("range")
        if (
            not isinstance(value_range, list)
            or len(value_range) != 2
            or not all(isinstance(v, int) for v in value_range)
        ):
            raise ValueError(f"{source}: entries[{index}].range must be [low, high] integers.")
        low, high = value_range
        entries.append(LookupEntry(range_low=low, range_high=high, text=str(row.get("text") or "")))
    return entries


# ---------------------------------------------------------------------------
# Text parsing
# ---------------------------------------------------------------------------


class _TextExtractor(HTMLParser):
    """Collect text content, turning block boundaries into newlines."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.parts: list[str] = []

    def handle_starttag(self, tag: str, attrs) -> None:
        if tag == "br":
            self.parts.append("\n")

    def handle_startendtag(self, tag: str, attrs) -> None:
        if tag == "br":
            self.parts.append("\n")

    def handle_endtag(self, tag: str) -> None:
        if tag in _BLOCK_TAGS:
            self.parts.append("\n")

    def handle_data(self, data: str) -> None:
        self.parts.append(data)


def strip_html(raw: str) -> str:
    """Return the text content of ``raw`` with markup removed."""
    extractor = _TextExtractor()
    extractor.feed(raw)
    extractor.close()
    return "".join(extractor.parts).strip()


def parse_lookup_text(raw: str | None) -> tuple[str | None, str | None]:
    """Split entry text into ``(label, color)``.

    Returns ``(None, None)`` for empty text.  ``color`` is ``None`` when the
    last line is not a color token.
    """
    if not raw:
        return None, None

    clean = strip_html(raw)
    lines = [line.strip() for line in clean.split("\n") if line.strip()]
    if not lines:
        return None, None

    if len(lines) >= 2 and is_color_token(lines[-1]):
        return " ".join(lines[:-1]), lines[-1]
    return " ".join(lines), None


def find_entry(entries: Sequence[LookupEntry], value: int) -> LookupEntry | None:
    """First entry whose range contains ``value``."""
    for entry in entries:
        if entry.contains(value):
            return entry
    return None


def build_default_lookup_entries(
    steps: int, localize: Localizer = default_localize
) -> list[LookupEntry]:
    """One entry per scale value carrying the generated label and badge color.

    Seeds a table an operator can then edit; the output parses back to exactly
    the generated fallback rank.
    """
    from reputation_server.reputation.ranks import generate_rank_label

    scale = bounds(steps)
    return [
        LookupEntry(
            range_low=value,
            range_high=value,
            text=f"{generate_rank_label(value, steps, localize)}\n"
            f"{rank_color(value, scale.min, scale.max)}",
        )
        for value in range(scale.min, scale.max + 1)
    ]
