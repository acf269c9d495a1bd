"""
Tests for external lookup tables.

Covers entry text parsing (HTML stripping, trailing color lines), range
matching, the in-memory and YAML providers, and the generated seed table.
"""

from pathlib import Path

import pytest

from reputation_server.reputation.lookup import (
    InMemoryLookupTableProvider,
    LookupEntry,
    YamlLookupTableProvider,
    build_default_lookup_entries,
    find_entry,
    parse_lookup_text,
    strip_html,
)
from tests.constants import DEFAULT_SCALE_ROWS

# ============================================================================
# TEXT PARSING
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Blacklisted\n#8B0000", ("Blacklisted", "#8B0000")),
        ("Trusted Partner", ("Trusted Partner", None)),
        ("Sworn\nBrother\ngreen", ("Sworn Brother", "green")),
        ("Honoured\nGuest", ("Honoured Guest", None)),
        ("<p>Respected</p><p>rgb(10, 20, 30)</p>", ("Respected", "rgb(10, 20, 30)")),
        ("<p>Feared<br>Outlaw</p>", ("Feared Outlaw", None)),
        ("<p><strong>Known</strong> Ally</p>", ("Known Ally", None)),
        ("  \n  ", (None, None)),
        ("<p></p>", (None, None)),
        ("", (None, None)),
        (None, (None, None)),
    ],
)
def test_parse_lookup_text(raw, expected):
    assert parse_lookup_text(raw) == expected


@pytest.mark.unit
def test_single_color_line_is_a_label():
    # A lone line is always the label, even if it looks like a color
    assert parse_lookup_text("red") == ("red", None)


@pytest.mark.unit
def test_strip_html_decodes_entities():
    assert strip_html("Knights &amp; Squires") == "Knights & Squires"


# ============================================================================
# RANGE MATCHING
# ============================================================================


@pytest.mark.unit
def test_find_entry_first_match_wins():
    entries = [
        LookupEntry(-3, -1, "Enemy"),
        LookupEntry(-1, 1, "Stranger"),
        LookupEntry(2, 3, "Friend"),
    ]

    assert find_entry(entries, -1).text == "Enemy"
    assert find_entry(entries, 0).text == "Stranger"
    assert find_entry(entries, 3).text == "Friend"
    assert find_entry(entries, 4) is None


# ============================================================================
# PROVIDERS
# ============================================================================


@pytest.mark.unit
def test_in_memory_provider():
    provider = InMemoryLookupTableProvider({"guild": [LookupEntry(0, 0, "Member")]})

    assert provider.get_entries("guild") == [LookupEntry(0, 0, "Member")]
    assert provider.get_entries("missing") is None

    provider.save_table("guild", [LookupEntry(1, 1, "Officer")])
    assert provider.get_entries("guild") == [LookupEntry(1, 1, "Officer")]


@pytest.mark.unit
def test_yaml_provider_round_trip(tmp_path):
    provider = YamlLookupTableProvider(tmp_path)
    entries = [LookupEntry(-3, -2, "Blacklisted\n#8B0000"), LookupEntry(-1, 1, "Customer")]

    path = provider.save_table("merchants", entries)

    assert path == tmp_path / "merchants.yaml"
    assert provider.get_entries("merchants") == entries
    assert provider.get_entries("absent") is None


@pytest.mark.unit
def test_yaml_provider_reads_hand_written_file(tmp_path):
    (tmp_path / "thieves.yaml").write_text(
        "entries:\n"
        "  - range: [-2, 0]\n"
        "    text: \"<p>Mark</p><p>orange</p>\"\n"
        "  - range: [1, 2]\n"
        "    text: Fence\n",
        encoding="utf-8",
    )

    entries = YamlLookupTableProvider(tmp_path).get_entries("thieves")

    assert entries == [
        LookupEntry(-2, 0, "<p>Mark</p><p>orange</p>"),
        LookupEntry(1, 2, "Fence"),
    ]


@pytest.mark.unit
def test_shipped_example_table_parses():
    root = Path(__file__).resolve().parents[2] / "data" / "lookup_tables"

    entries = YamlLookupTableProvider(root).get_entries("merchants")

    assert [parse_lookup_text(e.text) for e in entries] == [
        ("Blacklisted", "#8B0000"),
        ("Overcharged", "#FF8C00"),
        ("Customer", None),
        ("Valued Customer", "#32CD32"),
        ("Partner", "#228B22"),
    ]
    assert find_entry(entries, 2).range_low == 1


@pytest.mark.unit
@pytest.mark.parametrize(
    "content, message",
    [
        ("- just a list\n", "top level"),
        ("name: no entries\n", "entries"),
        ("entries:\n  - plain string\n", "must be a mapping"),
        ("entries:\n  - range: [1]\n    text: x\n", "range"),
        ("entries:\n  - range: [a, b]\n    text: x\n", "range"),
    ],
)
def test_yaml_provider_rejects_malformed_files(tmp_path, content, message):
    (tmp_path / "bad.yaml").write_text(content, encoding="utf-8")

    with pytest.raises(ValueError, match=message):
        YamlLookupTableProvider(tmp_path).get_entries("bad")


@pytest.mark.unit
@pytest.mark.parametrize("table_id", ["../escape", "a/b", "with space", ""])
def test_yaml_provider_rejects_unsafe_ids(tmp_path, table_id):
    with pytest.raises(ValueError, match="Invalid lookup table id"):
        YamlLookupTableProvider(tmp_path).get_entries(table_id)


# ============================================================================
# SEED TABLE
# ============================================================================


@pytest.mark.unit
def test_default_entries_cover_every_value():
    entries = build_default_lookup_entries(7)

    expected = [(value, value) for value, _, _ in DEFAULT_SCALE_ROWS]
    assert [(e.range_low, e.range_high) for e in entries] == expected


@pytest.mark.unit
def test_default_entries_parse_back_to_label_and_color():
    entries = build_default_lookup_entries(5)

    assert parse_lookup_text(entries[0].text) == ("Hostile", "rgb(255, 80, 100)")
    assert parse_lookup_text(entries[2].text) == ("Neutral", "#ffffff")
    assert parse_lookup_text(entries[-1].text) == ("Allied", "rgb(80, 200, 80)")
