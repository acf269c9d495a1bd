"""Tests for standing-change notices."""

import pytest

from reputation_server.reputation.labels import DEFAULT_LABELS
from reputation_server.reputation.notifications import build_notice, describe_value
from reputation_server.reputation.types import Faction, LevelDefinition

FACTION = Faction(id="f1", name="Iron Guild")
ALLIED = LevelDefinition(value=3, label="Allied", color="#228B22")


@pytest.mark.unit
def test_per_subject_notice_names_subject():
    notice = build_notice(
        FACTION, "player-1", ALLIED, per_subject=True, audience="operators", subject_name="Aria"
    )

    assert notice.text == "Reputation changed: Aria with Iron Guild: Allied (3)"
    assert notice.html == (
        "<p><strong>Reputation changed:</strong> Aria with Iron Guild: "
        '<span style="color: #228B22">Allied</span> (3)</p>'
    )
    assert notice.subject_id == "player-1"
    assert notice.per_subject is True


@pytest.mark.unit
def test_per_subject_notice_falls_back_to_subject_id():
    notice = build_notice(FACTION, "player-1", ALLIED, per_subject=True, audience="all")

    assert "player-1 with Iron Guild" in notice.text


@pytest.mark.unit
def test_shared_notice_speaks_of_the_group():
    notice = build_notice(FACTION, "global", ALLIED, per_subject=False, audience="subjects")

    assert notice.text == "Reputation changed: the group with Iron Guild: Allied (3)"
    assert notice.audience == "subjects"


@pytest.mark.unit
def test_notice_html_escapes_names():
    faction = Faction(id="f2", name="<Knights & Co>")

    notice = build_notice(faction, "global", ALLIED, per_subject=False, audience="all")

    assert "&lt;Knights &amp; Co&gt;" in notice.html
    assert "<Knights & Co>" in notice.text


@pytest.mark.unit
def test_notice_uses_localizer():
    def german(key: str) -> str:
        return {"notice.changed": "Ruf geändert:"}.get(key, DEFAULT_LABELS.get(key, key))

    notice = build_notice(
        FACTION, "global", ALLIED, per_subject=False, audience="all", localize=german
    )

    assert notice.text.startswith("Ruf geändert:")


@pytest.mark.unit
def test_notice_as_dict_round_trips_fields():
    notice = build_notice(FACTION, "global", ALLIED, per_subject=False, audience="all")

    data = notice.as_dict()

    assert data["faction_id"] == "f1"
    assert data["faction_name"] == "Iron Guild"
    assert data["value"] == 3
    assert data["color"] == "#228B22"


@pytest.mark.unit
def test_describe_value():
    assert describe_value(ALLIED) == "Allied (+3)"
    assert describe_value(LevelDefinition(-2, "Unfriendly", "#FF4500")) == "Unfriendly (-2)"
