"""Tests for the per-faction change log."""

import pytest

from reputation_server.reputation.audit import AuditLog
from reputation_server.reputation.directory import FactionDirectory
from tests.constants import NAMESPACE


@pytest.fixture
def audit(memory_store) -> AuditLog:
    return AuditLog(memory_store, NAMESPACE)


@pytest.fixture
def directory(memory_store, per_subject_settings) -> FactionDirectory:
    return FactionDirectory(memory_store, NAMESPACE, settings_defaults=per_subject_settings)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_append_prepends_newest_first(audit, directory):
    faction = await directory.create_faction("Guild")

    first = await audit.append(
        faction.id, old_value=0, new_value=1, subject_id="a", changed_by="gm"
    )
    second = await audit.append(
        faction.id, old_value=1, new_value=3, subject_id="a", changed_by="gm"
    )

    entries = await audit.entries(faction.id)
    assert [e.id for e in entries] == [second.id, first.id]
    assert first.id != second.id
    assert len(first.id) == 32
    assert entries[0].timestamp >= entries[1].timestamp


@pytest.mark.unit
@pytest.mark.asyncio
async def test_append_to_unknown_faction(audit):
    result = await audit.append("missing", old_value=0, new_value=1, subject_id="a", changed_by="x")

    assert result is None
    assert await audit.entries("missing") == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_annotate_sets_and_overwrites_comment(audit, directory):
    faction = await directory.create_faction("Guild")
    entry = await audit.append(
        faction.id, old_value=0, new_value=1, subject_id="a", changed_by="gm"
    )

    assert await audit.annotate(faction.id, entry.id, "quest reward", actor="gm") is True
    assert await audit.annotate(faction.id, entry.id, "bribe", actor="auditor") is True

    stored = (await audit.entries(faction.id))[0]
    assert stored.comment == "bribe"
    assert stored.commented_by == "auditor"
    assert stored.commented_at is not None
    assert (stored.old_value, stored.new_value, stored.changed_by) == (0, 1, "gm")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_annotate_missing_targets(audit, directory, memory_store):
    faction = await directory.create_faction("Guild")
    before = memory_store.snapshot()

    assert await audit.annotate("missing", "e", "text", actor="gm") is False
    assert await audit.annotate(faction.id, "nope", "text", actor="gm") is False
    assert memory_store.snapshot() == before


@pytest.mark.unit
@pytest.mark.asyncio
async def test_log_disappears_with_faction(audit, directory):
    faction = await directory.create_faction("Guild")
    await audit.append(faction.id, old_value=0, new_value=1, subject_id="a", changed_by="gm")

    await directory.delete_faction(faction.id)

    assert await audit.entries(faction.id) == []
