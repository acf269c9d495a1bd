"""
Tests for the reputation ledger.

These tests pin the ledger's contract:

1. Values are clamped to the faction's bounds, never rejected
2. Shared factions ignore the subject id; per-subject factions key by it
3. ``set_value`` logs only on change; ``apply_delta`` always logs
4. Log entries chain: each entry's old value is the previous entry's new value
5. Unknown factions return ``None`` without writing anything
6. A failed value write leaves no log entry behind
"""

import pytest

from reputation_server.reputation.actors import StaticActorContext
from reputation_server.reputation.audit import AuditLog
from reputation_server.reputation.constants import GLOBAL_SUBJECT
from reputation_server.reputation.directory import FactionDirectory
from reputation_server.reputation.ledger import ReputationLedger
from reputation_server.reputation.settings import save_settings
from reputation_server.reputation.types import StorageMode
from reputation_server.store.errors import StoreOperationContext, StoreWriteError
from reputation_server.store.kv import MemoryKeyValueStore
from tests.constants import NAMESPACE, SUBJECT_ONE, SUBJECT_TWO

# ============================================================================
# FIXTURES
# ============================================================================


def _build(store, settings):
    directory = FactionDirectory(store, NAMESPACE, settings_defaults=settings)
    audit = AuditLog(store, NAMESPACE)
    ledger = ReputationLedger(
        store,
        NAMESPACE,
        directory,
        audit,
        actors=StaticActorContext("gm"),
        settings_defaults=settings,
    )
    return directory, audit, ledger


@pytest.fixture
def parts(memory_store, shared_settings):
    """(directory, audit, ledger) with shared storage as the default mode."""
    return _build(memory_store, shared_settings)


class FailingWriteStore(MemoryKeyValueStore):
    """Memory store whose writes to one key fail."""

    def __init__(self, failing_key: str) -> None:
        super().__init__()
        self.failing_key = failing_key

    async def set(self, namespace, key, value):
        if key == self.failing_key:
            raise StoreWriteError(context=StoreOperationContext(operation="kv.set", details=key))
        await super().set(namespace, key, value)


# ============================================================================
# SCENARIOS
# ============================================================================


@pytest.mark.unit
@pytest.mark.asyncio
async def test_set_value_clamps_and_logs(parts):
    directory, audit, ledger = parts
    faction = await directory.create_faction("Guild", steps=7)

    assert await ledger.set_value(GLOBAL_SUBJECT, faction.id, 10) == 3

    entries = await audit.entries(faction.id)
    assert len(entries) == 1
    assert (entries[0].old_value, entries[0].new_value) == (0, 3)
    assert entries[0].subject_id == GLOBAL_SUBJECT
    assert entries[0].changed_by == "gm"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_apply_delta_clamps_to_minimum(parts):
    directory, audit, ledger = parts
    faction = await directory.create_faction("Guild", steps=7)
    await ledger.set_value(GLOBAL_SUBJECT, faction.id, 3)

    assert await ledger.apply_delta(GLOBAL_SUBJECT, faction.id, -10) == -3

    newest = (await audit.entries(faction.id))[0]
    assert (newest.old_value, newest.new_value) == (3, -3)


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("delta", [999, -999, 4, -4])
async def test_apply_delta_never_exceeds_bounds(parts, delta):
    directory, _, ledger = parts
    faction = await directory.create_faction("Guild", steps=7)

    value = await ledger.apply_delta(GLOBAL_SUBJECT, faction.id, delta)

    assert -3 <= value <= 3
    assert await ledger.get_value(GLOBAL_SUBJECT, faction.id) == value


# ============================================================================
# LOGGING POLICY
# ============================================================================


@pytest.mark.unit
@pytest.mark.asyncio
async def test_repeated_set_logs_once(parts):
    directory, audit, ledger = parts
    faction = await directory.create_faction("Guild")

    await ledger.set_value(GLOBAL_SUBJECT, faction.id, 2)
    change = await ledger.record_set(GLOBAL_SUBJECT, faction.id, 2)

    assert change.entry is None
    assert change.changed is False
    assert len(await audit.entries(faction.id)) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delta_at_boundary_still_logs(parts):
    directory, audit, ledger = parts
    faction = await directory.create_faction("Guild")
    await ledger.set_value(GLOBAL_SUBJECT, faction.id, 3)

    change = await ledger.record_delta(GLOBAL_SUBJECT, faction.id, 1)

    assert change.new_value == 3
    assert change.entry is not None
    entries = await audit.entries(faction.id)
    assert len(entries) == 2
    assert (entries[0].old_value, entries[0].new_value) == (3, 3)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_zero_delta_logs(parts):
    directory, audit, ledger = parts
    faction = await directory.create_faction("Guild")

    await ledger.apply_delta(GLOBAL_SUBJECT, faction.id, 0)

    assert len(await audit.entries(faction.id)) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_log_entries_chain_newest_first(parts):
    directory, audit, ledger = parts
    faction = await directory.create_faction("Guild", steps=11)

    for delta in (2, -1, 3):
        await ledger.apply_delta(GLOBAL_SUBJECT, faction.id, delta)

    entries = await audit.entries(faction.id)
    assert [e.new_value for e in entries] == [4, 1, 2]
    assert [e.timestamp for e in entries] == sorted((e.timestamp for e in entries), reverse=True)
    for newer, older in zip(entries, entries[1:], strict=False):
        assert newer.old_value == older.new_value


@pytest.mark.unit
@pytest.mark.asyncio
async def test_explicit_actor_wins(parts):
    directory, audit, ledger = parts
    faction = await directory.create_faction("Guild")

    await ledger.apply_delta(GLOBAL_SUBJECT, faction.id, 1, actor="gm-bob")

    assert (await audit.entries(faction.id))[0].changed_by == "gm-bob"


# ============================================================================
# STORAGE MODES
# ============================================================================


@pytest.mark.unit
@pytest.mark.asyncio
async def test_shared_mode_ignores_subject(parts):
    directory, audit, ledger = parts
    faction = await directory.create_faction("Guild")

    await ledger.apply_delta(SUBJECT_ONE, faction.id, 2)

    assert await ledger.get_value(SUBJECT_TWO, faction.id) == 2
    assert await ledger.subject_values(faction.id) == {GLOBAL_SUBJECT: 2}
    assert (await audit.entries(faction.id))[0].subject_id == GLOBAL_SUBJECT


@pytest.mark.unit
@pytest.mark.asyncio
async def test_per_subject_mode_keys_by_subject(parts):
    directory, audit, ledger = parts
    faction = await directory.create_faction("Guild", storage_mode=StorageMode.PER_SUBJECT)

    await ledger.apply_delta(SUBJECT_ONE, faction.id, 2)
    await ledger.apply_delta(SUBJECT_TWO, faction.id, -1)

    assert await ledger.get_value(SUBJECT_ONE, faction.id) == 2
    assert await ledger.get_value(SUBJECT_TWO, faction.id) == -1
    assert await ledger.get_value("newcomer", faction.id) == 0
    assert await ledger.subject_values(faction.id) == {SUBJECT_ONE: 2, SUBJECT_TWO: -1}
    assert [e.subject_id for e in await audit.entries(faction.id)] == [SUBJECT_TWO, SUBJECT_ONE]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_inherit_follows_stored_setting(memory_store, shared_settings):
    directory, _, ledger = _build(memory_store, shared_settings)
    faction = await directory.create_faction("Guild")
    await ledger.apply_delta(SUBJECT_ONE, faction.id, 1)

    await save_settings(
        memory_store, NAMESPACE, shared_settings.merged({"per_subject_default": True})
    )

    # now per-subject: the shared value is no longer authoritative
    assert await ledger.get_value(SUBJECT_ONE, faction.id) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_start_at_minimum(parts):
    directory, audit, ledger = parts
    faction = await directory.create_faction("Guild", steps=9, start_at_neutral=False)

    assert await ledger.get_value(GLOBAL_SUBJECT, faction.id) == -4
    await ledger.apply_delta(GLOBAL_SUBJECT, faction.id, 1)

    assert (await audit.entries(faction.id))[0].old_value == -4


@pytest.mark.unit
@pytest.mark.asyncio
async def test_initialize_faction_seeds_values(memory_store, per_subject_settings):
    directory, _, ledger = _build(memory_store, per_subject_settings)
    faction = await directory.create_faction("Guild", start_at_neutral=False)

    await ledger.initialize_faction(faction, [SUBJECT_ONE, SUBJECT_TWO])

    assert await ledger.subject_values(faction.id) == {SUBJECT_ONE: -3, SUBJECT_TWO: -3}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_shrinking_scale_clamps_on_next_mutation(parts):
    directory, audit, ledger = parts
    faction = await directory.create_faction("Guild", steps=11)
    await ledger.set_value(GLOBAL_SUBJECT, faction.id, 5)

    await directory.update_faction(faction.id, steps=3)

    assert await ledger.apply_delta(GLOBAL_SUBJECT, faction.id, 0) == 1
    latest = (await audit.entries(faction.id))[0]
    assert (latest.old_value, latest.new_value) == (1, 1)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_shrinking_scale_clamps_reads(parts):
    directory, _, ledger = parts
    shared = await directory.create_faction("Guild", steps=11)
    split = await directory.create_faction(
        "Cult", steps=11, storage_mode=StorageMode.PER_SUBJECT
    )
    await ledger.set_value(GLOBAL_SUBJECT, shared.id, 5)
    await ledger.set_value(SUBJECT_ONE, split.id, -5)
    await ledger.set_value(SUBJECT_TWO, split.id, 1)

    await directory.update_faction(shared.id, steps=3)
    await directory.update_faction(split.id, steps=3)

    assert await ledger.get_value(GLOBAL_SUBJECT, shared.id) == 1
    assert await ledger.subject_values(shared.id) == {GLOBAL_SUBJECT: 1}
    assert await ledger.get_value(SUBJECT_ONE, split.id) == -1
    assert await ledger.subject_values(split.id) == {SUBJECT_ONE: -1, SUBJECT_TWO: 1}


# ============================================================================
# FAILURES
# ============================================================================


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unknown_faction_writes_nothing(parts, memory_store):
    _, _, ledger = parts
    before = memory_store.snapshot()

    assert await ledger.apply_delta(SUBJECT_ONE, "missing", 1) is None
    assert await ledger.set_value(SUBJECT_ONE, "missing", 1) is None
    assert await ledger.get_value(SUBJECT_ONE, "missing") is None
    assert await ledger.subject_values("missing") == {}
    assert memory_store.snapshot() == before


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_value_write_leaves_no_log_entry(shared_settings):
    store = FailingWriteStore("shared_standings")
    directory, audit, ledger = _build(store, shared_settings)
    faction = await directory.create_faction("Guild")

    with pytest.raises(StoreWriteError):
        await ledger.apply_delta(GLOBAL_SUBJECT, faction.id, 1)

    assert await audit.entries(faction.id) == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_purge_faction(parts):
    directory, _, ledger = parts
    faction = await directory.create_faction("Guild")
    await ledger.apply_delta(GLOBAL_SUBJECT, faction.id, 2)

    assert await ledger.purge_faction(faction.id) == 1
    assert await ledger.get_value(GLOBAL_SUBJECT, faction.id) == 0
