"""Tests for step normalisation, bounds, clamping and storage-mode resolution."""

import pytest

from reputation_server.reputation.scale import (
    bounds,
    clamp,
    faction_bounds,
    initial_value,
    normalize_steps,
    resolve_storage_mode,
)
from reputation_server.reputation.types import Bounds, Faction, StorageMode


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        (7, 7),
        (9, 9),
        ("11", 11),
        (8, 9),
        (20, 21),
        (2, 3),
        (1, 3),
        (-5, 3),
        (100, 21),
        (0, 7),
        (None, 7),
        ("lots", 7),
        ("", 7),
    ],
)
def test_normalize_steps(raw, expected):
    assert normalize_steps(raw) == expected


@pytest.mark.unit
def test_normalize_steps_always_odd_in_range():
    for raw in range(-30, 40):
        steps = normalize_steps(raw)
        assert steps % 2 == 1
        assert 3 <= steps <= 21


@pytest.mark.unit
@pytest.mark.parametrize(
    "steps, low, high",
    [(3, -1, 1), (7, -3, 3), (11, -5, 5), (21, -10, 10)],
)
def test_bounds_are_symmetric(steps, low, high):
    assert bounds(steps) == Bounds(min=low, max=high, steps=steps)


@pytest.mark.unit
def test_faction_bounds_defaults_for_missing_faction():
    assert faction_bounds(None) == Bounds(min=-3, max=3, steps=7)
    assert faction_bounds(Faction(id="f", name="F", steps=9)).max == 4


@pytest.mark.unit
@pytest.mark.parametrize("value, expected", [(-10, -3), (-3, -3), (0, 0), (2, 2), (4, 3)])
def test_clamp(value, expected):
    assert clamp(value, bounds(7)) == expected


@pytest.mark.unit
def test_initial_value():
    assert initial_value(Faction(id="f", name="F", steps=9)) == 0
    assert initial_value(Faction(id="f", name="F", steps=9, start_at_neutral=False)) == -4


@pytest.mark.unit
@pytest.mark.parametrize(
    "mode, per_subject_default, expected",
    [
        (StorageMode.SHARED, True, StorageMode.SHARED),
        (StorageMode.PER_SUBJECT, False, StorageMode.PER_SUBJECT),
        (StorageMode.INHERIT, True, StorageMode.PER_SUBJECT),
        (StorageMode.INHERIT, False, StorageMode.SHARED),
    ],
)
def test_resolve_storage_mode(mode, per_subject_default, expected):
    faction = Faction(id="f", name="F", storage_mode=mode)

    assert resolve_storage_mode(faction, per_subject_default) is expected


@pytest.mark.unit
def test_resolve_storage_mode_without_faction_uses_default():
    assert resolve_storage_mode(None, True) is StorageMode.PER_SUBJECT
    assert resolve_storage_mode(None, False) is StorageMode.SHARED
