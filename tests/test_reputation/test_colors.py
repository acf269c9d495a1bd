"""Tests for the rank badge and bar segment color ramps."""

import re

import pytest

from reputation_server.reputation.colors import (
    NEUTRAL_BAR_COLOR,
    NEUTRAL_RANK_COLOR,
    bar_segment_color,
    is_color_token,
    rank_color,
)


@pytest.mark.unit
class TestRankColor:
    """Pastel badge ramp."""

    def test_zero_is_white(self):
        assert rank_color(0, -3, 3) == NEUTRAL_RANK_COLOR == "#ffffff"

    def test_extremes(self):
        assert rank_color(-3, -3, 3) == "rgb(255, 80, 100)"
        assert rank_color(3, -3, 3) == "rgb(80, 200, 80)"

    def test_partial_intensity(self):
        assert rank_color(1, -3, 3) == "rgb(197, 237, 197)"

    def test_rounds_half_up(self):
        # intensity 0.5: 255 - 87.5 = 167.5, 255 - 77.5 = 177.5
        assert rank_color(-1, -2, 2) == "rgb(255, 168, 178)"


@pytest.mark.unit
class TestBarSegmentColor:
    """Saturated bar ramp."""

    def test_zero_is_grey(self):
        assert bar_segment_color(0, -3, 3) == NEUTRAL_BAR_COLOR == "#6c757d"

    def test_extremes(self):
        assert bar_segment_color(-3, -3, 3) == "rgb(255, 0, 0)"
        assert bar_segment_color(3, -3, 3) == "rgb(0, 255, 0)"

    def test_partial_intensity(self):
        assert bar_segment_color(1, -3, 3) == "rgb(27, 196, 46)"

    def test_ramps_differ_from_badges(self):
        assert bar_segment_color(2, -3, 3) != rank_color(2, -3, 3)


# ============================================================================
# RAMP SHAPE
# ============================================================================

ODD_STEPS = list(range(3, 22, 2))
_RGB = re.compile(r"^rgb\((\d+), (\d+), (\d+)\)$")


def _channels(color: str) -> tuple[int, int, int]:
    if color.startswith("#"):
        return tuple(int(color[i : i + 2], 16) for i in (1, 3, 5))
    match = _RGB.match(color)
    assert match, color
    return tuple(int(part) for part in match.groups())


def _is_monotonic(values: list[int]) -> bool:
    rising = all(a <= b for a, b in zip(values, values[1:]))
    falling = all(a >= b for a, b in zip(values, values[1:]))
    return rising or falling


def _walks(steps: int) -> list[list[int]]:
    """Values from 0 out to each bound, nearest first."""
    half = steps // 2
    return [list(range(0, -half - 1, -1)), list(range(0, half + 1))]


@pytest.mark.unit
@pytest.mark.parametrize("steps", ODD_STEPS)
def test_rank_color_moves_away_from_white(steps):
    half = steps // 2
    for walk in _walks(steps):
        colors = [_channels(rank_color(v, -half, half)) for v in walk]
        for channel in range(3):
            values = [c[channel] for c in colors]
            # white is the top of every channel, so each one only falls
            assert all(a >= b for a, b in zip(values, values[1:])), (steps, walk, values)


@pytest.mark.unit
@pytest.mark.parametrize("steps", ODD_STEPS)
def test_bar_segment_color_is_monotonic(steps):
    half = steps // 2
    for walk in _walks(steps):
        # grey at 0 is a separate token; the ramp starts at the first step
        colors = [_channels(bar_segment_color(v, -half, half)) for v in walk[1:]]
        for channel in range(3):
            assert _is_monotonic([c[channel] for c in colors]), (steps, walk)


@pytest.mark.unit
@pytest.mark.parametrize("steps", ODD_STEPS)
def test_colors_stay_in_channel_range(steps):
    half = steps // 2
    for value in range(-half, half + 1):
        for color in (rank_color(value, -half, half), bar_segment_color(value, -half, half)):
            assert all(0 <= c <= 255 for c in _channels(color))


@pytest.mark.unit
def test_values_past_the_bound_saturate():
    assert rank_color(5, -1, 1) == rank_color(1, -1, 1) == "rgb(80, 200, 80)"
    assert rank_color(-9, -3, 3) == rank_color(-3, -3, 3)
    assert bar_segment_color(5, -1, 1) == "rgb(0, 255, 0)"
    assert bar_segment_color(-5, -1, 1) == "rgb(255, 0, 0)"


@pytest.mark.unit
@pytest.mark.parametrize(
    "text, expected",
    [
        ("#fff", True),
        ("#228B22", True),
        ("#228B22AA", True),
        ("rgb(1, 2, 3)", True),
        ("RGB (1,2,3)", True),
        ("Red", True),
        ("  grey ", True),
        ("#12", False),
        ("#GGGGGG", False),
        ("Friendly", False),
        ("", False),
    ],
)
def test_is_color_token(text, expected):
    assert is_color_token(text) is expected
