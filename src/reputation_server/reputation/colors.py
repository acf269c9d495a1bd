"""Color ramps for standing values.

Two ramps exist and they are not interchangeable:

- :func:`rank_color` is the pastel *badge* ramp used for rank labels:
  white at 0, fading toward soft red below and soft green above.
- :func:`bar_segment_color` is the saturated *bar* ramp used to paint the
  segments of a standing bar: grey at 0, dark red to pure red below,
  mid green to bright green above.

Channel values are rounded half-up so the output matches what the display
layers have always produced (``round(127.5) == 128``).
"""

from __future__ import annotations

import math
import re

NEUTRAL_RANK_COLOR = "#ffffff"
NEUTRAL_BAR_COLOR = "#6c757d"

#: Named colors accepted on the second line of a lookup table entry.
NAMED_COLORS: frozenset[str] = frozenset(
    {
        "red",
        "green",
        "blue",
        "yellow",
        "orange",
        "purple",
        "pink",
        "brown",
        "gray",
        "grey",
        "black",
        "white",
        "cyan",
        "magenta",
    }
)

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{3,8}$")
_RGB_COLOR = re.compile(r"^rgb\s*\(", re.IGNORECASE)


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def _rgb(r: float, g: float, b: float) -> str:
    return f"rgb({_round_half_up(r)}, {_round_half_up(g)}, {_round_half_up(b)})"


def _intensity(value: int, bound: int) -> float:
    """``|value| / |bound|`` limited to [0, 1]; out-of-range values saturate."""
    return min(1.0, abs(value) / abs(bound))


def rank_color(value: int, min_value: int, max_value: int) -> str:
    """Badge color for ``value`` on a ``[min_value, max_value]`` scale.

    Negative values interpolate white -> ``rgb(255, 80, 100)`` by
    ``|value| / |min_value|``; positive values interpolate white ->
    ``rgb(80, 200, 80)`` by ``value / max_value``.
    """
    if value == 0:
        return NEUTRAL_RANK_COLOR
    if value < 0:
        intensity = _intensity(value, min_value)
        return _rgb(255, 255 - 175 * intensity, 255 - 155 * intensity)
    intensity = _intensity(value, max_value)
    return _rgb(255 - 175 * intensity, 255 - 55 * intensity, 255 - 175 * intensity)


def bar_segment_color(value: int, min_value: int, max_value: int) -> str:
    """Segment color for ``value`` in a filled standing bar.

    Negative values run ``rgb(139, 69, 69)`` -> ``rgb(255, 0, 0)``; positive
    values run ``rgb(40, 167, 69)`` -> ``rgb(0, 255, 0)``; 0 is neutral grey.
    """
    if value == 0:
        return NEUTRAL_BAR_COLOR
    if value < 0:
        intensity = _intensity(value, min_value)
        return _rgb(139 + 116 * intensity, 69 - 69 * intensity, 69 - 69 * intensity)
    intensity = _intensity(value, max_value)
    return _rgb(40 - 40 * intensity, 167 + 88 * intensity, 69 - 69 * intensity)


def is_color_token(text: str) -> bool:
    """True for hex (3-8 digits), ``rgb(...)`` or a known color name."""
    candidate = text.strip()
    return bool(
        _HEX_COLOR.match(candidate)
        or _RGB_COLOR.match(candidate)
        or candidate.lower() in NAMED_COLORS
    )
