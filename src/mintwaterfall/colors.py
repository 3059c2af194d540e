"""Value normalization and color interpolation for conditional formatting."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from .models import ColorScale, ScaleFamily, get_field

HEX_COLOR_SHORT_LENGTH = 3  # Length of shorthand hex colors (#RGB)
HEX_COLOR_FULL_LENGTH = 6  # Length of full hex colors (#RRGGBB)
CHANNEL_MAX = 255


# ============================================================================
# Value extraction
# ============================================================================


def extract_value(item: Any) -> Any:
    """Get the value a data item is formatted by.

    Uses ``item['value']``, then the first stack's value
    (``item['stacks'][0]['value']``), then 0. Falsy values fall through to
    the next source, so a direct value of 0 defers to the stack value.
    """
    direct = get_field(item, "value")
    if direct:
        return direct

    stacks = get_field(item, "stacks")
    if isinstance(stacks, Sequence) and not isinstance(stacks, str) and stacks:
        nested = get_field(stacks[0], "value")
        if nested:
            return nested

    return 0


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


# ============================================================================
# Normalizer
# ============================================================================


def _ratio(numerator: float, denominator: float) -> float:
    """Divide like IEEE floats: x/0 is +-inf and 0/0 is NaN."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def normalize_value(value: Any, values: Sequence[Any], scale: ColorScale) -> float | None:
    """Map a raw value to a position in the scale's coordinate space.

    Sequential scales use min/max over the whole dataset, not the scale's own
    domain. Diverging scales divide by the largest magnitude, keeping the sign
    so that negative values land in the lower half of a domain like [-1, 0, 1].

    A flat dataset produces a non-finite position instead of raising. A
    dataset holding any non-numeric value has no extent, so every item gets a
    NaN position regardless of where that value sits.

    Args:
        value: Value being colored
        values: Extracted values of every item in the dataset
        scale: Scale whose family selects the normalization

    Returns:
        The position, or None when the scale family is unknown
    """
    numbers = [_as_float(v) for v in values]
    position = _as_float(value)

    if scale.family == ScaleFamily.SEQUENTIAL:
        if not numbers or any(math.isnan(n) for n in numbers):
            return math.nan
        low = min(numbers)
        high = max(numbers)
        return _ratio(position - low, high - low)

    if scale.family == ScaleFamily.DIVERGING:
        if not numbers or any(math.isnan(n) for n in numbers):
            return math.nan
        peak = max(abs(n) for n in numbers)
        return _ratio(position, peak)

    return None


# ============================================================================
# Interpolator
# ============================================================================


def parse_hex_color(color: Any) -> tuple[int, int, int] | None:
    """Parse '#rrggbb' (or '#rgb', with or without '#') into RGB channels.

    Returns:
        (r, g, b) in 0..255, or None if the color is not a hex color
    """
    if not isinstance(color, str):
        return None

    hex_color = color.strip().lstrip("#")
    if len(hex_color) == HEX_COLOR_SHORT_LENGTH:
        hex_color = "".join(c * 2 for c in hex_color)
    elif len(hex_color) != HEX_COLOR_FULL_LENGTH:
        return None

    try:
        return (
            int(hex_color[0:2], 16),
            int(hex_color[2:4], 16),
            int(hex_color[4:6], 16),
        )
    except ValueError:
        return None


def _round_half_up(x: float) -> int:
    # Python's round() is banker's rounding; channel math rounds .5 up
    return math.floor(x + 0.5)


def blend_colors(color_a: str, color_b: str, t: float) -> str:
    """Linearly blend two hex colors channel by channel in raw sRGB space.

    No gamma correction and no alpha. ``t == 0`` returns ``color_a`` and
    ``t == 1`` returns ``color_b`` unchanged. If either color cannot be parsed
    (or t is NaN), ``color_a`` is returned, as it is when both colors are the
    same, so that blending a color with itself keeps its spelling.

    Example:
        blend_colors('#000000', '#ffffff', 0.5)  # '#808080'
    """
    if t == 0:
        return color_a
    if t == 1:
        return color_b
    if math.isnan(t):
        return color_a

    rgb_a = parse_hex_color(color_a)
    rgb_b = parse_hex_color(color_b)
    if rgb_a is None or rgb_b is None:
        return color_a
    if rgb_a == rgb_b:
        return color_a

    channels = [
        min(CHANNEL_MAX, max(0, _round_half_up(c1 + (c2 - c1) * t)))
        for c1, c2 in zip(rgb_a, rgb_b)
    ]
    return "#{:02x}{:02x}{:02x}".format(*channels)


def interpolate_color(position: float | None, scale: ColorScale) -> str | None:
    """Pick the color for a normalized position.

    The first domain segment [d[i], d[i+1]] containing the position (inclusive)
    is blended at its local fraction. Positions outside the domain clamp to the
    first or last color; NaN is treated as below the domain. A range shorter
    than the domain reuses its last color for the missing stops. Non-numeric
    stops never match a segment. When the domain repeats its last stop, the
    earlier segment wins at that position.

    Returns:
        A hex color, or None if the scale has no colors at all
    """
    domain = [_as_float(stop) for stop in scale.domain]
    colors = scale.range
    if not colors:
        return None

    last_color = len(colors) - 1

    def color_at(index: int) -> str:
        return colors[min(index, last_color)]

    if position is None or math.isnan(position):
        return colors[0]

    for i in range(len(domain) - 1):
        low, high = domain[i], domain[i + 1]
        if low <= position <= high:
            span = high - low
            t = (position - low) / span if span else 0.0
            return blend_colors(color_at(i), color_at(i + 1), t)

    if not domain or position <= domain[0]:
        return colors[0]
    if position >= domain[-1]:
        return colors[-1]

    return colors[0]
