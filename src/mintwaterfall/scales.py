"""Named color scales and the current-scale selection."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from .logger import get_logger
from .models import ColorScale, Interpolation, ScaleFamily

logger = get_logger()


def default_color_scales() -> dict[str, ColorScale]:
    """Build the built-in presets.

    - greenRed: signed values, red below zero, amber at zero, green above
    - blues: pale to saturated blue
    - performance: red-yellow-green over [0, 1]
    - viridis: four-stop perceptual ramp
    """
    return {
        "greenRed": ColorScale(
            family=ScaleFamily.DIVERGING,
            domain=(-1, 0, 1),
            range=("#e74c3c", "#f39c12", "#2ecc71"),
            interpolation=Interpolation.LINEAR,
        ),
        "blues": ColorScale(
            family=ScaleFamily.SEQUENTIAL,
            domain=(0, 1),
            range=("#ecf0f1", "#3498db"),
            interpolation=Interpolation.LINEAR,
        ),
        "performance": ColorScale(
            family=ScaleFamily.DIVERGING,
            domain=(0, 0.5, 1),
            range=("#e74c3c", "#f1c40f", "#2ecc71"),
            interpolation=Interpolation.LINEAR,
        ),
        "viridis": ColorScale(
            family=ScaleFamily.SEQUENTIAL,
            domain=(0, 1 / 3, 2 / 3, 1),
            range=("#440154", "#31688e", "#35b779", "#fde725"),
            interpolation=Interpolation.LINEAR,
        ),
    }


DEFAULT_SCALE_NAMES = tuple(default_color_scales())


class ColorScaleRegistry:
    """Insertion-ordered store of named color scales plus the current selection.

    Every registry starts with its own copy of the presets.
    """

    def __init__(self, scales: Mapping[str, Any] | None = None) -> None:
        self._scales: dict[str, ColorScale] = default_color_scales()
        self._current: ColorScale | None = None
        for name, scale in (scales or {}).items():
            self.register(name, scale)

    def __contains__(self, name: object) -> bool:
        return name in self._scales

    def __iter__(self) -> Iterator[str]:
        return iter(self._scales)

    def __len__(self) -> int:
        return len(self._scales)

    def register(self, name: str, scale: ColorScale | Mapping[str, Any]) -> ColorScale | None:
        """Register (or replace) a named scale. The scale is not validated."""
        coerced = ColorScale.coerce(scale)
        if coerced is None:
            return None
        self._scales[name] = coerced
        logger.changes(f"Registered color scale '{name}'")
        return coerced

    def get(self, name: str) -> ColorScale | None:
        """Get a scale by name, or None if not registered."""
        return self._scales.get(name)

    def names(self) -> list[str]:
        """Registered scale names in registration order."""
        return list(self._scales)

    def items(self) -> list[tuple[str, ColorScale]]:
        """(name, scale) pairs in registration order."""
        return list(self._scales.items())

    def replace(self, pairs: Iterable[tuple[str, Any]]) -> None:
        """Replace every registered scale with the given (name, scale) pairs.

        The current selection is left untouched.
        """
        scales: dict[str, ColorScale] = {}
        for name, scale in pairs:
            coerced = ColorScale.coerce(scale)
            if coerced is not None:
                scales[name] = coerced
        self._scales = scales

    def set_current(self, scale: str | ColorScale | Mapping[str, Any] | None) -> ColorScale | None:
        """Select the current scale by preset name or by passing a scale directly.

        An unknown name clears the selection, so no colors are computed.
        """
        if isinstance(scale, str):
            self._current = self._scales.get(scale)
            if self._current is None:
                logger.warning(f"Unknown color scale '{scale}', color scale cleared")
            else:
                logger.changes(f"Selected color scale '{scale}'")
        else:
            self._current = ColorScale.coerce(scale)
            if self._current is None:
                logger.changes("Color scale cleared")
            else:
                logger.changes("Selected custom color scale")
        return self._current

    def get_current(self) -> ColorScale | None:
        """Get the current scale, or None if none is selected."""
        return self._current
