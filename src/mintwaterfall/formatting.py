"""Conditional formatting engine for waterfall chart data.

Turns each data item into a styled record:

1. ``computed_color`` from the current color scale (normalize, then interpolate)
2. ``applied_rules``: matching enabled rules, highest priority first
3. ``threshold_styles``: matching thresholds, in insertion order
4. ``formatted_value`` from the custom formatter, if one is set
5. ``conditional_style``: all of the above merged, later sources winning

Because the merge is last-writer-wins and rules are listed highest priority
first, a lower-priority rule or any threshold overrides a higher-priority
rule's conflicting keys. Callers depend on this ordering.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from .colors import extract_value, interpolate_color, normalize_value
from .logger import checks_enabled, get_logger
from .models import (
    ColorScale,
    FormattingRule,
    Metrics,
    Threshold,
    ValueFormatter,
    get_field,
)
from .rules import RuleStore, ThresholdStore
from .scales import ColorScaleRegistry

logger = get_logger()

_UNSET: Any = object()


def merge_styles(styles: Iterable[Mapping[str, Any] | None]) -> dict[str, Any]:
    """Fold partial styles left to right; later keys overwrite earlier ones."""
    merged: dict[str, Any] = {}
    for style in styles:
        if style:
            merged.update(style)
    return merged


def _copy_fields(item: Any) -> dict[str, Any]:
    if isinstance(item, Mapping):
        return dict(item)  # type: ignore[arg-type]
    if hasattr(item, "__dict__"):
        return dict(vars(item))
    return {}


class ConditionalFormatting:
    """Conditional formatting feature for a waterfall chart.

    Owns its rule store, threshold store, color scale registry, current scale
    and custom formatter. Attach it to a chart with :meth:`initialize` to
    expose ``color_scale``, ``add_rule``, ``remove_rule``, ``add_threshold``
    and ``format_value`` on the chart object.

    Not thread-safe: mutating rules while a formatting pass runs is undefined.
    """

    id = "conditional-formatting"
    name = "Conditional Formatting"
    version = "1.0.0"

    def __init__(self) -> None:
        self.enabled = False
        self.host: Any = None
        self.rules = RuleStore()
        self.thresholds = ThresholdStore()
        self.color_scales = ColorScaleRegistry()
        self.metrics = Metrics()
        self._custom_formatter: ValueFormatter | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, host: Any) -> ConditionalFormatting:
        """Attach to a chart object and install the formatting hooks on it."""
        self.host = host
        self.enabled = True
        self._extend_host_api()
        logger.changes(f"{self.name} feature initialized")
        return self

    def _extend_host_api(self) -> None:
        host = self.host
        if host is None:
            return

        def color_scale(scale: Any = _UNSET) -> Any:
            if scale is _UNSET:
                return self.get_color_scale()
            return self.set_color_scale(scale)

        def format_value(formatter: Any = _UNSET) -> Any:
            if formatter is _UNSET:
                return self.get_custom_formatter()
            return self.set_custom_formatter(formatter)

        host.color_scale = color_scale
        host.add_rule = self.add_formatting_rule
        host.remove_rule = self.remove_formatting_rule
        host.add_threshold = self.add_threshold
        host.format_value = format_value

    def _chain(self) -> Any:
        return self.host if self.host is not None else self

    def cleanup(self) -> None:
        """Drop rules, thresholds and the custom formatter, and disable the feature."""
        self.rules.clear()
        self.thresholds.clear()
        self._custom_formatter = None
        self.enabled = False

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def add_formatting_rule(self, rule: FormattingRule | Mapping[str, Any]) -> Any:
        """Register a rule ({id, condition, style, priority, enabled}).

        Returns the host chart when attached, otherwise the engine, for chaining.
        """
        added = self.rules.add(rule)
        self.metrics.rules_applied += 1
        logger.changes(f"Added rule '{added.id}' (priority={added.priority})")
        return self._chain()

    def remove_formatting_rule(self, rule_id: str) -> Any:
        if self.rules.remove(rule_id):
            logger.changes(f"Removed rule '{rule_id}'")
        return self._chain()

    def add_threshold(self, threshold: Threshold | Mapping[str, Any]) -> Any:
        """Register a threshold ({id, value, operator, style, priority})."""
        added = self.thresholds.add(threshold)
        logger.changes(f"Added threshold '{added.id}' ({added.operator} {added.value})")
        return self._chain()

    def remove_threshold(self, threshold_id: str) -> Any:
        if self.thresholds.remove(threshold_id):
            logger.changes(f"Removed threshold '{threshold_id}'")
        return self._chain()

    def register_color_scale(self, name: str, scale: ColorScale | Mapping[str, Any]) -> Any:
        self.color_scales.register(name, scale)
        return self._chain()

    def set_color_scale(self, scale: str | ColorScale | Mapping[str, Any] | None) -> Any:
        """Select the current scale by preset name or by passing a scale object."""
        self.color_scales.set_current(scale)
        return self._chain()

    def get_color_scale(self) -> ColorScale | None:
        return self.color_scales.get_current()

    def set_custom_formatter(self, formatter: ValueFormatter | None) -> Any:
        """Set the value formatter, called as formatter(value, item, index).

        Non-callables are ignored.
        """
        if callable(formatter):
            self._custom_formatter = formatter
        return self._chain()

    def get_custom_formatter(self) -> ValueFormatter | None:
        return self._custom_formatter

    # ------------------------------------------------------------------
    # Formatting pipeline
    # ------------------------------------------------------------------

    def apply_formatting(self, data: Any) -> Any:
        """Format every item of a dataset.

        Input that is not a list or tuple is returned unchanged. Otherwise
        returns a new list of the same length and order; the input items are
        not modified.
        """
        start = time.perf_counter()

        if not isinstance(data, (list, tuple)):
            return data

        scale = self.color_scales.get_current()
        values = [extract_value(item) for item in data]
        formatted = [
            self._format_item(item, index, data, values, scale) for index, item in enumerate(data)
        ]

        self.metrics.processing_time_ms = (time.perf_counter() - start) * 1000
        self.metrics.last_update = datetime.now(timezone.utc)
        logger.debug(
            f"Formatted {len(formatted)} items in {self.metrics.processing_time_ms:.3f} ms"
        )
        return formatted

    def _format_item(
        self,
        item: Any,
        index: int,
        data: Any,
        values: list[Any],
        scale: ColorScale | None,
    ) -> dict[str, Any]:
        formatted = _copy_fields(item)
        value = values[index]

        color = self._compute_color(value, values, scale) if scale is not None else None
        if color is not None:
            formatted["computed_color"] = color

        applied_rules = self.rules.evaluate(value, item, index, data)
        threshold_styles = self.thresholds.evaluate(value)
        formatted["applied_rules"] = applied_rules
        formatted["threshold_styles"] = threshold_styles

        if self._custom_formatter is not None:
            formatted["formatted_value"] = self._custom_formatter(value, item, index)

        formatted["conditional_style"] = merge_styles(
            [
                {"color": color} if color else {},
                *(rule.style for rule in applied_rules),
                *(threshold.style for threshold in threshold_styles),
            ]
        )

        if checks_enabled():
            label = get_field(item, "label")
            logger.checks(
                f"Item {index}{f' ({label})' if label else ''} value={value}: "
                f"rules={[r.id for r in applied_rules]} "
                f"thresholds={[t.id for t in threshold_styles]}"
            )
        return formatted

    def _compute_color(self, value: Any, values: list[Any], scale: ColorScale) -> str | None:
        position = normalize_value(value, values, scale)
        if position is None:
            logger.debug(f"Scale family {scale.family!r} is not supported, no color computed")
            return None
        return interpolate_color(position, scale)

    # ------------------------------------------------------------------
    # Metrics and import/export
    # ------------------------------------------------------------------

    def get_metrics(self) -> dict[str, Any]:
        """Snapshot of the metrics plus store sizes."""
        return {
            **asdict(self.metrics),
            "rules_count": len(self.rules),
            "thresholds_count": len(self.thresholds),
            "color_scales_count": len(self.color_scales),
        }

    def export_config(self) -> dict[str, Any]:
        """Export every store as ordered (id, value) pairs plus the current scale."""
        return {
            "rules": self.rules.items(),
            "color_scales": self.color_scales.items(),
            "thresholds": self.thresholds.items(),
            "current_color_scale": self.color_scales.get_current(),
        }

    def import_config(self, config: Mapping[str, Any]) -> ConditionalFormatting:
        """Replace stores from an exported config.

        Each store is replaced wholesale when its key is present; missing keys
        keep the current state. Imported rules do not count as registrations.
        """
        if config.get("rules") is not None:
            self.rules.replace(config["rules"])
        if config.get("color_scales") is not None:
            self.color_scales.replace(config["color_scales"])
        if config.get("thresholds") is not None:
            self.thresholds.replace(config["thresholds"])
        if config.get("current_color_scale") is not None:
            self.color_scales.set_current(config["current_color_scale"])
        logger.changes(
            f"Imported config: {len(self.rules)} rules, {len(self.thresholds)} thresholds, "
            f"{len(self.color_scales)} color scales"
        )
        return self
