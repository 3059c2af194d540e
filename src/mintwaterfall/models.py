"""Data models for conditional formatting."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

DEFAULT_THRESHOLD_OPERATOR = ">="

# (value, item, index, dataset) -> bool
ConditionFunc = Callable[[Any, Any, int, Any], Any]
# (value, item, index) -> formatted value
ValueFormatter = Callable[[Any, Any, int], Any]


class ScaleFamily(str, Enum):
    """How a raw value is normalized before interpolation."""

    SEQUENTIAL = "sequential"  # (value - min) / (max - min)
    DIVERGING = "diverging"  # value / max(|v|), keeps the sign


class Interpolation(str, Enum):
    """Interpolation mode between adjacent color stops."""

    LINEAR = "linear"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_field(obj: Any, key: str) -> Any:
    """Read key from a mapping, or the attribute of that name from any other object."""
    if isinstance(obj, Mapping):
        return obj.get(key)  # type: ignore[union-attr]
    return getattr(obj, key, None)


def _coerce_enum(enum_type: type[Enum], value: Any) -> Any:
    """Return the enum member for value, or value itself if it is not a member."""
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class ColorScale:
    """A piecewise-linear color scale.

    Well-formed scales have at least two domain stops, a non-decreasing domain
    and one color per stop. Scales supplied directly by callers are not
    validated; the interpolator tolerates malformed ones.
    """

    family: ScaleFamily | str | None
    domain: tuple[float, ...]
    range: tuple[str, ...]
    interpolation: Interpolation | str = Interpolation.LINEAR

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ColorScale:
        """Build a scale from its plain form: {type, domain, range, interpolation}.

        ``family`` is accepted as an alias for ``type``. Unknown families are
        kept verbatim so that the scale can still be selected and exported.
        """
        family = data.get("type", data.get("family"))
        return cls(
            family=_coerce_enum(ScaleFamily, family),
            domain=tuple(data.get("domain") or ()),
            range=tuple(data.get("range") or ()),
            interpolation=_coerce_enum(Interpolation, data.get("interpolation", "linear")),
        )

    @classmethod
    def coerce(cls, scale: Any) -> ColorScale | None:
        """Accept a ColorScale, a mapping, or any object with scale attributes."""
        if scale is None or isinstance(scale, ColorScale):
            return scale
        if isinstance(scale, Mapping):
            return cls.from_mapping(scale)  # type: ignore[arg-type]
        return cls.from_mapping(
            {
                "type": get_field(scale, "family") or get_field(scale, "type"),
                "domain": get_field(scale, "domain"),
                "range": get_field(scale, "range"),
                "interpolation": get_field(scale, "interpolation") or "linear",
            }
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the plain form of this scale."""
        family = self.family.value if isinstance(self.family, ScaleFamily) else self.family
        interpolation = (
            self.interpolation.value
            if isinstance(self.interpolation, Interpolation)
            else self.interpolation
        )
        return {
            "type": family,
            "domain": list(self.domain),
            "range": list(self.range),
            "interpolation": interpolation,
        }


@dataclass(frozen=True)
class LiteralCondition:
    """Structural comparison of the item value against a single operand.

    An operator of None never matches; it stands in for condition shapes
    that cannot be evaluated.
    """

    operator: str | None
    value: Any = None


@dataclass(frozen=True)
class CustomCondition:
    """Arbitrary predicate called as callback(value, item, index, dataset)."""

    callback: ConditionFunc


Condition = LiteralCondition | CustomCondition


def to_condition(raw: Any) -> Condition:
    """Resolve a raw condition into its tagged form.

    - LiteralCondition / CustomCondition: returned as-is
    - callable: CustomCondition
    - mapping with 'operator' and 'value': LiteralCondition
    - anything else: a LiteralCondition that never matches
    """
    if isinstance(raw, (LiteralCondition, CustomCondition)):
        return raw
    if callable(raw):
        return CustomCondition(raw)
    if isinstance(raw, Mapping):
        return LiteralCondition(raw.get("operator"), raw.get("value"))  # type: ignore[union-attr]
    return LiteralCondition(None)


@dataclass(frozen=True)
class FormattingRule:
    """A declarative style applied when its condition matches an item."""

    id: str
    condition: Condition
    style: dict[str, Any] = field(default_factory=dict)
    priority: int = 0
    enabled: bool = True
    created_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, default_id: str) -> FormattingRule:
        """Build a rule from {id, condition, style, priority, enabled}.

        Missing priority defaults to 0; only an explicit ``enabled: False``
        disables the rule.
        """
        created_at = data.get("created_at")
        return cls(
            id=str(data.get("id") or default_id),
            condition=to_condition(data.get("condition")),
            style=dict(data.get("style") or {}),
            priority=data.get("priority") or 0,
            enabled=data.get("enabled") is not False,
            created_at=created_at if isinstance(created_at, datetime) else _utcnow(),
        )


@dataclass(frozen=True)
class Threshold:
    """A single-condition style trigger, evaluated in insertion order."""

    id: str
    value: Any
    operator: str = DEFAULT_THRESHOLD_OPERATOR
    style: dict[str, Any] = field(default_factory=dict)
    priority: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, default_id: str) -> Threshold:
        """Build a threshold from {id, value, operator, style, priority}."""
        return cls(
            id=str(data.get("id") or default_id),
            value=data.get("value"),
            operator=data.get("operator") or DEFAULT_THRESHOLD_OPERATOR,
            style=dict(data.get("style") or {}),
            priority=data.get("priority") or 0,
        )


@dataclass
class Metrics:
    """Counters owned by a formatting engine.

    ``rules_applied`` counts rule registrations, not matches.
    """

    rules_applied: int = 0
    processing_time_ms: float = 0.0
    last_update: datetime | None = None
