"""Formatting configuration files.

A configuration file (``mintwaterfall.yaml``) declares extra color scales, the
current scale, rules, thresholds and a value format template::

    color_scales:
      brand: {type: sequential, domain: [0, 1], range: ["#ffffff", "#0055aa"]}
    color_scale: greenRed
    rules:
      - {id: big-loss, operator: "<", value: -100, style: {stroke: "#c0392b"}, priority: 10}
    thresholds:
      - {id: target, value: 1000, operator: ">=", style: {opacity: 1.0}}
    value_format: "{:,.0f}"

Only literal conditions can be written in YAML; callback conditions are
registered from Python.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .colors import parse_hex_color
from .exceptions import ConfigError, ParseError
from .logger import get_logger
from .models import ColorScale, Interpolation, ScaleFamily, ValueFormatter
from .scales import DEFAULT_SCALE_NAMES

if TYPE_CHECKING:
    from .formatting import ConditionalFormatting

logger = get_logger()

CONFIG_FILENAME = "mintwaterfall.yaml"

RuleOperator = Literal[">", ">=", "<", "<=", "==", "===", "!=", "!=="]
ThresholdOperator = Literal[">", ">=", "<", "<=", "==", "==="]


class ColorScaleSchema(BaseModel):
    """Schema for a color scale declared in YAML.

    Unlike scales passed directly to the engine, these are validated.
    """

    type: ScaleFamily
    domain: list[float] = Field(min_length=2)
    range: list[str]
    interpolation: Interpolation = Interpolation.LINEAR

    @field_validator("range")
    @classmethod
    def check_colors(cls, v: list[str]) -> list[str]:
        """Ensure every color is a hex color."""
        for color in v:
            if parse_hex_color(color) is None:
                raise ValueError(f"Invalid hex color: '{color}'")
        return v

    @model_validator(mode="after")
    def check_stops(self) -> ColorScaleSchema:
        """Ensure one color per domain stop and a non-decreasing domain."""
        if len(self.range) != len(self.domain):
            raise ValueError(
                f"range has {len(self.range)} colors but domain has {len(self.domain)} stops"
            )
        if any(b < a for a, b in zip(self.domain, self.domain[1:])):
            raise ValueError("domain must be non-decreasing")
        return self

    def to_color_scale(self) -> ColorScale:
        return ColorScale(
            family=self.type,
            domain=tuple(self.domain),
            range=tuple(self.range),
            interpolation=self.interpolation,
        )


class RuleSchema(BaseModel):
    """Schema for a literal-condition rule."""

    id: str | None = None
    operator: RuleOperator
    value: Any
    style: dict[str, Any] = Field(default_factory=dict)
    priority: int = 0
    enabled: bool = True

    def to_rule_data(self) -> dict[str, Any]:
        """Return the mapping form accepted by ConditionalFormatting.add_formatting_rule."""
        return {
            "id": self.id,
            "condition": {"operator": self.operator, "value": self.value},
            "style": self.style,
            "priority": self.priority,
            "enabled": self.enabled,
        }


class ThresholdSchema(BaseModel):
    """Schema for a threshold."""

    id: str | None = None
    value: float
    operator: ThresholdOperator = ">="
    style: dict[str, Any] = Field(default_factory=dict)
    priority: int = 0


class FormattingConfig(BaseModel):
    """Complete formatting configuration."""

    color_scales: dict[str, ColorScaleSchema] = Field(default_factory=dict)
    color_scale: str | ColorScaleSchema | None = None
    rules: list[RuleSchema] = Field(default_factory=list)
    thresholds: list[ThresholdSchema] = Field(default_factory=list)
    value_format: str | None = None

    @model_validator(mode="after")
    def check_color_scale_name(self) -> FormattingConfig:
        """Ensure a scale selected by name is a preset or declared in color_scales."""
        if isinstance(self.color_scale, str):
            known = set(DEFAULT_SCALE_NAMES) | set(self.color_scales)
            if self.color_scale not in known:
                raise ValueError(
                    f"Unknown color_scale '{self.color_scale}'. "
                    f"Valid values: {', '.join(sorted(known))}"
                )
        return self


def load_formatting_config(config_path: Path | str) -> FormattingConfig:
    """Load a formatting configuration from a YAML file.

    An empty file is a valid, empty configuration.

    Raises:
        ParseError: If the file is missing or is not valid YAML
        ConfigError: If the file does not match the configuration schema
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ParseError(f"Config file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse YAML: {e}") from e

    if data is None:
        return FormattingConfig()

    if not isinstance(data, dict):
        raise ConfigError("Config must contain a dictionary at the root level")

    try:
        return FormattingConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid formatting config {config_path}: {e}") from e


def discover_config(data_path: Path | str, config_path: Path | None = None) -> Path | None:
    """Find the configuration file for a dataset.

    Search order:
    1. Explicit config_path argument (returned even if missing, so loading reports it)
    2. Dataset directory / mintwaterfall.yaml
    3. Current directory / mintwaterfall.yaml
    """
    if config_path is not None:
        return config_path

    dir_config = Path(data_path).parent / CONFIG_FILENAME
    if dir_config.exists():
        return dir_config

    cwd_config = Path(CONFIG_FILENAME)
    if cwd_config.exists():
        return cwd_config

    return None


def template_formatter(template: str) -> ValueFormatter:
    """Build a value formatter from a ``str.format`` template.

    The value is the first positional field; ``{value}`` and ``{index}`` are
    also available. Values the template cannot format are returned as str().
    """

    def formatter(value: Any, item: Any, index: int) -> str:
        try:
            return template.format(value, value=value, index=index)
        except (ValueError, TypeError, IndexError, KeyError):
            return str(value)

    return formatter


def apply_config(engine: ConditionalFormatting, config: FormattingConfig) -> ConditionalFormatting:
    """Register everything a configuration declares on an engine.

    Scales are registered first so that ``color_scale`` can name one of them.
    """
    for name, scale in config.color_scales.items():
        engine.register_color_scale(name, scale.to_color_scale())

    for rule in config.rules:
        engine.add_formatting_rule(rule.to_rule_data())

    for threshold in config.thresholds:
        engine.add_threshold(threshold.model_dump())

    if isinstance(config.color_scale, ColorScaleSchema):
        engine.set_color_scale(config.color_scale.to_color_scale())
    elif config.color_scale is not None:
        engine.set_color_scale(config.color_scale)

    if config.value_format is not None:
        engine.set_custom_formatter(template_formatter(config.value_format))

    logger.changes(
        f"Applied config: {len(config.rules)} rules, {len(config.thresholds)} thresholds"
    )
    return engine
