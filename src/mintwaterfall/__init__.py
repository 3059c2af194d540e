"""Conditional formatting for waterfall chart data.

Main entry points:
- ConditionalFormatting: the formatting engine (rules, thresholds, color scales)
- merge_styles: last-writer-wins style merge
- blend_colors / interpolate_color / normalize_value: color scale math

Configuration:
- load_formatting_config / apply_config: YAML configuration files
"""

from .colors import blend_colors, extract_value, interpolate_color, normalize_value
from .config import FormattingConfig, apply_config, load_formatting_config
from .exceptions import ConfigError, MintWaterfallError, ParseError, ValidationError
from .formatting import ConditionalFormatting, merge_styles
from .models import (
    ColorScale,
    CustomCondition,
    FormattingRule,
    Interpolation,
    LiteralCondition,
    Metrics,
    ScaleFamily,
    Threshold,
)
from .rules import RuleStore, ThresholdStore
from .scales import ColorScaleRegistry, default_color_scales

__version__ = "0.1.0"

__all__ = [
    # Engine
    "ConditionalFormatting",
    "merge_styles",
    # Stores
    "ColorScaleRegistry",
    "RuleStore",
    "ThresholdStore",
    "default_color_scales",
    # Models
    "ColorScale",
    "CustomCondition",
    "FormattingRule",
    "Interpolation",
    "LiteralCondition",
    "Metrics",
    "ScaleFamily",
    "Threshold",
    # Color math
    "blend_colors",
    "extract_value",
    "interpolate_color",
    "normalize_value",
    # Configuration
    "FormattingConfig",
    "apply_config",
    "load_formatting_config",
    # Errors
    "ConfigError",
    "MintWaterfallError",
    "ParseError",
    "ValidationError",
]
