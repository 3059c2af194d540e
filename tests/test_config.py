"""Tests for formatting configuration files."""

from __future__ import annotations

from pathlib import Path

import pytest

from mintwaterfall.config import (
    CONFIG_FILENAME,
    ColorScaleSchema,
    FormattingConfig,
    apply_config,
    discover_config,
    load_formatting_config,
    template_formatter,
)
from mintwaterfall.exceptions import ConfigError, ParseError
from mintwaterfall.formatting import ConditionalFormatting
from mintwaterfall.models import ScaleFamily


def write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / CONFIG_FILENAME
    path.write_text(content)
    return path


class TestLoadFormattingConfig:
    """Test loading and validating config files."""

    def test_example_config(self, examples_dir: Path) -> None:
        config = load_formatting_config(examples_dir / CONFIG_FILENAME)

        assert config.color_scale == "greenRed"
        assert [rule.id for rule in config.rules] == ["large-loss", "any-loss"]
        assert config.rules[0].priority == 10
        assert config.thresholds[0].operator == ">="
        assert config.value_format == "{:+,.0f}"

    def test_empty_file(self, tmp_path: Path) -> None:
        config = load_formatting_config(write_config(tmp_path, ""))
        assert config == FormattingConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError, match="not found"):
            load_formatting_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError, match="Failed to parse YAML"):
            load_formatting_config(write_config(tmp_path, "rules: [unclosed"))

    def test_non_dict_root(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="dictionary"):
            load_formatting_config(write_config(tmp_path, "- a\n- b\n"))

    def test_invalid_rule_operator(self, tmp_path: Path) -> None:
        content = """
rules:
  - operator: "<>"
    value: 0
"""
        with pytest.raises(ConfigError):
            load_formatting_config(write_config(tmp_path, content))

    def test_threshold_rejects_inequality_operator(self, tmp_path: Path) -> None:
        content = """
thresholds:
  - value: 0
    operator: "!="
"""
        with pytest.raises(ConfigError):
            load_formatting_config(write_config(tmp_path, content))

    def test_unknown_scale_name(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Unknown color_scale 'magma'"):
            load_formatting_config(write_config(tmp_path, "color_scale: magma\n"))

    def test_declared_scale_name_is_accepted(self, tmp_path: Path) -> None:
        content = """
color_scales:
  brand:
    type: sequential
    domain: [0, 1]
    range: ["#ffffff", "#0055aa"]
color_scale: brand
"""
        config = load_formatting_config(write_config(tmp_path, content))

        assert config.color_scale == "brand"
        assert config.color_scales["brand"].type == ScaleFamily.SEQUENTIAL


class TestColorScaleSchema:
    """Test validation of declared color scales."""

    def test_length_mismatch(self) -> None:
        with pytest.raises(ValueError, match="range has 2 colors but domain has 3 stops"):
            ColorScaleSchema.model_validate(
                {"type": "diverging", "domain": [-1, 0, 1], "range": ["#000", "#fff"]}
            )

    def test_decreasing_domain(self) -> None:
        with pytest.raises(ValueError, match="non-decreasing"):
            ColorScaleSchema.model_validate(
                {"type": "sequential", "domain": [1, 0], "range": ["#000", "#fff"]}
            )

    def test_invalid_color(self) -> None:
        with pytest.raises(ValueError, match="Invalid hex color"):
            ColorScaleSchema.model_validate(
                {"type": "sequential", "domain": [0, 1], "range": ["#000", "blue"]}
            )

    def test_unknown_family(self) -> None:
        with pytest.raises(ValueError):
            ColorScaleSchema.model_validate(
                {"type": "radial", "domain": [0, 1], "range": ["#000", "#fff"]}
            )

    def test_to_color_scale(self) -> None:
        schema = ColorScaleSchema.model_validate(
            {"type": "sequential", "domain": [0, 1], "range": ["#000", "#fff"]}
        )

        scale = schema.to_color_scale()

        assert scale.family == ScaleFamily.SEQUENTIAL
        assert scale.domain == (0.0, 1.0)
        assert scale.range == ("#000", "#fff")


class TestTemplateFormatter:
    """Test value format templates."""

    def test_positional_field(self) -> None:
        assert template_formatter("{:+,.0f}")(1200, {}, 0) == "+1,200"

    def test_named_fields(self) -> None:
        assert template_formatter("#{index}: {value}")(5, {}, 2) == "#2: 5"

    def test_unformattable_value_falls_back_to_str(self) -> None:
        assert template_formatter("{:,.2f}")("n/a", {}, 0) == "n/a"


class TestApplyConfig:
    """Test registering a config on an engine."""

    def test_example_config(self, examples_dir: Path) -> None:
        engine = apply_config(
            ConditionalFormatting(), load_formatting_config(examples_dir / CONFIG_FILENAME)
        )

        result = engine.apply_formatting([{"value": 1200}, {"value": -410}])

        assert result[0]["formatted_value"] == "+1,200"
        assert result[0]["computed_color"] == "#2ecc71"
        assert result[0]["conditional_style"]["font_weight"] == "bold"
        assert [rule.id for rule in result[1]["applied_rules"]] == ["large-loss", "any-loss"]
        assert result[1]["conditional_style"]["opacity"] == 0.8
        assert result[1]["formatted_value"] == "-410"

    def test_inline_color_scale(self) -> None:
        config = FormattingConfig.model_validate(
            {
                "color_scale": {
                    "type": "sequential",
                    "domain": [0, 1],
                    "range": ["#000000", "#ffffff"],
                }
            }
        )
        engine = apply_config(ConditionalFormatting(), config)

        result = engine.apply_formatting([{"value": 1}, {"value": 3}, {"value": 2}])

        assert [item["computed_color"] for item in result] == ["#000000", "#ffffff", "#808080"]

    def test_declared_scale_is_registered(self) -> None:
        config = FormattingConfig.model_validate(
            {
                "color_scales": {
                    "brand": {"type": "sequential", "domain": [0, 1], "range": ["#fff", "#05a"]}
                }
            }
        )

        engine = apply_config(ConditionalFormatting(), config)

        assert "brand" in engine.color_scales
        assert engine.get_color_scale() is None

    def test_rules_count_as_registrations(self, examples_dir: Path) -> None:
        engine = apply_config(
            ConditionalFormatting(), load_formatting_config(examples_dir / CONFIG_FILENAME)
        )
        assert engine.get_metrics()["rules_applied"] == 2


class TestDiscoverConfig:
    """Test config file discovery."""

    def test_explicit_path_wins(self, tmp_path: Path) -> None:
        explicit = tmp_path / "other.yaml"
        assert discover_config(tmp_path / "data.yaml", explicit) == explicit

    def test_dataset_directory(self, tmp_path: Path) -> None:
        config_path = write_config(tmp_path, "")
        assert discover_config(tmp_path / "data.yaml") == config_path

    def test_current_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        write_config(tmp_path, "")
        monkeypatch.chdir(tmp_path)

        assert discover_config(data_dir / "data.yaml") == Path(CONFIG_FILENAME)

    def test_none_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert discover_config(tmp_path / "data" / "data.yaml") is None
