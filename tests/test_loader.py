"""Tests for dataset loading and output serialization."""

from __future__ import annotations

from pathlib import Path

import pytest

from mintwaterfall.exceptions import ParseError
from mintwaterfall.formatting import ConditionalFormatting
from mintwaterfall.loader import load_dataset, to_serializable


class TestLoadDataset:
    """Test reading datasets from disk."""

    def test_example_dataset(self, examples_dir: Path) -> None:
        data = load_dataset(examples_dir / "quarterly_results.yaml")

        assert len(data) == 6
        assert data[0] == {"label": "Opening balance", "value": 1200}
        assert data[2]["stacks"] == [{"value": 180}]

    def test_top_level_list(self, tmp_path: Path) -> None:
        path = tmp_path / "data.yaml"
        path.write_text("- value: 1\n- value: -2\n")

        assert load_dataset(path) == [{"value": 1}, {"value": -2}]

    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "data.json"
        path.write_text('{"data": [{"label": "a", "value": 3.5}]}')

        assert load_dataset(path) == [{"label": "a", "value": 3.5}]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError, match="File not found"):
            load_dataset(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "data.yaml"
        path.write_text("data: [unclosed")

        with pytest.raises(ParseError, match="Failed to parse"):
            load_dataset(path)

    @pytest.mark.parametrize("content", ["value: 1\n", "data: 5\n", "42\n", ""])
    def test_bad_root(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "data.yaml"
        path.write_text(content)

        with pytest.raises(ParseError, match="list of items"):
            load_dataset(path)


class TestToSerializable:
    """Test conversion of formatted items into plain data."""

    def test_rules_and_thresholds_become_ids(self, engine: ConditionalFormatting) -> None:
        engine.set_color_scale("greenRed")
        engine.add_formatting_rule(
            {"id": "neg", "condition": {"operator": "<", "value": 0}, "style": {"opacity": 0.5}}
        )
        engine.add_threshold({"id": "low", "value": -5, "operator": "<="})

        items = to_serializable(engine.apply_formatting([{"value": -10}, {"value": 10}]))

        assert items[0]["applied_rules"] == ["neg"]
        assert items[0]["threshold_styles"] == ["low"]
        assert items[1]["applied_rules"] == []
        assert items[0]["conditional_style"] == {"color": "#e74c3c", "opacity": 0.5}

    def test_nested_values(self) -> None:
        items = to_serializable([{"stacks": ({"value": 1},), "meta": {2: "x"}}])
        assert items == [{"stacks": [{"value": 1}], "meta": {"2": "x"}}]
