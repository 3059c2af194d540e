"""Dataset loading and output serialization."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ParseError
from .models import ColorScale, FormattingRule, Threshold


def load_dataset(path: Path | str) -> list[Any]:
    """Load waterfall data items from a YAML or JSON file.

    The file holds either a list of items or a mapping with a ``data`` list::

        data:
          - {label: Revenue, value: 1200}
          - {label: Costs, value: -450}
    """
    path = Path(path)
    if not path.exists():
        raise ParseError(f"File not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            # JSON is a subset of YAML
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse {path}: {e}") from e

    if isinstance(data, dict) and "data" in data:
        data = data["data"]

    if not isinstance(data, list):
        raise ParseError(f"{path} must contain a list of items or a 'data' list")

    return data  # type: ignore[return-value]


def _plain(value: Any) -> Any:
    if isinstance(value, (FormattingRule, Threshold)):
        return value.id
    if isinstance(value, ColorScale):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}  # type: ignore[union-attr]
    if isinstance(value, Sequence) and not isinstance(value, str):
        return [_plain(v) for v in value]  # type: ignore[union-attr]
    return value


def to_serializable(items: Sequence[Any]) -> list[Any]:
    """Convert formatted items into plain data for YAML/JSON output.

    Applied rules and thresholds are reduced to their ids.
    """
    return [_plain(item) for item in items]
