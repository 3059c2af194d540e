"""Pytest configuration and fixtures for mintwaterfall tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from mintwaterfall.formatting import ConditionalFormatting
from mintwaterfall.logger import reset_logger

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"


@pytest.fixture(autouse=True)
def clean_logger() -> None:
    """Reset the logger before each test for isolation."""
    reset_logger()


@pytest.fixture
def engine() -> ConditionalFormatting:
    """A fresh, unattached formatting engine."""
    return ConditionalFormatting()


@pytest.fixture
def examples_dir() -> Path:
    """Directory holding the example dataset and config."""
    return EXAMPLES_DIR
