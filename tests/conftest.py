"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def people_rows() -> list[dict[str, object]]:
    """Return raw rows with a numeric and a string column."""
    return [
        {"name": "Ada", "value": 10},
        {"name": "Grace", "value": 20},
        {"name": "Linus", "value": 30},
    ]


@pytest.fixture
def registry():
    """Return a private copy of the built-in type registry."""
    from store.type_registry import build_default_registry

    return build_default_registry()
