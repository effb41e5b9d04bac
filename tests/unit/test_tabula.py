"""Unit tests for the public import surface."""

from __future__ import annotations

import tabula


def test_public_api_builds_datasets(people_rows) -> None:
    """The facade should expose a working dataset entry point."""
    dataset = tabula.Dataset(inline_data=people_rows)
    dataset.fetch().result()

    assert isinstance(dataset, tabula.Dataset)
    assert dataset.column_names == ("name", "value")
    assert tabula.default_registry().resolve("number") is not None


def test_public_api_exports_error_hierarchy() -> None:
    """Every exported error should derive from the base error."""
    errors = [getattr(tabula, name) for name in tabula.__all__ if name.endswith("Error")]

    assert all(issubclass(error, tabula.TabulaError) for error in errors)
