"""Unit tests for the column store."""

from __future__ import annotations

import pytest

from core.errors import TabulaConfigError, TabulaTypeMismatchError, TabulaUnknownColumnError
from core.types import ColumnSpec
from store.column_store import ColumnStore


def _store(registry) -> ColumnStore:
    store = ColumnStore(registry)
    store.define_columns(
        [
            ColumnSpec(name="name", type="string", data=["Ada", "Grace"]),
            ColumnSpec(name="age", type="number", data=["36", 45]),
        ]
    )
    return store


def test_define_columns_coerces_values(registry) -> None:
    """Initial values should be coerced to the declared type."""
    store = _store(registry)

    assert store.value_at("age", 0) == 36
    assert store.row_count == 2


def test_define_columns_only_once(registry) -> None:
    """The schema should not be replaced."""
    store = _store(registry)

    with pytest.raises(TabulaConfigError):
        store.define_columns([ColumnSpec(name="other")])


def test_define_columns_rejects_ragged_data(registry) -> None:
    """Columns of unequal length should be rejected."""
    store = ColumnStore(registry)

    with pytest.raises(TabulaConfigError):
        store.define_columns(
            [ColumnSpec(name="a", data=[1, 2]), ColumnSpec(name="b", data=[1])]
        )

    assert store.is_defined is False


def test_set_value_at_rejects_mismatch(registry) -> None:
    """A value outside the column type should leave the cell unchanged."""
    store = _store(registry)

    with pytest.raises(TabulaTypeMismatchError):
        store.set_value_at("age", 0, "not-a-number")

    assert store.value_at("age", 0) == 36


def test_insert_row_is_all_or_nothing(registry) -> None:
    """A failing value should leave every column untouched."""
    store = _store(registry)

    with pytest.raises(TabulaTypeMismatchError):
        store.insert_row(1, {"name": "Linus", "age": "old"})

    assert store.row_count == 2
    assert len(store.column_by_name("name").data) == len(store.column_by_name("age").data) == 2


def test_insert_row_shifts_later_rows(registry) -> None:
    """Inserting should shift rows in every column."""
    store = _store(registry)

    store.insert_row(0, {"name": "Linus"})

    assert store.row_at(0) == {"name": "Linus", "age": None}
    assert store.value_at("name", 1) == "Ada"


def test_delete_row_compacts_columns(registry) -> None:
    """Deleting should return the row and compact every column."""
    store = _store(registry)

    removed = store.delete_row(0)

    assert removed == {"name": "Ada", "age": 36}
    assert store.row_at(0) == {"name": "Grace", "age": 45}
    assert store.row_count == 1


def test_unknown_column_type_disables_coercion(registry) -> None:
    """Columns with an unregistered type should accept any value."""
    store = ColumnStore(registry)
    store.define_columns([ColumnSpec(name="blob", type="binary", data=[b"x"])])

    store.set_value_at("blob", 0, 42)

    assert store.value_at("blob", 0) == 42


def test_prepare_row_rejects_unknown_columns(registry) -> None:
    """Rows should only name existing columns."""
    store = _store(registry)

    with pytest.raises(TabulaUnknownColumnError):
        store.prepare_row({"height": 170})


def test_permute_reorders_all_columns(registry) -> None:
    """Permutation should move whole rows."""
    store = _store(registry)

    store.permute([1, 0])

    assert store.row_at(0) == {"name": "Grace", "age": 45}


def test_extend_schema_requires_empty_store(registry) -> None:
    """New columns can only be added before any row exists."""
    store = _store(registry)

    with pytest.raises(TabulaUnknownColumnError):
        store.extend_schema(ColumnSpec(name="height"))


def test_string_column_accepts_numeric_text_but_not_numbers(registry) -> None:
    """Acceptance should follow the type test or the value's classification."""
    store = _store(registry)
    name_column = store.column_by_name("name")

    assert store.accepts(name_column, "12")
    assert not store.accepts(name_column, 12)
    assert store.accepts(name_column, None)
