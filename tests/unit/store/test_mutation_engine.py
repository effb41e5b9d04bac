"""Unit tests for the mutation engine."""

from __future__ import annotations

import pytest

from core.errors import (
    TabulaDuplicateIdentityError,
    TabulaTypeMismatchError,
    TabulaUnknownColumnError,
)
from core.types import ColumnSpec
from store.column_store import ColumnStore
from store.mutation_engine import MutationEngine
from store.row_index import RowIndex


def _engine(registry, values: list[int] | None = None) -> tuple[MutationEngine, ColumnStore, RowIndex]:
    store = ColumnStore(registry)
    index = RowIndex()
    engine = MutationEngine(store, index, registry)
    if values is not None:
        store.define_columns([ColumnSpec(name="value", type="number")])
        for value in values:
            engine.add({"value": value})
    return engine, store, index


def _assert_rectangular(store: ColumnStore, index: RowIndex) -> None:
    lengths = {len(store.column_by_name(name).data) for name in store.column_names}
    assert lengths <= {len(index)}
    assert store.row_count == len(index)


def test_add_on_empty_dataset_creates_row(registry) -> None:
    """Adding to an empty dataset should yield one row and an add delta."""
    engine, store, index = _engine(registry)

    delta = engine.add({"name": "A"})

    assert len(index) == 1
    assert delta.old is None
    assert delta.changed == {"_id": delta.identity, "name": "A"}
    assert engine.materialize(delta.identity) == {"_id": delta.identity, "name": "A"}
    _assert_rectangular(store, index)


def test_add_coerces_values(registry) -> None:
    """Added values should be coerced to the column type."""
    engine, _, _ = _engine(registry, [])

    delta = engine.add({"value": "1,500"})

    assert delta.changed["value"] == 1500


def test_add_rejects_type_mismatch_without_writing(registry) -> None:
    """A rejected add should not change the row count."""
    engine, store, index = _engine(registry, [1])

    with pytest.raises(TabulaTypeMismatchError):
        engine.add({"value": "many"})

    assert len(index) == 1
    _assert_rectangular(store, index)


def test_add_rejects_unknown_column_when_rows_exist(registry) -> None:
    """The schema should only grow while the dataset is empty."""
    engine, _, index = _engine(registry, [1])

    with pytest.raises(TabulaUnknownColumnError):
        engine.add({"value": 2, "label": "two"})

    assert len(index) == 1


def test_add_uses_supplied_identity(registry) -> None:
    """Caller identities should be kept and never duplicated."""
    engine, _, _ = _engine(registry, [])

    delta = engine.add({"_id": "row-a", "value": 1})

    assert delta.identity == "row-a"
    with pytest.raises(TabulaDuplicateIdentityError):
        engine.add({"_id": "row-a", "value": 2})


def test_removed_identity_is_not_reused(registry) -> None:
    """Identities of removed rows should never come back."""
    engine, _, _ = _engine(registry, [10])
    first = engine.remove(lambda row: True)[0].identity

    delta = engine.add({"value": 11})

    assert delta.identity != first


def test_remove_returns_deltas_in_traversal_order(registry) -> None:
    """Removing by predicate should drop matches and keep survivors in place."""
    engine, store, index = _engine(registry, [10, 20, 30])

    deltas = engine.remove(lambda row: row["value"] > 15)

    assert [delta.identity for delta in deltas] == [2, 3]
    assert [delta.old["value"] for delta in deltas] == [20, 30]
    assert all(delta.changed is None for delta in deltas)
    assert index.position_of(1) == 0
    _assert_rectangular(store, index)


def test_raising_predicate_removes_nothing(registry) -> None:
    """A predicate failing on a later row should leave every row in place."""
    engine, store, index = _engine(registry, [10, 20, 30])

    def _fail_on_second(row) -> bool:
        if row["value"] == 20:
            raise ValueError("bad row")
        return True

    with pytest.raises(ValueError):
        engine.remove(_fail_on_second)

    assert index.identities() == (1, 2, 3)
    assert store.column_by_name("value").data == [10, 20, 30]
    _assert_rectangular(store, index)


def test_update_rejects_type_mismatch(registry) -> None:
    """A numeric column should reject non-numeric updates."""
    engine, store, _ = _engine(registry, [10])

    with pytest.raises(TabulaTypeMismatchError):
        engine.update(lambda row: True, {"value": "not-a-number"})

    assert store.value_at("value", 0) == 10


def test_update_is_atomic_across_rows(registry) -> None:
    """A failure while matching rows should leave every row unchanged."""
    engine, store, _ = _engine(registry, [10, 20])

    def _predicate(row: dict) -> bool:
        if row["value"] == 20:
            raise RuntimeError("predicate failure")
        return True

    with pytest.raises(RuntimeError):
        engine.update(_predicate, {"value": 99})

    assert store.column_by_name("value").data == [10, 20]


def test_update_returns_old_and_changed(registry) -> None:
    """Update deltas should carry the prior row and coerced changes."""
    engine, store, _ = _engine(registry, [10, 20])

    deltas = engine.update(lambda row: row["value"] == 20, {"value": "25"})

    assert len(deltas) == 1
    assert deltas[0].old == {"_id": 2, "value": 20}
    assert deltas[0].changed == {"value": 25}
    assert store.value_at("value", 1) == 25


def test_update_rejects_unknown_and_identity_columns(registry) -> None:
    """Updates should only touch existing value columns."""
    engine, _, _ = _engine(registry, [10])

    with pytest.raises(TabulaUnknownColumnError):
        engine.update(lambda row: True, {"label": "x"})
    with pytest.raises(TabulaUnknownColumnError):
        engine.update(lambda row: True, {"_id": 7})


def test_identity_stable_across_update_and_remove(registry) -> None:
    """Identities should survive unrelated mutations."""
    engine, _, index = _engine(registry, [10, 20, 30])

    engine.update(lambda row: row["value"] == 30, {"value": 31})
    engine.remove(lambda row: row["value"] == 10)

    assert engine.materialize(3) == {"_id": 3, "value": 31}
    assert index.position_of(3) == 1
