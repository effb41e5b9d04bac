"""Comparator-driven row ordering.

This module reorders all live rows with a stable sort and permutes the
column store and row index together so identities travel with values.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import Any, Mapping

from core.constants import ID_FIELD
from core.logging_config import get_logger
from core.types import Comparator
from store.column_store import ColumnStore
from store.row_index import RowIndex
from store.type_registry import compare_values

_LOGGER = get_logger(__name__)


def sort_rows(store: ColumnStore, index: RowIndex, comparator: Comparator) -> list[int]:
    """Stably reorder every row by a comparator.

    Args:
        store: Column store to permute.
        index: Row index to permute alongside the store.
        comparator: Returns -1, 0 or 1 for two materialized rows.

    Returns:
        The applied order: new position i holds old position order[i].
    """
    rows = [
        {ID_FIELD: index.identity_at(position), **store.row_at(position)}
        for position in range(store.row_count)
    ]
    new_order = sorted(
        range(len(rows)),
        key=cmp_to_key(lambda left, right: comparator(rows[left], rows[right])),
    )
    store.permute(new_order)
    index.permute(new_order)
    _LOGGER.debug("rows_sorted", row_count=len(rows))
    return new_order


def column_comparator(
    store: ColumnStore, column_name: str, descending: bool = False
) -> Comparator:
    """Build a comparator ordering rows by one column's type.

    Args:
        store: Store whose column type supplies the ``compare`` function.
        column_name: Column to order by.
        descending: Reverse the order.

    Returns:
        Comparator over materialized rows.
    """
    descriptor = store.descriptor_for(store.column_by_name(column_name))
    compare = descriptor.compare if descriptor else compare_values
    sign = -1 if descending else 1

    def _compare(left: Mapping[str, Any], right: Mapping[str, Any]) -> int:
        return sign * compare(left[column_name], right[column_name])

    return _compare
