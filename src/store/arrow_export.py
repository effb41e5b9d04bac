"""Columnar export to Apache Arrow.

This module converts a dataset's live columns into an in-memory
``pyarrow.Table`` for handoff to Arrow-aware tools.
"""

from __future__ import annotations

from typing import Any

from core.constants import ID_FIELD
from core.errors import TabulaDependencyError


def dataset_to_arrow(dataset: Any) -> Any:
    """Build a ``pyarrow.Table`` with ``_id`` followed by every column.

    Columns whose values share no Arrow type, such as ``mixed`` columns,
    are exported as strings.

    Args:
        dataset: Dataset exposing ``column_names`` and ``column``.

    Returns:
        Arrow table with one array per column.

    Raises:
        TabulaDependencyError: If pyarrow is missing.
    """
    try:
        import pyarrow as pa
    except ImportError as error:
        raise TabulaDependencyError(
            "Arrow export requires pyarrow, but it is not installed. "
            "Install pyarrow to call to_arrow()."
        ) from error
    arrays: dict[str, Any] = {ID_FIELD: pa.array(list(dataset.column(ID_FIELD)))}
    for name in dataset.column_names:
        values = list(dataset.column(name))
        try:
            arrays[name] = pa.array(values)
        except (pa.ArrowInvalid, pa.ArrowTypeError):
            arrays[name] = pa.array([None if value is None else str(value) for value in values])
    return pa.table(arrays)
