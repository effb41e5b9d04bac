"""Diff-producing dataset mutations.

This module implements add, remove and update as the only writers of
the column store and row index. Each call validates before writing and
returns the deltas describing what changed.
"""

from __future__ import annotations

from typing import Any, Hashable, Mapping

from core.constants import ID_FIELD
from core.errors import TabulaUnknownColumnError
from core.logging_config import get_logger
from core.types import ColumnSpec, Delta, Predicate, Row
from store.column_store import ColumnStore
from store.row_index import RowIndex
from store.type_registry import TypeRegistry

_LOGGER = get_logger(__name__)


class MutationEngine:
    """Transactional add/remove/update over a column store and row index."""

    def __init__(self, store: ColumnStore, index: RowIndex, registry: TypeRegistry) -> None:
        """Bind the engine to the structures it mutates.

        Args:
            store: Column store holding the values.
            index: Row index holding identities.
            registry: Registry used to type columns created by ``add``.
        """
        self._store = store
        self._index = index
        self._registry = registry

    def materialize(self, identity: Hashable) -> Row:
        """Project a row across all columns, including its identity."""
        position = self._index.position_of(identity)
        return {ID_FIELD: identity, **self._store.row_at(position)}

    def add(self, row: Mapping[str, Any]) -> Delta:
        """Append one row.

        Args:
            row: Column name to raw value, optionally carrying ``_id``.

        Returns:
            Delta with ``old`` None and ``changed`` holding the coerced input.

        Raises:
            TabulaDuplicateIdentityError: If ``_id`` was already issued.
            TabulaUnknownColumnError: If a key is not a column and rows exist.
            TabulaTypeMismatchError: If a value does not fit its column.
        """
        values = dict(row)
        identity = values.pop(ID_FIELD, None)
        if identity is None:
            identity = self._index.new_identity()
        else:
            self._index.check_available(identity)
        new_columns = [name for name in values if not self._store.has_column(name)]
        if new_columns:
            self._check_known_values(values)
            for name in new_columns:
                self._store.extend_schema(
                    ColumnSpec(name=name, type=self._registry.classify(values[name]))
                )
        position = self._store.row_count
        prepared = self._store.insert_row(position, values)
        self._index.assign(identity)
        changed = {ID_FIELD: identity, **{name: prepared[name] for name in values}}
        _LOGGER.debug("row_added", identity=identity, position=position)
        return Delta(identity=identity, old=None, changed=changed)

    def remove(self, predicate: Predicate) -> list[Delta]:
        """Remove every live row the predicate accepts.

        The predicate runs once per row over the identities live when the
        call starts, in position order. Every row is matched before the
        first deletion, so a raising predicate leaves all rows in place.

        Returns:
            One delta per removed row, in traversal order.
        """
        matches: list[tuple[Hashable, Row]] = []
        for identity in self._index.identities():
            row = self.materialize(identity)
            if predicate(row):
                matches.append((identity, row))
        deltas: list[Delta] = []
        for identity, row in matches:
            position = self._index.position_of(identity)
            self._store.delete_row(position)
            self._index.remove(identity)
            deltas.append(Delta(identity=identity, old=row, changed=None))
        _LOGGER.debug("rows_removed", removed_count=len(deltas))
        return deltas

    def update(self, predicate: Predicate, new_values: Mapping[str, Any]) -> list[Delta]:
        """Write new values into every row the predicate accepts.

        The batch is atomic: every matching row is validated and coerced
        before the first write, so one rejected value leaves all rows
        unchanged.

        Returns:
            One delta per updated row, in traversal order.

        Raises:
            TabulaUnknownColumnError: If a key is not an updatable column.
            TabulaTypeMismatchError: If a value does not fit its column.
        """
        self._check_updatable(new_values)
        columns = [self._store.column_by_name(name) for name in new_values]
        pending: list[tuple[Hashable, Row, dict[str, Any]]] = []
        for identity in self._index.identities():
            row = self.materialize(identity)
            if not predicate(row):
                continue
            prepared = {
                column.name: self._store.prepare_value(column, new_values[column.name])
                for column in columns
            }
            pending.append((identity, row, prepared))
        deltas: list[Delta] = []
        for identity, row, prepared in pending:
            position = self._index.position_of(identity)
            for name, value in prepared.items():
                self._store.write_prepared(name, position, value)
            deltas.append(Delta(identity=identity, old=row, changed=dict(prepared)))
        _LOGGER.debug("rows_updated", updated_count=len(deltas), columns=list(new_values))
        return deltas

    def _check_known_values(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            if self._store.has_column(name):
                self._store.prepare_value(self._store.column_by_name(name), value)

    def _check_updatable(self, new_values: Mapping[str, Any]) -> None:
        if ID_FIELD in new_values:
            raise TabulaUnknownColumnError(
                f"Column '{ID_FIELD}' holds row identities and cannot be updated."
            )
        for name in new_values:
            self._store.column_by_name(name)
