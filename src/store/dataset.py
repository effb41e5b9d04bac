"""Public dataset API.

This module exposes ``Dataset``: construction from options, fetching
through the ingest layer, the add/remove/update mutations with change
events, explicit sorting and read access to rows and columns.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import replace
import threading
from typing import Any, Callable, Hashable, Iterator, Mapping

from core.config import TabulaConfig
from core.constants import EVENT_ADD, EVENT_CHANGE, EVENT_REMOVE, EVENT_UPDATE, ID_FIELD
from core.errors import TabulaConfigError
from core.logging_config import get_logger
from core.types import ChangeEvent, ColumnSpec, Comparator, DatasetOptions, Delta, ParsedData, Predicate, Row
from ingest.selection import select_importer, select_parser
from store.arrow_export import dataset_to_arrow
from store.change_notifier import Handler, build_notifier
from store.column_store import ColumnStore
from store.mutation_engine import MutationEngine
from store.ordering import column_comparator, sort_rows
from store.row_index import IdentityGenerator, RowIndex
from store.type_registry import TypeRegistry, default_registry

_LOGGER = get_logger(__name__)

RowFilter = Predicate | Mapping[str, Any] | None
FetchCallback = Callable[["Dataset"], None]
ErrorCallback = Callable[["Dataset", BaseException], None]


class Dataset:
    """In-memory column-oriented dataset with identity-addressed rows.

    Mutations are serialized behind one re-entrant lock per instance, so
    fetches completed on a worker thread never interleave with them.
    """

    def __init__(
        self,
        options: DatasetOptions | None = None,
        *,
        registry: TypeRegistry | None = None,
        config: TabulaConfig | None = None,
        **overrides: Any,
    ) -> None:
        """Create a dataset; data is loaded by ``fetch``.

        Args:
            options: Construction options.
            registry: Type registry, the process-wide one by default.
            config: Runtime configuration, read from env by default.
            **overrides: Individual ``DatasetOptions`` fields.

        Raises:
            TabulaConfigError: If options are invalid.
        """
        try:
            self._options = replace(options or DatasetOptions(), **overrides)
        except TypeError as error:
            raise TabulaConfigError(f"Invalid dataset option: {error}.") from error
        self._registry = registry or default_registry()
        self._config = config or TabulaConfig.from_env()
        self._id_generator = self._options.id_generator or IdentityGenerator()
        self._notifier = build_notifier(self._options.syncable)
        self._lock = threading.RLock()
        self._store = ColumnStore(self._registry)
        self._index = RowIndex(self._id_generator)
        self._engine = MutationEngine(self._store, self._index, self._registry)
        parser = select_parser(self._options, self._registry, self._build_nested)
        self._importer = select_importer(self._options, parser, self._config)

    @property
    def options(self) -> DatasetOptions:
        """Return the construction options."""
        return self._options

    @property
    def syncable(self) -> bool:
        """Return whether mutations emit change events."""
        return self._notifier.enabled

    @property
    def comparator(self) -> Comparator | None:
        """Return the configured default comparator."""
        return self._options.comparator

    @property
    def row_count(self) -> int:
        """Return the number of live rows."""
        return len(self._index)

    @property
    def column_names(self) -> tuple[str, ...]:
        """Return column names in schema order."""
        return self._store.column_names

    def fetch(
        self,
        success: FetchCallback | None = None,
        error: ErrorCallback | None = None,
    ) -> Future:
        """Load the configured source into this dataset.

        On success the parsed columns replace the current contents, the
        rows are sorted when a comparator is configured and the data is
        not pre-sorted, then ``on_ready``, ``success`` and the returned
        future resolve in that order. When loading, populating or sorting
        fails the dataset keeps its previous contents; when ``on_ready`` or
        ``success`` raises the loaded contents stay. Either way ``error`` is
        called and the future is rejected with the failure.

        Args:
            success: Called with the dataset after loading.
            error: Called with the dataset and the failure.

        Returns:
            Future resolving to this dataset.
        """
        outer = self._options.future_factory() if self._options.future_factory else Future()
        inner = self._importer.fetch()
        if inner.done():
            self._settle(inner, outer, success, error)
        else:
            inner.add_done_callback(lambda done: self._settle(done, outer, success, error))
        return outer

    def add(self, row: Mapping[str, Any], silent: bool = False) -> Delta:
        """Append one row, generating an identity unless ``_id`` is given.

        Fires ``add`` then ``change`` unless silent.

        Raises:
            TabulaTypeMismatchError: If a value does not fit its column.
            TabulaUnknownColumnError: If a key is not a column and rows exist.
            TabulaDuplicateIdentityError: If ``_id`` was already issued.
        """
        with self._lock:
            delta = self._engine.add(row)
            if not silent:
                self._announce(EVENT_ADD, (delta,))
        return delta

    def remove(self, row_filter: RowFilter = None, silent: bool = False) -> list[Delta]:
        """Remove every row matching a filter.

        Fires ``remove`` then ``change`` once unless silent.

        Args:
            row_filter: Predicate over a row, a mapping of required column
                values, or None for every row.
            silent: Suppress event delivery.

        Returns:
            Deltas of the removed rows in traversal order.
        """
        predicate = normalize_filter(row_filter)
        with self._lock:
            deltas = self._engine.remove(predicate)
            if not silent:
                self._announce(EVENT_REMOVE, tuple(deltas))
        return deltas

    def update(
        self,
        row_filter: RowFilter,
        new_values: Mapping[str, Any],
        silent: bool = False,
    ) -> list[Delta]:
        """Write new values into every row matching a filter.

        The whole batch is rejected when any value fails its column type.
        Fires ``update`` then ``change`` once unless silent.

        Returns:
            Deltas of the updated rows in traversal order.

        Raises:
            TabulaTypeMismatchError: If a value does not fit its column.
            TabulaUnknownColumnError: If a key is not a column.
        """
        predicate = normalize_filter(row_filter)
        with self._lock:
            deltas = self._engine.update(predicate, new_values)
            if not silent:
                self._announce(EVENT_UPDATE, tuple(deltas))
        return deltas

    def sort(self, comparator: Comparator | None = None) -> None:
        """Stably reorder all rows; rows are never re-sorted implicitly after mutations.

        Raises:
            TabulaConfigError: If no comparator is given or configured.
        """
        chosen = comparator or self._options.comparator
        if chosen is None:
            raise TabulaConfigError(
                "No comparator available. Pass one to sort() or configure 'comparator'."
            )
        with self._lock:
            sort_rows(self._store, self._index, chosen)

    def comparator_for(self, column_name: str, descending: bool = False) -> Comparator:
        """Return a comparator ordering rows by a column's type."""
        return column_comparator(self._store, column_name, descending)

    def on(self, event_name: str, handler: Handler) -> None:
        """Subscribe to ``add``, ``remove``, ``update`` or ``change`` events."""
        self._notifier.on(event_name, handler)

    def off(self, event_name: str | None = None, handler: Handler | None = None) -> None:
        """Unsubscribe handlers."""
        self._notifier.off(event_name, handler)

    def row_by_id(self, identity: Hashable) -> Row:
        """Return the row with an identity.

        Raises:
            TabulaIdentityNotFoundError: If the identity is not live.
        """
        with self._lock:
            return self._engine.materialize(identity)

    def row_by_position(self, position: int) -> Row:
        """Return the row at a position."""
        with self._lock:
            return self._engine.materialize(self._index.identity_at(position))

    def position_of(self, identity: Hashable) -> int:
        """Return the current position of an identity."""
        return self._index.position_of(identity)

    def column(self, name: str) -> tuple[Any, ...]:
        """Return a snapshot of one column's values."""
        if name == ID_FIELD:
            return self._index.identities()
        return tuple(self._store.column_by_name(name).data)

    def column_type(self, name: str) -> str | None:
        """Return a column's declared type name."""
        return self._store.column_by_name(name).type

    def identities(self) -> tuple[Hashable, ...]:
        """Return live identities in position order."""
        return self._index.identities()

    def rows(self) -> Iterator[Row]:
        """Yield materialized rows over a snapshot of the live identities."""
        for identity in self._index.identities():
            yield self._engine.materialize(identity)

    def to_arrow(self) -> Any:
        """Return the columns, including ``_id``, as a ``pyarrow.Table``."""
        with self._lock:
            return dataset_to_arrow(self)

    def __len__(self) -> int:
        return self.row_count

    def __iter__(self) -> Iterator[Row]:
        return self.rows()

    def __repr__(self) -> str:
        return f"Dataset(columns={list(self.column_names)}, rows={self.row_count})"

    def _announce(self, event_name: str, deltas: tuple[Delta, ...]) -> None:
        if not self._notifier.enabled:
            return
        event = ChangeEvent(deltas=deltas)
        self._notifier.trigger(event_name, event)
        self._notifier.trigger(EVENT_CHANGE, event)

    def _settle(
        self,
        inner: Future,
        outer: Future,
        success: FetchCallback | None,
        error: ErrorCallback | None,
    ) -> None:
        try:
            failure = inner.exception()
            if failure is None:
                with self._lock:
                    self._populate(inner.result())
                _LOGGER.info(
                    "dataset_fetched",
                    source=self._importer.source_label,
                    row_count=self.row_count,
                    columns=list(self.column_names),
                )
                if self._options.on_ready is not None:
                    self._options.on_ready(self)
                if success is not None:
                    success(self)
        except Exception as settle_error:
            failure = settle_error
        if failure is None:
            outer.set_result(self)
            return
        _LOGGER.error("fetch_failed", source=self._importer.source_label, error=str(failure))
        try:
            if error is not None:
                error(self, failure)
        finally:
            outer.set_exception(failure)

    def _populate(self, parsed: ParsedData) -> None:
        """Build new structures from parsed data and swap them in only on success."""
        store = ColumnStore(self._registry)
        index = RowIndex(self._id_generator, retired=self._index.issued())
        store.define_columns(self._apply_schema_options(parsed.columns))
        identities = parsed.identities or (None,) * store.row_count
        if len(identities) != store.row_count:
            raise TabulaConfigError(
                f"Parsed data has {len(identities)} identities for {store.row_count} rows."
            )
        for identity in identities:
            index.assign(index.new_identity() if identity is None else identity)
        if self._options.comparator is not None and not self._options.pre_sorted:
            sort_rows(store, index, self._options.comparator)
        self._store = store
        self._index = index
        self._engine = MutationEngine(store, index, self._registry)

    def _apply_schema_options(self, columns: tuple[ColumnSpec, ...]) -> list[ColumnSpec]:
        renames = self._options.column_renames
        overrides = self._options.column_type_overrides
        specs: list[ColumnSpec] = []
        for column in columns:
            name = renames.get(column.name, column.name)
            override = overrides.get(name, overrides.get(column.name))
            if override is None:
                specs.append(replace(column, name=name))
                continue
            type_name, type_options = _split_type_override(name, override)
            if type_name not in self._registry:
                _LOGGER.warning("unknown_column_type", column=name, type_name=type_name)
            specs.append(replace(column, name=name, type=type_name, type_options=type_options))
        return specs

    def _build_nested(self, rows: list[Mapping[str, Any]]) -> "Dataset":
        nested = Dataset(
            registry=self._registry,
            config=self._config,
            inline_data=rows,
            build_nested_datasets=True,
        )
        nested.fetch().result()
        return nested


def normalize_filter(row_filter: RowFilter) -> Predicate:
    """Turn a callable, a mapping of required values or None into a predicate.

    Raises:
        TabulaConfigError: If the filter has another type.
    """
    if row_filter is None:
        return lambda row: True
    if callable(row_filter):
        return row_filter
    if isinstance(row_filter, Mapping):
        expected = dict(row_filter)
        return lambda row: all(row.get(name) == value for name, value in expected.items())
    raise TabulaConfigError(
        f"Unsupported filter of type {type(row_filter).__name__}. "
        "Pass a callable, a mapping of column values, or None."
    )


def _split_type_override(
    column_name: str, override: str | Mapping[str, Any]
) -> tuple[str, dict[str, Any]]:
    if isinstance(override, str):
        return override, {}
    if isinstance(override, Mapping) and isinstance(override.get("type"), str):
        type_options = {key: value for key, value in override.items() if key != "type"}
        return override["type"], type_options
    raise TabulaConfigError(
        f"Invalid type override for column '{column_name}': "
        "expected a type name or a mapping with a 'type' key."
    )
