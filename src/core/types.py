"""Shared typed models.

This module defines the data models shared by the ingest and store
layers so that parsed data, deltas and events have explicit shapes.
"""

from __future__ import annotations

from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from core.constants import DEFAULT_SPREADSHEET_WORKSHEET, EVENT_ADD, EVENT_REMOVE, EVENT_UPDATE

Row = dict[str, Any]
Comparator = Callable[[Mapping[str, Any], Mapping[str, Any]], int]
Predicate = Callable[[Mapping[str, Any]], bool]


@dataclass(frozen=True)
class ColumnSpec:
    """Column definition with its initial values.

    Attributes:
        name: Column name, unique within a dataset.
        type: Registered type name, or None for an untyped column.
        type_options: Type-specific options such as a time format.
        data: Ordered raw values, one per row.
    """

    name: str
    type: str | None = None
    type_options: Mapping[str, Any] = field(default_factory=dict)
    data: Sequence[Any] = ()


@dataclass(frozen=True)
class ParsedData:
    """Column-shaped output of an ingestion parser.

    Attributes:
        columns: Ordered column specs of equal length.
        identities: Optional caller-supplied row identities, one per row.
    """

    columns: tuple[ColumnSpec, ...]
    identities: tuple[Any, ...] | None = None

    @property
    def row_count(self) -> int:
        """Return the number of parsed rows."""
        if not self.columns:
            return 0 if self.identities is None else len(self.identities)
        return len(self.columns[0].data)


@dataclass(frozen=True)
class Delta:
    """One row's change produced by a mutation.

    Attributes:
        identity: Identity of the affected row.
        old: Full row before the mutation, None for additions.
        changed: New or changed fields, None for removals.
    """

    identity: Any
    old: Row | None
    changed: Row | None


@dataclass(frozen=True)
class ChangeEvent:
    """Payload delivered to change subscribers.

    Attributes:
        deltas: Ordered deltas of one mutation call.
    """

    deltas: tuple[Delta, ...]

    def affected_columns(self) -> tuple[str, ...]:
        """Return the column names touched by any delta, in first-seen order."""
        names: dict[str, None] = {}
        for delta in self.deltas:
            for source in (delta.changed, delta.old):
                if source:
                    names.update(dict.fromkeys(source))
        return tuple(names)

    @staticmethod
    def is_add(delta: Delta) -> bool:
        """Return whether a delta records an addition."""
        return delta.old is None and delta.changed is not None

    @staticmethod
    def is_remove(delta: Delta) -> bool:
        """Return whether a delta records a removal."""
        return delta.changed is None and delta.old is not None

    @staticmethod
    def is_update(delta: Delta) -> bool:
        """Return whether a delta records an in-place update."""
        return delta.old is not None and delta.changed is not None

    @property
    def kind(self) -> str:
        """Return ``add``, ``remove`` or ``update`` from the first delta."""
        if not self.deltas or self.is_update(self.deltas[0]):
            return EVENT_UPDATE
        return EVENT_ADD if self.is_add(self.deltas[0]) else EVENT_REMOVE


@dataclass(frozen=True)
class SpreadsheetSource:
    """Published spreadsheet reference.

    Attributes:
        key: Spreadsheet document key.
        worksheet: Worksheet id within the document.
    """

    key: str
    worksheet: str = DEFAULT_SPREADSHEET_WORKSHEET


@dataclass(frozen=True)
class DatasetOptions:
    """Dataset construction options.

    Attributes:
        url: Remote source: http(s) URL, ``s3://`` URI, ``file://`` URL or path.
        is_jsonp_request: Whether the remote payload is wrapped in a JSONP callback.
        delimiter: Delimiter for tabular text; selects the delimited parser.
        inline_data: Python objects that already contain the data.
        dom_table: HTML markup containing a ``<table>`` element.
        format_hint: Optional explicit format, one of ``SUPPORTED_FORMAT_HINTS``.
        build_nested_datasets: Build nested datasets from list-of-mapping values.
        strict_schema: Expect ``{"columns": [...]}`` JSON instead of raw rows.
        row_transform: Applied to the decoded payload before parsing.
        on_ready: Called with the dataset after every successful fetch.
        column_renames: Mapping of old column name to new column name.
        column_type_overrides: Column name to type name or ``{"type": ..., **options}``.
        comparator: Default row comparator for sorting.
        pre_sorted: Skip the post-fetch sort even when a comparator is set.
        future_factory: Builds the future returned by ``fetch``.
        syncable: Emit change events to subscribers.
        spreadsheet: Published spreadsheet to fetch as delimited text.
        importer: Explicit importer instance, bypassing importer selection.
        parser: Explicit parser instance, bypassing parser selection.
        id_generator: Produces new row identities.
        executor: Executor that runs remote fetches off the calling thread.
    """

    url: str | None = None
    is_jsonp_request: bool = False
    delimiter: str | None = None
    inline_data: Any = None
    dom_table: str | None = None
    format_hint: str | None = None
    build_nested_datasets: bool = False
    strict_schema: bool = False
    row_transform: Callable[[Any], Any] | None = None
    on_ready: Callable[[Any], None] | None = None
    column_renames: Mapping[str, str] = field(default_factory=dict)
    column_type_overrides: Mapping[str, str | Mapping[str, Any]] = field(default_factory=dict)
    comparator: Comparator | None = None
    pre_sorted: bool = False
    future_factory: Callable[[], Future] | None = None
    syncable: bool = False
    spreadsheet: SpreadsheetSource | None = None
    importer: Any = None
    parser: Any = None
    id_generator: Callable[[], Any] | None = None
    executor: Executor | None = None
