"""Format-specific parsers producing column-shaped data.

Each parser turns one decoded payload into ``ParsedData`` with a
classified type per column. Parsers declare whether they consume raw
text or decoded JSON so importers know how to prepare the payload.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Callable, Mapping, Sequence

from core.constants import DEFAULT_DELIMITER, ID_FIELD, MIXED_TYPE
from core.errors import TabulaIngestError
from core.types import ColumnSpec, ParsedData
from ingest.html_table import read_html_table
from store.type_registry import TypeRegistry

NestedFactory = Callable[[list[Mapping[str, Any]]], Any]


class Parser:
    """Base parser contract."""

    expects_text = False

    def __init__(self, registry: TypeRegistry) -> None:
        self._registry = registry

    def parse(self, payload: Any) -> ParsedData:
        """Parse a payload into column-shaped data.

        Raises:
            TabulaIngestError: If the payload does not match the format.
        """
        raise NotImplementedError

    def _infer_type(self, values: Sequence[Any]) -> str | None:
        """Return the shared type of the non-null values, or ``mixed`` when they disagree."""
        found = {self._registry.classify(value) for value in values if value is not None}
        if not found:
            return None
        if len(found) == 1:
            return found.pop()
        return MIXED_TYPE

    def _from_records(self, names: Sequence[str], records: Sequence[Sequence[Any]]) -> ParsedData:
        """Build parsed data from a header and positional records."""
        if len(set(names)) != len(names):
            raise TabulaIngestError(
                f"Duplicate column names in header {list(names)}. Rename the columns and retry."
            )
        identities: tuple[Any, ...] | None = None
        columns: list[ColumnSpec] = []
        for column_position, name in enumerate(names):
            values = [record[column_position] for record in records]
            if name == ID_FIELD:
                identities = tuple(values)
                continue
            columns.append(ColumnSpec(name=name, type=self._infer_type(values), data=values))
        return ParsedData(columns=tuple(columns), identities=identities)


class ObjectParser(Parser):
    """Parse a raw array of row mappings."""

    def __init__(
        self,
        registry: TypeRegistry,
        build_nested_datasets: bool = False,
        nested_factory: NestedFactory | None = None,
    ) -> None:
        super().__init__(registry)
        self._build_nested = build_nested_datasets and nested_factory is not None
        self._nested_factory = nested_factory

    def parse(self, payload: Any) -> ParsedData:
        if not isinstance(payload, Sequence) or isinstance(payload, (str, bytes)):
            raise TabulaIngestError(
                f"Expected a list of row objects, got {type(payload).__name__}. "
                "Pass rows as a list of mappings or enable strict_schema."
            )
        names: dict[str, None] = {}
        for row_number, row in enumerate(payload, 1):
            if not isinstance(row, Mapping):
                raise TabulaIngestError(
                    f"Row {row_number} is {type(row).__name__}, expected a mapping of column to value."
                )
            names.update(dict.fromkeys(row))
        records = [[self._value(row.get(name)) for name in names] for row in payload]
        return self._from_records(list(names), records)

    def _value(self, value: Any) -> Any:
        if self._build_nested and _is_nested(value):
            return self._nested_factory(list(value))
        return value


class StrictParser(Parser):
    """Parse ``{"columns": [{"name", "type", "data"}]}`` payloads."""

    def parse(self, payload: Any) -> ParsedData:
        if not isinstance(payload, Mapping) or not isinstance(payload.get("columns"), list):
            raise TabulaIngestError(
                "Strict payload must be an object with a 'columns' list. "
                "Disable strict_schema for a raw array of rows."
            )
        identities: tuple[Any, ...] | None = None
        columns: list[ColumnSpec] = []
        for column_number, column in enumerate(payload["columns"], 1):
            name, data = _strict_column_fields(column, column_number)
            if name == ID_FIELD:
                identities = tuple(data)
                continue
            type_name = column.get("type") or self._infer_type(data)
            type_options = column.get("type_options") or column.get("typeOptions") or {}
            columns.append(
                ColumnSpec(name=name, type=type_name, type_options=type_options, data=list(data))
            )
        lengths = {len(column.data) for column in columns}
        if identities is not None:
            lengths.add(len(identities))
        if len(lengths) > 1:
            raise TabulaIngestError(
                f"Strict columns have unequal lengths {sorted(lengths)}. "
                "Every column needs one value per row."
            )
        return ParsedData(columns=tuple(columns), identities=identities)


class DelimitedParser(Parser):
    """Parse delimited text whose first line is the header."""

    expects_text = True

    def __init__(self, registry: TypeRegistry, delimiter: str = DEFAULT_DELIMITER) -> None:
        super().__init__(registry)
        self._delimiter = delimiter

    def parse(self, payload: Any) -> ParsedData:
        if not isinstance(payload, str):
            raise TabulaIngestError(
                f"Delimited parser expects text, got {type(payload).__name__}."
            )
        try:
            lines = [line for line in csv.reader(io.StringIO(payload), delimiter=self._delimiter) if line]
        except csv.Error as error:
            raise TabulaIngestError(f"Failed to parse delimited text: {error}.") from error
        if not lines:
            return ParsedData(columns=())
        header = [name.strip() for name in lines[0]]
        records: list[list[Any]] = []
        for line_number, line in enumerate(lines[1:], 2):
            if len(line) != len(header):
                raise TabulaIngestError(
                    f"Line {line_number} has {len(line)} fields, expected {len(header)}. "
                    "Check the delimiter and quoting."
                )
            records.append([_blank_to_none(value) for value in line])
        return self._from_records(header, records)


class HtmlTableParser(Parser):
    """Parse the first table of an HTML document."""

    expects_text = True

    def parse(self, payload: Any) -> ParsedData:
        if not isinstance(payload, str):
            raise TabulaIngestError(
                f"HTML table parser expects markup text, got {type(payload).__name__}."
            )
        header, rows = read_html_table(payload)
        records: list[list[Any]] = []
        for row_number, row in enumerate(rows, 1):
            if len(row) != len(header):
                raise TabulaIngestError(
                    f"Table row {row_number} has {len(row)} cells, expected {len(header)}."
                )
            records.append([_blank_to_none(value) for value in row])
        return self._from_records(header, records)


def _strict_column_fields(column: Any, column_number: int) -> tuple[str, Sequence[Any]]:
    if not isinstance(column, Mapping):
        raise TabulaIngestError(f"Strict column {column_number} must be an object.")
    name = column.get("name")
    data = column.get("data", [])
    if not isinstance(name, str) or not name:
        raise TabulaIngestError(f"Strict column {column_number} needs a string 'name'.")
    if not isinstance(data, list):
        raise TabulaIngestError(f"Strict column '{name}' needs a 'data' list.")
    return name, data


def _is_nested(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(isinstance(item, Mapping) for item in value)


def _blank_to_none(value: str) -> str | None:
    return None if value.strip() == "" else value
