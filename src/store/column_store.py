"""Columnar value storage.

This module keeps one ordered value list per column and enforces that
all columns always have the same length. Values are checked and
coerced through the type registry before anything is written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from core.errors import TabulaConfigError, TabulaTypeMismatchError, TabulaUnknownColumnError
from core.types import ColumnSpec
from store.type_registry import TypeDescriptor, TypeRegistry


@dataclass
class Column:
    """Named, typed, ordered sequence of values.

    Attributes:
        name: Column name.
        type: Declared type name, or None when typeless.
        type_options: Options forwarded to the type descriptor.
        data: Stored values, one per row.
    """

    name: str
    type: str | None = None
    type_options: Mapping[str, Any] = field(default_factory=dict)
    data: list[Any] = field(default_factory=list)


class ColumnStore:
    """Rectangular set of columns sharing one row count."""

    def __init__(self, registry: TypeRegistry) -> None:
        """Create an empty store.

        Args:
            registry: Registry used to resolve column types.
        """
        self._registry = registry
        self._columns: dict[str, Column] = {}
        self._defined = False
        self._row_count = 0

    @property
    def row_count(self) -> int:
        """Return the number of stored rows."""
        return self._row_count

    @property
    def column_names(self) -> tuple[str, ...]:
        """Return column names in schema order."""
        return tuple(self._columns)

    @property
    def is_defined(self) -> bool:
        """Return whether the schema was established."""
        return self._defined

    def define_columns(self, specs: Iterable[ColumnSpec]) -> None:
        """Establish the schema and initial values once.

        Args:
            specs: Column specs with equal-length data.

        Raises:
            TabulaConfigError: If the schema exists, names repeat, or lengths differ.
            TabulaTypeMismatchError: If an initial value fails its column type.
        """
        if self._defined:
            raise TabulaConfigError(
                "Columns are already defined for this store. Columns can only be defined once."
            )
        columns: dict[str, Column] = {}
        for spec in specs:
            if spec.name in columns:
                raise TabulaConfigError(f"Duplicate column name '{spec.name}' in schema.")
            column = Column(name=spec.name, type=spec.type, type_options=dict(spec.type_options))
            column.data = [self.prepare_value(column, value) for value in spec.data]
            columns[spec.name] = column
        lengths = {len(column.data) for column in columns.values()}
        if len(lengths) > 1:
            raise TabulaConfigError(
                f"Columns have unequal lengths {sorted(lengths)}. Every column needs one value per row."
            )
        self._columns = columns
        self._row_count = lengths.pop() if lengths else 0
        self._defined = True

    def extend_schema(self, spec: ColumnSpec) -> None:
        """Add a column while the store holds no rows.

        Raises:
            TabulaUnknownColumnError: If rows already exist.
        """
        if self.row_count:
            raise TabulaUnknownColumnError(
                f"Column '{spec.name}' is not part of the schema. "
                "Columns can only be added while the dataset is empty."
            )
        if spec.name not in self._columns:
            self._columns[spec.name] = Column(
                name=spec.name, type=spec.type, type_options=dict(spec.type_options)
            )
        self._defined = True

    def column_by_name(self, name: str) -> Column:
        """Return a column by name.

        Raises:
            TabulaUnknownColumnError: If no such column exists.
        """
        column = self._columns.get(name)
        if column is None:
            raise TabulaUnknownColumnError(
                f"Unknown column '{name}'. Known columns: {list(self._columns)}."
            )
        return column

    def has_column(self, name: str) -> bool:
        """Return whether a column exists."""
        return name in self._columns

    def descriptor_for(self, column: Column) -> TypeDescriptor | None:
        """Return the column's type descriptor; None disables coercion."""
        return self._registry.resolve(column.type)

    def accepts(self, column: Column, value: Any) -> bool:
        """Return whether a value may be written to a column.

        A value is accepted when the type's ``test`` passes or when it
        classifies as the column type, so a string column accepts "12" but not 12.
        """
        descriptor = self.descriptor_for(column)
        if descriptor is None:
            return True
        if descriptor.test(value, column.type_options):
            return True
        return self._registry.classify(value, column.type_options) == column.type

    def prepare_value(self, column: Column, value: Any) -> Any:
        """Check and coerce one value for a column.

        Raises:
            TabulaTypeMismatchError: If the value does not fit the column type.
        """
        descriptor = self.descriptor_for(column)
        if descriptor is None:
            return value
        if not self.accepts(column, value):
            raise TabulaTypeMismatchError(column.name, descriptor.name, value)
        try:
            return descriptor.coerce(value, column.type_options)
        except (TypeError, ValueError) as error:
            raise TabulaTypeMismatchError(column.name, descriptor.name, value) from error

    def prepare_row(self, values_by_column: Mapping[str, Any]) -> dict[str, Any]:
        """Check and coerce a full row; absent columns become None.

        Raises:
            TabulaUnknownColumnError: If a key is not a column.
            TabulaTypeMismatchError: If any value does not fit its column.
        """
        for name in values_by_column:
            self.column_by_name(name)
        return {
            name: self.prepare_value(column, values_by_column.get(name))
            for name, column in self._columns.items()
        }

    def value_at(self, name: str, position: int) -> Any:
        """Return one stored value."""
        return self.column_by_name(name).data[position]

    def set_value_at(self, name: str, position: int, value: Any) -> Any:
        """Check, coerce and write one value.

        Returns:
            The coerced value that was stored.
        """
        column = self.column_by_name(name)
        self._check_position(position)
        coerced = self.prepare_value(column, value)
        column.data[position] = coerced
        return coerced

    def write_prepared(self, name: str, position: int, value: Any) -> None:
        """Write a value that already went through ``prepare_value``."""
        self.column_by_name(name).data[position] = value

    def insert_row(self, position: int, values_by_column: Mapping[str, Any]) -> dict[str, Any]:
        """Insert a row at a position, shifting later rows down.

        Nothing is written unless every value fits its column.

        Returns:
            The coerced row values.
        """
        if not 0 <= position <= self.row_count:
            raise IndexError(f"Insert position {position} is outside [0, {self.row_count}].")
        prepared = self.prepare_row(values_by_column)
        for name, column in self._columns.items():
            column.data.insert(position, prepared[name])
        self._row_count += 1
        return prepared

    def delete_row(self, position: int) -> dict[str, Any]:
        """Physically remove a row and return its values."""
        self._check_position(position)
        removed = {name: column.data.pop(position) for name, column in self._columns.items()}
        self._row_count -= 1
        return removed

    def row_at(self, position: int) -> dict[str, Any]:
        """Return a copy of the values stored at a position."""
        self._check_position(position)
        return {name: column.data[position] for name, column in self._columns.items()}

    def permute(self, new_order: Sequence[int]) -> None:
        """Reorder every column so that new position i holds old position new_order[i]."""
        for column in self._columns.values():
            column.data = [column.data[old_position] for old_position in new_order]

    def _check_position(self, position: int) -> None:
        if not 0 <= position < self.row_count:
            raise IndexError(f"Row position {position} is outside [0, {self.row_count}).")
