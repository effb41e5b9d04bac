"""Tabula exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class TabulaError(Exception):
    """Base exception for all Tabula failures."""


class TabulaConfigError(TabulaError):
    """Raised for invalid runtime or dataset configuration."""


class TabulaTypeMismatchError(TabulaError):
    """Raised when a value does not fit a column's declared type."""

    def __init__(self, column: str, type_name: str, value: object) -> None:
        self.column = column
        self.type_name = type_name
        self.value = value
        super().__init__(
            f"Incorrect value {value!r} passed to column '{column}' of type "
            f"'{type_name}'. Supply a value the '{type_name}' type accepts."
        )


class TabulaIdentityNotFoundError(TabulaError):
    """Raised when a row identity is not live in the dataset."""

    def __init__(self, identity: object) -> None:
        self.identity = identity
        super().__init__(
            f"Row identity {identity!r} does not exist in this dataset. "
            "It may have been removed."
        )


class TabulaDuplicateIdentityError(TabulaError):
    """Raised when a row identity was already issued by the dataset."""


class TabulaUnknownColumnError(TabulaError):
    """Raised when a mutation names a column outside the schema."""


class TabulaIngestError(TabulaError):
    """Raised for source fetching and parsing failures."""


class TabulaDependencyError(TabulaError):
    """Raised when an optional runtime dependency is missing."""
