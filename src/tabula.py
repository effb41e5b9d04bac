"""Public API surface for Tabula.

This module provides a stable import path for library users.
It re-exports the dataset, its option models and the type registry.
"""

from __future__ import annotations

from core.config import TabulaConfig
from core.dataset_config import load_dataset_options
from core.errors import (
    TabulaConfigError,
    TabulaDependencyError,
    TabulaDuplicateIdentityError,
    TabulaError,
    TabulaIdentityNotFoundError,
    TabulaIngestError,
    TabulaTypeMismatchError,
    TabulaUnknownColumnError,
)
from core.types import ChangeEvent, ColumnSpec, DatasetOptions, Delta, ParsedData, SpreadsheetSource
from store.dataset import Dataset, normalize_filter
from store.type_registry import TypeDescriptor, TypeRegistry, default_registry, register_type

__all__ = [
    "ChangeEvent",
    "ColumnSpec",
    "Dataset",
    "DatasetOptions",
    "Delta",
    "ParsedData",
    "SpreadsheetSource",
    "TabulaConfig",
    "TabulaConfigError",
    "TabulaDependencyError",
    "TabulaDuplicateIdentityError",
    "TabulaError",
    "TabulaIdentityNotFoundError",
    "TabulaIngestError",
    "TabulaTypeMismatchError",
    "TabulaUnknownColumnError",
    "TypeDescriptor",
    "TypeRegistry",
    "default_registry",
    "load_dataset_options",
    "normalize_filter",
    "register_type",
]

__version__ = "0.1.0"
