"""Declarative dataset configuration files.

This module loads dataset options from YAML so sources, renames and
type overrides can live outside code. Callables such as comparators
and callbacks are passed in code as overrides.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping, cast

from core.errors import TabulaConfigError, TabulaDependencyError
from core.types import DatasetOptions, SpreadsheetSource

_STRING_FIELDS = ("url", "delimiter", "dom_table", "format_hint")
_BOOLEAN_FIELDS = (
    "is_jsonp_request",
    "build_nested_datasets",
    "strict_schema",
    "pre_sorted",
    "syncable",
)
_MAPPING_FIELDS = ("column_renames", "column_type_overrides")
_ALLOWED_KEYS = frozenset(
    _STRING_FIELDS + _BOOLEAN_FIELDS + _MAPPING_FIELDS + ("inline_data", "spreadsheet")
)


def load_dataset_options(config_path: str | Path, **overrides: Any) -> DatasetOptions:
    """Load and validate dataset options from a YAML file.

    Args:
        config_path: File path to the YAML document.
        **overrides: Extra ``DatasetOptions`` fields, typically callables.

    Returns:
        Validated dataset options.

    Raises:
        TabulaDependencyError: If PyYAML is unavailable.
        TabulaConfigError: If the file is missing, malformed or has invalid fields.
    """
    payload = _load_yaml_payload(config_path)
    options = parse_dataset_options(payload)
    try:
        return replace(options, **overrides)
    except TypeError as error:
        raise TabulaConfigError(f"Invalid dataset option override: {error}.") from error


def parse_dataset_options(payload: object) -> DatasetOptions:
    """Validate a decoded mapping into dataset options.

    Raises:
        TabulaConfigError: If keys are unknown or values have the wrong type.
    """
    root = _expect_mapping(payload, "dataset config root")
    unknown_keys = sorted(set(root) - _ALLOWED_KEYS)
    if unknown_keys:
        raise TabulaConfigError(
            f"Unknown dataset config keys {unknown_keys}. Allowed keys: {sorted(_ALLOWED_KEYS)}."
        )
    fields: dict[str, Any] = {}
    for key in _STRING_FIELDS:
        if key in root:
            fields[key] = _expect_string(root[key], key)
    for key in _BOOLEAN_FIELDS:
        if key in root:
            fields[key] = _expect_boolean(root[key], key)
    for key in _MAPPING_FIELDS:
        if key in root:
            fields[key] = dict(_expect_mapping(root[key], key))
    if "inline_data" in root:
        fields["inline_data"] = root["inline_data"]
    if "spreadsheet" in root:
        fields["spreadsheet"] = _parse_spreadsheet(root["spreadsheet"])
    return DatasetOptions(**fields)


def _load_yaml_payload(config_path: str | Path) -> object:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise TabulaDependencyError(
            "YAML dataset config support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    config_file = Path(config_path).expanduser().resolve()
    if not config_file.exists():
        raise TabulaConfigError(
            f"Dataset config file does not exist at {config_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise TabulaConfigError(
            f"Failed to read dataset config at {config_file}: {error}. Check file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise TabulaConfigError(
            f"Failed to parse YAML dataset config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise TabulaConfigError(f"Dataset config at {config_file} is empty. Define a source.")
    return payload


def _parse_spreadsheet(value: object) -> SpreadsheetSource:
    mapping = _expect_mapping(value, "spreadsheet")
    key = _expect_string(mapping.get("key"), "spreadsheet.key")
    worksheet = mapping.get("worksheet")
    if worksheet is None:
        return SpreadsheetSource(key=key)
    return SpreadsheetSource(key=key, worksheet=str(worksheet))


def _expect_mapping(value: object, context: str) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        for key in value:
            if not isinstance(key, str):
                raise TabulaConfigError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
        return value
    raise TabulaConfigError(
        f"Invalid {context}: expected mapping, got {type(value).__name__}."
    )


def _expect_string(value: object, context: str) -> str:
    if isinstance(value, str) and value:
        return value
    raise TabulaConfigError(f"Invalid {context}: expected non-empty string, got {value!r}.")


def _expect_boolean(value: object, context: str) -> bool:
    if isinstance(value, bool):
        return value
    raise TabulaConfigError(f"Invalid {context}: expected true or false, got {value!r}.")
