"""Pluggable column type registry.

This module maps type names to descriptors that test, coerce and
compare raw values. The process-wide default registry is populated with
the built-in types at import time; custom types must be registered
before any column declares them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import re
from typing import Any, Callable, Mapping

from core.constants import BOOLEAN_TYPE, MIXED_TYPE, NUMBER_TYPE, STRING_TYPE, TIME_TYPE
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

TypeOptions = Mapping[str, Any]

_NUMBER_PATTERN = re.compile(r"^\s*[-+]?(\d{1,3}(,\d{3})+(\.\d+)?|\d+(\.\d+)?|\.\d+)([eE][-+]?\d+)?\s*$")
_BOOLEAN_STRINGS = {"true": True, "false": False}


@dataclass(frozen=True)
class TypeDescriptor:
    """Behavior bundle for one column type.

    Attributes:
        name: Registered type name.
        test: Returns whether a raw value belongs to the type.
        coerce: Converts a value that passed ``test`` to its canonical form.
        compare: Orders two coerced values, returning -1, 0 or 1.
    """

    name: str
    test: Callable[[Any, TypeOptions], bool]
    coerce: Callable[[Any, TypeOptions], Any]
    compare: Callable[[Any, Any], int]


class TypeRegistry:
    """Ordered mapping of type name to descriptor."""

    def __init__(self) -> None:
        self._descriptors: dict[str, TypeDescriptor] = {}

    def register(self, name: str, descriptor: TypeDescriptor) -> None:
        """Register a descriptor; the last registration for a name wins.

        Args:
            name: Type name columns refer to.
            descriptor: Type behavior.
        """
        replaced = name in self._descriptors
        self._descriptors[name] = descriptor
        _LOGGER.debug("type_registered", type_name=name, replaced=replaced)

    def resolve(self, name: str | None) -> TypeDescriptor | None:
        """Return the descriptor for a name, or None when unknown."""
        if name is None:
            return None
        return self._descriptors.get(name)

    def classify(self, value: Any, options: TypeOptions | None = None) -> str:
        """Infer the best-matching type name for a raw value.

        Specific types are tried in registration order, then ``string``,
        then ``mixed``. Values nothing accepts classify as ``string``.

        Args:
            value: Raw value to classify.
            options: Type options forwarded to each test.

        Returns:
            Registered type name.
        """
        if value is None:
            return MIXED_TYPE
        type_options = options or {}
        for name in self._classification_order():
            if self._descriptors[name].test(value, type_options):
                return name
        return STRING_TYPE

    def names(self) -> tuple[str, ...]:
        """Return registered type names in registration order."""
        return tuple(self._descriptors)

    def copy(self) -> "TypeRegistry":
        """Return an independent registry with the same descriptors."""
        clone = TypeRegistry()
        clone._descriptors = dict(self._descriptors)
        return clone

    def _classification_order(self) -> list[str]:
        generic = [name for name in (STRING_TYPE, MIXED_TYPE) if name in self._descriptors]
        specific = [name for name in self._descriptors if name not in generic]
        return specific + generic

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors


def compare_values(left: Any, right: Any) -> int:
    """Order two values with None first, returning -1, 0 or 1."""
    if left is None or right is None:
        return (left is not None) - (right is not None)
    return (left > right) - (left < right)


def _test_mixed(value: Any, options: TypeOptions) -> bool:
    return True


def _coerce_identity(value: Any, options: TypeOptions) -> Any:
    return value


def _test_string(value: Any, options: TypeOptions) -> bool:
    return value is None or isinstance(value, str)


def _coerce_string(value: Any, options: TypeOptions) -> str | None:
    return None if value is None else str(value)


def _test_boolean(value: Any, options: TypeOptions) -> bool:
    if value is None or isinstance(value, bool):
        return True
    return isinstance(value, str) and value.strip().lower() in _BOOLEAN_STRINGS


def _coerce_boolean(value: Any, options: TypeOptions) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    return _BOOLEAN_STRINGS[str(value).strip().lower()]


def _test_number(value: Any, options: TypeOptions) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and _NUMBER_PATTERN.match(value) is not None


def _coerce_number(value: Any, options: TypeOptions) -> int | float | None:
    if value is None or isinstance(value, (int, float)):
        return value
    text = str(value).strip().replace(",", "")
    if re.fullmatch(r"[-+]?\d+", text):
        return int(text)
    return float(text)


def _parse_time(value: str, options: TypeOptions) -> datetime:
    time_format = options.get("format")
    if time_format:
        return datetime.strptime(value.strip(), time_format)
    return datetime.fromisoformat(value.strip())


def _test_time(value: Any, options: TypeOptions) -> bool:
    if value is None or isinstance(value, datetime):
        return True
    if not isinstance(value, str):
        return False
    try:
        _parse_time(value, options)
    except ValueError:
        return False
    return True


def _coerce_time(value: Any, options: TypeOptions) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return _parse_time(str(value), options)


def build_default_registry() -> TypeRegistry:
    """Create a registry holding the built-in types.

    Returns:
        Registry with mixed, string, boolean, number and time types.
    """
    registry = TypeRegistry()
    registry.register(MIXED_TYPE, TypeDescriptor(MIXED_TYPE, _test_mixed, _coerce_identity, compare_values))
    registry.register(STRING_TYPE, TypeDescriptor(STRING_TYPE, _test_string, _coerce_string, compare_values))
    registry.register(BOOLEAN_TYPE, TypeDescriptor(BOOLEAN_TYPE, _test_boolean, _coerce_boolean, compare_values))
    registry.register(NUMBER_TYPE, TypeDescriptor(NUMBER_TYPE, _test_number, _coerce_number, compare_values))
    registry.register(TIME_TYPE, TypeDescriptor(TIME_TYPE, _test_time, _coerce_time, compare_values))
    return registry


_DEFAULT_REGISTRY = build_default_registry()


def default_registry() -> TypeRegistry:
    """Return the process-wide registry shared by datasets."""
    return _DEFAULT_REGISTRY


def register_type(name: str, descriptor: TypeDescriptor) -> None:
    """Register a descriptor on the process-wide registry."""
    _DEFAULT_REGISTRY.register(name, descriptor)
