"""
Form Data Formatter
Turns live control values into the data emitted to the outside world.

Formatting is pure and idempotent: values are coerced to their schema types
(lossless conversions only), empty values are dropped, and containers only
appear when they hold something or their parent requires them.
"""

import re
from typing import Any

from core import get_logger

from . import pointer
from .models import DataMapEntry

logger = get_logger(__name__)

_INTEGER = re.compile(r"^-?\d+$")
_NUMBER = re.compile(r"^-?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")

TRUE_VALUES = (True, "true", 1, "1")
FALSE_VALUES = (False, "false", 0, "0")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def to_schema_type(value: Any, types: str | list[str] | None) -> Any:
    """
    Coerce a primitive to one of the allowed schema types.

    Only lossless conversions are made (``"3"`` → 3 for integers, ``"true"``
    → True for booleans); anything else is returned unchanged for the
    validator to report.

    Examples:
        >>> to_schema_type("42", "integer")
        42
        >>> to_schema_type("4.2", "integer")
        '4.2'
        >>> to_schema_type(1, "boolean")
        True
    """
    if types is None:
        return value
    allowed = types if isinstance(types, list) else [types]
    if any(_matches(value, t) for t in allowed):
        return value
    for t in allowed:
        converted = _convert(value, t)
        if converted is not MISSING:
            return converted
    return value


def _matches(value: Any, kind: str) -> bool:
    if kind == "string":
        return isinstance(value, str)
    if kind == "boolean":
        return isinstance(value, bool)
    if kind == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if kind == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind == "null":
        return value is None
    return False


def _convert(value: Any, kind: str) -> Any:
    if kind == "integer":
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str) and _INTEGER.match(value.strip()):
            return int(value.strip())
    elif kind == "number":
        if isinstance(value, str) and _NUMBER.match(value.strip()):
            text = value.strip()
            return int(text) if _INTEGER.match(text) else float(text)
    elif kind == "boolean":
        if not isinstance(value, (list, dict)):
            if value in TRUE_VALUES:
                return True
            if value in FALSE_VALUES:
                return False
    elif kind == "string":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
    return MISSING


def generic_pointer(concrete: str, data_map: dict[str, DataMapEntry], circular_refs: dict[str, str]) -> str | None:
    """
    Data-map key for a concrete data pointer.

    Array indices become ``-`` (tuple positions stay), and paths that run
    through a circular site are folded back onto the location it re-enters.
    Returns None when nothing in the data map describes the pointer.
    """
    generic = ""
    for segment in pointer.parse(concrete):
        folded = False
        while True:
            candidate = pointer.join(generic, segment)
            if candidate in data_map:
                break
            if segment.isdigit() and pointer.join(generic, "-") in data_map:
                candidate = pointer.join(generic, "-")
                break
            target = circular_refs.get(generic)
            if target is None or target == generic or folded:
                return None
            generic = target
            folded = True
        generic = candidate
    return generic


class _Formatter:
    def __init__(
        self,
        data_map: dict[str, DataMapEntry],
        circular_refs: dict[str, str],
        array_map: dict[str, int],
        final: bool,
    ) -> None:
        self.data_map = data_map
        self.circular_refs = circular_refs
        self.array_map = array_map
        self.final = final

    def describe(self, generic: str) -> DataMapEntry:
        """Entry that types a value (circular sites are typed by their target)."""
        entry = self.data_map[generic]
        if entry.circular_target is not None and entry.circular_target in self.data_map:
            return self.data_map[entry.circular_target]
        return entry

    def format(self, value: Any, concrete: str, generic: str, required: bool) -> Any:
        entry = self.describe(generic)
        kind = entry.schema_type

        if isinstance(value, dict):
            out: dict[str, Any] = {}
            for key, child in value.items():
                child_concrete = pointer.join(concrete, key)
                child_generic = generic_pointer(child_concrete, self.data_map, self.circular_refs)
                if child_generic is None:
                    logger.debug("format_pointer_unmapped", pointer=child_concrete)
                    continue
                formatted = self.format(child, child_concrete, child_generic, key in entry.required)
                if formatted is not MISSING:
                    out[key] = formatted
            return out if out or required or self.final else MISSING

        if isinstance(value, list):
            count = self.array_map.get(concrete, len(value))
            items: list[Any] = []
            for index, child in enumerate(value[:count]):
                child_concrete = pointer.join(concrete, index)
                child_generic = generic_pointer(child_concrete, self.data_map, self.circular_refs)
                if child_generic is None:
                    logger.debug("format_pointer_unmapped", pointer=child_concrete)
                    continue
                formatted = self.format(child, child_concrete, child_generic, False)
                if formatted is not MISSING:
                    items.append(formatted)
            return items if items or required or self.final else MISSING

        if value is None or value == "":
            if kind == "null":
                return None
            if self.final and kind in ("object", "array"):
                return {} if kind == "object" else []
            if required and kind in ("object", "array"):
                return {} if kind == "object" else []
            return MISSING

        return to_schema_type(value, entry.declared_types or kind)


def format_form_data(
    values: Any,
    data_map: dict[str, DataMapEntry],
    circular_refs: dict[str, str],
    array_map: dict[str, int],
    final: bool = False,
) -> Any:
    """
    Format live values for emission.

    Args:
        values: Live value tree
        data_map: Data map keyed by generic data pointer
        circular_refs: Data-side circular map
        array_map: Concrete array pointer -> item count
        final: Submission mode (every container is materialized)

    Returns:
        Formatted data; the root is always present (``{}`` when nothing is set)
    """
    if "" not in data_map:
        return {} if values is None or isinstance(values, dict) else values

    formatted = _Formatter(data_map, circular_refs, array_map, final).format(values, "", "", True)
    if formatted is MISSING:
        return {}
    return formatted


__all__ = ["format_form_data", "generic_pointer", "to_schema_type", "MISSING"]
