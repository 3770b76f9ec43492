"""Fast JSON decoding of form inputs with multiple backends."""

from typing import Any
import json

import msgspec
import orjson
from json_repair import repair_json

from .validate import MAX_INPUT_SIZE, validate_json_size


class JSONParseError(Exception):
    """JSON parsing failed."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


def parse_json_document(text: str | bytes, repair: bool = False, max_size: int = MAX_INPUT_SIZE) -> Any:
    """
    Parse one JSON document (object, array or scalar).

    Schemas and data are objects, layouts are arrays, so unlike a plain
    object extractor any top-level value is accepted.

    Args:
        text: JSON text
        repair: Attempt to repair invalid JSON with json_repair
        max_size: Maximum accepted size in bytes

    Returns:
        Parsed document

    Raises:
        JSONParseError: If parsing fails
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise JSONParseError(f"Input is not UTF-8: {e}", e) from e

    validate_json_size(text, max_size, "Form input")
    json_str = text.strip()
    if not json_str:
        raise JSONParseError("Empty JSON document")

    # Try msgspec first (fastest)
    try:
        return msgspec.json.decode(json_str.encode("utf-8"))
    except msgspec.DecodeError as e:
        if not repair:
            raise JSONParseError(f"Invalid JSON: {e}", e) from e

    # Last resort: try json_repair
    try:
        repaired = repair_json(json_str)
        return json.loads(repaired)
    except (ValueError, TypeError) as repair_error:
        raise JSONParseError(f"JSON repair failed: {repair_error}", repair_error) from repair_error


def safe_json_dumps(obj: Any, **kwargs: Any) -> str:
    """
    Encode object to JSON string using fastest available library.

    Args:
        obj: Object to encode
        **kwargs: Additional arguments (indent, sort_keys)

    Returns:
        JSON string
    """
    indent = kwargs.get("indent", 0)
    sort_keys = kwargs.get("sort_keys", False)

    # Use orjson for compact output (fastest)
    if indent == 0:
        option = orjson.OPT_SORT_KEYS if sort_keys else 0
        try:
            return orjson.dumps(obj, option=option).decode("utf-8")
        except (TypeError, ValueError):
            # Fallback for edge cases (e.g., integers outside 64-bit range)
            pass

    # Use stdlib for pretty-printed output or as fallback (most compatible)
    return json.dumps(
        obj,
        indent=indent if indent > 0 else None,
        sort_keys=sort_keys,
        default=str,
        ensure_ascii=False,
    )
