"""
Schema Synthesizer
Infers a schema when the inputs carry none.

A layout without ``*`` describes every field it wants, so its keys become the
schema. Otherwise the shape of the initial data is used. If neither yields
anything the form stays empty.
"""

from typing import Any

from core import get_logger

from . import pointer

logger = get_logger(__name__)

DRAFT_07 = "http://json-schema.org/draft-07/schema#"

# Layout widget -> schema type it implies
WIDGET_TYPES: dict[str, str] = {
    "number": "number",
    "integer": "integer",
    "range": "number",
    "updown": "number",
    "checkbox": "boolean",
    "checkboxes": "array",
    "array": "array",
    "tabarray": "array",
}


def _layout_entries(layout: list[Any]) -> list[Any]:
    """All layout entries, containers before their children."""
    entries: list[Any] = []
    for entry in layout:
        entries.append(entry)
        if isinstance(entry, dict) and isinstance(entry.get("items"), list):
            entries.extend(_layout_entries(entry["items"]))
    return entries


def has_wildcard(layout: list[Any]) -> bool:
    return any(entry == "*" for entry in _layout_entries(layout))


def _entry_key(entry: Any) -> str | None:
    if isinstance(entry, str):
        return None if entry == "*" else entry
    if isinstance(entry, dict) and isinstance(entry.get("key"), (str, list)):
        return entry["key"]
    return None


def _entry_type(entry: Any) -> str:
    if not isinstance(entry, dict):
        return "string"
    for hint in ("dataType", "schemaType"):
        if isinstance(entry.get(hint), str):
            return entry[hint]
    return WIDGET_TYPES.get(entry.get("type"), "string")


def _title_map_values(title_map: Any) -> list[Any] | None:
    if isinstance(title_map, dict):
        return list(title_map.keys())
    if isinstance(title_map, list):
        return [item["value"] for item in title_map if isinstance(item, dict) and "value" in item]
    return None


def _descend(node: dict[str, Any], segment: str) -> dict[str, Any]:
    if segment == "-" or segment.isdigit():
        node["type"] = "array"
        return node.setdefault("items", {})
    if node.get("type") != "object":
        # A container keyed before its children was typed as a leaf
        node["type"] = "object"
        node.pop("enum", None)
    return node.setdefault("properties", {}).setdefault(segment, {})


def build_schema_from_layout(layout: list[Any]) -> dict[str, Any] | None:
    """
    Build an object schema with one property per layout key.

    Examples:
        >>> build_schema_from_layout([{"key": "title"}, {"key": "count", "type": "number"}])
        {'type': 'object', 'properties': {'title': {'type': 'string'}, 'count': {'type': 'number'}}}
    """
    schema: dict[str, Any] = {"type": "object", "properties": {}}
    found = False

    for entry in _layout_entries(layout):
        key = _entry_key(entry)
        if key is None:
            continue
        segments = pointer.key_to_segments(key)
        if not segments:
            continue
        found = True

        parent = schema
        for segment in segments[:-1]:
            parent = _descend(parent, segment)
        field = _descend(parent, segments[-1])

        if "type" not in field:
            field["type"] = _entry_type(entry)
        if not isinstance(entry, dict):
            continue

        for attribute in ("title", "description"):
            if attribute in entry and attribute not in field:
                field[attribute] = entry[attribute]
        values = _title_map_values(entry.get("titleMap"))
        if values:
            if field["type"] == "array":
                field.setdefault("items", {"type": "string"})["enum"] = values
            else:
                field["enum"] = values
        elif field["type"] == "array":
            field.setdefault("items", {"type": "string"})

        last = segments[-1]
        if entry.get("required") is True and last != "-" and not last.isdigit():
            required = parent.setdefault("required", [])
            if last not in required:
                required.append(last)

    return schema if found else None


def infer_schema(value: Any) -> dict[str, Any]:
    """Schema describing the shape of one value."""
    if isinstance(value, bool):
        return {"type": "boolean"}
    if isinstance(value, int):
        return {"type": "integer"}
    if isinstance(value, float):
        return {"type": "number"}
    if isinstance(value, str):
        return {"type": "string"}
    if value is None:
        return {"type": "null"}
    if isinstance(value, list):
        return {"type": "array", "items": infer_schema(value[0]) if value else {"type": "string"}}
    if isinstance(value, dict):
        return {"type": "object", "properties": {k: infer_schema(v) for k, v in value.items()}}
    return {"type": "string"}


def build_schema_from_data(data: Any) -> dict[str, Any] | None:
    """Infer a draft-07 schema from initial data (None for empty data)."""
    if not data:
        return None
    schema = {"$schema": DRAFT_07, **infer_schema(data)}
    return schema


def synthesize_schema(layout: list[Any], data: Any) -> dict[str, Any]:
    """
    Fill in a missing schema from the layout, or else from the data.

    Returns an empty dict when neither describes any field.
    """
    schema = None
    source = None
    if not has_wildcard(layout):
        schema = build_schema_from_layout(layout)
        source = "layout"
    if schema is None:
        schema = build_schema_from_data(data)
        source = "data"
    if schema is None:
        logger.info("schema_empty")
        return {}

    logger.info("schema_synthesized", source=source, fields=len(schema.get("properties", {})))
    return schema


__all__ = [
    "build_schema_from_layout",
    "build_schema_from_data",
    "synthesize_schema",
    "infer_schema",
    "has_wildcard",
    "DRAFT_07",
]
