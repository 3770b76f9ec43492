"""Schema node helpers shared by the layout, binding and data-map builders."""

import re
from typing import Any, Iterator

from . import pointer

# Keywords copied onto controls as validators
VALIDATOR_KEYWORDS = (
    "pattern",
    "format",
    "minLength",
    "maxLength",
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
    "minItems",
    "maxItems",
    "uniqueItems",
    "minProperties",
    "maxProperties",
    "enum",
    "const",
)


def schema_type(node: Any) -> str | None:
    """
    Effective type of a schema node.

    Union types resolve to their first non-null member. Untyped nodes are
    inferred from ``properties``/``items``/``enum``.
    """
    if not isinstance(node, dict):
        return None
    declared = node.get("type")
    if isinstance(declared, list):
        non_null = [t for t in declared if t != "null"]
        declared = non_null[0] if non_null else (declared[0] if declared else None)
    if isinstance(declared, str):
        return declared
    if isinstance(node.get("properties"), dict):
        return "object"
    if "items" in node:
        return "array"
    enum = node.get("enum")
    if isinstance(enum, list) and enum:
        first = enum[0]
        if isinstance(first, bool):
            return "boolean"
        if isinstance(first, int):
            return "integer"
        if isinstance(first, float):
            return "number"
        if isinstance(first, str):
            return "string"
    return None


def is_circular_marker(node: Any, schema_pointer: str, circular_refs: dict[str, str]) -> bool:
    return isinstance(node, dict) and "$ref" in node and schema_pointer in circular_refs


def field_names(node: dict[str, Any]) -> list[str]:
    """
    Property names of an object node, in display order.

    ``ui:order`` reorders them; a ``*`` inside it stands for every property
    it does not name. Names in ``ui:order`` that are not properties are
    ignored.
    """
    properties = node.get("properties")
    if not isinstance(properties, dict):
        return []
    names = [name for name, child in properties.items() if isinstance(child, dict)]
    order = node.get("ui:order")
    if not isinstance(order, list):
        return names

    listed = [name for name in order if name != "*" and name in names]
    rest = [name for name in names if name not in listed]
    if "*" not in order:
        return listed + rest
    ordered: list[str] = []
    for name in order:
        if name == "*":
            ordered.extend(rest)
        elif name in names and name not in ordered:
            ordered.append(name)
    return ordered


def required_names(node: dict[str, Any]) -> list[str]:
    required = node.get("required")
    return [name for name in required if isinstance(name, str)] if isinstance(required, list) else []


def validators_for(node: dict[str, Any], required: bool = False) -> dict[str, Any]:
    validators = {key: node[key] for key in VALIDATOR_KEYWORDS if key in node}
    if required:
        validators["required"] = True
    return validators


def iter_fields(
    schema: dict[str, Any],
    circular_refs: dict[str, str],
    schema_pointer: str = "",
    data_pointer: str = "",
) -> Iterator[tuple[str, str, dict[str, Any]]]:
    """
    Yield (generic data pointer, schema pointer, node) for every field.

    Parents come before children. Circular markers are yielded but not
    entered.
    """
    yield data_pointer, schema_pointer, schema
    if is_circular_marker(schema, schema_pointer, circular_refs):
        return

    kind = schema_type(schema)
    if kind == "object":
        properties = schema.get("properties", {})
        for name in field_names(schema):
            yield from iter_fields(
                properties[name],
                circular_refs,
                pointer.join(schema_pointer, "properties", name),
                pointer.join(data_pointer, name),
            )
    elif kind == "array":
        items = schema.get("items")
        if isinstance(items, list):
            for index, item in enumerate(items):
                if isinstance(item, dict):
                    yield from iter_fields(
                        item,
                        circular_refs,
                        pointer.join(schema_pointer, "items", index),
                        pointer.join(data_pointer, index),
                    )
            additional = schema.get("additionalItems")
            if isinstance(additional, dict):
                yield from iter_fields(
                    additional,
                    circular_refs,
                    pointer.join(schema_pointer, "additionalItems"),
                    pointer.join(data_pointer, "-"),
                )
        elif isinstance(items, dict):
            yield from iter_fields(
                items,
                circular_refs,
                pointer.join(schema_pointer, "items"),
                pointer.join(data_pointer, "-"),
            )


def is_leaf(node: dict[str, Any], schema_pointer: str, circular_refs: dict[str, str]) -> bool:
    if is_circular_marker(node, schema_pointer, circular_refs):
        return True
    return schema_type(node) not in ("object", "array")


def generic_data_pointer(data_pointer: str, schema: dict[str, Any]) -> str:
    """
    Replace array indices with ``-``, except tuple positions.

    ``/tags/3`` → ``/tags/-`` for a list schema; ``/pair/1`` stays for a
    tuple schema whose ``items`` is a list.
    """
    node: Any = schema
    out: list[str] = []
    for segment in pointer.parse(data_pointer):
        is_index = segment == "-" or segment.isdigit()
        items = node.get("items") if isinstance(node, dict) else None
        if is_index and isinstance(items, list):
            if segment != "-" and int(segment) < len(items):
                out.append(segment)
                node = items[int(segment)]
            else:
                out.append("-")
                node = node.get("additionalItems")
        elif is_index and isinstance(node, dict) and schema_type(node) == "array":
            out.append("-")
            node = items
        else:
            out.append(segment)
            properties = node.get("properties") if isinstance(node, dict) else None
            node = properties.get(segment) if isinstance(properties, dict) else None
    return pointer.compile(out)


def fix_title(name: str) -> str:
    """
    Human title from a field name.

    Examples:
        >>> fix_title("firstName")
        'First Name'
        >>> fix_title("postal_code")
        'Postal Code'
    """
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", name)
    words = re.split(r"[\s_\-]+", spaced)
    return " ".join(word[:1].upper() + word[1:] for word in words if word)
