"""
UI Hint Import
Copies RJSF ``UISchema`` / JSON Form ``customFormItems`` hints into the schema.

Hints land in an ``x-schema-form`` bag on the schema node they describe, where
the layout builder picks them up. Explicit layout entries still win over them.
"""

import copy
from typing import Any

from core import get_logger

from . import pointer

logger = get_logger(__name__)

HINT_BAG = "x-schema-form"
UI_PREFIX = "ui:"
UI_ORDER = "ui:order"


def fix_json_form_options(layout: Any) -> Any:
    """
    Rename JSON Form ``options`` objects to ``titleMap``.

    Applied to every object in the tree. Returns a new tree.
    """
    fixed = copy.deepcopy(layout)
    for _, node in pointer.walk(fixed):
        if isinstance(node, dict) and isinstance(node.get("options"), dict):
            node["titleMap"] = node.pop("options")
    return fixed


def _strip_prefix(key: str) -> str:
    return key[len(UI_PREFIX):] if key.lower().startswith(UI_PREFIX) else key


def _is_hint(key: str, value: Any) -> bool:
    return key.lower().startswith(UI_PREFIX) or key == "titleMap" or not isinstance(value, dict)


def _child(node: dict[str, Any], key: str) -> dict[str, Any] | None:
    """Schema node for a (possibly dotted) field key under node."""
    current: Any = node
    for segment in pointer.key_to_segments(key):
        if not isinstance(current, dict):
            return None
        properties = current.get("properties")
        if segment == "-" and isinstance(current.get("items"), dict):
            current = current["items"]
        elif isinstance(properties, dict) and segment in properties:
            current = properties[segment]
        else:
            return None
    return current if isinstance(current, dict) else None


def _apply(node: dict[str, Any], hints: dict[str, Any], path: str) -> None:
    for key, value in hints.items():
        if key == UI_ORDER:
            node.setdefault(UI_ORDER, copy.deepcopy(value))
        elif _is_hint(key, value):
            bag = node.setdefault(HINT_BAG, {})
            bag.setdefault(_strip_prefix(key), copy.deepcopy(value))
        elif key == "items" and isinstance(node.get("items"), dict):
            _apply(node["items"], value, f"{path}/items")
        else:
            child = _child(node, key)
            if child is None:
                logger.debug("ui_hint_unmatched", key=key, at=path or "/")
                continue
            _apply(child, value, f"{path}/{key}")


def merge_ui_hints(schema: dict[str, Any], hints: dict[str, Any] | None) -> dict[str, Any]:
    """
    Return a copy of schema with hints merged into ``x-schema-form`` bags.

    Rules:
    - ``ui:`` prefixes are stripped; ``ui:order`` stays on the group node
    - keys naming fields descend into them (dotted keys allowed, ``items``
      descends into array items)
    - the first value written for a hint wins; hints for unknown fields are
      dropped

    Examples:
        >>> schema = {"type": "object", "properties": {"bio": {"type": "string"}}}
        >>> merge_ui_hints(schema, {"bio": {"ui:widget": "textarea"}})["properties"]["bio"]
        {'type': 'string', 'x-schema-form': {'widget': 'textarea'}}
    """
    merged = copy.deepcopy(schema)
    if not hints or not isinstance(hints, dict) or not merged:
        return merged
    _apply(merged, hints, "")
    return merged


__all__ = ["merge_ui_hints", "fix_json_form_options", "HINT_BAG"]
