"""
Layout Builder
Expands a declarative layout against the resolved schema.

The result is closed-world: every schema leaf is placed by exactly one layout
node. Leaves the layout never mentions (and ``*`` never reached) are appended
as hidden nodes so their values still round-trip through the form.
"""

from typing import Any

from pydantic import BaseModel, Field

from core import get_logger

from . import pointer
from .binding import build_binding_template
from .hints import HINT_BAG, merge_ui_hints
from .models import BindingNode, LayoutNode
from .schema_utils import (
    VALIDATOR_KEYWORDS,
    field_names,
    fix_title,
    generic_data_pointer,
    is_circular_marker,
    is_leaf,
    iter_fields,
    required_names,
    schema_type,
    validators_for,
)

logger = get_logger(__name__)

FORMAT_WIDGETS: dict[str, str] = {
    "date": "date",
    "date-time": "datetime-local",
    "time": "time",
    "email": "email",
    "uri": "url",
    "color": "color",
}

# Entry keys that are not passed through as options
RESERVED_KEYS = frozenset({"key", "type", "items", "title", "description", "required", *VALIDATOR_KEYWORDS})
HINT_RESERVED = frozenset({"type", "widget", "title", "description"})


class LayoutResult(BaseModel):
    """Layout builder output."""

    layout: list[LayoutNode] = Field(default_factory=list)
    binding: BindingNode | None = Field(default=None)
    json_schema: dict[str, Any] = Field(default_factory=dict, description="Schema with UI hints merged")
    overrides: dict[str, dict[str, Any]] = Field(default_factory=dict)


def default_widget(node: dict[str, Any]) -> str:
    """Widget used for a schema node when nothing more specific is given."""
    if isinstance(node.get("enum"), list):
        return "select"
    kind = schema_type(node)
    if kind == "string":
        return FORMAT_WIDGETS.get(node.get("format"), "text")
    if kind in ("number", "integer"):
        return "number"
    if kind == "boolean":
        return "checkbox"
    if kind == "object":
        return "section"
    if kind == "array":
        items = node.get("items")
        if isinstance(items, dict) and isinstance(items.get("enum"), list) and node.get("uniqueItems"):
            return "checkboxes"
        return "array"
    if kind == "null":
        return "none"
    return "text"


def normalize_title_map(title_map: Any) -> Any:
    """``{value: name}`` → ``[{"value": value, "name": name}]``; lists pass through."""
    if isinstance(title_map, dict):
        return [{"value": value, "name": name} for value, name in title_map.items()]
    return title_map


class _LayoutPass:
    """State of one layout build."""

    def __init__(
        self,
        schema: dict[str, Any],
        circular_refs: dict[str, str],
        circular_anchors: dict[str, str],
    ) -> None:
        self.schema = schema
        self.circular_refs = circular_refs
        self.circular_anchors = circular_anchors
        self.fields = {dp: (sp, node) for dp, sp, node in iter_fields(schema, circular_refs)} if schema else {}
        self.mentioned: set[str] = set()
        self.placed: dict[str, LayoutNode] = {}
        self.overrides: dict[str, dict[str, Any]] = {}
        self._count = 0

    def _next_id(self, kind: str) -> str:
        self._count += 1
        return f"{kind}-{self._count}"

    def _generic(self, key: Any) -> str | None:
        try:
            return generic_data_pointer(pointer.key_to_pointer(key), self.schema)
        except pointer.PointerError:
            return None

    def collect_mentions(self, entries: list[Any]) -> None:
        for entry in entries:
            key = entry if isinstance(entry, str) and entry != "*" else None
            if isinstance(entry, dict):
                key = entry.get("key")
                if isinstance(entry.get("items"), list):
                    self.collect_mentions(entry["items"])
            if key is not None:
                generic = self._generic(key)
                if generic is not None:
                    self.mentioned.add(generic)

    def build_entries(self, entries: list[Any], group: str) -> list[LayoutNode]:
        nodes: list[LayoutNode] = []
        for entry in entries:
            if entry == "*":
                nodes.extend(self.expand_wildcard(group))
                continue
            if isinstance(entry, str):
                entry = {"key": entry}
            if not isinstance(entry, dict):
                logger.warning("layout_entry_ignored", entry=repr(entry))
                continue
            node = self.keyed(entry, group) if entry.get("key") is not None else self.container(entry, group)
            if node is not None:
                nodes.append(node)
        return nodes

    def expand_wildcard(self, group: str) -> list[LayoutNode]:
        if group not in self.fields:
            return []
        sp, node = self.fields[group]
        if schema_type(node) != "object" or is_circular_marker(node, sp, self.circular_refs):
            return []
        properties = node.get("properties", {})
        required = required_names(node)
        nodes: list[LayoutNode] = []
        for name in field_names(node):
            dp = pointer.join(group, name)
            if dp in self.mentioned or dp in self.placed or dp not in self.fields:
                continue
            nodes.append(self.field(dp, pointer.join(sp, "properties", name), properties[name], name in required))
        return nodes

    def keyed(self, entry: dict[str, Any], group: str) -> LayoutNode | None:
        key = entry["key"]
        generic = self._generic(key)
        if generic is not None and generic in self.placed:
            logger.warning("layout_duplicate_key", key=str(key))
            return None
        if generic is None or generic not in self.fields:
            logger.debug("layout_key_unmatched", key=str(key))
            return self.container(entry, group)

        sp, node = self.fields[generic]
        parent = pointer.parent(generic) if generic else None
        required = False
        if parent is not None and parent in self.fields:
            required = pointer.last(generic) in required_names(self.fields[parent][1])
        return self.field(generic, sp, node, required, entry)

    def container(self, entry: dict[str, Any], group: str) -> LayoutNode:
        kind = entry.get("type") or "section"
        key = entry.get("key")
        node = LayoutNode(
            id=self._next_id(kind),
            type=kind,
            key=key if isinstance(key, str) or key is None else pointer.pointer_to_key(pointer.compile(key)),
            title=entry.get("title"),
            description=entry.get("description"),
            options={k: v for k, v in entry.items() if k not in RESERVED_KEYS},
        )
        if isinstance(entry.get("items"), list):
            node.items = self.build_entries(entry["items"], group)
        return node

    def field(
        self,
        dp: str,
        sp: str,
        schema_node: dict[str, Any],
        required: bool,
        entry: dict[str, Any] | None = None,
    ) -> LayoutNode:
        entry = entry or {}
        bag = schema_node.get(HINT_BAG) if isinstance(schema_node.get(HINT_BAG), dict) else {}
        circular = is_circular_marker(schema_node, sp, self.circular_refs)
        name = pointer.last(dp)

        if circular:
            kind = "$ref"
        else:
            kind = entry.get("type") or bag.get("type") or bag.get("widget") or default_widget(schema_node)

        title = entry.get("title", bag.get("title", schema_node.get("title")))
        if title is None and name is not None and name != "-" and not name.isdigit():
            title = fix_title(name)
        description = entry.get("description", bag.get("description", schema_node.get("description")))

        options = {k: v for k, v in bag.items() if k not in HINT_RESERVED}
        options.update({k: v for k, v in entry.items() if k not in RESERVED_KEYS})
        if "titleMap" in options:
            options["titleMap"] = normalize_title_map(options["titleMap"])

        overrides = {k: entry[k] for k in (*VALIDATOR_KEYWORDS, "required") if k in entry}
        if overrides:
            self.overrides[dp] = overrides
        is_required = required or entry.get("required") is True
        validators = {**validators_for(schema_node, is_required), **overrides}
        if overrides.get("required") is False:
            is_required = False
            validators.pop("required", None)

        key = entry.get("key")
        node = LayoutNode(
            id=self._next_id(kind),
            type=kind,
            key=key if isinstance(key, str) else pointer.pointer_to_key(dp),
            data_pointer=dp,
            schema_pointer=sp,
            title=title,
            description=description,
            required=is_required,
            options=options,
            validators=validators,
        )
        self.placed[dp] = node

        if circular:
            anchor = self.circular_anchors.get(sp, self.circular_refs[sp])
            node.circular_ref = pointer.schema_to_data_pointer(anchor)
            return node

        if isinstance(entry.get("items"), list):
            group = pointer.join(dp, "-") if schema_type(schema_node) == "array" else dp
            node.items = self.build_entries(entry["items"], group)
        else:
            node.items = self.expand_children(dp, sp, schema_node)
        return node

    def expand_children(self, dp: str, sp: str, schema_node: dict[str, Any]) -> list[LayoutNode]:
        """Layout nodes for the fields below an object or array the layout did not detail."""
        kind = schema_type(schema_node)
        if kind == "object":
            return self.expand_wildcard(dp)
        if kind != "array":
            return []

        children: list[tuple[str, str, dict[str, Any]]] = []
        items = schema_node.get("items")
        if isinstance(items, list):
            children = [
                (pointer.join(dp, i), pointer.join(sp, "items", i), item)
                for i, item in enumerate(items)
                if isinstance(item, dict)
            ]
            additional = schema_node.get("additionalItems")
            if isinstance(additional, dict):
                children.append((pointer.join(dp, "-"), pointer.join(sp, "additionalItems"), additional))
        elif isinstance(items, dict):
            children = [(pointer.join(dp, "-"), pointer.join(sp, "items"), items)]

        return [
            self.field(child_dp, child_sp, child, False)
            for child_dp, child_sp, child in children
            if child_dp not in self.mentioned and child_dp not in self.placed
        ]

    def close_world(self) -> list[LayoutNode]:
        """Hidden nodes for every schema leaf nothing placed."""
        hidden: list[LayoutNode] = []
        for dp, (sp, node) in self.fields.items():
            if dp in self.placed or not is_leaf(node, sp, self.circular_refs):
                continue
            circular = is_circular_marker(node, sp, self.circular_refs)
            hidden_node = LayoutNode(
                id=self._next_id("hidden"),
                type="hidden",
                key=pointer.pointer_to_key(dp),
                data_pointer=dp,
                schema_pointer=sp,
                hidden=True,
                validators={} if circular else validators_for(node),
            )
            if circular:
                anchor = self.circular_anchors.get(sp, self.circular_refs[sp])
                hidden_node.circular_ref = pointer.schema_to_data_pointer(anchor)
            self.placed[dp] = hidden_node
            hidden.append(hidden_node)
        if hidden:
            logger.info("layout_hidden_fields", count=len(hidden))
        return hidden


def _number(nodes: list[LayoutNode], prefix: str) -> None:
    for i, node in enumerate(nodes):
        node.layout_pointer = f"{prefix}/{i}"
        _number(node.items, f"{prefix}/{i}/items")


def iter_layout(nodes: list[LayoutNode]):
    """Every layout node, parents first."""
    for node in nodes:
        yield node
        yield from iter_layout(node.items)


class LayoutBuilder:
    """
    Builds the canonical layout tree and the binding template.

    Examples:
        >>> schema = {"type": "object", "properties": {"name": {"type": "string"}}}
        >>> result = LayoutBuilder().build(schema, ["*", {"type": "submit", "title": "Submit"}])
        >>> [(n.type, n.key) for n in result.layout]
        [('text', 'name'), ('submit', None)]
    """

    def build(
        self,
        schema: dict[str, Any],
        layout: list[Any],
        circular_refs: dict[str, str] | None = None,
        ui_hints: dict[str, Any] | None = None,
        circular_anchors: dict[str, str] | None = None,
    ) -> LayoutResult:
        circular_refs = circular_refs or {}
        merged = merge_ui_hints(schema, ui_hints)
        state = _LayoutPass(merged, circular_refs, circular_anchors or {})

        state.collect_mentions(layout)
        nodes = state.build_entries(layout, "")
        nodes.extend(state.close_world())
        _number(nodes, "")

        binding = build_binding_template(merged, circular_refs, state.overrides, circular_anchors)
        logger.info("layout_built", nodes=len(nodes), fields=len(state.placed))
        return LayoutResult(layout=nodes, binding=binding, json_schema=merged, overrides=state.overrides)


__all__ = ["LayoutBuilder", "LayoutResult", "default_widget", "normalize_title_map", "iter_layout"]
