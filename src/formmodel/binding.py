"""
Binding Template
Describes the reactive control tree an external binding layer instantiates.

Objects become groups, arrays become arrays (one item template, or one
template per tuple position), everything else a single control. Circular
``$ref`` markers become ``ref`` nodes pointing at the data location they
re-enter; the binding layer grows them one level at a time.
"""

from typing import Any, Iterator

from . import pointer
from .models import BindingNode
from .schema_utils import is_circular_marker, required_names, schema_type, validators_for


def build_binding_template(
    schema: dict[str, Any],
    circular_refs: dict[str, str] | None = None,
    overrides: dict[str, dict[str, Any]] | None = None,
    circular_anchors: dict[str, str] | None = None,
) -> BindingNode | None:
    """
    Build the binding template for a resolved schema.

    Args:
        schema: Resolved schema
        circular_refs: Circular $ref site -> target
        overrides: Generic data pointer -> validators found on layout entries
        circular_anchors: Circular $ref site -> location it re-enters

    Returns:
        Root binding node, or None for an empty schema
    """
    if not schema:
        return None
    circular_refs = circular_refs or {}
    anchors = circular_anchors or {}

    def build(node: dict[str, Any], schema_ptr: str, data_ptr: str, required: bool) -> BindingNode:
        if is_circular_marker(node, schema_ptr, circular_refs):
            anchor = anchors.get(schema_ptr, circular_refs[schema_ptr])
            return BindingNode(
                control_type="ref",
                data_pointer=data_ptr,
                schema_pointer=schema_ptr,
                validators={"required": True} if required else {},
                ref_target=pointer.schema_to_data_pointer(anchor),
            )

        kind = schema_type(node)
        base = dict(
            data_pointer=data_ptr,
            schema_pointer=schema_ptr,
            schema_type=kind,
            default=node.get("default"),
            validators=validators_for(node, required),
        )

        if kind == "object":
            properties = node.get("properties")
            if not isinstance(properties, dict):
                properties = {}
            required_children = required_names(node)
            controls = {
                name: build(
                    child,
                    pointer.join(schema_ptr, "properties", name),
                    pointer.join(data_ptr, name),
                    name in required_children,
                )
                for name, child in properties.items()
                if isinstance(child, dict)
            }
            return BindingNode(control_type="group", controls=controls, **base)

        if kind == "array":
            items = node.get("items")
            tuple_items: list[BindingNode] = []
            item_template = None
            if isinstance(items, list):
                tuple_items = [
                    build(item, pointer.join(schema_ptr, "items", i), pointer.join(data_ptr, i), False)
                    for i, item in enumerate(items)
                    if isinstance(item, dict)
                ]
                additional = node.get("additionalItems")
                if isinstance(additional, dict):
                    item_template = build(
                        additional,
                        pointer.join(schema_ptr, "additionalItems"),
                        pointer.join(data_ptr, "-"),
                        False,
                    )
            elif isinstance(items, dict):
                item_template = build(items, pointer.join(schema_ptr, "items"), pointer.join(data_ptr, "-"), False)
            return BindingNode(control_type="array", item_template=item_template, tuple_items=tuple_items, **base)

        return BindingNode(control_type="control", **base)

    template = build(schema, "", "", False)
    if overrides:
        template = apply_validator_overrides(template, overrides)
    return template


def iter_binding(node: BindingNode) -> Iterator[BindingNode]:
    """Every node of a template, parents first."""
    yield node
    for child in node.controls.values():
        yield from iter_binding(child)
    for child in node.tuple_items:
        yield from iter_binding(child)
    if node.item_template is not None:
        yield from iter_binding(node.item_template)


def binding_index(template: BindingNode | None) -> dict[str, BindingNode]:
    """Template nodes keyed by generic data pointer."""
    if template is None:
        return {}
    return {node.data_pointer: node for node in iter_binding(template)}


def apply_validator_overrides(template: BindingNode, overrides: dict[str, dict[str, Any]]) -> BindingNode:
    """Return a copy of template with layout-supplied validators merged in (layout wins)."""
    updated = template.model_copy(deep=True)
    index = binding_index(updated)
    for data_pointer, validators in overrides.items():
        node = index.get(data_pointer)
        if node is not None and validators:
            node.validators = {**node.validators, **validators}
    return updated


__all__ = ["build_binding_template", "apply_validator_overrides", "binding_index", "iter_binding"]
