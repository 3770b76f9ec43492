"""
Data Mapper
Connects live control values to schema and layout locations.

Produces four things from the binding template and layout:
- the data map, keyed by generic data pointer (array indices → ``-``)
- the data-side circular map (circular site → data location it re-enters)
- the live value tree, seeded from initial values, then schema defaults
- the array map (concrete array pointer → item count)
"""

import copy
from typing import Any

from pydantic import BaseModel, Field

from core import InvariantViolation, get_logger

from . import pointer
from .binding import binding_index, iter_binding
from .layout import iter_layout
from .models import BindingNode, DataMapEntry, LayoutNode
from .schema_utils import required_names, schema_type

logger = get_logger(__name__)


class DataMapping(BaseModel):
    """Data mapper output."""

    data_map: dict[str, DataMapEntry] = Field(default_factory=dict)
    circular_refs: dict[str, str] = Field(default_factory=dict, description="Data-side circular map")
    values: Any = Field(default=None, description="Seeded live value tree")
    array_map: dict[str, int] = Field(default_factory=dict)


def data_circular_refs(circular_refs: dict[str, str], circular_anchors: dict[str, str] | None = None) -> dict[str, str]:
    """Translate schema-side circular sites into data pointers (sites outside the data tree are dropped)."""
    anchors = circular_anchors or {}
    translated: dict[str, str] = {}
    for site, target in circular_refs.items():
        site_data = pointer.schema_to_data_pointer(site)
        target_data = pointer.schema_to_data_pointer(anchors.get(site, target))
        if site_data is not None and target_data is not None:
            translated[site_data] = target_data
    return translated


class ValueSeeder:
    """
    Seeds the live value tree from a binding template.

    Precedence per control: initial value, schema default, None. Circular
    ``ref`` controls only grow while there is data below them.
    """

    def __init__(self, template: BindingNode) -> None:
        self.index = binding_index(template)
        self.array_map: dict[str, int] = {}

    def seed(self, node: BindingNode, value: Any, at: str) -> Any:
        if value is None and node.default is not None:
            value = copy.deepcopy(node.default)

        if node.control_type == "ref":
            target = self.index.get(node.ref_target) if node.ref_target is not None else None
            if value is None or target is None:
                return None
            return self.seed(target, value, at)

        if node.control_type == "group":
            source = value if isinstance(value, dict) else {}
            return {
                name: self.seed(child, source.get(name), pointer.join(at, name))
                for name, child in node.controls.items()
            }

        if node.control_type == "array":
            source = value if isinstance(value, list) else []
            items: list[Any] = []
            for i, item in enumerate(source):
                template = node.tuple_items[i] if i < len(node.tuple_items) else node.item_template
                if template is None:
                    break
                items.append(self.seed(template, item, pointer.join(at, i)))
            self.array_map[at] = len(items)
            return items

        return copy.deepcopy(value)


def _declared_types(schema_node: Any) -> str | list[str] | None:
    """The node's ``type`` keyword as written, union lists included."""
    if not isinstance(schema_node, dict):
        return None
    declared = schema_node.get("type")
    if isinstance(declared, str):
        return declared
    if isinstance(declared, list) and all(isinstance(t, str) for t in declared):
        return list(declared)
    return None


class DataMapper:
    """
    Builds the data map and seeds live values.

    Examples:
        >>> from formmodel.layout import LayoutBuilder
        >>> schema = {"type": "object", "properties": {"tags": {"type": "array", "items": {"type": "string"}}}}
        >>> built = LayoutBuilder().build(schema, ["*"])
        >>> DataMapper().map(schema, built.binding, built.layout, {}, {"tags": ["a", "b"]}).array_map
        {'/tags': 2}
    """

    def map(
        self,
        schema: dict[str, Any],
        template: BindingNode | None,
        layout: list[LayoutNode],
        circular_refs: dict[str, str],
        initial_values: Any,
        circular_anchors: dict[str, str] | None = None,
    ) -> DataMapping:
        """
        Raises:
            InvariantViolation: If a leaf control has no layout node
        """
        if template is None:
            return DataMapping()

        layout_pointers = {
            node.data_pointer: node.layout_pointer for node in iter_layout(layout) if node.data_pointer is not None
        }

        data_map: dict[str, DataMapEntry] = {}
        for node in iter_binding(template):
            schema_node = pointer.get(schema, node.schema_pointer, {})
            is_leaf = node.control_type in ("control", "ref")
            layout_pointer = layout_pointers.get(node.data_pointer)
            if is_leaf and layout_pointer is None:
                raise InvariantViolation(f"No layout node for control at {node.data_pointer!r}")

            data_map[node.data_pointer] = DataMapEntry(
                data_pointer=node.data_pointer,
                schema_pointer=node.schema_pointer,
                layout_pointer=layout_pointer,
                schema_type=node.schema_type or schema_type(schema_node),
                declared_types=_declared_types(schema_node),
                schema_format=schema_node.get("format") if isinstance(schema_node, dict) else None,
                required=required_names(schema_node) if node.control_type == "group" else [],
                tuple_items=len(node.tuple_items) if node.tuple_items else None,
                circular_target=node.ref_target if node.control_type == "ref" else None,
            )

        seeder = ValueSeeder(template)
        values = seeder.seed(template, copy.deepcopy(initial_values), "")

        mapping = DataMapping(
            data_map=data_map,
            circular_refs=data_circular_refs(circular_refs, circular_anchors),
            values=values,
            array_map=seeder.array_map,
        )
        logger.debug("data_mapped", entries=len(data_map), arrays=len(seeder.array_map))
        return mapping


__all__ = ["DataMapper", "DataMapping", "ValueSeeder", "data_circular_refs"]
