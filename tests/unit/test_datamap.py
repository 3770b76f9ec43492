"""Tests for data mapping and value seeding."""

import pytest

from core import InvariantViolation
from formmodel import DataMapper, LayoutBuilder, ReferenceResolver
from formmodel.datamap import data_circular_refs


def _map(schema, layout, data):
    resolved = ReferenceResolver().resolve(schema)
    built = LayoutBuilder().build(
        resolved.json_schema, layout, resolved.circular_refs, circular_anchors=resolved.circular_anchors
    )
    return built, DataMapper().map(
        built.json_schema,
        built.binding,
        built.layout,
        resolved.circular_refs,
        data,
        resolved.circular_anchors,
    )


@pytest.mark.unit
def test_array_counts():
    """Test the array map records item counts per concrete array."""
    schema = {"type": "object", "properties": {"tags": {"type": "array", "items": {"type": "string"}}}}
    _, mapping = _map(schema, ["*"], {"tags": ["a", "b"]})

    assert mapping.array_map == {"/tags": 2}
    assert mapping.values == {"tags": ["a", "b"]}


@pytest.mark.unit
def test_data_map_entries(person_schema):
    """Test entries are keyed by generic pointer and carry layout pointers."""
    built, mapping = _map(person_schema, ["*"], {})
    data_map = mapping.data_map

    assert set(data_map) == {
        "",
        "/name",
        "/age",
        "/subscribed",
        "/address",
        "/address/street",
        "/address/zip",
        "/tags",
        "/tags/-",
    }
    assert data_map[""].required == ["name"]
    assert data_map["/address"].required == ["street"]
    assert data_map["/age"].schema_type == "integer"
    assert data_map["/tags/-"].schema_pointer == "/properties/tags/items"
    assert data_map["/name"].layout_pointer == "/0"


@pytest.mark.unit
def test_seeding_precedence():
    """Test initial value, then schema default, then None."""
    schema = {
        "type": "object",
        "properties": {
            "a": {"type": "string", "default": "from-default"},
            "b": {"type": "string", "default": "unused"},
            "c": {"type": "string"},
        },
    }
    _, mapping = _map(schema, ["*"], {"b": "given", "extra": "ignored"})
    assert mapping.values == {"a": "from-default", "b": "given", "c": None}


@pytest.mark.unit
def test_nested_arrays():
    """Test nested arrays get their own concrete entries."""
    schema = {
        "type": "object",
        "properties": {
            "groups": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {"members": {"type": "array", "items": {"type": "string"}}},
                },
            }
        },
    }
    _, mapping = _map(schema, ["*"], {"groups": [{"members": ["x"]}, {"members": ["y", "z"]}]})
    assert mapping.array_map == {"/groups": 2, "/groups/0/members": 1, "/groups/1/members": 2}


@pytest.mark.unit
def test_circular_growth_follows_data(tree_schema):
    """Test circular controls only grow as deep as the data."""
    _, mapping = _map(tree_schema, ["*"], {"label": "root", "child": {"label": "leaf"}})

    assert mapping.values == {"label": "root", "child": {"label": "leaf", "child": None}}
    assert mapping.circular_refs == {"/child": ""}
    assert mapping.data_map["/child"].circular_target == ""


@pytest.mark.unit
def test_missing_layout_node_is_invariant_violation(name_schema):
    """Test a control without a layout node raises."""
    built = LayoutBuilder().build(name_schema, ["*"])
    with pytest.raises(InvariantViolation):
        DataMapper().map(name_schema, built.binding, [], {}, {})


@pytest.mark.unit
def test_empty_template():
    """Test an empty form maps to nothing."""
    mapping = DataMapper().map({}, None, [], {}, {"a": 1})
    assert mapping.data_map == {}
    assert mapping.values is None


@pytest.mark.unit
def test_data_circular_refs_skip_definitions():
    """Test only sites inside the data tree are translated."""
    translated = data_circular_refs(
        {"/properties/root/properties/next": "/definitions/node", "/definitions/node/properties/next": "/definitions/node"},
        {"/properties/root/properties/next": "/properties/root", "/definitions/node/properties/next": "/definitions/node"},
    )
    assert translated == {"/root/next": "/root"}


@pytest.mark.unit
def test_entries_keep_declared_union_types():
    """Test union types survive into the data map next to the widget type."""
    schema = {
        "type": "object",
        "properties": {
            "x": {"type": ["string", "integer"]},
            "n": {"type": ["null", "number"]},
            "s": {"type": "string"},
        },
    }
    _, mapping = _map(schema, ["*"], {})

    assert mapping.data_map["/x"].schema_type == "string"
    assert mapping.data_map["/x"].declared_types == ["string", "integer"]
    assert mapping.data_map["/n"].schema_type == "number"
    assert mapping.data_map["/n"].declared_types == ["null", "number"]
    assert mapping.data_map["/s"].declared_types == "string"
