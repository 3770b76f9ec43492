"""Tests for JSON Pointer utilities."""

import pytest
from hypothesis import given, strategies as st
from returns.result import Failure, Success

from formmodel import pointer


@pytest.mark.unit
def test_parse_and_compile():
    """Test parsing pointers and fragments."""
    assert pointer.parse("") == []
    assert pointer.parse("#") == []
    assert pointer.parse("/properties/name") == ["properties", "name"]
    assert pointer.parse("#/definitions/a%20b") == ["definitions", "a b"]
    assert pointer.parse("definitions/x") == ["definitions", "x"]
    assert pointer.compile(["a", "b/c", "d~e"]) == "/a/b~1c/d~0e"


@pytest.mark.unit
def test_parse_rejects_non_pointer():
    """Test non-string pointers are rejected."""
    with pytest.raises(pointer.PointerError):
        pointer.parse(42)


@pytest.mark.unit
@given(st.lists(st.text(max_size=8), max_size=5))
def test_escape_roundtrip(segments):
    """Test any segment list survives compile then parse."""
    assert pointer.parse(pointer.compile(segments)) == segments


@pytest.mark.unit
def test_lookup():
    """Test lookup returns Result values."""
    doc = {"a": {"b": [10, 20]}}
    assert pointer.lookup(doc, "/a/b/1") == Success(20)
    assert isinstance(pointer.lookup(doc, "/a/c"), Failure)
    assert isinstance(pointer.lookup(doc, "/a/b/5"), Failure)
    assert isinstance(pointer.lookup(doc, "/a/b/x"), Failure)
    assert pointer.get(doc, "/missing", "fallback") == "fallback"
    assert pointer.has(doc, "")


@pytest.mark.unit
def test_set_in_creates_containers():
    """Test set_in builds intermediate objects and lists."""
    doc: dict = {}
    pointer.set_in(doc, "/a/list/0/name", "x")
    assert doc == {"a": {"list": [{"name": "x"}]}}

    pointer.set_in(doc, "/a/list/-", "y")
    assert doc["a"]["list"] == [{"name": "x"}, "y"]

    assert pointer.set_in(doc, "", 5) == 5


@pytest.mark.unit
def test_walk_order():
    """Test walk yields parents before children."""
    pointers = [p for p, _ in pointer.walk({"a": {"b": 1}, "c": [2]})]
    assert pointers == ["", "/a", "/a/b", "/c", "/c/0"]


@pytest.mark.unit
def test_is_sub_pointer():
    """Test ancestry is compared by segment."""
    assert pointer.is_sub_pointer("", "/properties/node")
    assert pointer.is_sub_pointer("/properties", "/properties")
    assert not pointer.is_sub_pointer("/properties", "/properties", strict=True)
    assert not pointer.is_sub_pointer("/properties/b", "/properties/bar")
    assert not pointer.is_sub_pointer("/properties/b", "/properties/a")


@pytest.mark.unit
def test_normalize_ref():
    """Test local references normalize and remote ones are refused."""
    assert pointer.normalize_ref("#") == ""
    assert pointer.normalize_ref("#/definitions/node") == "/definitions/node"
    assert pointer.normalize_ref("http://example.com/schema.json") is None
    assert pointer.normalize_ref("other.json#/a") is None
    assert pointer.normalize_ref(None) is None


@pytest.mark.unit
def test_layout_keys():
    """Test dotted layout keys map to data pointers and back."""
    assert pointer.key_to_pointer("address.street") == "/address/street"
    assert pointer.key_to_pointer("tags[]") == "/tags/-"
    assert pointer.key_to_pointer("tags[2].name") == "/tags/2/name"
    assert pointer.key_to_pointer("a['b.c']") == "/a/b.c"
    assert pointer.key_to_pointer("/already/pointer") == "/already/pointer"
    assert pointer.pointer_to_key("/tags/-/name") == "tags[].name"
    assert pointer.pointer_to_key("/a/b.c") == "a['b.c']"


@pytest.mark.unit
def test_unclosed_bracket():
    """Test malformed keys raise."""
    with pytest.raises(pointer.PointerError):
        pointer.key_to_pointer("tags[0")


@pytest.mark.unit
def test_schema_to_data_pointer():
    """Test schema pointers translate into data pointers."""
    assert pointer.schema_to_data_pointer("") == ""
    assert pointer.schema_to_data_pointer("/properties/tags/items/properties/name") == "/tags/-/name"
    assert pointer.schema_to_data_pointer("/properties/pair/items/1") == "/pair/1"
    assert pointer.schema_to_data_pointer("/definitions/x") is None


@pytest.mark.unit
def test_schema_pointer_for():
    """Test data pointers find their schema, following circular markers."""
    schema = {
        "type": "object",
        "properties": {
            "tags": {"type": "array", "items": {"type": "string"}},
            "pair": {"type": "array", "items": [{"type": "string"}, {"type": "number"}]},
            "child": {"$ref": "#"},
        },
    }
    assert pointer.schema_pointer_for("/tags/3", schema) == "/properties/tags/items"
    assert pointer.schema_pointer_for("/pair/1", schema) == "/properties/pair/items/1"
    assert pointer.schema_pointer_for("/child/tags/-", schema) == "/properties/tags/items"
    assert pointer.schema_pointer_for("/nope", schema) is None
