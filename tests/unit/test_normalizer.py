"""Tests for dialect normalization."""

import pytest

from core import FormInputError
from core.config import Settings
from formmodel import Compatibility, FormatNormalizer, FormInputs
from formmodel.normalizer import coerce_boolean_schemas, convert_draft3, default_layout, fix_schema_quirks


@pytest.fixture
def normalizer():
    return FormatNormalizer(Settings())


@pytest.mark.unit
def test_no_inputs_is_empty(normalizer):
    """Test missing inputs produce an empty result, not an error."""
    normalized = normalizer.normalize({})
    assert normalized.json_schema == {}
    assert normalized.initial_values == {}
    assert normalized.layout == default_layout()
    assert normalized.compatibility == set()


@pytest.mark.unit
def test_angular_schema_form_inputs(normalizer, name_schema):
    """Test ASF schema + form list + model."""
    normalized = normalizer.normalize({"schema": name_schema, "form": ["name"], "model": {"name": "Ada"}})

    assert normalized.json_schema == name_schema
    assert normalized.layout == ["name"]
    assert normalized.initial_values == {"name": "Ada"}
    assert normalized.compatibility == {Compatibility.ANGULAR_SCHEMA_FORM}
    assert normalized.sources == {"schema": "schema", "layout": "form", "data": "model"}


@pytest.mark.unit
def test_react_json_schema_form_inputs(normalizer, name_schema):
    """Test RJSF schema, formData and UISchema."""
    normalized = normalizer.normalize(
        FormInputs(
            JSONSchema=name_schema,
            formData={"name": "Grace"},
            UISchema={"name": {"ui:widget": "textarea"}},
        )
    )

    assert normalized.json_schema == name_schema
    assert normalized.initial_values == {"name": "Grace"}
    assert normalized.ui_hints == {"name": {"ui:widget": "textarea"}}
    assert normalized.compatibility == {Compatibility.REACT_JSON_SCHEMA_FORM}
    assert normalized.layout == default_layout()


@pytest.mark.unit
def test_json_form_combined_object(normalizer):
    """Test JSON Form: properties bag, form list with options, value."""
    normalized = normalizer.normalize(
        {
            "form": {
                "schema": {"color": {"type": "string", "required": True}},
                "form": [{"key": "color", "options": {"r": "Red", "g": "Green"}}],
                "value": {"color": "r"},
                "tpldata": {"user": "x"},
            }
        }
    )

    assert normalized.json_schema == {
        "type": "object",
        "properties": {"color": {"type": "string"}},
        "required": ["color"],
    }
    assert normalized.layout == [{"key": "color", "titleMap": {"r": "Red", "g": "Green"}}]
    assert normalized.initial_values == {"color": "r"}
    assert normalized.tpldata == {"user": "x"}
    assert normalized.compatibility == {Compatibility.JSON_FORM}


@pytest.mark.unit
def test_schema_precedence(normalizer, name_schema):
    """Test the direct schema input wins over the combined object."""
    other = {"type": "object", "properties": {"other": {"type": "string"}}}
    normalized = normalizer.normalize({"schema": name_schema, "form": {"schema": other}})
    assert normalized.json_schema == name_schema


@pytest.mark.unit
def test_data_precedence(normalizer):
    """Test data sources are tried in order."""
    normalized = normalizer.normalize({"data": {"a": 1}, "model": {"a": 2}, "formData": {"a": 3}})
    assert normalized.initial_values == {"a": 1}

    normalized = normalizer.normalize({"form": {"data": {"a": 4}}, "formData": {"a": 3}})
    assert normalized.initial_values == {"a": 4}


@pytest.mark.unit
def test_json_text_inputs(normalizer):
    """Test facets given as JSON text are parsed."""
    normalized = normalizer.normalize(
        {"schema": '{"properties": {"n": {"type": "integer"}}}', "layout": '["n"]'}
    )
    assert normalized.json_schema == {"type": "object", "properties": {"n": {"type": "integer"}}}
    assert normalized.layout == ["n"]


@pytest.mark.unit
def test_malformed_json_text_raises(normalizer):
    """Test unreadable JSON text is the one caller-facing error."""
    with pytest.raises(FormInputError):
        normalizer.normalize({"schema": "{not json"})


@pytest.mark.unit
def test_depth_limit():
    """Test overly deep inputs are rejected."""
    deep: dict = {}
    node = deep
    for _ in range(10):
        node["x"] = {}
        node = node["x"]
    with pytest.raises(FormInputError):
        FormatNormalizer(Settings(max_schema_depth=5)).normalize({"data": deep})


@pytest.mark.unit
def test_options_merge(normalizer):
    """Test debug input, then options, then form.options."""
    normalized = normalizer.normalize(
        {
            "debug": True,
            "framework": "bootstrap-4",
            "options": {"validateOnRender": True, "debug": False, "custom": 1},
            "form": {"options": {"debug": True}, "schema": {"properties": {}}},
        }
    )
    options = normalized.options
    assert options.debug is True
    assert options.validate_on_render is True
    assert options.framework == "bootstrap-4"
    assert options.model_extra == {"custom": 1}


@pytest.mark.unit
def test_fix_schema_quirks():
    """Test missing object type is added and bags are wrapped."""
    schema, wrapped = fix_schema_quirks({"properties": {"a": {"type": "string"}}})
    assert schema["type"] == "object" and not wrapped

    schema, wrapped = fix_schema_quirks({"a": {"type": "string"}})
    assert schema == {"type": "object", "properties": {"a": {"type": "string"}}}
    assert wrapped


@pytest.mark.unit
def test_convert_draft3():
    """Test draft-3 required booleans and divisibleBy."""
    converted = convert_draft3(
        {
            "type": "object",
            "properties": {
                "a": {"type": "number", "required": True, "divisibleBy": 5},
                "b": {"type": "string", "required": False},
            },
        }
    )
    assert converted == {
        "type": "object",
        "properties": {"a": {"type": "number", "multipleOf": 5}, "b": {"type": "string"}},
        "required": ["a"],
    }


@pytest.mark.unit
def test_convert_draft3_lifts_into_each_parent():
    """Test required booleans lift into their own parent at every depth."""
    converted = convert_draft3(
        {
            "type": "object",
            "required": True,
            "properties": {
                "a": {"type": "string", "required": True},
                "inner": {
                    "type": "object",
                    "required": True,
                    "properties": {"b": {"type": "integer", "required": True}, "c": {"type": "string"}},
                },
            },
        }
    )
    assert converted["required"] == ["a", "inner"]
    assert converted["properties"]["a"] == {"type": "string"}
    inner = converted["properties"]["inner"]
    assert inner["required"] == ["b"]
    assert "required" not in inner["properties"]["b"]


@pytest.mark.unit
def test_convert_draft3_keeps_existing_required_list():
    """Test lifted names join an existing required list without duplicates."""
    converted = convert_draft3(
        {
            "type": "object",
            "required": ["a"],
            "properties": {"a": {"required": True}, "b": {"required": True}},
        }
    )
    assert converted["required"] == ["a", "b"]


@pytest.mark.unit
def test_draft3_required_reaches_normalized_schema(normalizer):
    """Test a draft-3 schema comes out with a draft-4 required list."""
    normalized = normalizer.normalize(
        {"schema": {"type": "object", "properties": {"a": {"type": "string", "required": True}}}}
    )
    assert normalized.json_schema["required"] == ["a"]
    assert normalized.json_schema["properties"]["a"] == {"type": "string"}


@pytest.mark.unit
def test_coerce_boolean_schemas():
    """Test boolean property and item schemas become object schemas."""
    coerced = coerce_boolean_schemas(
        {
            "type": "object",
            "properties": {
                "any": True,
                "never": False,
                "list": {"type": "array", "items": True},
                "pair": {"type": "array", "items": [False, {"type": "string"}]},
            },
            "additionalProperties": False,
        }
    )
    props = coerced["properties"]
    assert props["any"] == {}
    assert props["never"] == {"not": {}}
    assert props["list"]["items"] == {}
    assert props["pair"]["items"] == [{"not": {}}, {"type": "string"}]
    assert coerced["additionalProperties"] is False


@pytest.mark.unit
def test_boolean_property_schema_normalizes(normalizer):
    """Test normalization turns boolean property schemas into objects."""
    normalized = normalizer.normalize({"schema": {"type": "object", "properties": {"a": True}}})
    assert normalized.json_schema["properties"] == {"a": {}}


@pytest.mark.unit
def test_repair_setting(name_schema):
    """Test malformed JSON text is repaired only when enabled."""
    text = '{"type": "object", "properties": {"name": {"type": "string"},},}'
    with pytest.raises(FormInputError):
        FormatNormalizer(Settings()).normalize({"schema": text})

    normalized = FormatNormalizer(Settings(repair_json=True)).normalize({"schema": text})
    assert normalized.json_schema == name_schema


@pytest.mark.unit
def test_non_utf8_bytes_raise_input_error(normalizer):
    """Test undecodable byte input is reported as a form input error."""
    with pytest.raises(FormInputError):
        normalizer.normalize({"schema": b'{"a": "\xff"}'})
