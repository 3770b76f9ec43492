"""Tests for form model types."""

import pytest
from pydantic import ValidationError

from formmodel import DataMapEntry, FormInputs, LayoutNode, ResolutionFailure


@pytest.mark.unit
def test_form_inputs_aliases():
    """Test dialect names map onto fields."""
    inputs = FormInputs.model_validate(
        {"schema": {"a": 1}, "JSONSchema": {"b": 2}, "UISchema": {}, "formData": {"x": 1}, "loadExternalAssets": True}
    )
    assert inputs.json_schema == {"a": 1}
    assert inputs.react_schema == {"b": 2}
    assert inputs.ui_schema == {}
    assert inputs.form_data == {"x": 1}
    assert inputs.load_external_assets is True


@pytest.mark.unit
def test_form_inputs_is_empty():
    """Test only content facets count."""
    assert FormInputs().is_empty()
    assert FormInputs(framework="bootstrap", debug=True).is_empty()
    assert not FormInputs.model_validate({"layout": ["*"]}).is_empty()
    assert FormInputs.model_validate({"unknown": 1}).is_empty()


@pytest.mark.unit
def test_frozen_models():
    """Test data-map entries and failures are immutable."""
    entry = DataMapEntry(data_pointer="/a", schema_pointer="/properties/a")
    with pytest.raises(ValidationError):
        entry.schema_type = "string"

    failure = ResolutionFailure(pointer="/properties/a", reference="http://x/y.json", reason="not a local reference")
    with pytest.raises(ValidationError):
        failure.reason = "other"


@pytest.mark.unit
def test_layout_node_nesting():
    """Test nested layout nodes validate from plain dicts."""
    node = LayoutNode.model_validate(
        {"id": "fieldset-1", "type": "fieldset", "items": [{"id": "text-2", "type": "text", "key": "a"}]}
    )
    assert node.items[0].key == "a"
    assert node.items[0].hidden is False
