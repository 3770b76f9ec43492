"""
Format Normalizer
Reduces the competing form-library dialects to one canonical input set.

Each facet (schema, layout, data, UI hints) is picked independently: the
first candidate in its table whose predicate holds supplies the facet, and
the candidate's dialect (if any) is recorded as a compatibility flag.
"""

import copy
from dataclasses import dataclass
from typing import Any, Callable

from returns.result import Failure

from core import (
    FormInputError,
    JSONParseError,
    Settings,
    check_input,
    get_logger,
    get_settings,
    parse_json_document,
)

from .hints import fix_json_form_options
from .models import Compatibility, FormInputs, FormOptions, NormalizedForm

logger = get_logger(__name__)


def _is_object(value: Any) -> bool:
    return isinstance(value, dict)


def _form(inputs: FormInputs) -> dict[str, Any]:
    return inputs.form if isinstance(inputs.form, dict) else {}


@dataclass(frozen=True)
class Candidate:
    """One way of finding a facet in the inputs."""

    name: str
    predicate: Callable[[FormInputs], bool]
    extract: Callable[[FormInputs], Any]
    compatibility: Compatibility | None = None


SCHEMA_CANDIDATES: list[Candidate] = [
    Candidate(
        "schema",
        lambda i: _is_object(i.json_schema),
        lambda i: i.json_schema,
        Compatibility.ANGULAR_SCHEMA_FORM,
    ),
    Candidate("form.schema", lambda i: _is_object(_form(i).get("schema")), lambda i: _form(i)["schema"]),
    Candidate(
        "JSONSchema",
        lambda i: _is_object(i.react_schema),
        lambda i: i.react_schema,
        Compatibility.REACT_JSON_SCHEMA_FORM,
    ),
    Candidate(
        "form.JSONSchema",
        lambda i: _is_object(_form(i).get("JSONSchema")),
        lambda i: _form(i)["JSONSchema"],
        Compatibility.REACT_JSON_SCHEMA_FORM,
    ),
    Candidate("form.properties", lambda i: _is_object(_form(i).get("properties")), lambda i: _form(i)),
]

LAYOUT_CANDIDATES: list[Candidate] = [
    Candidate("layout", lambda i: isinstance(i.layout, list), lambda i: i.layout),
    Candidate(
        "form",
        lambda i: isinstance(i.form, list),
        lambda i: i.form,
        Compatibility.ANGULAR_SCHEMA_FORM,
    ),
    Candidate(
        "form.form",
        lambda i: isinstance(_form(i).get("form"), list),
        lambda i: fix_json_form_options(_form(i)["form"]),
        Compatibility.JSON_FORM,
    ),
    Candidate("form.layout", lambda i: isinstance(_form(i).get("layout"), list), lambda i: _form(i)["layout"]),
]

DATA_CANDIDATES: list[Candidate] = [
    Candidate("data", lambda i: _is_object(i.data), lambda i: i.data),
    Candidate("model", lambda i: _is_object(i.model), lambda i: i.model, Compatibility.ANGULAR_SCHEMA_FORM),
    Candidate(
        "form.value",
        lambda i: _is_object(_form(i).get("value")),
        lambda i: _form(i)["value"],
        Compatibility.JSON_FORM,
    ),
    Candidate("form.data", lambda i: _is_object(_form(i).get("data")), lambda i: _form(i)["data"]),
    Candidate(
        "formData",
        lambda i: _is_object(i.form_data),
        lambda i: i.form_data,
        Compatibility.REACT_JSON_SCHEMA_FORM,
    ),
    Candidate(
        "form.formData",
        lambda i: _is_object(_form(i).get("formData")),
        lambda i: _form(i)["formData"],
        Compatibility.REACT_JSON_SCHEMA_FORM,
    ),
]

HINT_CANDIDATES: list[Candidate] = [
    Candidate(
        "UISchema",
        lambda i: _is_object(i.ui_schema),
        lambda i: i.ui_schema,
        Compatibility.REACT_JSON_SCHEMA_FORM,
    ),
    Candidate(
        "form.UISchema",
        lambda i: _is_object(_form(i).get("UISchema")),
        lambda i: _form(i)["UISchema"],
        Compatibility.REACT_JSON_SCHEMA_FORM,
    ),
    Candidate(
        "form.customFormItems",
        lambda i: _is_object(_form(i).get("customFormItems")),
        lambda i: fix_json_form_options(_form(i)["customFormItems"]),
        Compatibility.JSON_FORM,
    ),
]


def default_layout(submit_title: str = "Submit") -> list[Any]:
    return ["*", {"type": "submit", "title": submit_title}]


def _has_object_type(schema: dict[str, Any]) -> bool:
    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        return "object" in schema_type
    return schema_type == "object"


def convert_draft3(schema: Any) -> Any:
    """
    Rewrite draft-3 idioms to their draft-4+ equivalents.

    Boolean ``required`` on a property moves into the parent's ``required``
    list; anywhere else it is dropped. ``divisibleBy`` becomes
    ``multipleOf``. Returns a new tree.
    """
    if isinstance(schema, list):
        return [convert_draft3(item) for item in schema]
    if not isinstance(schema, dict):
        return schema

    converted: dict[str, Any] = {}
    lifted: list[str] = []
    for key, value in schema.items():
        if key == "required" and isinstance(value, bool):
            # Lifted by the parent, if there is one
            continue
        if key == "properties" and isinstance(value, dict):
            converted[key] = {name: convert_draft3(prop) for name, prop in value.items()}
            lifted = [name for name, prop in value.items() if isinstance(prop, dict) and prop.get("required") is True]
        else:
            converted[key] = convert_draft3(value)

    if "divisibleBy" in converted:
        divisor = converted.pop("divisibleBy")
        converted.setdefault("multipleOf", divisor)

    if lifted:
        required = converted.get("required")
        required = list(required) if isinstance(required, list) else []
        required.extend(name for name in lifted if name not in required)
        converted["required"] = required
    return converted


def coerce_boolean_schemas(schema: Any) -> Any:
    """
    Replace boolean property and item schemas with object equivalents.

    ``true`` becomes ``{}`` and ``false`` becomes ``{"not": {}}``; both
    validate the same data. Returns a new tree.
    """
    if isinstance(schema, list):
        return [coerce_boolean_schemas(item) for item in schema]
    if not isinstance(schema, dict):
        return schema

    coerced: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "properties" and isinstance(value, dict):
            coerced[key] = {name: coerce_boolean_schemas(_as_schema(prop)) for name, prop in value.items()}
        elif key == "items" and isinstance(value, list):
            coerced[key] = [coerce_boolean_schemas(_as_schema(item)) for item in value]
        elif key == "items":
            coerced[key] = coerce_boolean_schemas(_as_schema(value))
        else:
            coerced[key] = coerce_boolean_schemas(value)
    return coerced


def _as_schema(value: Any) -> Any:
    if value is True:
        return {}
    if value is False:
        return {"not": {}}
    return value


def fix_schema_quirks(schema: dict[str, Any]) -> tuple[dict[str, Any], bool]:
    """
    Apply the schema shape fixes shared by all dialects.

    Returns the fixed schema and whether it was a JSON Form properties bag.
    """
    if not schema:
        return schema, False
    if _has_object_type(schema) and _is_object(schema.get("properties")):
        return schema, False
    if "type" not in schema and _is_object(schema.get("properties")):
        return {**schema, "type": "object"}, False
    return {"type": "object", "properties": schema}, True


class FormatNormalizer:
    """
    Picks schema, layout, data and UI hints out of dialect-specific inputs.

    Examples:
        >>> normalized = FormatNormalizer().normalize({"JSONSchema": {"properties": {}}})
        >>> sorted(c.value for c in normalized.compatibility)
        ['react_json_schema_form']
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def normalize(self, inputs: FormInputs | dict[str, Any]) -> NormalizedForm:
        """
        Normalize raw inputs.

        Raises:
            FormInputError: If a JSON text input cannot be parsed or exceeds the
                configured limits
        """
        if not isinstance(inputs, FormInputs):
            inputs = FormInputs.model_validate(inputs)
        inputs = self._decode(inputs)

        options = self._merge_options(inputs)
        if inputs.is_empty():
            logger.debug("inputs_empty")
            return NormalizedForm(
                layout=default_layout(options.submit_title),
                options=options,
            )

        compatibility: set[Compatibility] = set()
        sources: dict[str, str] = {}

        schema = self._pick("schema", SCHEMA_CANDIDATES, inputs, compatibility, sources) or {}
        schema, wrapped = fix_schema_quirks(copy.deepcopy(schema))
        schema = coerce_boolean_schemas(convert_draft3(schema))
        if wrapped:
            compatibility.add(Compatibility.JSON_FORM)

        layout = self._pick("layout", LAYOUT_CANDIDATES, inputs, compatibility, sources)
        if layout is None:
            layout = default_layout(options.submit_title)
            sources["layout"] = "default"

        data = self._pick("data", DATA_CANDIDATES, inputs, compatibility, sources) or {}
        hints = self._pick("ui_hints", HINT_CANDIDATES, inputs, compatibility, sources)

        tpldata = _form(inputs).get("tpldata")

        normalized = NormalizedForm(
            json_schema=schema,
            layout=copy.deepcopy(layout),
            initial_values=copy.deepcopy(data),
            ui_hints=copy.deepcopy(hints),
            options=options,
            compatibility=compatibility,
            tpldata=tpldata if isinstance(tpldata, dict) else {},
            sources=sources,
        )
        logger.info(
            "inputs_normalized",
            sources=sources,
            compatibility=sorted(c.value for c in compatibility),
        )
        return normalized

    def _pick(
        self,
        facet: str,
        candidates: list[Candidate],
        inputs: FormInputs,
        compatibility: set[Compatibility],
        sources: dict[str, str],
    ) -> Any:
        for candidate in candidates:
            if candidate.predicate(inputs):
                if candidate.compatibility is not None:
                    compatibility.add(candidate.compatibility)
                sources[facet] = candidate.name
                return candidate.extract(inputs)
        return None

    def _decode(self, inputs: FormInputs) -> FormInputs:
        """Parse JSON text facets and enforce input limits."""
        updates: dict[str, Any] = {}
        for field in ("json_schema", "layout", "data", "options", "form", "model", "react_schema", "ui_schema", "form_data"):
            value = getattr(inputs, field)
            if isinstance(value, (str, bytes)):
                try:
                    value = parse_json_document(
                        value, repair=self.settings.repair_json, max_size=self.settings.max_input_size
                    )
                except (JSONParseError, FormInputError) as e:
                    raise FormInputError(f"Input '{field}' is not valid JSON: {e}") from e
                updates[field] = value

            if value is not None:
                result = check_input(value, field, self.settings.max_schema_depth)
                if isinstance(result, Failure):
                    problem = result.failure()
                    raise FormInputError(f"Input '{problem.field}' rejected: {problem.message}")

        return inputs.model_copy(update=updates) if updates else inputs

    def _merge_options(self, inputs: FormInputs) -> FormOptions:
        """Settings defaults, then direct inputs, then ``options``, then ``form.options``."""
        merged: dict[str, Any] = FormOptions.from_settings(self.settings).model_dump()
        form = _form(inputs)

        framework = inputs.framework if inputs.framework is not None else form.get("framework")
        if framework is not None:
            merged["framework"] = framework
        load_assets = inputs.load_external_assets
        if load_assets is None:
            load_assets = form.get("loadExternalAssets")
        if load_assets is not None:
            merged["load_external_assets"] = bool(load_assets)
        if inputs.debug is not None:
            merged["debug"] = bool(inputs.debug)

        for source in (inputs.options, form.get("options")):
            if _is_object(source):
                for key, value in source.items():
                    field = _option_field(key)
                    merged[field] = value

        return FormOptions.model_validate(merged)


def _option_field(key: str) -> str:
    """Map a camelCase option name onto its FormOptions field name, if any."""
    for name, info in FormOptions.model_fields.items():
        if key == name or key == info.alias:
            return name
    return key


__all__ = [
    "FormatNormalizer",
    "Candidate",
    "SCHEMA_CANDIDATES",
    "LAYOUT_CANDIDATES",
    "DATA_CANDIDATES",
    "HINT_CANDIDATES",
    "convert_draft3",
    "coerce_boolean_schemas",
    "fix_schema_quirks",
    "default_layout",
]
