"""Form Model Data Types."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Compatibility(str, Enum):
    """Form-library dialects recognized in the inputs."""

    ANGULAR_SCHEMA_FORM = "angular_schema_form"
    JSON_FORM = "json_form"
    REACT_JSON_SCHEMA_FORM = "react_json_schema_form"


class FormState(str, Enum):
    """Lifecycle of one form instance."""

    UNINITIALIZED = "uninitialized"
    NORMALIZING = "normalizing"
    RESOLVING = "resolving"
    LAYOUT_BUILDING = "layout_building"
    MAPPED = "mapped"
    LIVE = "live"
    SUBMITTED = "submitted"
    REINITIALIZING = "reinitializing"


class FormEvent(str, Enum):
    """Topics published on the event bus."""

    CHANGES = "changes"
    IS_VALID = "is_valid"
    VALIDATION_ERRORS = "validation_errors"
    SUBMIT = "submit"
    DEBUG = "debug"


# ============================================================================
# Inputs
# ============================================================================


class FormInputs(BaseModel):
    """
    Raw form inputs, in any supported dialect.

    Field aliases match the names used by the dialects (``JSONSchema``,
    ``UISchema``, ``formData``, ...). Every facet may also be JSON text.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    json_schema: Any = Field(default=None, alias="schema", description="Angular Schema Form schema")
    layout: Any = Field(default=None, description="Layout list")
    data: Any = Field(default=None, description="Initial data")
    options: Any = Field(default=None, description="Form options")
    form: Any = Field(default=None, description="Combined object or Angular Schema Form layout")
    model: Any = Field(default=None, description="Angular Schema Form data")
    react_schema: Any = Field(default=None, alias="JSONSchema", description="RJSF schema")
    ui_schema: Any = Field(default=None, alias="UISchema", description="RJSF UI hints")
    form_data: Any = Field(default=None, alias="formData", description="RJSF data")
    framework: str | None = Field(default=None)
    load_external_assets: bool | None = Field(default=None, alias="loadExternalAssets")
    debug: bool | None = Field(default=None)

    def is_empty(self) -> bool:
        """True when no facet carries anything."""
        facets = (
            self.json_schema,
            self.layout,
            self.data,
            self.form,
            self.model,
            self.react_schema,
            self.ui_schema,
            self.form_data,
        )
        return all(f is None for f in facets)


class FormOptions(BaseModel):
    """Per-form options; unknown options are kept as extras."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    debug: bool = Field(default=False)
    load_external_assets: bool = Field(default=False)
    framework: str | None = Field(default=None)
    validate_on_render: bool = Field(default=False)
    submit_title: str = Field(default="Submit")

    @classmethod
    def from_settings(cls, settings: Any) -> "FormOptions":
        return cls(
            debug=settings.debug,
            load_external_assets=settings.load_external_assets,
            framework=settings.framework,
            validate_on_render=settings.validate_on_render,
            submit_title=settings.submit_title,
        )


class NormalizedForm(BaseModel):
    """Single canonical set of inputs produced by the normalizer."""

    json_schema: dict[str, Any] = Field(default_factory=dict)
    layout: list[Any] = Field(default_factory=list)
    initial_values: dict[str, Any] = Field(default_factory=dict)
    ui_hints: dict[str, Any] | None = Field(default=None)
    options: FormOptions = Field(default_factory=FormOptions)
    compatibility: set[Compatibility] = Field(default_factory=set)
    tpldata: dict[str, Any] = Field(default_factory=dict)
    sources: dict[str, str] = Field(default_factory=dict, description="Facet -> input that supplied it")


# ============================================================================
# Resolution
# ============================================================================


class ResolutionFailure(BaseModel):
    """A ``$ref`` whose target could not be found."""

    model_config = ConfigDict(frozen=True)

    pointer: str = Field(..., description="Where the $ref occurs")
    reference: str = Field(..., description="The raw $ref value")
    reason: str


class ResolvedSchema(BaseModel):
    """Reference resolution output."""

    json_schema: dict[str, Any] = Field(default_factory=dict)
    library: dict[str, Any] = Field(default_factory=dict)
    circular_refs: dict[str, str] = Field(default_factory=dict)
    circular_anchors: dict[str, str] = Field(
        default_factory=dict,
        description="Circular $ref site -> location in the resolved tree it re-enters",
    )
    failures: list[ResolutionFailure] = Field(default_factory=list)


# ============================================================================
# Layout, binding and data map
# ============================================================================


class LayoutNode(BaseModel):
    """One control, container or pass-through element of the layout tree."""

    id: str
    type: str
    key: str | None = Field(default=None)
    data_pointer: str | None = Field(default=None)
    schema_pointer: str | None = Field(default=None)
    layout_pointer: str = Field(default="")
    title: str | None = Field(default=None)
    description: str | None = Field(default=None)
    required: bool = Field(default=False)
    hidden: bool = Field(default=False)
    circular_ref: str | None = Field(default=None, description="Data pointer a $ref node re-enters")
    options: dict[str, Any] = Field(default_factory=dict)
    validators: dict[str, Any] = Field(default_factory=dict)
    items: list["LayoutNode"] = Field(default_factory=list)


class BindingNode(BaseModel):
    """Reactive-binding template node consumed by the binding layer."""

    control_type: Literal["group", "array", "control", "ref"]
    data_pointer: str
    schema_pointer: str
    schema_type: str | None = Field(default=None)
    default: Any = Field(default=None)
    validators: dict[str, Any] = Field(default_factory=dict)
    controls: dict[str, "BindingNode"] = Field(default_factory=dict)
    item_template: "BindingNode | None" = Field(default=None)
    tuple_items: list["BindingNode"] = Field(default_factory=list)
    ref_target: str | None = Field(default=None)


class DataMapEntry(BaseModel):
    """Data-map entry, keyed by generic data pointer."""

    model_config = ConfigDict(frozen=True)

    data_pointer: str
    schema_pointer: str
    layout_pointer: str | None = Field(default=None)
    schema_type: str | None = Field(default=None)
    declared_types: str | list[str] | None = Field(default=None)
    schema_format: str | None = Field(default=None)
    required: list[str] = Field(default_factory=list)
    tuple_items: int | None = Field(default=None)
    circular_target: str | None = Field(default=None)


class ValidationIssue(BaseModel):
    """One validation error reported by an adapter."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Data pointer of the failing value")
    message: str
    constraint: str = Field(..., description="Failing keyword, or 'schema' for compile errors")
    schema_path: str = Field(default="")


LayoutNode.model_rebuild()
BindingNode.model_rebuild()
