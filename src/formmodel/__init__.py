"""
Schema form model.
Reconciles a JSON Schema, a layout and initial data into one form model.
"""

from .models import (
    BindingNode,
    Compatibility,
    DataMapEntry,
    FormEvent,
    FormInputs,
    FormOptions,
    FormState,
    LayoutNode,
    NormalizedForm,
    ResolutionFailure,
    ResolvedSchema,
    ValidationIssue,
)
from .normalizer import FormatNormalizer
from .resolver import ReferenceResolver, resolve_schema
from .synthesizer import build_schema_from_data, build_schema_from_layout, synthesize_schema
from .hints import fix_json_form_options, merge_ui_hints
from .binding import build_binding_template
from .layout import LayoutBuilder, LayoutResult
from .datamap import DataMapper, DataMapping
from .formatter import format_form_data
from .validation import CompiledValidator, JsonSchemaAdapter, ValidationAdapter
from .events import EventBus
from .engine import FormContext, FormEngine, FormSession

__all__ = [
    # Models
    "BindingNode",
    "Compatibility",
    "DataMapEntry",
    "FormEvent",
    "FormInputs",
    "FormOptions",
    "FormState",
    "LayoutNode",
    "NormalizedForm",
    "ResolutionFailure",
    "ResolvedSchema",
    "ValidationIssue",
    # Pipeline
    "FormatNormalizer",
    "ReferenceResolver",
    "resolve_schema",
    "build_schema_from_data",
    "build_schema_from_layout",
    "synthesize_schema",
    "fix_json_form_options",
    "merge_ui_hints",
    "build_binding_template",
    "LayoutBuilder",
    "LayoutResult",
    "DataMapper",
    "DataMapping",
    "format_form_data",
    # Validation
    "CompiledValidator",
    "JsonSchemaAdapter",
    "ValidationAdapter",
    # Engine
    "EventBus",
    "FormContext",
    "FormEngine",
    "FormSession",
]
