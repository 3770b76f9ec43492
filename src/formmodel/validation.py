"""
Validation Adapter
Compiles schemas into validators behind a small protocol.

The engine only needs ``compile(schema) -> validator`` and
``validator(data) -> bool`` with an ``errors`` side channel, so any JSON
Schema engine can be plugged in. The default adapter uses ``jsonschema``.
"""

from typing import Any, Awaitable, Protocol, runtime_checkable

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for
from referencing.exceptions import Unresolvable

from core import LRUCache, get_logger

from . import pointer
from .models import ValidationIssue

logger = get_logger(__name__)


@runtime_checkable
class CompiledValidator(Protocol):
    """Validator for one schema; ``errors`` holds the issues of the last call."""

    errors: list[ValidationIssue]

    def __call__(self, data: Any, final: bool = False) -> bool: ...


class ValidationAdapter(Protocol):
    def compile(self, schema: dict[str, Any]) -> CompiledValidator | Awaitable[CompiledValidator]: ...


class JsonSchemaValidator:
    """``jsonschema`` validator with the issue side channel."""

    def __init__(self, schema: dict[str, Any]) -> None:
        self.schema = schema
        self.errors: list[ValidationIssue] = []
        self._compile_error: ValidationIssue | None = None
        self._validator: Any = None

        cls = validator_for(schema, default=Draft7Validator)
        try:
            cls.check_schema(schema)
            self._validator = cls(schema, format_checker=cls.FORMAT_CHECKER)
        except SchemaError as e:
            self._compile_error = ValidationIssue(
                path="",
                message=e.message,
                constraint="schema",
                schema_path=pointer.compile(list(e.schema_path)),
            )
            logger.warning("schema_compile_failed", error=e.message)

    @property
    def compiled(self) -> bool:
        return self._compile_error is None

    def __call__(self, data: Any, final: bool = False) -> bool:
        if self._compile_error is not None:
            self.errors = [self._compile_error]
            return False

        try:
            found = sorted(self._validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
        except Unresolvable as e:
            self.errors = [ValidationIssue(path="", message=str(e), constraint="schema")]
            logger.warning("schema_ref_unresolvable", error=str(e))
            return False

        self.errors = [
            ValidationIssue(
                path=pointer.compile(list(error.absolute_path)),
                message=error.message,
                constraint=str(error.validator),
                schema_path=pointer.compile(list(error.absolute_schema_path)),
            )
            for error in found
        ]
        return not self.errors


class JsonSchemaAdapter:
    """
    Default adapter; compiled validators are cached by schema hash.

    Examples:
        >>> adapter = JsonSchemaAdapter()
        >>> validate = adapter.compile({"type": "object", "required": ["name"]})
        >>> validate({})
        False
        >>> validate.errors[0].constraint
        'required'
    """

    def __init__(self, cache_size: int = 32) -> None:
        self.cache: LRUCache[JsonSchemaValidator] = LRUCache(max_size=cache_size)

    def compile(self, schema: dict[str, Any]) -> JsonSchemaValidator:
        cached = self.cache.get(schema)
        if cached is not None:
            return cached
        compiled = JsonSchemaValidator(schema)
        self.cache.set(schema, compiled)
        return compiled


__all__ = ["CompiledValidator", "ValidationAdapter", "JsonSchemaAdapter", "JsonSchemaValidator"]
