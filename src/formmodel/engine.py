"""
Form Engine
Orchestrates one form from raw inputs to a live session.

Pipeline per (re-)initialization:
    normalize → resolve (or synthesize, then resolve) → layout + binding
    → data map → live session

Every initialization gets a fresh generation id and an immutable
FormContext. Sessions hold their generation; once a newer generation exists
their work is dropped (logged, nothing emitted, nothing written).
"""

import asyncio
import copy
import inspect
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core import LogContext, Settings, extract_timestamp, get_logger, get_settings, new_generation_id, new_session_id

from . import pointer
from .binding import binding_index
from .datamap import DataMapper, DataMapping, ValueSeeder
from .events import EventBus
from .formatter import format_form_data, generic_pointer
from .layout import LayoutBuilder
from .models import (
    BindingNode,
    Compatibility,
    DataMapEntry,
    FormEvent,
    FormInputs,
    FormOptions,
    FormState,
    LayoutNode,
    ResolutionFailure,
    ValidationIssue,
)
from .normalizer import FormatNormalizer
from .resolver import ReferenceResolver
from .synthesizer import synthesize_schema
from .validation import CompiledValidator, JsonSchemaAdapter, ValidationAdapter

logger = get_logger(__name__)


class FormContext(BaseModel):
    """Everything one generation built; never mutated after construction."""

    model_config = ConfigDict(frozen=True)

    generation_id: str
    options: FormOptions
    compatibility: set[Compatibility] = Field(default_factory=set)
    json_schema: dict[str, Any] = Field(default_factory=dict)
    schema_library: dict[str, Any] = Field(default_factory=dict)
    circular_refs: dict[str, str] = Field(default_factory=dict)
    circular_anchors: dict[str, str] = Field(default_factory=dict)
    resolution_failures: list[ResolutionFailure] = Field(default_factory=list)
    layout: list[LayoutNode] = Field(default_factory=list)
    binding: BindingNode | None = Field(default=None)
    data_map: dict[str, DataMapEntry] = Field(default_factory=dict)
    data_circular_refs: dict[str, str] = Field(default_factory=dict)
    initial_values: dict[str, Any] = Field(default_factory=dict)
    tpldata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.binding is None


class FormEngine:
    """
    Builds form contexts and hands out live sessions.

    Examples:
        >>> engine = FormEngine()
        >>> session = engine.initialize({"schema": {"type": "object", "properties": {"n": {"type": "integer"}}}})
        >>> session.set_value("/n", "7")
        {'n': 7}
    """

    def __init__(
        self,
        adapter: ValidationAdapter | None = None,
        settings: Settings | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.adapter = adapter or JsonSchemaAdapter(cache_size=self.settings.validator_cache_size)
        self.events = events or EventBus()
        self.state = FormState.UNINITIALIZED
        self.current_generation: str | None = None
        self.session: FormSession | None = None

        self.normalizer = FormatNormalizer(self.settings)
        self.resolver = ReferenceResolver()
        self.layout_builder = LayoutBuilder()
        self.data_mapper = DataMapper()

    def is_current(self, generation_id: str) -> bool:
        return generation_id == self.current_generation

    def transition(self, state: FormState) -> None:
        logger.debug("state_changed", previous=self.state.value, state=state.value)
        self.state = state

    def _begin(self) -> str:
        if self.state != FormState.UNINITIALIZED:
            self.transition(FormState.REINITIALIZING)
        generation = new_generation_id()
        self.current_generation = generation
        return generation

    def build_context(self, inputs: FormInputs | dict[str, Any], generation: str) -> tuple[FormContext, DataMapping]:
        """Run the build pipeline for one generation."""
        self.transition(FormState.NORMALIZING)
        normalized = self.normalizer.normalize(inputs)

        self.transition(FormState.RESOLVING)
        resolved = self.resolver.resolve(normalized.json_schema)
        if not resolved.json_schema:
            synthesized = synthesize_schema(normalized.layout, normalized.initial_values)
            if synthesized:
                resolved = self.resolver.resolve(synthesized)

        self.transition(FormState.LAYOUT_BUILDING)
        built = self.layout_builder.build(
            resolved.json_schema,
            normalized.layout,
            resolved.circular_refs,
            normalized.ui_hints,
            resolved.circular_anchors,
        )

        mapping = self.data_mapper.map(
            built.json_schema,
            built.binding,
            built.layout,
            resolved.circular_refs,
            normalized.initial_values,
            resolved.circular_anchors,
        )
        self.transition(FormState.MAPPED)

        context = FormContext(
            generation_id=generation,
            options=normalized.options,
            compatibility=normalized.compatibility,
            json_schema=resolved.json_schema,
            schema_library=resolved.library,
            circular_refs=resolved.circular_refs,
            circular_anchors=resolved.circular_anchors,
            resolution_failures=resolved.failures,
            layout=built.layout,
            binding=built.binding,
            data_map=mapping.data_map,
            data_circular_refs=mapping.circular_refs,
            initial_values=normalized.initial_values,
            tpldata=normalized.tpldata,
        )
        return context, mapping

    def initialize(self, inputs: FormInputs | dict[str, Any]) -> "FormSession":
        """
        Build a new generation with a synchronous validation adapter.

        Raises:
            FormInputError: If an input is unreadable JSON text
            TypeError: If the adapter compiles asynchronously (use ainitialize)
        """
        generation = self._begin()
        with LogContext(generation=generation):
            context, mapping = self.build_context(inputs, generation)
            validator = None
            if not context.is_empty:
                compiled = self.adapter.compile(context.json_schema)
                if inspect.isawaitable(compiled):
                    if asyncio.iscoroutine(compiled):
                        compiled.close()
                    raise TypeError("Validation adapter is asynchronous; use ainitialize()")
                validator = compiled
            return self._go_live(context, mapping, validator)

    async def ainitialize(self, inputs: FormInputs | dict[str, Any]) -> "FormSession":
        """Build a new generation, awaiting the adapter's compile step if needed."""
        generation = self._begin()
        with LogContext(generation=generation):
            context, mapping = self.build_context(inputs, generation)
            validator = None
            if not context.is_empty:
                compiled = self.adapter.compile(context.json_schema)
                if inspect.isawaitable(compiled):
                    compiled = await compiled
                validator = compiled
            return self._go_live(context, mapping, validator)

    def _go_live(
        self,
        context: FormContext,
        mapping: DataMapping,
        validator: CompiledValidator | None,
    ) -> "FormSession":
        session = FormSession(self, context, mapping, validator)
        if not self.is_current(context.generation_id):
            logger.info(
                "stale_generation_dropped",
                generation=context.generation_id,
                current=self.current_generation,
                operation="initialize",
            )
            return session

        self.session = session
        self.transition(FormState.LIVE)
        logger.info(
            "form_initialized",
            fields=len(context.data_map),
            circular=len(context.circular_refs),
            failures=len(context.resolution_failures),
            empty=context.is_empty,
        )
        session.emit_initial()
        return session


class FormSession:
    """
    Live values of one generation.

    Every value change runs one format + validate + emit cycle. Array items
    are addressed by concrete pointers (``/tags/1``); indices stay stable
    until an item is removed.
    """

    def __init__(
        self,
        engine: FormEngine,
        context: FormContext,
        mapping: DataMapping,
        validator: CompiledValidator | None,
    ) -> None:
        self.engine = engine
        self.context = context
        self.session_id = new_session_id()
        self.validator = validator
        self.values: Any = copy.deepcopy(mapping.values)
        self.array_map: dict[str, int] = dict(mapping.array_map)
        self._index = binding_index(context.binding)

        self.data: Any = {}
        self.is_valid: bool = True
        self.errors: list[ValidationIssue] = []

    @property
    def generation_id(self) -> str:
        return self.context.generation_id

    @property
    def is_stale(self) -> bool:
        return not self.engine.is_current(self.generation_id)

    def _guard(self, operation: str) -> bool:
        if self.is_stale:
            logger.info(
                "stale_generation_dropped",
                generation=self.generation_id,
                current=self.engine.current_generation,
                operation=operation,
            )
            return False
        return True

    def _publish(self, topic: FormEvent, payload: Any) -> None:
        self.engine.events.publish(topic, payload)

    def format(self, final: bool = False) -> Any:
        return format_form_data(
            self.values,
            self.context.data_map,
            self.context.data_circular_refs,
            self.array_map,
            final=final,
        )

    def _validate(self, data: Any, final: bool = False) -> tuple[bool, list[ValidationIssue]]:
        if self.validator is None:
            return True, []
        valid = self.validator(data, final=final)
        return valid, list(self.validator.errors)

    def emit_initial(self) -> None:
        self.data = self.format()
        if self.context.is_empty:
            # No controls, nothing to report
            self._emit_debug()
            return
        self._publish(FormEvent.CHANGES, self.data)
        if self.context.options.validate_on_render and self.validator is not None:
            self.is_valid, self.errors = self._validate(self.data)
            self._publish(FormEvent.IS_VALID, self.is_valid)
            self._publish(FormEvent.VALIDATION_ERRORS, self.errors)
        self._emit_debug()

    def _cycle(self) -> Any:
        self.data = self.format()
        self.is_valid, self.errors = self._validate(self.data)
        self._publish(FormEvent.CHANGES, self.data)
        self._publish(FormEvent.IS_VALID, self.is_valid)
        self._publish(FormEvent.VALIDATION_ERRORS, self.errors)
        self._emit_debug()
        if self.engine.state == FormState.SUBMITTED:
            self.engine.transition(FormState.LIVE)
        return self.data

    def _emit_debug(self) -> None:
        if self.context.options.debug:
            self._publish(FormEvent.DEBUG, self.debug_state())

    def _entry_for(self, data_pointer: str) -> DataMapEntry | None:
        generic = generic_pointer(data_pointer, self.context.data_map, self.context.data_circular_refs)
        return self.context.data_map.get(generic) if generic is not None else None

    def _track_array_growth(self, data_pointer: str) -> None:
        """Raise array counts for every array position a write goes through."""
        segments = pointer.parse(data_pointer)
        for i in range(1, len(segments)):
            array_pointer = pointer.compile(segments[:i])
            index = segments[i]
            if array_pointer in self.array_map and index.isdigit():
                self.array_map[array_pointer] = max(self.array_map[array_pointer], int(index) + 1)

    def set_value(self, data_pointer: str, value: Any) -> Any:
        """
        Set one control value and run a cycle.

        Returns:
            Formatted data, or None if the session is stale or the pointer
            matches no control
        """
        if not self._guard("set_value"):
            return None
        data_pointer = pointer.compile(data_pointer)
        if self._entry_for(data_pointer) is None:
            logger.warning("set_value_unmapped", pointer=data_pointer)
            return None
        self.values = pointer.set_in(self.values, data_pointer, copy.deepcopy(value))
        self._track_array_growth(data_pointer)
        return self._cycle()

    def add_item(self, array_pointer: str, value: Any = None) -> Any:
        """Append an item (seeded from its template) to the array at array_pointer."""
        if not self._guard("add_item"):
            return None
        array_pointer = pointer.compile(array_pointer)
        entry = self._entry_for(array_pointer)
        node = self._index.get(entry.data_pointer) if entry is not None else None
        if node is None or node.control_type != "array":
            logger.warning("add_item_not_array", pointer=array_pointer)
            return None

        count = self.array_map.get(array_pointer, 0)
        template = node.tuple_items[count] if count < len(node.tuple_items) else node.item_template
        if template is None:
            logger.warning("add_item_no_template", pointer=array_pointer, count=count)
            return None

        seeder = ValueSeeder(self.context.binding)
        item = seeder.seed(template, copy.deepcopy(value), pointer.join(array_pointer, count))
        items = pointer.get(self.values, array_pointer)
        if not isinstance(items, list):
            items = []
            self.values = pointer.set_in(self.values, array_pointer, items)
        del items[count:]
        items.append(item)
        self.array_map.update(seeder.array_map)
        self.array_map[array_pointer] = count + 1
        return self._cycle()

    def remove_item(self, array_pointer: str, index: int) -> Any:
        """Remove one item; later items (and their nested arrays) shift down."""
        if not self._guard("remove_item"):
            return None
        array_pointer = pointer.compile(array_pointer)
        items = pointer.get(self.values, array_pointer)
        count = self.array_map.get(array_pointer, 0)
        if not isinstance(items, list) or not 0 <= index < min(count, len(items)):
            logger.warning("remove_item_out_of_range", pointer=array_pointer, index=index)
            return None

        del items[index]
        self.array_map = _shift_array_map(self.array_map, array_pointer, index)
        self.array_map[array_pointer] = count - 1
        return self._cycle()

    def expand(self, data_pointer: str) -> Any:
        """Grow a circular ``$ref`` control by one level."""
        if not self._guard("expand"):
            return None
        data_pointer = pointer.compile(data_pointer)
        entry = self._entry_for(data_pointer)
        target = self._index.get(entry.circular_target) if entry and entry.circular_target is not None else None
        if target is None:
            logger.warning("expand_not_circular", pointer=data_pointer)
            return None
        if isinstance(pointer.get(self.values, data_pointer), (dict, list)):
            return self.data

        seeder = ValueSeeder(self.context.binding)
        grown = seeder.seed(target, None, data_pointer)
        self.values = pointer.set_in(self.values, data_pointer, grown)
        self.array_map.update(seeder.array_map)
        return self._cycle()

    def submit(self) -> Any:
        """Format in final mode, validate, and publish the submission."""
        if not self._guard("submit"):
            return None
        final = self.format(final=True)
        self.is_valid, self.errors = self._validate(final, final=True)
        self._publish(FormEvent.IS_VALID, self.is_valid)
        self._publish(FormEvent.VALIDATION_ERRORS, self.errors)
        self._publish(FormEvent.SUBMIT, final)
        self.engine.transition(FormState.SUBMITTED)
        logger.info("form_submitted", valid=self.is_valid, errors=len(self.errors))
        return final

    def snapshot(self) -> dict[str, Any]:
        return {
            "generation_id": self.generation_id,
            "data": copy.deepcopy(self.data),
            "is_valid": self.is_valid,
            "errors": [issue.model_dump() for issue in self.errors],
            "array_map": dict(self.array_map),
        }

    def debug_state(self) -> dict[str, Any]:
        return {
            "generation_id": self.generation_id,
            "generation_created_ms": extract_timestamp(self.generation_id),
            "session_id": self.session_id,
            "state": self.engine.state.value,
            "compatibility": sorted(c.value for c in self.context.compatibility),
            "schema": self.context.json_schema,
            "layout": [node.model_dump() for node in self.context.layout],
            "data_map": sorted(self.context.data_map),
            "circular_refs": self.context.circular_refs,
            "values": copy.deepcopy(self.values),
            "array_map": dict(self.array_map),
            "tpldata": self.context.tpldata,
        }


def _shift_array_map(array_map: dict[str, int], array_pointer: str, removed: int) -> dict[str, int]:
    """Renumber array-map keys below array_pointer after removing one item."""
    shifted: dict[str, int] = {}
    base = pointer.parse(array_pointer)
    for key, count in array_map.items():
        segments = pointer.parse(key)
        if len(segments) > len(base) and segments[:len(base)] == base and segments[len(base)].isdigit():
            position = int(segments[len(base)])
            if position == removed:
                continue
            if position > removed:
                segments[len(base)] = str(position - 1)
            shifted[pointer.compile(segments)] = count
        else:
            shifted[key] = count
    return shifted


__all__ = ["FormEngine", "FormSession", "FormContext"]
