"""
Reference Resolver
Inlines local ``$ref`` references and records the circular ones.

Resolution is pure: the input schema is never mutated. It runs in two passes
so that forward references resolve regardless of document order:

1. every ``$ref`` target is looked up once and entered into the library
2. the tree is rebuilt parent-before-child, replacing each non-circular
   ``$ref`` with a copy of its library entry (sibling keys win)

A reference is circular when its target encloses it, either in the source
document or through the copies currently being inlined around it. Circular
references stay in place as ``$ref`` markers.
"""

import copy
from typing import Any

from returns.result import Failure, Result, Success

from core import get_logger

from . import pointer
from .models import ResolutionFailure, ResolvedSchema

logger = get_logger(__name__)


def _target_of(schema: dict[str, Any], reference: str) -> Result[str, str]:
    target = pointer.normalize_ref(reference)
    if target is None:
        return Failure("not a local reference")
    if not pointer.has(schema, target):
        return Failure("target not found")
    return Success(target)


class ReferenceResolver:
    """
    Resolves local ``$ref`` references in a JSON Schema.

    Examples:
        >>> schema = {
        ...     "definitions": {"name": {"type": "string"}},
        ...     "properties": {"first": {"$ref": "#/definitions/name"}},
        ... }
        >>> ReferenceResolver().resolve(schema).json_schema["properties"]["first"]
        {'type': 'string'}
    """

    def resolve(self, schema: dict[str, Any]) -> ResolvedSchema:
        if not schema:
            return ResolvedSchema()

        library, failures = self._collect(schema)
        circular_refs: dict[str, str] = {}
        circular_anchors: dict[str, str] = {}

        def rebuild(node: Any, at: str, inlining: dict[str, str]) -> Any:
            if isinstance(node, list):
                return [rebuild(item, pointer.join(at, i), inlining) for i, item in enumerate(node)]
            if not isinstance(node, dict):
                return node

            reference = node.get("$ref")
            target = pointer.normalize_ref(reference) if isinstance(reference, str) else None
            if target is not None and target in library:
                if pointer.is_sub_pointer(target, at):
                    circular_refs[at] = target
                    circular_anchors[at] = target
                    return copy.deepcopy(node)
                if target in inlining:
                    circular_refs[at] = target
                    circular_anchors[at] = inlining[target]
                    return copy.deepcopy(node)

                siblings = {k: v for k, v in node.items() if k != "$ref"}
                template = library[target]
                merged = {**copy.deepcopy(template), **siblings} if isinstance(template, dict) else copy.deepcopy(template)
                return rebuild(merged, at, {**inlining, target: at})

            return {key: rebuild(value, pointer.join(at, key), inlining) for key, value in node.items()}

        resolved = rebuild(schema, "", {})

        for target in list(library):
            found = pointer.lookup(resolved, target)
            if isinstance(found, Success):
                library[target] = copy.deepcopy(found.unwrap())
            else:
                library[target] = rebuild(copy.deepcopy(library[target]), target, {})

        logger.debug(
            "refs_resolved",
            library=len(library),
            circular=len(circular_refs),
            failures=len(failures),
        )
        return ResolvedSchema(
            json_schema=resolved,
            library=library,
            circular_refs=circular_refs,
            circular_anchors=circular_anchors,
            failures=failures,
        )

    def _collect(self, schema: dict[str, Any]) -> tuple[dict[str, Any], list[ResolutionFailure]]:
        """First pass: library of reference targets, plus the references that cannot resolve."""
        library: dict[str, Any] = {}
        failures: list[ResolutionFailure] = []

        for at, node in pointer.walk(schema):
            if not isinstance(node, dict) or not isinstance(node.get("$ref"), str):
                continue
            reference = node["$ref"]
            result = _target_of(schema, reference)
            if isinstance(result, Failure):
                failure = ResolutionFailure(pointer=at, reference=reference, reason=result.failure())
                failures.append(failure)
                logger.warning("ref_unresolved", pointer=at, reference=reference, reason=failure.reason)
                continue
            target = result.unwrap()
            if target not in library:
                library[target] = copy.deepcopy(pointer.get(schema, target))

        return library, failures


def resolve_schema(schema: dict[str, Any]) -> ResolvedSchema:
    return ReferenceResolver().resolve(schema)


__all__ = ["ReferenceResolver", "resolve_schema"]
