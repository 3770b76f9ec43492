"""Input guards and error types with Result-pattern helpers."""

import sys
from dataclasses import dataclass
from typing import Any

from returns.result import Failure, Result, Success


# Input limits
MAX_INPUT_SIZE = 4 * 1024 * 1024  # 4MB
MAX_SCHEMA_DEPTH = 64


class FormInputError(Exception):
    """Form input could not be read."""

    pass


class InvariantViolation(AssertionError):
    """Internal contract broken (a bug in the engine, not bad input)."""

    pass


@dataclass(frozen=True)
class InputProblem:
    """Input problem with details (for Result pattern)."""

    message: str
    field: str | None = None
    value: Any | None = None


def validate_json_size(data: str, max_size: int = MAX_INPUT_SIZE, name: str = "JSON") -> None:
    """
    Reject oversized JSON text before parsing.

    Args:
        data: JSON string to check
        max_size: Maximum allowed size in bytes
        name: Name for error messages

    Raises:
        FormInputError: If size exceeds limit
    """
    size = sys.getsizeof(data)
    if size > max_size:
        raise FormInputError(f"{name} size {size} bytes exceeds maximum {max_size} bytes")


def validate_json_depth(obj: Any, max_depth: int = MAX_SCHEMA_DEPTH, current_depth: int = 0) -> None:
    """
    Reject documents nested deeper than the traversals can handle.

    Args:
        obj: Parsed document
        max_depth: Maximum allowed nesting depth
        current_depth: Current depth (internal)

    Raises:
        FormInputError: If depth exceeds limit
    """
    if current_depth > max_depth:
        raise FormInputError(f"JSON nesting depth {current_depth} exceeds maximum {max_depth}")

    if isinstance(obj, dict):
        for value in obj.values():
            validate_json_depth(value, max_depth, current_depth + 1)
    elif isinstance(obj, list):
        for item in obj:
            validate_json_depth(item, max_depth, current_depth + 1)


def check_input(obj: Any, name: str, max_depth: int = MAX_SCHEMA_DEPTH) -> Result[Any, InputProblem]:
    """
    Depth-check one form input (Result pattern version).

    Args:
        obj: Parsed input document
        name: Input name, reported back on failure
        max_depth: Maximum allowed nesting depth

    Returns:
        Result holding the input or the problem found
    """
    try:
        validate_json_depth(obj, max_depth)
        return Success(obj)
    except FormInputError as e:
        return Failure(InputProblem(str(e), field=name))
