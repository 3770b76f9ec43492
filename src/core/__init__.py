"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .validate import (
    FormInputError,
    InvariantViolation,
    InputProblem,
    check_input,
    validate_json_size,
    validate_json_depth,
)
from .logging_config import configure_logging, get_logger, LogContext
from .json import parse_json_document, safe_json_dumps, JSONParseError
from .hash import Algorithm, hash_string, hash_document, canonical_json
from .cache import LRUCache, Stats
from .id import GenerationID, SessionID, extract_timestamp, new_generation_id, new_session_id


def create_container(settings: Settings | None = None):
    """Create dependency injection container (lazy import to avoid circular deps)."""
    from .container import create_container as _create_container

    return _create_container(settings)


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Validation
    "FormInputError",
    "InvariantViolation",
    "InputProblem",
    "check_input",
    "validate_json_size",
    "validate_json_depth",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # JSON
    "parse_json_document",
    "safe_json_dumps",
    "JSONParseError",
    # DI
    "create_container",
    # Hashing
    "Algorithm",
    "hash_string",
    "hash_document",
    "canonical_json",
    # Caching
    "LRUCache",
    "Stats",
    # IDs
    "GenerationID",
    "SessionID",
    "new_generation_id",
    "new_session_id",
    "extract_timestamp",
]
