"""Pytest configuration and fixtures."""

import os
from typing import Any

import pytest

from core import configure_logging, create_container, get_settings
from core.config import Settings
from formmodel import EventBus, FormEngine, JsonSchemaAdapter


# ============================================================================
# Pytest Hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["FORMMODEL_LOG_LEVEL"] = "DEBUG"
    os.environ["FORMMODEL_DEBUG"] = "false"
    os.environ["FORMMODEL_VALIDATE_ON_RENDER"] = "false"
    configure_logging("DEBUG")


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def settings() -> Settings:
    """Test settings."""
    return get_settings()


@pytest.fixture
def di_container():
    """Dependency injection container for testing."""
    return create_container(Settings())


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def events() -> EventBus:
    """Fresh event bus."""
    return EventBus()


@pytest.fixture
def engine(events) -> FormEngine:
    """Engine with default adapter and a fresh event bus."""
    return FormEngine(adapter=JsonSchemaAdapter(), settings=Settings(), events=events)


@pytest.fixture
def recorder(events):
    """Collects every published event as (topic, payload) pairs."""
    received: list[tuple[str, Any]] = []

    for topic in ("changes", "is_valid", "validation_errors", "submit", "debug"):
        events.subscribe(topic, lambda payload, topic=topic: received.append((topic, payload)))
    return received


# ============================================================================
# Schema Fixtures
# ============================================================================

@pytest.fixture
def name_schema() -> dict[str, Any]:
    """Single string field."""
    return {"type": "object", "properties": {"name": {"type": "string"}}}


@pytest.fixture
def person_schema() -> dict[str, Any]:
    """Nested object with required fields, an array and a reference."""
    return {
        "type": "object",
        "definitions": {
            "address": {
                "type": "object",
                "properties": {
                    "street": {"type": "string"},
                    "zip": {"type": "string", "pattern": "^[0-9]{5}$"},
                },
                "required": ["street"],
            }
        },
        "properties": {
            "name": {"type": "string", "minLength": 1},
            "age": {"type": "integer", "minimum": 0},
            "subscribed": {"type": "boolean"},
            "address": {"$ref": "#/definitions/address"},
            "tags": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["name"],
    }


@pytest.fixture
def tree_schema() -> dict[str, Any]:
    """Self-referential tree node."""
    return {
        "type": "object",
        "properties": {
            "label": {"type": "string"},
            "child": {"$ref": "#"},
        },
    }
