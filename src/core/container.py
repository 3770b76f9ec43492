"""Dependency Injection Container."""

from injector import Injector, Module, provider, singleton

from formmodel.engine import FormEngine
from formmodel.events import EventBus
from formmodel.validation import JsonSchemaAdapter

from .config import Settings, get_settings


class CoreModule(Module):
    """Core dependencies."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings

    @singleton
    @provider
    def provide_settings(self) -> Settings:
        """Provide settings (environment defaults unless given)."""
        return self.settings or get_settings()

    @singleton
    @provider
    def provide_event_bus(self) -> EventBus:
        """Provide event bus singleton."""
        return EventBus()

    @singleton
    @provider
    def provide_validation_adapter(self, settings: Settings) -> JsonSchemaAdapter:
        """Provide the jsonschema-backed adapter with its validator cache."""
        return JsonSchemaAdapter(cache_size=settings.validator_cache_size)

    @singleton
    @provider
    def provide_form_engine(self, adapter: JsonSchemaAdapter, settings: Settings, events: EventBus) -> FormEngine:
        """Provide form engine with all dependencies."""
        return FormEngine(adapter=adapter, settings=settings, events=events)


def create_container(settings: Settings | None = None) -> Injector:
    """Create configured injector."""
    return Injector([CoreModule(settings)])
