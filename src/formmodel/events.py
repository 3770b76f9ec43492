"""Simple in-process synchronous pub/sub event bus."""

from collections import defaultdict
from typing import Any, Callable

from core import get_logger

from .models import FormEvent

logger = get_logger(__name__)

Handler = Callable[[Any], None]


class EventBus:
    """
    Delivers form events to subscribed callbacks, in subscription order.

    A failing handler is logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = defaultdict(list)

    def publish(self, topic: FormEvent | str, payload: Any) -> int:
        """Publish payload; returns the number of handlers called."""
        name = topic.value if isinstance(topic, FormEvent) else topic
        handlers = list(self._subscribers.get(name, []))
        for handler in handlers:
            try:
                handler(payload)
            except Exception as e:
                logger.error("event_handler_failed", topic=name, error=str(e), exc_info=True)
        return len(handlers)

    def subscribe(self, topic: FormEvent | str, handler: Handler) -> Handler:
        name = topic.value if isinstance(topic, FormEvent) else topic
        self._subscribers[name].append(handler)
        return handler

    def unsubscribe(self, topic: FormEvent | str, handler: Handler) -> None:
        name = topic.value if isinstance(topic, FormEvent) else topic
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)

    def subscriber_count(self, topic: FormEvent | str) -> int:
        name = topic.value if isinstance(topic, FormEvent) else topic
        return len(self._subscribers.get(name, []))


__all__ = ["EventBus", "Handler"]
