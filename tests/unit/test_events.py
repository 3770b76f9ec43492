"""Tests for the event bus."""

import pytest

from formmodel import EventBus, FormEvent


@pytest.mark.unit
def test_publish_in_subscription_order():
    """Test handlers run in the order they subscribed."""
    bus = EventBus()
    seen = []
    bus.subscribe(FormEvent.CHANGES, lambda p: seen.append(("a", p)))
    bus.subscribe("changes", lambda p: seen.append(("b", p)))

    assert bus.publish(FormEvent.CHANGES, {"x": 1}) == 2
    assert seen == [("a", {"x": 1}), ("b", {"x": 1})]


@pytest.mark.unit
def test_unsubscribe():
    """Test an unsubscribed handler no longer receives events."""
    bus = EventBus()
    seen = []
    handler = bus.subscribe(FormEvent.SUBMIT, seen.append)
    bus.unsubscribe(FormEvent.SUBMIT, handler)
    bus.unsubscribe(FormEvent.SUBMIT, handler)

    assert bus.publish(FormEvent.SUBMIT, {}) == 0
    assert seen == []
    assert bus.subscriber_count(FormEvent.SUBMIT) == 0


@pytest.mark.unit
def test_failing_handler_does_not_stop_delivery():
    """Test later handlers still run after one raises."""
    bus = EventBus()
    seen = []

    def broken(payload):
        raise RuntimeError("boom")

    bus.subscribe(FormEvent.IS_VALID, broken)
    bus.subscribe(FormEvent.IS_VALID, seen.append)

    assert bus.publish(FormEvent.IS_VALID, True) == 2
    assert seen == [True]


@pytest.mark.unit
def test_topics_are_independent():
    """Test events only reach their own topic."""
    bus = EventBus()
    seen = []
    bus.subscribe(FormEvent.DEBUG, seen.append)
    bus.publish(FormEvent.CHANGES, {})
    assert seen == []
