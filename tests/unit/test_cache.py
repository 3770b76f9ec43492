"""Tests for cache module."""

import pytest
from hypothesis import given, strategies as st

from core.cache import LRUCache


def _schema(name):
    return {"type": "object", "properties": {name: {"type": "string"}}}


def test_lru_basic():
    """Test basic cache operations."""
    cache = LRUCache[str](max_size=3)

    cache.set(_schema("a"), "value_a")
    cache.set(_schema("b"), "value_b")

    assert cache.get(_schema("a")) == "value_a"
    assert cache.get(_schema("b")) == "value_b"
    assert len(cache) == 2


def test_equal_documents_share_entry():
    """Test key order does not matter."""
    cache = LRUCache[str](max_size=3)
    cache.set({"type": "string", "minLength": 1}, "compiled")

    assert cache.get({"minLength": 1, "type": "string"}) == "compiled"
    assert {"minLength": 1, "type": "string"} in cache


def test_lru_order():
    """Test LRU ordering (most recently used stays)."""
    cache = LRUCache[str](max_size=2)

    cache.set(_schema("a"), "value_a")
    cache.set(_schema("b"), "value_b")

    # Access "a" to make it most recent
    _ = cache.get(_schema("a"))

    # Add "c" - should evict "b" (least recent)
    cache.set(_schema("c"), "value_c")

    assert cache.get(_schema("a")) == "value_a"
    assert cache.get(_schema("b")) is None
    assert cache.get(_schema("c")) == "value_c"
    assert cache.stats.evictions == 1


def test_lru_update():
    """Test updating existing entry."""
    cache = LRUCache[str](max_size=10)

    cache.set(_schema("key"), "value1")
    cache.set(_schema("key"), "value2")

    assert cache.get(_schema("key")) == "value2"
    assert len(cache) == 1


def test_lru_clear():
    """Test clearing cache."""
    cache = LRUCache[str](max_size=10)
    cache.set(_schema("a"), "value_a")

    cache.clear()

    assert len(cache) == 0
    assert cache.stats.size == 0
    assert cache.get(_schema("a")) is None


def test_stats_hit_miss():
    """Test statistics tracking."""
    cache = LRUCache[str](max_size=10)

    cache.set(_schema("key"), "value")

    _ = cache.get(_schema("key"))  # Hit
    _ = cache.get(_schema("missing"))  # Miss

    stats = cache.stats
    assert stats.hits == 1
    assert stats.misses == 1
    assert stats.hit_rate == 0.5
    assert stats.to_dict()["hit_rate"] == 0.5


def test_invalid_max_size():
    """Test validation."""
    with pytest.raises(ValueError):
        LRUCache[str](max_size=0)


@given(st.lists(st.text(min_size=1, max_size=10), min_size=1, max_size=50))
def test_cache_preserves_values(keys):
    """Property test: cache preserves values correctly."""
    cache = LRUCache[str](max_size=100)

    for key in keys:
        cache.set(_schema(key), f"value_{key}")

    for key in keys:
        assert cache.get(_schema(key)) == f"value_{key}"
