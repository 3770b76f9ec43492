"""Generic LRU cache keyed by JSON documents.

Used to compile each distinct schema once: the key is a canonical hash of the
document, so two structurally equal schemas share an entry.
"""

from typing import Generic, TypeVar, Any
from collections import OrderedDict
from dataclasses import dataclass

from .hash import Algorithm, hash_document

T = TypeVar("T")


@dataclass
class Stats:
    """Cache statistics."""

    size: int = 0
    max_size: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate (0.0 to 1.0)."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": self.hit_rate,
        }


class LRUCache(Generic[T]):
    """
    LRU cache over JSON-document keys with statistics tracking.

    Examples:
        >>> cache = LRUCache[str](max_size=8)
        >>> cache.set({"type": "string"}, "compiled")
        >>> cache.get({"type": "string"})
        'compiled'
        >>> cache.stats.hits
        1
    """

    def __init__(self, max_size: int = 32, hash_algorithm: Algorithm = Algorithm.XXHASH64):
        """
        Initialize LRU cache.

        Args:
            max_size: Maximum number of entries
            hash_algorithm: Algorithm for computing cache keys
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self.max_size = max_size
        self.hash_algorithm = hash_algorithm

        self._cache: OrderedDict[str, T] = OrderedDict()
        self._stats = Stats(max_size=max_size)

    def key_for(self, document: Any) -> str:
        """Compute cache key from a JSON-like document."""
        return hash_document(document, self.hash_algorithm)

    def get(self, document: Any) -> T | None:
        """Get cached value for document, or None."""
        cache_key = self.key_for(document)

        if cache_key in self._cache:
            # Move to end (most recently used)
            self._cache.move_to_end(cache_key)
            self._stats.hits += 1
            return self._cache[cache_key]

        self._stats.misses += 1
        return None

    def set(self, document: Any, value: T) -> None:
        """Cache value for document."""
        cache_key = self.key_for(document)

        if cache_key in self._cache:
            del self._cache[cache_key]

        self._cache[cache_key] = value

        # Enforce size limit (least recently used goes first)
        if len(self._cache) > self.max_size:
            self._cache.popitem(last=False)
            self._stats.evictions += 1

        self._stats.size = len(self._cache)

    def clear(self) -> None:
        """Clear entire cache."""
        self._cache.clear()
        self._stats.size = 0

    @property
    def stats(self) -> Stats:
        return self._stats

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, document: Any) -> bool:
        """Check if document is cached (doesn't update LRU order)."""
        return self.key_for(document) in self._cache


__all__ = ["LRUCache", "Stats"]
