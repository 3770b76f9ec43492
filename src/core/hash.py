"""Fast hashing for non-cryptographic use cases.

Provides xxhash for compiled-validator cache keys and SHA256 where a stable,
widely reproducible digest is wanted. Documents are hashed through a canonical
(sorted-key, compact) JSON encoding so equal schemas share one key.
"""

from typing import Any, Protocol
from enum import Enum
import hashlib

import orjson
import xxhash


class Algorithm(str, Enum):
    """Supported hash algorithms."""

    XXHASH64 = "xxhash64"  # Fast, non-cryptographic (cache keys)
    SHA256 = "sha256"      # Stable across tools


class Hasher(Protocol):
    """Protocol for hash implementations."""

    def digest(self, data: bytes) -> str:
        """Compute hex digest of data."""
        ...


class XXHasher:
    """Ultra-fast non-cryptographic hasher."""

    def digest(self, data: bytes) -> str:
        return xxhash.xxh64(data).hexdigest()


class SHA256Hasher:
    """Cryptographic hasher."""

    def digest(self, data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()


def create_hasher(algorithm: Algorithm = Algorithm.XXHASH64) -> Hasher:
    """
    Create hasher instance.

    Raises:
        ValueError: If the algorithm is unknown
    """
    if algorithm == Algorithm.XXHASH64:
        return XXHasher()
    elif algorithm == Algorithm.SHA256:
        return SHA256Hasher()
    else:
        raise ValueError(f"Unknown algorithm: {algorithm}")


def hash_string(
    text: str,
    algorithm: Algorithm = Algorithm.XXHASH64,
    truncate: int | None = None
) -> str:
    """
    Hash string to hex digest.

    Args:
        text: String to hash
        algorithm: Hash algorithm (default: xxhash64 for speed)
        truncate: Optional length to truncate digest

    Returns:
        Hex digest string
    """
    digest = create_hasher(algorithm).digest(text.encode("utf-8"))
    if truncate:
        return digest[:truncate]
    return digest


def canonical_json(obj: Any) -> bytes:
    """Encode a JSON-like document with sorted keys and no whitespace."""
    return orjson.dumps(obj, option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS)


def hash_document(
    obj: Any,
    algorithm: Algorithm = Algorithm.XXHASH64,
    truncate: int | None = None
) -> str:
    """
    Hash a JSON-like document independently of key order.

    Examples:
        >>> hash_document({"b": 1, "a": 2}) == hash_document({"a": 2, "b": 1})
        True
    """
    digest = create_hasher(algorithm).digest(canonical_json(obj))
    if truncate:
        return digest[:truncate]
    return digest


__all__ = [
    "Algorithm",
    "Hasher",
    "create_hasher",
    "hash_string",
    "canonical_json",
    "hash_document",
]
