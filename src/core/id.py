"""ID Generation System.

ULID-based identifiers for form generations and live sessions.

Features:
- ULIDs: Lexicographically sortable, timestamp-based
- Type-safe: NewType wrappers for different ID categories
- Prefixed: Type-specific prefixes for debugging (gen_*, sess_*)

A generation id tags every structure built by one initialization; comparing
two generation ids tells which initialization is newer.
"""

from typing import NewType
from ulid import ULID

# ============================================================================
# Type-Safe ID Wrappers
# ============================================================================

GenerationID = NewType("GenerationID", str)
"""One (re-)initialization of a form"""

SessionID = NewType("SessionID", str)
"""Live session bound to a generation"""

# ============================================================================
# ID Prefixes (for debugging and type identification)
# ============================================================================


class Prefix:
    """ID prefix constants."""

    GENERATION = "gen"
    SESSION = "sess"


# ============================================================================
# ULID Generator
# ============================================================================


class Generator:
    """ULID generator (monotonic within the same millisecond)."""

    def generate(self) -> str:
        return str(ULID())

    def generate_with_prefix(self, prefix: str) -> str:
        return f"{prefix}_{self.generate()}"

    def timestamp(self, id_str: str) -> int:
        """Extract timestamp (milliseconds) from ULID."""
        try:
            ulid_str = id_str.split("_", 1)[1] if "_" in id_str else id_str
            ulid = ULID.from_str(ulid_str)
            return int(ulid.timestamp * 1000)
        except (ValueError, IndexError):
            return 0


# Singleton instance
_generator = Generator()


def new_generation_id() -> GenerationID:
    """Generate new generation ID."""
    return GenerationID(_generator.generate_with_prefix(Prefix.GENERATION))


def new_session_id() -> SessionID:
    """Generate new session ID."""
    return SessionID(_generator.generate_with_prefix(Prefix.SESSION))


def extract_timestamp(id_str: str) -> int:
    """Extract creation time (ms) from any prefixed ID."""
    return _generator.timestamp(id_str)


__all__ = [
    "GenerationID",
    "SessionID",
    "Prefix",
    "Generator",
    "new_generation_id",
    "new_session_id",
    "extract_timestamp",
]
