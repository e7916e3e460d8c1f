"""Half-open key ranges over byte strings."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class KeyRange:
    """Keys from ``start`` (inclusive) up to ``limit`` (exclusive).

    ``None`` on either side leaves that side unbounded.
    """

    start: bytes | None = None
    limit: bytes | None = None

    def __contains__(self, key: bytes) -> bool:
        if self.start is not None and key < self.start:
            return False
        return self.limit is None or key < self.limit


def bytes_prefix(prefix: bytes) -> KeyRange:
    """Return the range of all keys starting with ``prefix``."""
    stem = prefix.rstrip(b"\xff")
    limit = stem[:-1] + bytes([stem[-1] + 1]) if stem else None
    return KeyRange(bytes(prefix), limit)