"""Murmur-like 32-bit hash used for bloom filters and caches."""

from __future__ import annotations

import struct

_MASK = 0xFFFFFFFF
_M = 0xC6A4A793
_R = 24


def hash32(data: bytes | None, seed: int) -> int:
    """Return the 32-bit hash of ``data`` with the given ``seed``."""
    data = data or b""
    h = (seed ^ (len(data) * _M)) & _MASK
    whole = len(data) - len(data) % 4
    for (word,) in struct.iter_unpack("<I", data[:whole]):
        h = ((h + word) * _M) & _MASK
        h ^= h >> 16
    tail = data[whole:]
    if tail:
        h = ((h + int.from_bytes(tail, "little")) * _M) & _MASK
        h ^= h >> _R
    return h