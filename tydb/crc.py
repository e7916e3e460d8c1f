"""CRC-32 checksums with Castagnoli's polynomial, plus the masked form."""

from __future__ import annotations

from dataclasses import dataclass

_MASK = 0xFFFFFFFF
_POLY = 0x82F63B78
_MASK_DELTA = 0xA282EAD8


def _make_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            crc = (crc >> 1) ^ _POLY if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_TABLE = _make_table()


@dataclass(frozen=True)
class CRC:
    """An immutable running CRC-32C checksum."""

    crc: int = 0

    def update(self, data: bytes) -> CRC:
        """Return the checksum extended with ``data``."""
        crc = ~self.crc & _MASK
        for byte in data:
            crc = _TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
        return CRC(~crc & _MASK)

    def value(self) -> int:
        """Return the masked checksum, as stored alongside data."""
        c = self.crc
        rotated = ((c >> 15) | (c << 17)) & _MASK
        return (rotated + _MASK_DELTA) & _MASK

    def __int__(self) -> int:
        return self.crc


def new_crc(data: bytes) -> CRC:
    """Return the checksum of ``data``."""
    return CRC().update(data)