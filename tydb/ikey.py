"""Internal keys: a user key followed by a packed sequence number and type."""

from __future__ import annotations

from enum import IntEnum


class KeyType(IntEnum):
    """Value type stored in the low byte of an internal key's trailer."""

    DEL = 0
    VAL = 1

    def __str__(self) -> str:
        return "d" if self is KeyType.DEL else "v"


KEY_TYPE_SEEK = KeyType.VAL
MAX_SEQ = (1 << 56) - 1
MAX_NUM = (MAX_SEQ << 8) | int(KEY_TYPE_SEEK)
MAX_NUM_BYTES = MAX_NUM.to_bytes(8, "little")


class InternalKeyCorrupted(ValueError):
    """An internal key could not be parsed."""

    def __init__(self, ikey: bytes, reason: str) -> None:
        self.ikey = bytes(ikey)
        self.reason = reason
        super().__init__(f"internal key {self.ikey!r} corrupted: {reason}")


class InternalKey(bytes):
    """An encoded internal key."""

    def _check(self) -> None:
        if len(self) < 8:
            raise ValueError(f"internal key {bytes(self)!r}, len={len(self)}: invalid length")

    def ukey(self) -> bytes:
        """Return the user key part."""
        self._check()
        return bytes(self[:-8])

    def num(self) -> int:
        """Return the packed sequence number and type."""
        self._check()
        return int.from_bytes(self[-8:], "little")

    def parse_num(self) -> tuple[int, KeyType]:
        """Return the sequence number and key type."""
        num = self.num()
        kt = num & 0xFF
        if kt > KeyType.VAL:
            raise ValueError(
                f"internal key {bytes(self)!r}, len={len(self)}: invalid type {kt:#x}"
            )
        return num >> 8, KeyType(kt)

    def __str__(self) -> str:
        try:
            ukey, seq, kt = parse_ikey(self)
        except InternalKeyCorrupted:
            return "<invalid>"
        return f"{ukey.hex()},{kt}{seq}"


def new_ikey(ukey: bytes, seq: int, kt: KeyType | int) -> InternalKey:
    """Encode ``ukey`` with sequence number ``seq`` and type ``kt``."""
    if seq > MAX_SEQ:
        raise ValueError("invalid sequence number")
    if kt > KeyType.VAL or kt < 0:
        raise ValueError("invalid type")
    trailer = ((seq << 8) | int(kt)).to_bytes(8, "little")
    return InternalKey(bytes(ukey) + trailer)


def parse_ikey(ik: bytes) -> tuple[bytes, int, KeyType]:
    """Split ``ik`` into user key, sequence number and type."""
    if len(ik) < 8:
        raise InternalKeyCorrupted(ik, "invalid length")
    num = int.from_bytes(ik[-8:], "little")
    seq, kt = num >> 8, num & 0xFF
    if kt > KeyType.VAL:
        raise InternalKeyCorrupted(ik, "invalid type")
    return bytes(ik[:-8]), seq, KeyType(kt)


def valid_ikey(ik: bytes) -> bool:
    """Return whether ``ik`` parses as an internal key."""
    try:
        parse_ikey(ik)
    except InternalKeyCorrupted:
        return False
    return True