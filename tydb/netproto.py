"""Length-prefixed framing used between the database server and its clients.

A frame is a decimal length followed by a space and then the payload.
Errors are sent with a negative length and the error text as payload.
"""

from __future__ import annotations

import re
from typing import BinaryIO, Protocol

_INTEGER = re.compile(r"[+-]?\d+")


class _ByteReader(Protocol):
    def read(self, size: int = ...) -> bytes: ...


def read_len(reader: _ByteReader | BinaryIO) -> int:
    """Read a space-terminated decimal length from ``reader``."""
    raw = bytearray()
    while True:
        ch = reader.read(1)
        if not ch:
            raise EOFError("stream ended before length delimiter")
        raw += ch
        if ch == b" ":
            break
    text = raw.decode("ascii", errors="replace").strip()
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid length {text!r}")
    return int(text)


def encode_response(value: bytes | None, error: BaseException | str | None) -> bytes:
    """Frame ``value``, or ``error`` when one is given."""
    if error is not None:
        message = str(error).encode("utf-8")
        return f"-{len(message)} ".encode("ascii") + message
    payload = bytes(value or b"")
    return f"{len(payload)} ".encode("ascii") + payload


def send_data(conn, value: bytes | None, error: BaseException | str | None = None) -> None:
    """Send a framed response on a socket or writable binary stream."""
    frame = encode_response(value, error)
    sender = getattr(conn, "sendall", None)
    if sender is not None:
        sender(frame)
    else:
        conn.write(frame)