"""A growable byte buffer with separate read and write positions."""

from __future__ import annotations

from typing import BinaryIO, Protocol

MIN_READ = 512
_BOOTSTRAP_SIZE = 64


class _Reader(Protocol):
    def read(self, size: int = ...) -> bytes: ...


class _Writer(Protocol):
    def write(self, data: bytes) -> int | None: ...


class Buffer:
    """Variable-sized byte buffer that is read from the front and written at the end.

    Views returned by :meth:`alloc` stay valid until the next call that
    writes to the buffer.
    """

    def __init__(self, data: bytes | bytearray | None = None) -> None:
        self._buf = bytearray(data or b"")
        self._off = 0
        self._end = len(self._buf)

    @property
    def _capacity(self) -> int:
        return len(self._buf)

    def __len__(self) -> int:
        return self._end - self._off

    def __str__(self) -> str:
        return self.bytes().decode("latin-1")

    def __bytes__(self) -> bytes:
        return self.bytes()

    def __repr__(self) -> str:
        return f"Buffer({self.bytes()!r})"

    def bytes(self) -> bytes:
        """Return the unread portion of the buffer."""
        return bytes(self._buf[self._off:self._end])

    def truncate(self, n: int) -> None:
        """Discard all but the first ``n`` unread bytes."""
        if n < 0 or n > len(self):
            raise ValueError("buffer truncation out of range")
        if n == 0:
            self._off = 0
        self._end = self._off + n

    def reset(self) -> None:
        """Empty the buffer."""
        self.truncate(0)

    def _grow(self, n: int) -> int:
        m = len(self)
        if m == 0 and self._off != 0:
            self.truncate(0)
        capacity = len(self._buf)
        if self._end + n > capacity:
            if capacity == 0 and n <= _BOOTSTRAP_SIZE:
                self._buf = bytearray(_BOOTSTRAP_SIZE)
            elif m + n <= capacity // 2:
                # Slide unread data down instead of reallocating.
                self._buf[:m] = self._buf[self._off:self._end]
            else:
                fresh = bytearray(2 * capacity + n)
                fresh[:m] = self._buf[self._off:self._end]
                self._buf = fresh
            self._off = 0
            self._end = m
        start = self._off + m
        self._end = start + n
        return start

    def alloc(self, n: int) -> memoryview:
        """Reserve ``n`` bytes at the end and return a writable view of them."""
        if n < 0:
            raise ValueError("negative count")
        start = self._grow(n)
        return memoryview(self._buf)[start:self._end]

    def grow(self, n: int) -> None:
        """Ensure room for another ``n`` bytes without reallocation."""
        if n < 0:
            raise ValueError("negative count")
        self._end = self._grow(n)

    def write(self, data: bytes | bytearray | memoryview) -> int:
        """Append ``data`` and return the number of bytes written."""
        size = len(data)
        start = self._grow(size)
        self._buf[start:start + size] = data
        return size

    def write_byte(self, c: int) -> None:
        """Append a single byte."""
        start = self._grow(1)
        self._buf[start] = c

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes (all when negative); ``b""`` when drained."""
        if self._off >= self._end:
            self.truncate(0)
            return b""
        stop = self._end if size < 0 else min(self._end, self._off + size)
        data = bytes(self._buf[self._off:stop])
        self._off = stop
        return data

    def read_from(self, reader: _Reader | BinaryIO) -> int:
        """Append everything ``reader`` yields until it is exhausted."""
        if self._off >= self._end:
            self.truncate(0)
        total = 0
        while True:
            free = len(self._buf) - self._end
            chunk = reader.read(max(free, MIN_READ))
            if not chunk:
                return total
            self.write(chunk)
            total += len(chunk)

    def write_to(self, writer: _Writer | BinaryIO) -> int:
        """Drain the buffer into ``writer`` and return the bytes written."""
        written_total = 0
        if self._off < self._end:
            pending = len(self)
            written = writer.write(bytes(self._buf[self._off:self._end]))
            if written is None:
                written = pending
            if written > pending:
                raise ValueError("invalid write count")
            self._off += written
            written_total = written
            if written != pending:
                raise OSError("short write")
        self.truncate(0)
        return written_total

    def next(self, n: int) -> bytes:
        """Consume and return the next ``n`` bytes, or fewer if not available."""
        n = min(n, len(self))
        data = bytes(self._buf[self._off:self._off + n])
        self._off += n
        return data

    def read_byte(self) -> int:
        """Consume one byte; raise EOFError when the buffer is empty."""
        if self._off >= self._end:
            self.truncate(0)
            raise EOFError("buffer is empty")
        c = self._buf[self._off]
        self._off += 1
        return c

    def read_bytes(self, delim: int | bytes) -> bytes:
        """Read through the first ``delim``.

        The result ends with ``delim`` unless the buffer ran out first.
        """
        if isinstance(delim, (bytes, bytearray)):
            if len(delim) != 1:
                raise ValueError("delimiter must be a single byte")
            delim = delim[0]
        index = self._buf.find(delim, self._off, self._end)
        stop = self._end if index < 0 else index + 1
        line = bytes(self._buf[self._off:stop])
        self._off = stop
        return line