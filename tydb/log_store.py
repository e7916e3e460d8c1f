"""Durable storage for replicated-log entries plus a small key/value area.

Entries live under the ``logs`` key prefix, indexed by big-endian
uint64, and configuration values under the ``conf`` prefix. Writes are
batched in memory and flushed according to the chosen durability level.
"""

from __future__ import annotations

import os
import sqlite3
import struct
import threading
from dataclasses import dataclass
from enum import Enum, IntEnum

MAX_BATCH_SIZE = 1024 * 1024

_LOGS = b"logs"
_CONF = b"conf"
_SYNC_KEY = b"__sync__"
_DB_FILE = "store.sqlite"
_HEADER = struct.Struct("<QQBQ")
_SYNC_INTERVAL = 1.0


class Level(IntEnum):
    """Consistency level of a :class:`LogStore`."""

    LOW = -1
    MEDIUM = 0
    HIGH = 1


@dataclass
class RaftLog:
    """One entry of the replicated log."""

    index: int = 0
    term: int = 0
    type: int = 0
    data: bytes = b""


class KeyNotFoundError(LookupError):
    """The requested configuration key does not exist."""

    def __init__(self) -> None:
        super().__init__("not found")


class StoreClosedError(RuntimeError):
    """The store has been closed."""

    def __init__(self) -> None:
        super().__init__("closed")


class CorruptError(ValueError):
    """A stored log entry could not be decoded."""

    def __init__(self) -> None:
        super().__init__("corrupt")


class LogNotFoundError(LookupError):
    """No log entry exists at the requested index."""

    def __init__(self) -> None:
        super().__init__("log not found")


class _Flush(Enum):
    SYNC = 1
    BEFORE_READ = 2
    AFTER_WRITE = 3


def _u64(value: int) -> bytes:
    return value.to_bytes(8, "big")


def _from_u64(raw: bytes) -> int:
    return int.from_bytes(raw[:8], "big")


def encode_log(log: RaftLog) -> bytes:
    """Serialise ``log`` as index, term, type, data length and data."""
    data = bytes(log.data)
    return _HEADER.pack(log.index, log.term, log.type, len(data)) + data


def decode_log(buf: bytes) -> RaftLog:
    """Reverse :func:`encode_log`; raise :class:`CorruptError` on bad input."""
    if len(buf) < _HEADER.size:
        raise CorruptError()
    index, term, log_type, length = _HEADER.unpack_from(buf)
    body = buf[_HEADER.size:]
    if len(body) < length:
        raise CorruptError()
    return RaftLog(index=index, term=term, type=log_type, data=bytes(body[:length]))


class LogStore:
    """A log store and stable store kept in a directory on disk."""

    def __init__(self, path: str | os.PathLike, durability: Level | int = Level.MEDIUM) -> None:
        self.path = os.fspath(path)
        os.makedirs(self.path, exist_ok=True)
        self._db = sqlite3.connect(
            os.path.join(self.path, _DB_FILE),
            check_same_thread=False,
            isolation_level=None,
        )
        self._db.execute(
            "CREATE TABLE IF NOT EXISTS kv (key BLOB PRIMARY KEY, value BLOB NOT NULL)"
            " WITHOUT ROWID"
        )
        self.durability = Level(durability)
        self._batch: list[tuple[bytes, bytes | None]] = []
        self._bsize = 0
        self._closed = False
        self._lock = threading.Lock()
        self._stop = threading.Event()
        if self.durability <= Level.LOW:
            threading.Thread(target=self._keep_synced, daemon=True).start()

    def __enter__(self) -> LogStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self._closed:
            self.close()

    def _keep_synced(self) -> None:
        while True:
            with self._lock:
                if self._closed:
                    return
                self._batch_flush(_Flush.SYNC)
            if self._stop.wait(_SYNC_INTERVAL):
                return

    def _batch_put(self, key: bytes, value: bytes) -> None:
        self._batch.append((key, value))
        self._bsize += len(key) + len(value)

    def _batch_delete(self, key: bytes) -> None:
        self._batch.append((key, None))
        self._bsize += len(key)

    def _write_batch(self, sync: bool) -> None:
        self._db.execute(f"PRAGMA synchronous = {'FULL' if sync else 'OFF'}")
        self._db.execute("BEGIN")
        try:
            for key, value in self._batch:
                if value is None:
                    self._db.execute("DELETE FROM kv WHERE key = ?", (key,))
                else:
                    self._db.execute(
                        "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value)
                    )
        except BaseException:
            self._db.execute("ROLLBACK")
            raise
        self._db.execute("COMMIT")

    def _batch_flush(self, kind: _Flush) -> None:
        sync = self.durability >= Level.HIGH or kind is _Flush.SYNC
        if kind is _Flush.SYNC:
            if self.durability < Level.HIGH and self._bsize == 0:
                # Forces a write so the journal gets synced.
                self._batch_put(_SYNC_KEY, b"")
            required = True
        elif kind is _Flush.BEFORE_READ:
            required = True
        else:
            required = self._bsize > MAX_BATCH_SIZE or self.durability >= Level.MEDIUM
        if self._bsize == 0 or not required:
            return
        self._write_batch(sync)
        self._batch.clear()
        self._bsize = 0

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError()

    def close(self) -> None:
        """Flush pending writes and close the store."""
        with self._lock:
            self._check_open()
            self._batch_flush(_Flush.SYNC)
            self._db.close()
            self._closed = True
            self._stop.set()

    def first_index(self) -> int:
        """Return the lowest stored log index, or 0 when there is none."""
        with self._lock:
            self._check_open()
            self._batch_flush(_Flush.BEFORE_READ)
            row = self._db.execute(
                "SELECT key FROM kv WHERE key >= ? ORDER BY key LIMIT 1", (_LOGS,)
            ).fetchone()
        if row is None or not row[0].startswith(_LOGS):
            return 0
        return _from_u64(row[0][len(_LOGS):])

    def last_index(self) -> int:
        """Return the highest stored log index, or 0 when there is none."""
        with self._lock:
            self._check_open()
            self._batch_flush(_Flush.BEFORE_READ)
            row = self._db.execute("SELECT key FROM kv ORDER BY key DESC LIMIT 1").fetchone()
        if row is None or not row[0].startswith(_LOGS):
            return 0
        return _from_u64(row[0][len(_LOGS):])

    def get_log(self, idx: int) -> RaftLog:
        """Return the log entry at ``idx``."""
        with self._lock:
            self._check_open()
            self._batch_flush(_Flush.BEFORE_READ)
            row = self._db.execute(
                "SELECT value FROM kv WHERE key = ?", (_LOGS + _u64(idx),)
            ).fetchone()
        if row is None:
            raise LogNotFoundError()
        return decode_log(row[0])

    def store_log(self, log: RaftLog) -> None:
        """Store a single log entry."""
        self.store_logs([log])

    def store_logs(self, logs: list[RaftLog]) -> None:
        """Store several log entries."""
        with self._lock:
            self._check_open()
            for log in logs:
                self._batch_put(_LOGS + _u64(log.index), encode_log(log))
            self._batch_flush(_Flush.AFTER_WRITE)

    def delete_range(self, min_index: int, max_index: int) -> None:
        """Delete log entries from ``min_index`` to ``max_index`` inclusive."""
        with self._lock:
            self._check_open()
            self._batch_flush(_Flush.BEFORE_READ)
            cursor = self._db.execute(
                "SELECT key FROM kv WHERE key >= ? ORDER BY key", (_LOGS + _u64(min_index),)
            )
            doomed = []
            for (key,) in cursor:
                if not key.startswith(_LOGS) or _from_u64(key[len(_LOGS):]) > max_index:
                    break
                doomed.append(key)
            cursor.close()
            for key in doomed:
                self._batch_delete(key)
            self._batch_flush(_Flush.AFTER_WRITE)

    def set(self, key: bytes, value: bytes) -> None:
        """Store ``value`` under ``key`` outside the log."""
        with self._lock:
            self._check_open()
            self._batch_put(_CONF + bytes(key), bytes(value))
            self._batch_flush(_Flush.AFTER_WRITE)

    def get(self, key: bytes) -> bytes:
        """Return the value stored under ``key``."""
        with self._lock:
            self._check_open()
            self._batch_flush(_Flush.BEFORE_READ)
            row = self._db.execute(
                "SELECT value FROM kv WHERE key = ?", (_CONF + bytes(key),)
            ).fetchone()
        if row is None:
            raise KeyNotFoundError()
        return bytes(row[0])

    def set_uint64(self, key: bytes, value: int) -> None:
        """Like :meth:`set`, for an unsigned 64-bit integer."""
        self.set(key, _u64(value))

    def get_uint64(self, key: bytes) -> int:
        """Like :meth:`get`, for an unsigned 64-bit integer."""
        raw = self.get(key)
        if len(raw) < 8:
            raise CorruptError()
        return _from_u64(raw)