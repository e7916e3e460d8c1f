"""An ordered string-keyed byte store kept in a directory on disk."""

from __future__ import annotations

import logging
import os
import sqlite3
import threading

from tydb.keyrange import bytes_prefix

_DB_FILE = "kv.sqlite"
_log = logging.getLogger("tydb.kvstore")

Key = str | bytes | bytearray


def _encode(key: Key) -> bytes:
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    return key.encode("utf-8", "surrogateescape")


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "replace")


class KVStore:
    """Keys kept in byte order, values stored as raw bytes."""

    def __init__(self, path: str | os.PathLike) -> None:
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
        self._lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> KVStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self._closed:
            self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("database closed")

    def set(self, key: Key, value: bytes) -> None:
        """Store ``value`` under ``key``."""
        with self._lock:
            self._check_open()
            self._db.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (_encode(key), bytes(value)),
            )

    def get(self, key: Key) -> bytes:
        """Return the value under ``key``; raise KeyError if there is none."""
        with self._lock:
            self._check_open()
            row = self._db.execute(
                "SELECT value FROM kv WHERE key = ?", (_encode(key),)
            ).fetchone()
        if row is None:
            raise KeyError(key)
        return bytes(row[0])

    def delete(self, key: Key) -> None:
        """Remove ``key``; removing a missing key is not an error."""
        with self._lock:
            self._check_open()
            self._db.execute("DELETE FROM kv WHERE key = ?", (_encode(key),))

    def state(self, value: str = "") -> str:
        """Return a named property of the store.

        ``""`` and ``"stats"`` give a summary, ``"type"`` the storage kind,
        ``"num-keys"`` the number of keys.
        """
        if value == "type":
            return "sqlite"
        if not value:
            value = "stats"
        with self._lock:
            self._check_open()
            count, total = self._db.execute(
                "SELECT COUNT(*), COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) FROM kv"
            ).fetchone()
        if value == "stats":
            return f"keys: {count}, bytes: {total}, path: {self.path}"
        if value == "num-keys":
            return str(count)
        raise ValueError(f"unknown property {value!r}")

    def _rows(self, prefix: Key, columns: str) -> list[tuple]:
        raw = _encode(prefix)
        with self._lock:
            self._check_open()
            if not raw:
                return self._db.execute(f"SELECT {columns} FROM kv ORDER BY key").fetchall()
            span = bytes_prefix(raw)
            if span.limit is None:
                return self._db.execute(
                    f"SELECT {columns} FROM kv WHERE key >= ? ORDER BY key", (span.start,)
                ).fetchall()
            return self._db.execute(
                f"SELECT {columns} FROM kv WHERE key >= ? AND key < ? ORDER BY key",
                (span.start, span.limit),
            ).fetchall()

    def iterate(self, prefix: Key = "") -> dict[str, str]:
        """Return every key starting with ``prefix`` mapped to its value, as text."""
        return {_decode(k): _decode(v) for k, v in self._rows(prefix, "key, value")}

    def iterate_keys(self, prefix: Key = "") -> list[str]:
        """Return every key starting with ``prefix``, in order."""
        return [_decode(k) for (k,) in self._rows(prefix, "key")]

    def close(self) -> None:
        """Close the store; closing twice raises RuntimeError."""
        with self._lock:
            if self._closed:
                _log.warning("fail close db")
                raise RuntimeError("database closed")
            self._db.close()
            self._closed = True
        _log.info("success close db")


def open_db(path: str | os.PathLike) -> KVStore:
    """Open (creating if needed) the store at ``path``."""
    return KVStore(path)