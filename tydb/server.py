"""TCP key/value server speaking a simple length-prefixed protocol.

Each request starts with an operation byte: ``S`` set, ``G`` get,
``D`` delete, ``P`` prefix scan, ``K`` prefix key scan, ``C`` close
database, ``O`` open database.
"""

from __future__ import annotations

import argparse
import json
import os
import socketserver
import sqlite3
import threading
from dataclasses import dataclass
from typing import BinaryIO

from tydb.kvstore import KVStore
from tydb.logger import error, info, log_to
from tydb.netproto import read_len, send_data

_NO_DB = "database not open"
_DB_ERRORS = (RuntimeError, sqlite3.Error, OSError)


@dataclass
class Options:
    """Command-line settings of the server."""

    port: str = ":1024"
    db_path: str = "F:\\data\\storage\\db4"
    logto: str = "stdout"
    loglevel: str = "DEBUG"


def parse_args(argv: list[str] | None = None) -> Options:
    """Parse command-line arguments into :class:`Options`."""
    defaults = Options()
    parser = argparse.ArgumentParser(prog="tydb-server", allow_abbrev=False)
    parser.add_argument("-port", "--port", dest="port", default=defaults.port,
                        help="address to listen on")
    parser.add_argument("-dbPath", "--dbPath", dest="db_path", default=defaults.db_path,
                        help="db save path")
    parser.add_argument("-log", "--log", dest="logto", default=defaults.logto,
                        help="Write log messages to this file. "
                             "'stdout' and 'none' have special meanings")
    parser.add_argument("-log-level", "--log-level", dest="loglevel",
                        default=defaults.loglevel,
                        help="The level of messages to log. One of: DEBUG, INFO, WARNING, ERROR")
    ns = parser.parse_args(argv)
    return Options(port=ns.port, db_path=ns.db_path, logto=ns.logto, loglevel=ns.loglevel)


def _read_exact(rfile: BinaryIO, n: int) -> bytes:
    if n < 0:
        raise ValueError(f"negative length {n}")
    data = bytearray()
    while len(data) < n:
        chunk = rfile.read(n - len(data))
        if not chunk:
            raise EOFError("stream ended inside request")
        data += chunk
    return bytes(data)


def _text(raw: bytes) -> str:
    return raw.decode("utf-8", "replace")


def _json(value: object) -> bytes:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), sort_keys=True).encode()


class Server:
    """Serves requests against one open database, shared by all connections."""

    def __init__(self, db: KVStore | None = None) -> None:
        self.db = db
        self._lock = threading.Lock()
        self._handlers = {
            ord("S"): self._set,
            ord("G"): self._get,
            ord("D"): self._del,
            ord("P"): self._prefix,
            ord("K"): self._prefix_only_key,
            ord("C"): self._close_db,
            ord("O"): self._open_db,
        }

    def handle(self, rfile: BinaryIO, wfile: BinaryIO) -> None:
        """Answer requests read from ``rfile`` until it is exhausted."""
        while True:
            try:
                op = rfile.read(1)
            except OSError as exc:
                info("client is error:%v", exc)
                return
            if not op:
                return
            handler = self._handlers.get(op[0])
            if handler is None:
                info("close connection due to invalid operation:%v", op[0])
                continue
            try:
                handler(rfile, wfile)
            except (EOFError, ValueError) as exc:
                info("bad request:%v", exc)

    def _read_key(self, rfile: BinaryIO) -> bytes:
        return _read_exact(rfile, read_len(rfile))

    def _read_all(self, rfile: BinaryIO) -> tuple[bytes, bytes]:
        key_len = read_len(rfile)
        value_len = read_len(rfile)
        key = _read_exact(rfile, key_len)
        value = _read_exact(rfile, value_len)
        return key, value

    def _get(self, rfile: BinaryIO, wfile: BinaryIO) -> None:
        key = self._read_key(rfile)
        db = self.db
        if db is None:
            send_data(wfile, None, _NO_DB)
            return
        try:
            value = db.get(key)
        except (KeyError, *_DB_ERRORS):
            value = b""
        info("get key=%s", _text(key))
        send_data(wfile, value)

    def _set(self, rfile: BinaryIO, wfile: BinaryIO) -> None:
        key, value = self._read_all(rfile)
        db = self.db
        if db is None:
            send_data(wfile, None, _NO_DB)
            return
        info("set key=%s", _text(key))
        failure = None
        try:
            db.set(key, value)
        except _DB_ERRORS as exc:
            failure = exc
        send_data(wfile, key, failure)

    def _del(self, rfile: BinaryIO, wfile: BinaryIO) -> None:
        key = self._read_key(rfile)
        db = self.db
        if db is None:
            send_data(wfile, None, _NO_DB)
            return
        info("del key=%s", _text(key))
        failure = None
        try:
            db.delete(key)
        except _DB_ERRORS as exc:
            error("del err:=%v", exc)
            failure = exc
        send_data(wfile, key, failure)

    def _prefix(self, rfile: BinaryIO, wfile: BinaryIO) -> None:
        prefix = self._read_key(rfile)
        db = self.db
        if db is None:
            send_data(wfile, None, _NO_DB)
            return
        try:
            found = db.iterate(prefix)
        except _DB_ERRORS:
            found = {}
        send_data(wfile, _json(found))

    def _prefix_only_key(self, rfile: BinaryIO, wfile: BinaryIO) -> None:
        prefix = self._read_key(rfile)
        db = self.db
        if db is None:
            send_data(wfile, None, _NO_DB)
            return
        try:
            keys = db.iterate_keys(prefix)
        except _DB_ERRORS:
            keys = []
        send_data(wfile, _json(keys))

    def _close_db(self, rfile: BinaryIO, wfile: BinaryIO) -> None:
        self._read_key(rfile)
        with self._lock:
            db = self.db
            ok = False
            if db is not None:
                try:
                    db.close()
                    ok = True
                except _DB_ERRORS:
                    ok = False
        info("closing db")
        send_data(wfile, b"\x01" if ok else b"\x00")

    def _open_db(self, rfile: BinaryIO, wfile: BinaryIO) -> None:
        path = os.fsdecode(self._read_key(rfile))
        with self._lock:
            previous = self.db
            if previous is not None and not previous.closed:
                previous.close()
            try:
                self.db = KVStore(path)
                ok = True
            except (sqlite3.Error, OSError) as exc:
                error("open db %s failed:%v", path, exc)
                self.db = None
                ok = False
        info("opening db")
        if ok:
            try:
                info(self.db.state(""))
            except _DB_ERRORS:
                pass
        send_data(wfile, b"\x01" if ok else b"\x00")

    def serve(self, address: str) -> None:
        """Listen on ``host:port`` and serve clients until interrupted."""
        host, _, port = address.rpartition(":")
        outer = self

        class _Handler(socketserver.StreamRequestHandler):
            def handle(self) -> None:
                peer = "%s:%s" % self.client_address[:2]
                outer.handle(self.rfile, self.wfile)
                info("client %s is close", peer)

        class _TCPServer(socketserver.ThreadingTCPServer):
            allow_reuse_address = True
            daemon_threads = True

        try:
            listener = _TCPServer((host, int(port)), _Handler)
        except (OSError, ValueError) as exc:
            error("listen error by port:%s,error:%v", address, exc)
            raise
        with listener:
            listener.serve_forever()


def main(argv: list[str] | None = None) -> int:
    """Run the server from the command line."""
    opts = parse_args(argv)
    log_to(opts.logto, opts.loglevel)
    server = Server()
    try:
        server.serve(opts.port)
    except KeyboardInterrupt:
        pass
    finally:
        if server.db is not None and not server.db.closed:
            server.db.close()
    return 0