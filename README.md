# tydb

A small key/value database server and the pieces it is built from. It needs
nothing beyond the Python standard library; data is kept in SQLite files.

## Modules

- `tydb.server` – the TCP server (`Server`, `Options`, `parse_args`, `main`).
- `tydb.kvstore` – `KVStore`, the on-disk store the server uses, and `open_db`.
  Keys are kept in byte order; `iterate(prefix)` returns a dict of key to
  value as text, `iterate_keys(prefix)` the keys in order, and
  `state("")`, `state("type")` and `state("num-keys")` describe the store.
- `tydb.log_store` – `LogStore`, a durable store for log entries (`RaftLog`)
  plus a small configuration area, with `Level` durability settings
  (`LOW`, `MEDIUM`, `HIGH`); `encode_log` and `decode_log` for the entry format.
- `tydb.netproto` – `read_len`, `encode_response` and `send_data` for the wire format.
- `tydb.buffer` – `Buffer`, a growable byte buffer read from the front.
- `tydb.buffer_pool` – `BufferPool`, reusable byte buffers by size class.
- `tydb.crc` – `CRC` and `new_crc`: CRC-32C with the masked `value()` form.
- `tydb.hashing` – `hash32`, the murmur-like 32-bit hash.
- `tydb.keyrange` – `KeyRange` and `bytes_prefix`.
- `tydb.ikey` – internal keys: `new_ikey`, `parse_ikey`, `valid_ikey`,
  `InternalKey`, `KeyType`.
- `tydb.releaser` – `BasicReleaser` and `NoopReleaser`.
- `tydb.logger` – `log_to`, `PrefixLogger` and the module-level
  `debug`, `info`, `warn`, `error`.
- `tydb.fileops` – `read_file`, `write_file`, `get_files`, `get_all_files`,
  `get_dir_list`.
- `tydb.version` – `major_minor`, `full`, `compat`.

## Installation

```
pip install .
```

## Running the server

```
tydb-server --port :1024 --log stdout --log-level INFO
```

- `--port` is the address to listen on, `host:port`; `:1024` (all
  interfaces, port 1024) by default.
- `--log` takes a file path (appended to), `stdout`, or `none`.
- `--log-level` is one of FINEST, FINE, DEBUG, TRACE, INFO, WARNING, ERROR,
  CRITICAL; anything else means DEBUG.
- `--dbPath` is accepted but not used: the server starts with no database
  open, and a client opens one with the `O` request.

The single-dash spellings (`-port`, `-dbPath`, `-log`, `-log-level`) work too.

## Protocol

A request is one operation byte followed by length-prefixed fields. A length
is a decimal number followed by a space.

| Op | Request                       | Reply payload                          |
|----|-------------------------------|----------------------------------------|
| `O` | `O<len> <path>`              | `\x01` if the store was opened, else `\x00` |
| `C` | `C<len> <anything>`          | `\x01` if the store was closed, else `\x00` |
| `S` | `S<klen> <vlen> <key><value>`| the key                                |
| `G` | `G<len> <key>`               | the value (empty if the key is missing)|
| `D` | `D<len> <key>`               | the key                                |
| `P` | `P<len> <prefix>`            | JSON object of matching keys to values |
| `K` | `K<len> <prefix>`            | JSON array of matching keys            |

A reply is `<len> <payload>`, or `-<len> <message>` on error; with no
database open, `S`, `G`, `D`, `P` and `K` reply with the error
`database not open`. Opening a database closes the one open before it, and
the open database is shared by all connections.

```python
import socket

with socket.create_connection(("localhost", 1024)) as conn:
    conn.sendall(b"O6 ./data")      # reply: b"1 \x01"
    conn.sendall(b"S3 5 foohello")  # reply: b"3 foo"
    conn.sendall(b"G3 foo")         # reply: b"5 hello"
```

## Using the log store

```python
from tydb.log_store import Level, LogStore, RaftLog

store = LogStore("raft-data", Level.HIGH)
store.store_logs([RaftLog(index=1, data=b"log1"), RaftLog(index=2, data=b"log2")])
assert store.first_index() == 1
assert store.last_index() == 2
assert store.get_log(2).data == b"log2"
store.set_uint64(b"term", 7)
assert store.get_uint64(b"term") == 7
store.close()
```

A missing entry raises `LogNotFoundError`, a missing configuration key
`KeyNotFoundError`, and any call on a closed store `StoreClosedError`.

## What it does not do

- There is no client command or client library; talk to the server over a
  plain TCP socket as shown above.
- There is no replication, consensus, service registration or remote
  object storage; `LogStore` only stores log entries for whatever uses it.
- The stores are SQLite files, not an LSM tree of tables.

## Tests

```
pip install .[test]
pytest
```