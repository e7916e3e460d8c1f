"""A pool of reusable byte buffers grouped by size class."""

from __future__ import annotations

import threading
from collections import deque

_POOL_CAPACITIES = (2, 2, 4, 4, 2, 1)
_RESIZE_THRESHOLD = 20
_DRAIN_INTERVAL = 2.0


def _base(buf: memoryview | bytearray) -> bytearray:
    """Return the whole bytearray behind ``buf``."""
    if isinstance(buf, memoryview):
        obj = buf.obj
        return obj if isinstance(obj, bytearray) else bytearray(obj)
    return buf


class BufferPool:
    """Hands out byte buffers and takes them back for reuse.

    :meth:`get` returns a ``memoryview`` of exactly the requested length;
    the bytearray behind it may be larger and is what :meth:`put` keeps.
    A background thread trims the pools every two seconds until the
    pool is closed.
    """

    def __init__(self, baseline: int) -> None:
        if baseline <= 0:
            raise ValueError("baseline can't be <= 0")
        self._baseline0 = baseline
        self._baseline = (baseline // 4, baseline // 2, baseline * 2, baseline * 4)
        self._pools: list[deque[bytearray]] = [deque() for _ in _POOL_CAPACITIES]
        self._size = [0] * 5
        self._size_miss = [0] * 5
        self._size_half = [0] * 5
        self._get = 0
        self._put = 0
        self._half = 0
        self._less = 0
        self._equal = 0
        self._greater = 0
        self._miss = 0
        self._lock = threading.Lock()
        self._closed = False
        self._stop = threading.Event()
        self._drainer = threading.Thread(target=self._drain, daemon=True)
        self._drainer.start()

    def _pool_num(self, n: int) -> int:
        if self._baseline0 // 2 < n <= self._baseline0:
            return 0
        for i, limit in enumerate(self._baseline):
            if n <= limit:
                return i + 1
        return len(self._baseline) + 1

    def _offer(self, num: int, buf: bytearray) -> None:
        pool = self._pools[num]
        if len(pool) < _POOL_CAPACITIES[num]:
            pool.append(buf)

    def get(self, n: int) -> memoryview:
        """Return a buffer of length ``n``."""
        with self._lock:
            if self._closed:
                return memoryview(bytearray(n))
            self._get += 1
            num = self._pool_num(n)
            pool = self._pools[num]
            buf = pool.popleft() if pool else None

            if num == 0:
                if buf is None:
                    self._miss += 1
                else:
                    cap = len(buf)
                    if cap > n:
                        if cap - n >= n:
                            self._half += 1
                            self._offer(num, buf)
                            return memoryview(bytearray(n))
                        self._less += 1
                        return memoryview(buf)[:n]
                    if cap == n:
                        self._equal += 1
                        return memoryview(buf)[:n]
                    self._greater += 1
                return memoryview(bytearray(self._baseline0))[:n]

            idx = num - 1
            if buf is None:
                self._miss += 1
            else:
                cap = len(buf)
                if cap > n:
                    if cap - n >= n:
                        self._half += 1
                        self._size_half[idx] += 1
                        if self._size_half[idx] == _RESIZE_THRESHOLD:
                            self._size[idx] = cap // 2
                            self._size_half[idx] = 0
                        else:
                            self._offer(num, buf)
                        return memoryview(bytearray(n))
                    self._less += 1
                    return memoryview(buf)[:n]
                if cap == n:
                    self._equal += 1
                    return memoryview(buf)[:n]
                self._greater += 1
                if cap >= self._size[idx]:
                    self._offer(num, buf)

            size = self._size[idx]
            if n > size:
                if size == 0:
                    self._size[idx] = n
                else:
                    self._size_miss[idx] += 1
                    if self._size_miss[idx] == _RESIZE_THRESHOLD:
                        self._size[idx] = n
                        self._size_miss[idx] = 0
                return memoryview(bytearray(n))
            return memoryview(bytearray(size))[:n]

    def put(self, buf: memoryview | bytearray) -> None:
        """Give ``buf`` back to the pool for later reuse."""
        with self._lock:
            if self._closed:
                return
            self._put += 1
            base = _base(buf)
            self._offer(self._pool_num(len(base)), base)

    def close(self) -> None:
        """Stop pooling; later calls to :meth:`get` allocate fresh buffers."""
        with self._lock:
            if not self._closed:
                self._closed = True
                self._stop.set()

    def _drain(self) -> None:
        while not self._stop.wait(_DRAIN_INTERVAL):
            with self._lock:
                for pool in self._pools:
                    if pool:
                        pool.popleft()
        with self._lock:
            for pool in self._pools:
                pool.clear()

    def __enter__(self) -> BufferPool:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __str__(self) -> str:
        def arr(values: list[int]) -> str:
            return "[" + " ".join(str(v) for v in values) + "]"

        with self._lock:
            return (
                f"BufferPool{{B·{self._baseline0} Z·{arr(self._size)} "
                f"Zm·{arr(self._size_miss)} Zh·{arr(self._size_half)} "
                f"G·{self._get} P·{self._put} H·{self._half} <·{self._less} "
                f"=·{self._equal} >·{self._greater} M·{self._miss}}}"
            )