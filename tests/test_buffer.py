import io

import pytest

from tydb.buffer import Buffer

N = 10000
TEST_BYTES = bytes(ord("a") + i % 26 for i in range(N))
DATA = TEST_BYTES.decode("latin-1")


def check(buf, s):
    contents = buf.bytes()
    assert len(buf) == len(contents)
    assert len(buf) == len(str(buf))
    assert len(buf) == len(s)
    assert contents.decode("latin-1") == s
    assert str(buf) == s


def fill(buf, s, n, fub):
    check(buf, s)
    for _ in range(n):
        assert buf.write(fub) == len(fub)
        s += fub.decode("latin-1")
        check(buf, s)
    return s


def empty(buf, s, size):
    check(buf, s)
    while True:
        chunk = buf.read(size)
        if not chunk:
            break
        s = s[len(chunk):]
        check(buf, s)
    check(buf, "")


def test_new_buffer():
    check(Buffer(TEST_BYTES), DATA)


def test_basic_operations():
    buf = Buffer()
    for _ in range(5):
        check(buf, "")
        buf.reset()
        check(buf, "")
        buf.truncate(0)
        check(buf, "")

        assert buf.write(DATA[0:1].encode()) == 1
        check(buf, "a")

        buf.write_byte(TEST_BYTES[1])
        check(buf, "ab")

        assert buf.write(DATA[2:26].encode()) == 24
        check(buf, DATA[0:26])

        buf.truncate(26)
        check(buf, DATA[0:26])

        buf.truncate(20)
        check(buf, DATA[0:20])

        empty(buf, DATA[0:20], 5)
        empty(buf, "", 100)

        buf.write_byte(TEST_BYTES[1])
        assert buf.read_byte() == TEST_BYTES[1]
        with pytest.raises(EOFError):
            buf.read_byte()


def test_truncate_out_of_range():
    buf = Buffer(b"abc")
    with pytest.raises(ValueError):
        buf.truncate(4)
    with pytest.raises(ValueError):
        buf.truncate(-1)


def test_negative_grow_and_alloc():
    buf = Buffer()
    with pytest.raises(ValueError):
        buf.grow(-1)
    with pytest.raises(ValueError):
        buf.alloc(-1)


def test_alloc_writes_into_buffer():
    buf = Buffer(b"xy")
    view = buf.alloc(3)
    assert len(view) == 3
    view[:] = b"abc"
    view.release()
    assert buf.bytes() == b"xyabc"


def test_large_byte_writes():
    buf = Buffer()
    for i in range(3, 30, 3):
        s = fill(buf, "", 5, TEST_BYTES)
        empty(buf, s, len(DATA) // i)
    check(buf, "")


def test_large_byte_reads():
    buf = Buffer()
    for i in range(3, 30, 3):
        s = fill(buf, "", 5, TEST_BYTES[: len(TEST_BYTES) // i])
        empty(buf, s, len(DATA))
    check(buf, "")


def test_mixed_reads_and_writes():
    import random

    rng = random.Random(1)
    buf = Buffer()
    s = ""
    for _ in range(50):
        wlen = rng.randrange(len(DATA))
        s = fill(buf, s, 1, TEST_BYTES[:wlen])
        rlen = rng.randrange(len(DATA))
        s = s[len(buf.read(rlen)):]
    empty(buf, s, len(buf))


def test_read_from():
    buf = Buffer()
    for i in range(3, 30, 3):
        s = fill(buf, "", 5, TEST_BYTES[: len(TEST_BYTES) // i])
        b = Buffer()
        assert b.read_from(buf) == len(s)
        empty(b, s, len(DATA))


def test_read_from_file_object():
    b = Buffer(b"head-")
    assert b.read_from(io.BytesIO(TEST_BYTES)) == N
    assert b.bytes() == b"head-" + TEST_BYTES


def test_write_to():
    buf = Buffer()
    for i in range(3, 30, 3):
        s = fill(buf, "", 5, TEST_BYTES[: len(TEST_BYTES) // i])
        b = Buffer()
        assert buf.write_to(b) == len(s)
        empty(b, s, len(DATA))


def test_write_to_short_write():
    class Short:
        def write(self, data):
            return len(data) - 1

    buf = Buffer(b"abcd")
    with pytest.raises(OSError):
        buf.write_to(Short())
    assert buf.bytes() == b"d"


def test_next():
    b = bytes([0, 1, 2, 3, 4])
    for i in range(6):
        for j in range(i, 6):
            for k in range(7):
                buf = Buffer(b[:j])
                assert len(buf.read(i)) == i
                bb = buf.next(k)
                want = min(k, j - i)
                assert len(bb) == want
                assert list(bb) == list(range(i, i + want))


READ_BYTES_TESTS = [
    (b"", 0, [b""], True),
    (b"a\x00", 0, [b"a\x00"], False),
    (b"abbbaaaba", ord("b"), [b"ab", b"b", b"b", b"aaab"], False),
    (b"hello\x01world", 1, [b"hello\x01"], False),
    (b"foo\nbar", 0, [b"foo\nbar"], True),
    (b"alpha\nbeta\ngamma\n", ord("\n"), [b"alpha\n", b"beta\n", b"gamma\n"], False),
    (b"alpha\nbeta\ngamma", ord("\n"), [b"alpha\n", b"beta\n", b"gamma"], True),
]


@pytest.mark.parametrize("content,delim,expected,hit_eof", READ_BYTES_TESTS)
def test_read_bytes(content, delim, expected, hit_eof):
    buf = Buffer(content)
    eof = False
    for want in expected:
        line = buf.read_bytes(delim)
        assert line == want
        if not line.endswith(bytes([delim])):
            eof = True
            break
    assert eof == hit_eof


def test_read_bytes_accepts_byte_string_delim():
    buf = Buffer(b"one;two")
    assert buf.read_bytes(b";") == b"one;"
    assert buf.read_bytes(b";") == b"two"


@pytest.mark.parametrize("start_len", [0, 100, 1000, 10000, 100000])
@pytest.mark.parametrize("grow_len", [0, 100, 1000, 10000, 100000])
def test_grow(start_len, grow_len):
    x_bytes = b"x" * start_len
    buf = Buffer(x_bytes)
    read_count = len(buf.read(72))
    buf.grow(grow_len)
    y_bytes = b"y" * grow_len
    buf.write(y_bytes)
    contents = buf.bytes()
    assert contents[: start_len - read_count] == x_bytes[read_count:]
    assert contents[start_len - read_count: start_len - read_count + grow_len] == y_bytes


def test_read_empty_at_eof():
    assert Buffer().read(0) == b""


def test_buffer_growth():
    b = Buffer()
    chunk = bytes(1024)
    b.write(chunk[:1])
    cap0 = 0
    for i in range(5 << 10):
        b.write(chunk)
        b.read(1024)
        if i == 0:
            cap0 = b._capacity
    assert b._capacity <= cap0 * 3