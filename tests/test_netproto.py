import io
import socket

import pytest

from tydb.netproto import encode_response, read_len, send_data


def test_encode_value_wire_bytes():
    assert encode_response(b"abc", None) == b"3 abc"


@pytest.mark.parametrize("value", [b"", b"x", b"hello world", bytes(range(256))])
def test_value_round_trip(value):
    stream = io.BytesIO(encode_response(value, None))
    n = read_len(stream)
    assert n == len(value)
    assert stream.read(n) == value
    assert stream.read() == b""


def test_error_round_trip():
    err = ValueError("no such key")
    stream = io.BytesIO(encode_response(b"ignored", err))
    n = read_len(stream)
    assert n == -len(str(err))
    assert stream.read(-n).decode() == str(err)


def test_none_value_is_empty():
    assert encode_response(None, None) == encode_response(b"", None)


def test_read_len_eof():
    with pytest.raises(EOFError):
        read_len(io.BytesIO(b"12"))


def test_read_len_not_a_number():
    with pytest.raises(ValueError):
        read_len(io.BytesIO(b"abc "))


def test_read_len_sequence():
    stream = io.BytesIO(b"3 5 key")
    assert read_len(stream) == 3
    assert read_len(stream) == 5
    assert stream.read() == b"key"


def test_send_data_to_stream():
    out = io.BytesIO()
    send_data(out, b"payload")
    assert out.getvalue() == encode_response(b"payload", None)


def test_send_data_over_socket():
    a, b = socket.socketpair()
    with a, b:
        send_data(a, b"value")
        send_data(a, None, "failed")
        reader = b.makefile("rb")
        n = read_len(reader)
        assert reader.read(n) == b"value"
        m = read_len(reader)
        assert reader.read(-m) == b"failed"
        reader.close()