import pytest

from tydb.ikey import (
    MAX_NUM_BYTES,
    MAX_SEQ,
    InternalKey,
    InternalKeyCorrupted,
    KeyType,
    new_ikey,
    parse_ikey,
    valid_ikey,
)


@pytest.mark.parametrize("ukey", [b"", b"a", b"hello world", bytes(range(256))])
@pytest.mark.parametrize("seq", [0, 1, 1000, MAX_SEQ])
@pytest.mark.parametrize("kt", [KeyType.DEL, KeyType.VAL])
def test_round_trip(ukey, seq, kt):
    ik = new_ikey(ukey, seq, kt)
    assert len(ik) == len(ukey) + 8
    assert parse_ikey(ik) == (ukey, seq, kt)
    assert ik.ukey() == ukey
    assert ik.parse_num() == (seq, kt)
    assert valid_ikey(ik)


def test_encoding_layout():
    assert new_ikey(b"ab", 1, KeyType.VAL) == b"ab" + bytes([1, 1, 0, 0, 0, 0, 0, 0])


def test_string_form():
    assert str(new_ikey(b"ab", 1, KeyType.VAL)) == "6162,v1"
    assert str(new_ikey(b"ab", 7, KeyType.DEL)) == "6162,d7"


def test_key_type_strings():
    _, _, deleted = parse_ikey(new_ikey(b"x", 0, KeyType.DEL))
    _, _, valued = parse_ikey(new_ikey(b"x", 0, KeyType.VAL))
    assert str(deleted) == "d"
    assert str(valued) == "v"


def test_max_num_bytes():
    assert parse_ikey(MAX_NUM_BYTES) == (b"", MAX_SEQ, KeyType.VAL)


def test_sequence_too_large():
    with pytest.raises(ValueError):
        new_ikey(b"k", MAX_SEQ + 1, KeyType.VAL)


def test_invalid_type_on_create():
    with pytest.raises(ValueError):
        new_ikey(b"k", 1, 2)


def test_parse_short_key():
    with pytest.raises(InternalKeyCorrupted) as info:
        parse_ikey(b"short")
    assert info.value.reason == "invalid length"
    assert not valid_ikey(b"short")


def test_parse_invalid_type():
    bad = b"k" + bytes([2]) + bytes(7)
    with pytest.raises(InternalKeyCorrupted) as info:
        parse_ikey(bad)
    assert info.value.reason == "invalid type"
    assert str(InternalKey(bad)) == "<invalid>"
    with pytest.raises(ValueError):
        InternalKey(bad).parse_num()


def test_short_internal_key_methods():
    with pytest.raises(ValueError):
        InternalKey(b"abc").ukey()
    with pytest.raises(ValueError):
        InternalKey(b"abc").num()