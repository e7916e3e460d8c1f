from tydb.version import MAJOR, MINOR, PROTO, compat, full, major_minor


def test_major_minor():
    assert major_minor() == "1.0"
    assert major_minor() == f"{MAJOR}.{MINOR}"


def test_full():
    assert full() == "0-1.0"
    assert full().startswith(PROTO + "-")


def test_compat():
    assert compat(full(), full())
    assert not compat(full(), major_minor())