"""Protocol and release version numbers."""

PROTO = "0"
MAJOR = "1"
MINOR = "0"


def major_minor() -> str:
    """Return ``major.minor``."""
    return f"{MAJOR}.{MINOR}"


def full() -> str:
    """Return ``proto-major.minor``."""
    return f"{PROTO}-{MAJOR}.{MINOR}"


def compat(client: str, server: str) -> bool:
    """Return whether a client version can talk to a server version."""
    return client == server