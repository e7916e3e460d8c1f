"""Small helpers for listing directories and reading and writing whole files."""

from __future__ import annotations

import logging
import os

_log = logging.getLogger("tydb.fileops")

PathLike = str | os.PathLike


def get_dir_list(dirpath: PathLike) -> list[str]:
    """Return ``dirpath`` and every directory below it, depth first, by name."""
    root = os.fspath(dirpath)
    if not os.path.lexists(root):
        raise FileNotFoundError(root)
    found: list[str] = []
    for current, dirnames, _ in os.walk(root):
        found.append(current)
        dirnames[:] = sorted(
            d for d in dirnames if not os.path.islink(os.path.join(current, d))
        )
    return found


def get_files(folder: PathLike) -> list[str]:
    """Return every file below ``folder``, recursing into directories.

    A folder that cannot be read contributes nothing.
    """
    folder = os.fspath(folder)
    try:
        entries = sorted(os.scandir(folder), key=lambda e: e.name)
    except OSError:
        return []
    files: list[str] = []
    for entry in entries:
        path = os.path.join(folder, entry.name)
        if entry.is_dir(follow_symlinks=False):
            files.extend(get_files(path))
        else:
            files.append(path)
    return files


def get_all_files(pathname: PathLike) -> list[str]:
    """Return the files directly inside ``pathname``, without subdirectories."""
    pathname = os.fspath(pathname)
    entries = sorted(os.scandir(pathname), key=lambda e: e.name)
    return [
        os.path.join(pathname, e.name)
        for e in entries
        if not e.is_dir(follow_symlinks=False)
    ]


def read_file(path: PathLike) -> bytes | None:
    """Return the contents of ``path``, or ``None`` if it cannot be read."""
    _log.debug("reading %s", os.fspath(path))
    try:
        with open(path, "rb") as fh:
            return fh.read()
    except OSError:
        return None


def write_file(path: PathLike, data: bytes) -> int:
    """Create or truncate ``path``, write ``data`` and return the byte count."""
    with open(path, "wb") as fh:
        written = fh.write(data)
    _log.info("%d bytes written successfully", written)
    return written