"""Logging setup and a logger that tags messages with bracketed prefixes."""

from __future__ import annotations

import logging
import sys
import threading

FINEST = 5
FINE = 7
TRACE = 15

for _level, _name in ((FINEST, "FINEST"), (FINE, "FINE"), (TRACE, "TRACE")):
    logging.addLevelName(_level, _name)

LEVELS = {
    "FINEST": FINEST,
    "FINE": FINE,
    "DEBUG": logging.DEBUG,
    "TRACE": TRACE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

ROOT_LOGGER_NAME = "tydb"
_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"

_root = logging.getLogger(ROOT_LOGGER_NAME)
_handler: logging.Handler | None = None
_handler_lock = threading.Lock()


def log_to(target: str, level_name: str) -> None:
    """Send log output to ``target`` at the named level.

    ``"stdout"`` writes to standard output, ``"none"`` leaves logging as it
    is, and anything else is a file appended to. Unknown level names mean
    DEBUG. A later call replaces the output set by an earlier one.
    """
    global _handler
    if target == "none":
        return
    if target == "stdout":
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.FileHandler(target, encoding="utf-8")
    level = LEVELS.get(level_name, logging.DEBUG)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT))
    with _handler_lock:
        if _handler is not None:
            _root.removeHandler(_handler)
            _handler.close()
        _handler = handler
        _root.addHandler(handler)
        _root.setLevel(level)


def _format(msg: str, args: tuple) -> str:
    if not args:
        return msg
    template = msg.replace("%v", "%s").replace("%q", "%r")
    try:
        return template % args
    except (TypeError, ValueError):
        return " ".join([msg, *map(str, args)])


def _emit(level: int, msg: str, args: tuple) -> str:
    text = _format(msg, args)
    _root.log(level, text)
    return text


class PrefixLogger:
    """Logs through the package logger with ``[prefix]`` tags in front."""

    def __init__(self, *args: str) -> None:
        self.prefix = ""
        for prefix in args:
            self.add_log_prefix(prefix)

    def _pfx(self, msg: str) -> str:
        return f"{self.prefix} {msg}"

    def add_log_prefix(self, prefix: str) -> None:
        """Append ``[prefix]`` to the tags."""
        if self.prefix:
            self.prefix += " "
        self.prefix += f"[{prefix}]"

    def clear_log_prefixes(self) -> None:
        """Remove all tags."""
        self.prefix = ""

    def debug(self, msg: str, *args: object) -> None:
        _root.log(logging.DEBUG, _format(self._pfx(msg), args))

    def info(self, msg: str, *args: object) -> None:
        _root.log(logging.INFO, _format(self._pfx(msg), args))

    def warn(self, msg: str, *args: object) -> str:
        """Log a warning and return the formatted message."""
        return _emit(logging.WARNING, self._pfx(msg), args)

    def error(self, msg: str, *args: object) -> str:
        """Log an error and return the formatted message."""
        return _emit(logging.ERROR, self._pfx(msg), args)


def debug(msg: str, *args: object) -> None:
    _emit(logging.DEBUG, msg, args)


def info(msg: str, *args: object) -> None:
    _emit(logging.INFO, msg, args)


def warn(msg: str, *args: object) -> str:
    """Log a warning and return the formatted message."""
    return _emit(logging.WARNING, msg, args)


def error(msg: str, *args: object) -> str:
    """Log an error and return the formatted message."""
    return _emit(logging.ERROR, msg, args)