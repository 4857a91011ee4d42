"""Leveled log output with printf-style formatting."""

import sys
from enum import IntEnum

__all__ = ["LogLevel", "format_message", "log_f"]

_BUFFER_SIZE = 1024


class LogLevel(IntEnum):
    """Severity of a log message."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    FATAL = 4


def format_message(level: LogLevel, fmt: str, *args) -> str:
    """Build one log line: ``[LEVEL]: message`` followed by a newline."""
    body = fmt % args if args else fmt
    body = body[: _BUFFER_SIZE - 1]
    return f"[{LogLevel(level).name}]: {body}\n"


def log_f(level: LogLevel, fmt: str, *args) -> None:
    """Write a log line; errors and worse go to stderr, the rest to stdout."""
    message = format_message(level, fmt, *args)
    stream = sys.stderr if level >= LogLevel.ERROR else sys.stdout
    stream.write(message)
    stream.flush()