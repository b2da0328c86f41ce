import logging
from typing import Union


LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "trace": logging.DEBUG,
    "warning": logging.WARNING,
    "critical": logging.CRITICAL,
    "off": logging.CRITICAL,
}


def log_level(value):
    # type: (Union[str, int, None]) -> int
    """Map a configured log level to a ``logging`` level.

    Integers are kept when they are one of the mapped levels. Unknown values fall back to ``logging.INFO``.
    """
    if isinstance(value, bool):
        return logging.INFO
    if isinstance(value, int):
        return value if value in LEVELS.values() else logging.INFO
    if not value:
        return logging.INFO
    return LEVELS.get(str(value).strip().lower(), logging.INFO)
