"""levels.py - Severity levels for tagged log entries.

Level values line up with the standard ``logging`` constants so that a Level
can be handed straight to ``Logger.log``. TRACE (5) has no stdlib constant;
importing this module registers its name with ``logging`` so formatted
records show ``TRACE`` rather than ``Level 5``.
"""

import enum
import logging
from typing import Any


class Level(enum.IntEnum):
    """Ordered severity of a log entry, lowest first."""

    TRACE = 5
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @property
    def is_error(self) -> bool:
        """True for WARNING, ERROR and CRITICAL."""
        return self >= Level.WARNING

    @classmethod
    def coerce(cls, value: Any) -> "Level":
        """Convert a Level, stdlib level number or level name to a Level.

        Numbers between two levels map to the nearest level below them, so
        ``logging.WARNING + 5`` becomes WARNING. Names are case-insensitive
        and accept the common ``WARN`` and ``FATAL`` aliases. Anything that
        cannot be interpreted falls back to DEBUG.

        Example:
            >>> Level.coerce("warn")
            <Level.WARNING: 30>
            >>> Level.coerce(45)
            <Level.ERROR: 40>
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            name = _ALIASES.get(name, name)
            return cls.__members__.get(name, cls.DEBUG)
        if isinstance(value, int) and not isinstance(value, bool):
            chosen = cls.TRACE
            for level in cls:
                if level <= value:
                    chosen = level
            return chosen
        return cls.DEBUG


_ALIASES = {
    "WARN": "WARNING",
    "FATAL": "CRITICAL",
    "SEVERE": "ERROR",
    "FINEST": "TRACE",
    "FINE": "DEBUG",
}

# Summary ordering used by the report: most severe first.
SEVERITY_ORDER = tuple(sorted(Level, reverse=True))


def is_error(level: Any) -> bool:
    """Return True when ``level`` is WARNING, ERROR or CRITICAL."""
    return Level.coerce(level).is_error


logging.addLevelName(Level.TRACE, "TRACE")
