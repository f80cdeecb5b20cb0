"""config.py - Settings for a TagLog instance.

Keyword arguments to ``TagLog`` are the primary way to configure it. The
process-wide default instance is built from ``TagLogConfig.from_env()`` so
tag capture can be switched on or off without code changes:

    TAGLOG_ENABLED        store tagged entries (default: on unless ``python -O``)
    TAGLOG_DEFAULT_LEVEL  level used when ``tag()`` gets none (default: DEBUG)
    TAGLOG_DISPLAY        forward each event to the display logger (default: on)
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .formatting import MAX_DEPTH
from .levels import Level

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default


@dataclass(frozen=True)
class TagLogConfig:
    """Immutable TagLog settings.

    Attributes:
        enabled: Whether tagged entries are stored. Defaults to
            ``__debug__``, so running Python with ``-O`` (the release
            profile that also strips asserts) turns capture off.
        default_level: Level applied when ``tag()`` is called without one.
        display: Whether each tagged event is also logged immediately.
        max_depth: Recursion cap for message formatting.
    """

    enabled: bool = __debug__
    default_level: Level = Level.DEBUG
    display: bool = True
    max_depth: int = MAX_DEPTH

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TagLogConfig":
        """Build a config from ``TAGLOG_*`` environment variables.

        Unparsable values are ignored and the default is kept.
        """
        env = os.environ if environ is None else environ
        level = env.get("TAGLOG_DEFAULT_LEVEL")
        return cls(
            enabled=_parse_bool(env.get("TAGLOG_ENABLED"), cls.enabled),
            default_level=Level.coerce(level) if level else cls.default_level,
            display=_parse_bool(env.get("TAGLOG_DISPLAY"), cls.display),
        )
