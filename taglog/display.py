"""display.py - Plain one-event lines for immediate console output.

Every tagged event is also shown as it happens. The line is built here and
forwarded through a standard ``logging.Logger`` so applications keep full
control over handlers, formatting and filtering.
"""

from typing import Any, Optional

from .levels import Level
from .location import Location


def format_line(
    level: Level, text: str, location: Location, error: Optional[Any] = None
) -> str:
    """Build the display text of one event.

    Short messages below WARNING fit on a single line::

        INFO: cache warmed services/cache.py:31

    Multi-line messages and WARNING or above use a block with the location
    on its own line::

        ERROR: login failed
          --> services/auth.py:41
           = error: invalid credentials
    """
    multiline = "\n" in text
    if not level.is_error and not multiline:
        return f"{level.name}: {text} {location.short}"

    lines = [f"{level.name}: {'' if multiline else text}".rstrip()]
    lines.append(f"  --> {location.short}")
    if location.has_different_full_path:
        lines.append(f"      {location.full}")
    if multiline:
        lines.extend(f"   | {line}" for line in text.split("\n"))
    if error is not None:
        lines.append(f"   = error: {_error_text(error)}")
    return "\n".join(lines)


def _error_text(error: Any) -> str:
    try:
        return str(error)
    except Exception:
        return object.__repr__(error)
