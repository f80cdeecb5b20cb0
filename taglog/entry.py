"""entry.py - The immutable record of one tagged log event.

A LogEntry is created once by ``TagLog.tag()`` and never modified afterwards.
Buckets in the TagRegistry only ever grow by appending new entries or
disappear wholesale, so an entry can be handed to a reporter on another
thread without copying it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .levels import Level
from .location import UNKNOWN_LOCATION, Location


@dataclass(frozen=True)
class LogEntry:
    """One captured event inside a tag.

    Attributes:
        message (str): The display text of the logged value (mappings are
            already rendered as a JSON block by ``format_value``).
        level (Level): Severity of the event.
        location (Location): Resolved call site of the event.
        timestamp (datetime): Local wall-clock time of capture.
        error: Optional error object; only ``str()`` is ever applied to it.
        stack_text (str | None): Stack attached to the event. Captured
            automatically for WARNING and above when none is supplied.
    """

    message: str
    level: Level = Level.DEBUG
    location: Location = UNKNOWN_LOCATION
    timestamp: datetime = field(default_factory=datetime.now)
    error: Optional[Any] = None
    stack_text: Optional[str] = None

    @property
    def is_error(self) -> bool:
        """True for WARNING, ERROR and CRITICAL entries."""
        return self.level.is_error

    def __repr__(self) -> str:  # pragma: no cover
        return f"LogEntry({self.level.name}, {self.message!r}, {self.location.short})"
