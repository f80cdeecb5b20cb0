"""registry.py - Process-wide store of tagged log entries.

TagRegistry maps a tag name to the chronological list of LogEntry objects
recorded under it. It is the only mutable state in taglog.

Design decisions:
    - A single ``threading.Lock`` guards the map and every bucket. Tag
      operations are short and contention is expected to be low, so one
      registry-wide lock is enough.
    - ``take()`` applies the export policy and removes the bucket in one
      locked step, then hands the list to the caller. The registry no longer
      references it, so rendering can happen outside the lock without
      holding up unrelated tags.
    - Entries are never mutated; buckets only grow or are removed whole.
    - When the registry is disabled nothing is stored and every read or
      export is a no-op, mirroring a build with tag capture compiled out.
"""

import threading
from typing import Dict, List, Optional

from .entry import LogEntry


class TagRegistry:
    """Thread-safe mapping of tag name to an ordered list of entries.

    A tag with no entries is indistinguishable from an absent tag: buckets
    are created on the first ``append()`` and removed by ``take()``,
    ``clear()``, ``clear_all()`` and ``reset()``.

    Example:
        >>> registry = TagRegistry()
        >>> registry.append("auth", LogEntry("login"))
        >>> registry.entry_count("auth")
        1
        >>> [e.message for e in registry.take("auth")]
        ['login']
        >>> registry.has_tag("auth")
        False
    """

    def __init__(self, enabled: bool = True) -> None:
        """Initialise an empty registry.

        Args:
            enabled: If False, entries are never stored and all queries and
                exports behave as if every tag were absent.
        """
        self._enabled = enabled
        self._lock = threading.Lock()
        self._tags: Dict[str, List[LogEntry]] = {}

    @property
    def enabled(self) -> bool:
        return self._enabled

    # ---------------------------------------------------------------------- #
    # Mutations
    # ---------------------------------------------------------------------- #

    def append(self, name: str, entry: LogEntry) -> None:
        """Append ``entry`` to the bucket for ``name``, creating it if needed."""
        if not self._enabled:
            return
        with self._lock:
            self._tags.setdefault(name, []).append(entry)

    def take(
        self, name: str, export: bool = True, only_on_error: bool = False
    ) -> Optional[List[LogEntry]]:
        """Remove the bucket for ``name`` and return it if it should be rendered.

        Policy, in order:
            1. Absent or empty tag: nothing happens, returns None.
            2. ``export`` is False: the bucket is discarded, returns None.
            3. ``only_on_error`` is True and no entry is WARNING or above:
               the bucket is discarded, returns None.
            4. Otherwise the bucket is removed and returned.

        Returns:
            The removed entries in chronological order, or None when there is
            nothing to render.
        """
        if not self._enabled:
            return None
        with self._lock:
            entries = self._tags.get(name)
            if not entries:
                return None
            del self._tags[name]
        if not export:
            return None
        if only_on_error and not any(e.is_error for e in entries):
            return None
        return entries

    def clear(self, name: str) -> None:
        """Remove a tag without rendering it. Absent tags are ignored."""
        with self._lock:
            self._tags.pop(name, None)

    def clear_all(self) -> None:
        """Remove every tag without rendering."""
        with self._lock:
            self._tags.clear()

    def reset(self, enabled: Optional[bool] = None) -> None:
        """Clear all tags and optionally switch storage on or off.

        Intended for test isolation and application teardown.
        """
        with self._lock:
            self._tags.clear()
            if enabled is not None:
                self._enabled = enabled

    # ---------------------------------------------------------------------- #
    # Reads
    # ---------------------------------------------------------------------- #

    def has_tag(self, name: str) -> bool:
        with self._lock:
            return bool(self._tags.get(name))

    def has_errors(self, name: str) -> bool:
        """True if any entry under ``name`` is WARNING, ERROR or CRITICAL."""
        with self._lock:
            return any(e.is_error for e in self._tags.get(name, ()))

    def entry_count(self, name: str) -> int:
        with self._lock:
            return len(self._tags.get(name, ()))

    def tag_names(self) -> List[str]:
        """Return a snapshot of the tag names currently holding entries."""
        with self._lock:
            return [name for name, entries in self._tags.items() if entries]

    def snapshot(self, name: str) -> List[LogEntry]:
        """Return a copy of a tag's entries without removing them.

        Intended for testing and debugging; prefer ``take()`` in production.
        """
        with self._lock:
            return list(self._tags.get(name, ()))

    def __len__(self) -> int:
        """Return the number of tags currently holding entries."""
        with self._lock:
            return sum(1 for entries in self._tags.values() if entries)
