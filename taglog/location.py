"""location.py - Call-site resolution for tagged log entries.

A log entry is only useful if it says where it came from. CallSiteResolver
turns a *frame source* into a Location, skipping the frames that belong to
the logging machinery itself so the reported call site is the caller's code.

Two frame sources are supported:

    StackFrames:  a structured frame list (``traceback.StackSummary`` or any
                  iterable of ``FrameSummary``). No text parsing is involved.
    StackText:    raw call-stack text, as found in a traceback string or a
                  stack trace exported by another runtime. Lines are matched
                  against three address grammars, in order:

                      package:<component>/<path>.<ext>:<line>:<col>
                      file:///<absolute-path>.<ext>:<line>:<col>
                      File "<path>", line <line>        (Python tracebacks)

                  The first package or file-URI line wins. Python tracebacks
                  list the innermost frame last, so their last match wins,
                  which agrees with the StackFrames result for the same stack.

For the common case of a non-error event, ``resolve_current()`` walks the
live interpreter frames instead, so no stack summary is ever built.

Resolution never raises: anything that cannot be understood degrades to the
``unknown location`` sentinel.
"""

import os
import re
import sys
import traceback
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))

_PACKAGE_PATTERN = re.compile(
    r"([A-Za-z][\w+.-]*):([^/\s:]+)/(\S+?\.\w+):(\d+):(\d+)"
)
_FILE_PATTERN = re.compile(r"[A-Za-z][\w+.-]*:///(\S+?\.\w+):(\d+):(\d+)")
_PYTHON_PATTERN = re.compile(r'File "([^"]+)", line (\d+)')

# Path fragments identifying frames of the logging infrastructure. A fragment
# only matches at a path boundary, so "mythreading.py" is not "threading.py".
INTERNAL_FRAME_PATTERNS: Tuple[str, ...] = (
    "taglog/core.py",
    "taglog/registry.py",
    "taglog/location.py",
    "taglog/handler.py",
    "taglog/display.py",
    "taglog/instrument.py",
    "logging/__init__.py",
    "threading.py",
    "<frozen ",
)


@dataclass(frozen=True)
class Location:
    """Where a log event was triggered.

    Attributes:
        short: Compact display form, e.g. ``"services/auth.py:42"``.
        full: Complete path (with line) when known, otherwise ``""``.
    """

    short: str
    full: str = ""

    @property
    def has_different_full_path(self) -> bool:
        return bool(self.full) and self.full != self.short


UNKNOWN_LOCATION = Location("unknown location", "")


@dataclass(frozen=True)
class StackText:
    """Raw call-stack text, parsed with the address grammars."""

    text: str


@dataclass(frozen=True)
class StackFrames:
    """Structured frames, innermost last (the ``extract_stack`` order)."""

    frames: Tuple[Any, ...]


FrameSource = Union[StackText, StackFrames]


def as_frame_source(value: Any) -> Optional[FrameSource]:
    """Wrap a caller-supplied stack in the matching FrameSource.

    Strings become StackText, and so do sequences of strings such as the
    result of ``traceback.format_stack()``. StackSummary objects and
    sequences of FrameSummary or ``(filename, lineno, name, line)`` tuples
    become StackFrames. Anything else is kept as its ``str()`` text.
    ``None`` stays ``None``.
    """
    if value is None or isinstance(value, (StackText, StackFrames)):
        return value
    if isinstance(value, str):
        return StackText(value)
    try:
        items = tuple(value)
    except Exception:
        return StackText(str(value))
    if all(isinstance(item, str) for item in items):
        return StackText("".join(items))
    if all(_is_frame(item) for item in items):
        return StackFrames(items)
    return StackText(str(value))


def _is_frame(item: Any) -> bool:
    return isinstance(item, traceback.FrameSummary) or (
        isinstance(item, tuple) and len(item) == 4
    )


def stack_text_of(source: Optional[FrameSource]) -> Optional[str]:
    """Return the display text of a FrameSource (``None`` for ``None``)."""
    if source is None:
        return None
    if isinstance(source, StackText):
        return source.text
    try:
        return "".join(traceback.StackSummary.from_list(list(source.frames)).format())
    except Exception:
        return str(source.frames)


def _normalise(path: str) -> str:
    return path.replace("\\", "/")


def _short_path(path: str) -> str:
    segments = [s for s in _normalise(path).split("/") if s]
    if not segments:
        return path
    if len(segments) > 2:
        return "/".join(segments[-2:])
    return segments[-1]


def _position(line: Any, col: Any = None) -> str:
    if col is None:
        return f"{line}"
    return f"{line}:{col}"


class CallSiteResolver:
    """Resolves a Location from a frame source, skipping internal frames.

    Args:
        denylist: Substrings marking internal frames. Defaults to
            ``INTERNAL_FRAME_PATTERNS``.
        internal_dirs: Directories whose files are always internal when
            resolving structured or live frames. Defaults to the directory
            of this package.

    Example:
        >>> resolver = CallSiteResolver()
        >>> resolver.resolve("#0 main (package:app/src/auth.py:12:4)")
        Location(short='package:app/src/auth.py:12:4', full='package:app/src/auth.py:12:4')
    """

    def __init__(
        self,
        denylist: Sequence[str] = INTERNAL_FRAME_PATTERNS,
        internal_dirs: Sequence[str] = (_PACKAGE_DIR,),
    ) -> None:
        self._denylist = tuple(denylist)
        self._denylist_pattern = None
        if self._denylist:
            self._denylist_pattern = re.compile(
                "|".join(r"(?<![\w.-])" + re.escape(p) for p in self._denylist)
            )
        self._internal_dirs = tuple(
            os.path.normcase(os.path.abspath(d)) + os.sep for d in internal_dirs
        )

    # ---------------------------------------------------------------------- #
    # Public interface
    # ---------------------------------------------------------------------- #

    def resolve(self, source: Any) -> Location:
        """Resolve the first non-internal call site in ``source``.

        Args:
            source: A StackText, StackFrames, raw stack string or frame list.

        Returns:
            The resolved Location, or ``UNKNOWN_LOCATION``.
        """
        try:
            source = as_frame_source(source)
            if isinstance(source, StackFrames):
                return self._from_frames(source.frames)
            if isinstance(source, StackText):
                return self._from_text(source.text)
        except Exception:
            return UNKNOWN_LOCATION
        return UNKNOWN_LOCATION

    def resolve_current(self, skip: int = 0) -> Location:
        """Resolve the caller's location from the live interpreter frames.

        Args:
            skip: Extra frames to skip above the immediate caller.
        """
        try:
            frame = sys._getframe(1 + skip)
        except ValueError:
            return UNKNOWN_LOCATION
        while frame is not None:
            filename = frame.f_code.co_filename
            if not self._is_internal_path(filename):
                return self._from_path(filename, frame.f_lineno)
            frame = frame.f_back
        return UNKNOWN_LOCATION

    def trim_internal(self, frames: Iterable[Any]) -> List[Any]:
        """Drop the innermost frames that belong to the logging machinery.

        ``traceback.extract_stack()`` inside ``tag()`` ends with our own
        frames; the stored stack should end at the caller.
        """
        trimmed = list(frames)
        while trimmed and self._is_internal_path(trimmed[-1].filename):
            trimmed.pop()
        return trimmed

    def is_internal(self, text: str) -> bool:
        """True when ``text`` contains a denylisted fragment at a path boundary."""
        if self._denylist_pattern is None:
            return False
        return self._denylist_pattern.search(_normalise(text)) is not None

    # ---------------------------------------------------------------------- #
    # Private helpers
    # ---------------------------------------------------------------------- #

    def _is_internal_path(self, filename: str) -> bool:
        if self.is_internal(filename):
            return True
        absolute = os.path.normcase(os.path.abspath(filename))
        return absolute.startswith(self._internal_dirs)

    def _from_frames(self, frames: Iterable[Any]) -> Location:
        # extract_stack() lists the outermost frame first; the caller is the
        # innermost frame that is not ours.
        summary = traceback.StackSummary.from_list(list(frames))
        for frame in reversed(summary):
            filename = frame.filename
            if not filename or self._is_internal_path(filename):
                continue
            colno = getattr(frame, "colno", None)
            return self._from_path(
                filename, frame.lineno, None if colno is None else colno + 1
            )
        return UNKNOWN_LOCATION

    def _from_path(self, filename: str, line: Any, col: Any = None) -> Location:
        position = _position(line, col)
        full = _normalise(filename)
        if full.startswith("<"):
            return Location(f"{full}:{position}", "")
        return Location(f"{_short_path(full)}:{position}", f"{full}:{position}")

    def _from_text(self, text: str) -> Location:
        # Package and file-URI stacks list the innermost frame first, so the
        # first match wins. Python tracebacks list it last, so the last
        # Python match is kept.
        innermost_python = None
        for line in text.splitlines():
            if self.is_internal(line):
                continue
            location = self._try_package(line) or self._try_file(line)
            if location is not None:
                return location
            innermost_python = self._try_python(line) or innermost_python
        return innermost_python or UNKNOWN_LOCATION

    @staticmethod
    def _try_package(line: str) -> Optional[Location]:
        match = _PACKAGE_PATTERN.search(line)
        if match is None:
            return None
        scheme, component, path, line_no, col = match.groups()
        location = f"{scheme}:{component}/{path}:{line_no}:{col}"
        return Location(location, location)

    @staticmethod
    def _try_file(line: str) -> Optional[Location]:
        match = _FILE_PATTERN.search(line)
        if match is None:
            return None
        path, line_no, col = match.groups()
        position = _position(line_no, col)
        return Location(f"{_short_path(path)}:{position}", f"/{path}:{position}")

    def _try_python(self, line: str) -> Optional[Location]:
        match = _PYTHON_PATTERN.search(line)
        if match is None:
            return None
        filename, line_no = match.groups()
        return self._from_path(filename, line_no)


_default_resolver = CallSiteResolver()


def resolve(source: Any) -> Location:
    """Resolve ``source`` with the default CallSiteResolver."""
    return _default_resolver.resolve(source)
