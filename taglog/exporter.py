"""exporter.py - Pluggable destinations for exported tag reports.

``TagLog.export()`` always returns the rendered report. When the TagLog is
given a ReportSink, every produced report is also handed to it:

    StreamSink: writes the report to any writable stream (default: stderr).
    FileSink: appends each report to a file on disk, with optional rotation.
    MemorySink: keeps reports in a list; handy in tests.

Typical usage::

    from taglog import TagLog
    from taglog.exporter import FileSink

    log = TagLog(sink=FileSink("/var/log/taglog/reports.md"))
"""

import os
import sys
from abc import ABC, abstractmethod
from typing import List, Tuple

SEPARATOR = "═" * 80


def frame_report(name: str, report: str) -> str:
    """Wrap ``report`` in the ``# Tag:`` heading and separator lines."""
    return f"# Tag: {name}\n{SEPARATOR}\n{report.rstrip()}\n{SEPARATOR}\n"


class ReportSink(ABC):
    """Abstract base class for report destinations.

    Example:
        >>> class SlackSink(ReportSink):
        ...     def write(self, name: str, report: str) -> None:
        ...         post_to_channel(f"{name}:\\n{report}")
    """

    @abstractmethod
    def write(self, name: str, report: str) -> None:
        """Persist one rendered report.

        Args:
            name: The tag the report was rendered for.
            report: The Markdown report returned by ``TagLog.export()``.
        """


class StreamSink(ReportSink):
    """Write reports to a writable stream (default: sys.stderr).

    Output format::

        # Tag: auth
        ════════════════════════════════════════
        > **Tag:** `auth`
        ...
        ════════════════════════════════════════
    """

    def __init__(self, stream=None) -> None:
        """Initialise the stream sink.

        Args:
            stream: A writable file-like object. Defaults to ``sys.stderr``
                so reports do not pollute the application's stdout. The
                default is looked up on every write so it follows stream
                redirection.
        """
        self._stream = stream

    def write(self, name: str, report: str) -> None:
        stream = self._stream or sys.stderr
        print("\n" + frame_report(name, report), file=stream)


class FileSink(ReportSink):
    """Append reports to a Markdown file on disk.

    The file and any missing parent directories are created on first write.

    Attributes:
        _path (str): Path to the report file.
        _max_bytes (int): Size at which the file is rotated to ``<path>.bak``.
            0 means no rotation.
        _encoding (str): File encoding. Defaults to ``"utf-8"``.

    Example:
        >>> sink = FileSink("./reports/taglog.md", max_bytes=5 * 1024 * 1024)
    """

    def __init__(self, path: str, max_bytes: int = 0, encoding: str = "utf-8") -> None:
        """Initialise the file sink.

        Raises:
            ValueError: If ``max_bytes`` is negative.
        """
        if max_bytes < 0:
            raise ValueError(f"max_bytes must be >= 0, got {max_bytes}")
        self._path = path
        self._max_bytes = max_bytes
        self._encoding = encoding

    @property
    def path(self) -> str:
        return self._path

    def write(self, name: str, report: str) -> None:
        self._ensure_dir()
        if self._max_bytes > 0:
            self._rotate_if_needed()

        with open(self._path, "a", encoding=self._encoding) as f:
            f.write(frame_report(name, report) + "\n")

    # ---------------------------------------------------------------------- #
    # Private helpers
    # ---------------------------------------------------------------------- #

    def _ensure_dir(self) -> None:
        parent = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(parent, exist_ok=True)

    def _rotate_if_needed(self) -> None:
        """Move the file to ``<path>.bak`` once it reaches ``_max_bytes``."""
        try:
            if os.path.getsize(self._path) >= self._max_bytes:
                os.replace(self._path, self._path + ".bak")
        except FileNotFoundError:
            pass  # Nothing written yet.


class MemorySink(ReportSink):
    """Keep ``(name, report)`` pairs in memory."""

    def __init__(self) -> None:
        self.reports: List[Tuple[str, str]] = []

    def write(self, name: str, report: str) -> None:
        self.reports.append((name, report))
