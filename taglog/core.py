"""core.py - The TagLog facade: capture, conditional export and queries.

TagLog ties the pieces together:

    tag()      resolves the call site, renders the message, stores a LogEntry
               in the TagRegistry and shows the event immediately through a
               delegate ``logging.Logger``.
    export()   applies the export policy, removes the tag and returns the
               Markdown report (also handing it to the configured sink).

A process-wide default instance backs the module-level functions
(``taglog.tag``, ``taglog.export``...). Tests and applications that want
isolation construct their own TagLog, or call ``reset()``.

Typical usage::

    import taglog
    from taglog import Level

    taglog.tag("checkout", "cart submitted")
    taglog.tag("checkout", {"order_id": 42, "total": 99.5}, level=Level.INFO)
    try:
        charge(order)
    except PaymentError as exc:
        taglog.tag("checkout", "charge failed", level=Level.ERROR, error=exc)

    report = taglog.export("checkout", only_on_error=True)
"""

import logging
import threading
import traceback
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config import TagLogConfig
from .display import format_line
from .entry import LogEntry
from .exporter import ReportSink, StreamSink
from .formatting import format_value
from .levels import Level
from .location import (
    CallSiteResolver,
    Location,
    StackFrames,
    as_frame_source,
    stack_text_of,
)
from .registry import TagRegistry
from .report import MarkdownReporter

logger = logging.getLogger(__name__)

DISPLAY_LOGGER_NAME = "taglog.display"


class TagLog:
    """Groups log events under named tags and exports them on demand.

    Attributes:
        config (TagLogConfig): Settings for this instance.
        registry (TagRegistry): Storage for tagged entries.
        reporter (MarkdownReporter): Renders exported tags.
        resolver (CallSiteResolver): Resolves event call sites.
        sink (ReportSink | None): Optional destination for every report.
        delegate (logging.Logger): Logger receiving the immediate lines.

    Example:
        >>> log = TagLog()
        >>> log.tag("auth", "start")
        >>> log.tag("auth", "fail", level=Level.ERROR, error="boom")
        >>> report = log.export("auth", only_on_error=True)
        >>> "**Entries:** 2 | **Errors:** 1" in report
        True
    """

    def __init__(
        self,
        config: Optional[TagLogConfig] = None,
        *,
        registry: Optional[TagRegistry] = None,
        reporter: Optional[MarkdownReporter] = None,
        resolver: Optional[CallSiteResolver] = None,
        sink: Optional[ReportSink] = None,
        delegate: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or TagLogConfig()
        self.registry = registry or TagRegistry(enabled=self.config.enabled)
        self.reporter = reporter or MarkdownReporter()
        self.resolver = resolver or CallSiteResolver()
        self.sink = sink
        self.delegate = delegate or logging.getLogger(DISPLAY_LOGGER_NAME)

    # ---------------------------------------------------------------------- #
    # Capture
    # ---------------------------------------------------------------------- #

    def tag(
        self,
        name: str,
        message: Any,
        level: Any = None,
        error: Optional[Any] = None,
        stack_text: Optional[Any] = None,
    ) -> None:
        """Record ``message`` under the tag ``name`` and display it.

        For WARNING and above, the current stack is captured once when no
        ``stack_text`` is supplied; that single capture provides both the
        stored stack and the call site. Lower levels resolve the call site
        from the live frames and store no stack.

        Args:
            name: Tag identifier, e.g. ``"auth"`` or ``"checkout"``.
            message: String, number, sequence or mapping.
            level: Level, stdlib level number or name. Defaults to the
                configured default level (DEBUG).
            error: Optional error object; shown via ``str()``.
            stack_text: Optional stack as raw text or structured frames.
        """
        level = self.config.default_level if level is None else Level.coerce(level)
        source = as_frame_source(stack_text)
        if source is None and level.is_error and self.registry.enabled:
            frames = self.resolver.trim_internal(traceback.extract_stack())
            source = StackFrames(tuple(frames))

        if source is not None:
            location = self.resolver.resolve(source)
        else:
            location = self.resolver.resolve_current()

        text = format_value(message, self.config.max_depth)
        if self.registry.enabled:
            self.registry.append(
                name,
                LogEntry(
                    message=text,
                    level=level,
                    location=location,
                    timestamp=datetime.now(),
                    error=error,
                    stack_text=stack_text_of(source),
                ),
            )
        if self.config.display:
            self._display(level, text, location, error)

    # ---------------------------------------------------------------------- #
    # Export
    # ---------------------------------------------------------------------- #

    def export(
        self, name: str, export: bool = True, only_on_error: bool = False
    ) -> Optional[str]:
        """Render and remove a tag, subject to the export policy.

        The tag is removed whenever it holds entries, whether or not a report
        is produced. See ``TagRegistry.take()`` for the policy.

        Args:
            name: Tag to export.
            export: If False, the tag is discarded without rendering.
            only_on_error: If True, the tag is rendered only when it contains
                a WARNING, ERROR or CRITICAL entry.

        Returns:
            The Markdown report, or None when nothing was rendered.
        """
        entries = self.registry.take(name, export=export, only_on_error=only_on_error)
        if entries is None:
            return None

        report = self.reporter.render(name, entries)
        logger.info(
            "Exporting tag: %s (%d entries, %d errors)",
            name,
            len(entries),
            sum(1 for e in entries if e.is_error),
        )
        if self.sink is not None:
            try:
                self.sink.write(name, report)
            except Exception:
                logger.exception("Failed to write report for tag %r", name)
        return report

    def export_all(self, export: bool = True, only_on_error: bool = False) -> Dict[str, str]:
        """Export every tag with the same flags.

        Returns:
            ``{tag name: report}`` for each tag that produced a report. Tags
            that were discarded are absent from the result but still removed.
        """
        results = {}
        for name in self.registry.tag_names():
            report = self.export(name, export=export, only_on_error=only_on_error)
            if report is not None:
                results[name] = report
        return results

    def clear(self, name: str) -> None:
        """Discard a tag without exporting it."""
        self.registry.clear(name)

    def clear_all(self) -> None:
        """Discard every tag without exporting."""
        self.registry.clear_all()

    def reset(self) -> None:
        """Drop all stored entries. Used for test isolation and teardown."""
        self.registry.reset()

    # ---------------------------------------------------------------------- #
    # Queries
    # ---------------------------------------------------------------------- #

    def has_tag(self, name: str) -> bool:
        return self.registry.has_tag(name)

    def has_errors(self, name: str) -> bool:
        """True if the tag holds a WARNING, ERROR or CRITICAL entry."""
        return self.registry.has_errors(name)

    def entry_count(self, name: str) -> int:
        return self.registry.entry_count(name)

    def tag_names(self) -> List[str]:
        return self.registry.tag_names()

    # ---------------------------------------------------------------------- #
    # Untagged shortcuts
    # ---------------------------------------------------------------------- #

    def trace(self, message: Any) -> None:
        self._log(Level.TRACE, message)

    def debug(self, message: Any) -> None:
        self._log(Level.DEBUG, message)

    def info(self, message: Any) -> None:
        self._log(Level.INFO, message)

    def warning(self, message: Any) -> None:
        self._log(Level.WARNING, message)

    def error(
        self, message: Any, error: Optional[Any] = None, stack_text: Optional[Any] = None
    ) -> None:
        """Display an error line, with an optional error object and stack."""
        self._log(Level.ERROR, message, error, stack_text)

    def critical(self, message: Any) -> None:
        self._log(Level.CRITICAL, message)

    # ---------------------------------------------------------------------- #
    # Private helpers
    # ---------------------------------------------------------------------- #

    def _log(
        self,
        level: Level,
        message: Any,
        error: Optional[Any] = None,
        stack_text: Optional[Any] = None,
    ) -> None:
        source = as_frame_source(stack_text)
        if source is not None:
            location = self.resolver.resolve(source)
        else:
            location = self.resolver.resolve_current()
        self._display(level, format_value(message, self.config.max_depth), location, error)

    def _display(
        self, level: Level, text: str, location: Location, error: Optional[Any]
    ) -> None:
        self.delegate.log(int(level), format_line(level, text, location, error))


# ---------------------------------------------------------------------------
# Process-wide default instance
# ---------------------------------------------------------------------------

_default: Optional[TagLog] = None
_default_lock = threading.Lock()


def get_default() -> TagLog:
    """Return the process-wide TagLog, creating it on first use.

    The default instance reads its settings from ``TAGLOG_*`` environment
    variables and prints every exported report to stderr.
    """
    global _default
    with _default_lock:
        if _default is None:
            _default = TagLog(TagLogConfig.from_env(), sink=StreamSink())
        return _default


def set_default(instance: Optional[TagLog]) -> Optional[TagLog]:
    """Replace the process-wide TagLog and return the previous one.

    Passing None makes the next ``get_default()`` build a fresh instance.
    """
    global _default
    with _default_lock:
        previous, _default = _default, instance
    return previous


def tag(
    name: str,
    message: Any,
    level: Any = None,
    error: Optional[Any] = None,
    stack_text: Optional[Any] = None,
) -> None:
    get_default().tag(name, message, level=level, error=error, stack_text=stack_text)


def export(name: str, export: bool = True, only_on_error: bool = False) -> Optional[str]:
    return get_default().export(name, export=export, only_on_error=only_on_error)


def export_all(export: bool = True, only_on_error: bool = False) -> Dict[str, str]:
    return get_default().export_all(export=export, only_on_error=only_on_error)


def clear(name: str) -> None:
    get_default().clear(name)


def clear_all() -> None:
    get_default().clear_all()


def reset() -> None:
    get_default().reset()


def has_tag(name: str) -> bool:
    return get_default().has_tag(name)


def has_errors(name: str) -> bool:
    return get_default().has_errors(name)


def entry_count(name: str) -> int:
    return get_default().entry_count(name)
