"""taglog/__init__.py - Public API for the taglog package.

taglog groups related log events under a named *tag* across the layers of an
application (UI, service, repository...), records where each event came from
and, for warnings and errors, the call stack. When the flow ends, the tag is
exported as a Markdown report ready to paste into an issue or hand to an AI
assistant, optionally only if something went wrong.

Quick start:
    import taglog
    from taglog import Level

    # 1. Tag events wherever they happen
    taglog.tag("auth", "login attempt")
    taglog.tag("auth", {"user_id": 123, "method": "password"}, level=Level.INFO)
    taglog.tag("auth", "login failed", level=Level.ERROR, error=exc)

    # 2. Export the flow (the tag is removed either way)
    report = taglog.export("auth", only_on_error=True)

    # 3. Or feed tags from standard logging calls
    import logging
    logging.getLogger().addHandler(taglog.TagLogHandler())
    logging.getLogger(__name__).info("token refreshed", extra={"tag": "auth"})

Exported names:
    TagLog:          Owned facade over registry, reporter and sinks.
    TagLogConfig:    Settings, including the capture on/off switch.
    TagLogHandler:   logging.Handler feeding tagged records into a TagLog.
    Level:           TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL.
    traced:          Decorator recording calls, returns and exceptions in a tag.
    exporting:       Context manager exporting a tag when a block exits.
    StreamSink, FileSink, MemorySink: Report destinations.
    tag, export, export_all, clear, clear_all, reset, has_tag, has_errors,
    entry_count:     The same operations on the process-wide default TagLog.
"""

from .config import TagLogConfig
from .core import (
    TagLog,
    clear,
    clear_all,
    entry_count,
    export,
    export_all,
    get_default,
    has_errors,
    has_tag,
    reset,
    set_default,
    tag,
)
from .entry import LogEntry
from .exporter import FileSink, MemorySink, ReportSink, StreamSink
from .formatting import format_value
from .handler import TagLogHandler
from .instrument import exporting, traced
from .levels import Level, is_error
from .location import CallSiteResolver, Location, StackFrames, StackText, resolve
from .registry import TagRegistry
from .report import MarkdownReporter

__all__ = [
    "TagLog",
    "TagLogConfig",
    "TagLogHandler",
    "TagRegistry",
    "LogEntry",
    "Level",
    "is_error",
    "Location",
    "CallSiteResolver",
    "StackFrames",
    "StackText",
    "resolve",
    "format_value",
    "MarkdownReporter",
    "ReportSink",
    "StreamSink",
    "FileSink",
    "MemorySink",
    "traced",
    "exporting",
    "get_default",
    "set_default",
    "tag",
    "export",
    "export_all",
    "clear",
    "clear_all",
    "reset",
    "has_tag",
    "has_errors",
    "entry_count",
]
__version__ = "0.1.0"
