"""handler.py - Standard ``logging`` integration for tagged entries.

TagLogHandler lets existing ``logging`` calls feed tags without switching
APIs. Any record carrying a ``tag`` attribute is stored in a TagLog:

    import logging
    from taglog import TagLogHandler

    logging.getLogger().addHandler(TagLogHandler())
    logger = logging.getLogger(__name__)

    logger.info("login attempt", extra={"tag": "auth"})    # stored under "auth"
    logger.info("cache warmed")                           # no tag: ignored

The record already knows its call site (``pathname``/``lineno``), so the
location is resolved from that structured frame rather than by walking or
parsing the stack. Records are not displayed again; the logging pipeline
that delivered them already does that.
"""

import logging
import traceback
from datetime import datetime
from typing import Optional

from .core import TagLog, get_default
from .entry import LogEntry
from .formatting import format_value
from .levels import Level
from .location import StackFrames

TAG_ATTRIBUTE = "tag"


class TagLogHandler(logging.Handler):
    """A logging.Handler that records tagged LogRecords into a TagLog.

    Thread-safety:
        ``logging.Handler.handle`` serialises ``emit()`` calls, and the
        TagRegistry has its own lock, so records from any thread are safe.

    Attributes:
        _log (TagLog | None): Target instance; None means the process-wide
            default, looked up on every record.
        _export_on_error (bool): Export a tag as soon as one of its records
            is ERROR or above.

    Example:
        >>> logging.getLogger().addHandler(TagLogHandler(export_on_error=True))
        >>> logging.getLogger("svc").error("boom", extra={"tag": "jobs"})
    """

    def __init__(
        self,
        log: Optional[TagLog] = None,
        export_on_error: bool = False,
        level: int = logging.NOTSET,
    ) -> None:
        """Initialise the handler.

        Args:
            log: TagLog receiving the entries. Defaults to the process-wide
                instance.
            export_on_error: If True, an ERROR or CRITICAL record exports its
                tag immediately (through the TagLog's sink).
            level: Minimum record level handled, as for any Handler.
        """
        super().__init__(level)
        self._log = log
        self._export_on_error = export_on_error

    # ---------------------------------------------------------------------- #
    # Public interface
    # ---------------------------------------------------------------------- #

    def emit(self, record: logging.LogRecord) -> None:
        """Store a tagged record; ignore untagged ones.

        Args:
            record: The LogRecord produced by the logging framework.
        """
        name = getattr(record, TAG_ATTRIBUTE, None)
        if not name:
            return
        try:
            log = self._log or get_default()
            entry = self._to_entry(record, log)
            log.registry.append(str(name), entry)

            if self._export_on_error and record.levelno >= logging.ERROR:
                log.export(str(name))
        except Exception:
            # A bug in taglog must never silence the application's own logs.
            self.handleError(record)

    # ---------------------------------------------------------------------- #
    # Private helpers
    # ---------------------------------------------------------------------- #

    def _to_entry(self, record: logging.LogRecord, log: TagLog) -> LogEntry:
        """Convert a LogRecord to a LogEntry."""
        frame = traceback.FrameSummary(
            record.pathname, record.lineno, record.funcName, lookup_line=False
        )
        location = log.resolver.resolve(StackFrames((frame,)))

        error = None
        stack_text = None
        if record.exc_info and record.exc_info[1] is not None:
            error = record.exc_info[1]
            stack_text = "".join(traceback.format_exception(*record.exc_info))
        elif record.stack_info:
            stack_text = record.stack_info

        # Mirror the dict-message convention of tag(): mappings and
        # sequences are rendered, everything else goes through getMessage().
        if isinstance(record.msg, (dict, list, tuple)) and not record.args:
            message = format_value(record.msg, log.config.max_depth)
        else:
            message = record.getMessage()

        return LogEntry(
            message=message,
            level=Level.coerce(record.levelno),
            location=location,
            timestamp=datetime.fromtimestamp(record.created),
            error=error,
            stack_text=stack_text,
        )
