"""report.py - Render a tag's entries as a portable Markdown report.

The report is meant to be pasted into an issue, a chat with a colleague or an
AI assistant, so it is plain Markdown with no terminal colour codes. Its
structure is stable and can be parsed by other tooling:

    > **Tag:** `auth`
    > **Generated:** 2024-01-30 12:30:45
    > **Entries:** 2 | **Errors:** 1

    ## Summary

    - **ERROR**: 1
    - **DEBUG**: 1

    ## Timeline

    ### 12:30:45.001 🔵 [DEBUG] services/auth.py:23

    User login attempt

    ### 12:30:45.120 🔴 [ERROR] services/auth.py:41

    Login failed

    **Error:** `invalid credentials`

    <details>
    <summary>Stack Trace</summary>
    ...
    </details>

    ---
    *Exported by taglog*
"""

from collections import Counter
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence

from .entry import LogEntry
from .levels import SEVERITY_ORDER, Level

FOOTER = "*Exported by taglog*"

LEVEL_MARKERS = {
    Level.CRITICAL: "🔴",
    Level.ERROR: "🔴",
    Level.WARNING: "🟡",
    Level.INFO: "🟢",
    Level.DEBUG: "🔵",
    Level.TRACE: "⚪",
}


class MarkdownReporter:
    """Turns a list of LogEntry objects into a Markdown document.

    Args:
        clock: Callable returning the "generated at" time. Defaults to
            ``datetime.now``; inject a fixed clock for reproducible output.
        stack_language: Info string of the fenced stack trace block.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        stack_language: str = "python",
    ) -> None:
        self._clock = clock or datetime.now
        self._stack_language = stack_language

    def render(self, name: str, entries: Sequence[LogEntry]) -> str:
        """Render ``entries`` (chronological order) for the tag ``name``."""
        lines: List[str] = []
        error_count = sum(1 for e in entries if e.is_error)

        lines += [
            f"> **Tag:** `{name}`",
            f"> **Generated:** {self._clock().strftime('%Y-%m-%d %H:%M:%S')}",
            f"> **Entries:** {len(entries)} | **Errors:** {error_count}",
            "",
        ]
        lines += self._summary(entries)
        lines += ["## Timeline", ""]
        for entry in entries:
            lines += self._entry(entry)
        lines += ["---", FOOTER]
        return "\n".join(lines) + "\n"

    # ---------------------------------------------------------------------- #
    # Sections
    # ---------------------------------------------------------------------- #

    @staticmethod
    def _summary(entries: Iterable[LogEntry]) -> List[str]:
        counts = Counter(e.level for e in entries)
        lines = ["## Summary", ""]
        lines += [
            f"- **{level.name}**: {counts[level]}"
            for level in SEVERITY_ORDER
            if counts[level]
        ]
        lines.append("")
        return lines

    def _entry(self, entry: LogEntry) -> List[str]:
        marker = LEVEL_MARKERS.get(entry.level, "⚪")
        lines = [
            f"### {format_time(entry.timestamp)} {marker} "
            f"[{entry.level.name}] {entry.location.short}",
            "",
        ]

        message = entry.message.strip()
        if message.startswith(("{", "[")):
            lines += ["```json", message, "```"]
        else:
            lines.append(message)

        if entry.error is not None:
            lines += ["", f"**Error:** `{_error_text(entry.error)}`"]

        if entry.stack_text is not None:
            lines += [
                "",
                "<details>",
                "<summary>Stack Trace</summary>",
                "",
                f"```{self._stack_language}",
                entry.stack_text.strip(),
                "```",
                "",
                "</details>",
            ]
        lines.append("")
        return lines


def format_time(moment: datetime) -> str:
    """Format ``moment`` as ``HH:MM:SS.mmm``."""
    return moment.strftime("%H:%M:%S.") + f"{moment.microsecond // 1000:03d}"


def _error_text(error: object) -> str:
    try:
        return str(error)
    except Exception:
        return object.__repr__(error)
