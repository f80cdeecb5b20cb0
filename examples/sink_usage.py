"""examples/sink_usage.py - Sending reports to files and custom destinations.

Every report returned by ``TagLog.export()`` is also handed to the TagLog's
sink. This demo writes reports to a rotating Markdown file and to a custom
ReportSink that collects them in memory.

Run:
    python examples/sink_usage.py
"""

import os
import tempfile
from typing import List

from taglog import FileSink, Level, ReportSink, TagLog


class CollectingSink(ReportSink):
    """Keeps the entry-count line of every report; a stand-in for a chat webhook."""

    def __init__(self) -> None:
        self.headlines: List[str] = []

    def write(self, name: str, report: str) -> None:
        self.headlines.append(f"{name}: {report.splitlines()[2]}")


def charge(log: TagLog, amount: int) -> None:
    log.tag("charge", f"charging {amount}", level=Level.INFO)
    if amount > 10_000:
        log.tag("charge", "Amount exceeds daily limit", level=Level.ERROR, error="LimitExceeded")


if __name__ == "__main__":
    path = os.path.join(tempfile.gettempdir(), "taglog-demo", "reports.md")
    file_log = TagLog(sink=FileSink(path, max_bytes=1024 * 1024))

    # Successful charge: discarded, nothing written
    charge(file_log, 500)
    file_log.export("charge", only_on_error=True)

    # Failed charge: report appended to the file
    charge(file_log, 20_000)
    file_log.export("charge", only_on_error=True)
    print(f"Reports written to {path}")

    collector = CollectingSink()
    memory_log = TagLog(sink=collector)
    charge(memory_log, 50_000)
    memory_log.export("charge")
    print(collector.headlines)
