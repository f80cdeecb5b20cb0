"""test_core.py - Unit and integration tests for the TagLog facade.

Covers:
    - Scenario A: error flow exported with only_on_error
    - Scenario B: clear discards a tag without exporting
    - Scenario C: export_all exports only tags with errors, removes all
    - only_on_error discards a clean flow
    - export=False discards without rendering
    - Stack capture happens once for error levels and never below
    - Supplied stack text is stored and used for the location
    - Every event is displayed through the delegate logger
    - Disabled capture stores nothing but still displays
    - Sink failures are logged and never break export()
    - Module-level functions operate on the process-wide default
    - Concurrent tagging from many threads
"""

import logging
import sys
import threading
import traceback
from datetime import datetime

import pytest

import taglog
from taglog import core
from taglog.config import TagLogConfig
from taglog.core import TagLog
from taglog.exporter import MemorySink, ReportSink
from taglog.levels import Level
from taglog.report import MarkdownReporter


def _quiet(**kwargs) -> TagLog:
    """A TagLog that does not display, with a fixed report clock."""
    kwargs.setdefault("reporter", MarkdownReporter(clock=lambda: datetime(2024, 1, 30)))
    return TagLog(TagLogConfig(enabled=True, display=False), **kwargs)


# ---------------------------------------------------------------------------
# Export scenarios
# ---------------------------------------------------------------------------


class TestExportScenarios:
    def setup_method(self):
        self.log = _quiet()

    def test_scenario_a_error_flow_is_exported(self):
        self.log.tag("auth", "start")
        self.log.tag("auth", "fail", level=Level.ERROR, error="boom")

        report = self.log.export("auth", only_on_error=True)

        assert report is not None
        assert "> **Entries:** 2 | **Errors:** 1" in report
        assert "- **ERROR**: 1" in report
        assert "**Error:** `boom`" in report
        assert self.log.entry_count("auth") == 0

    def test_scenario_b_clear_discards_tag(self):
        self.log.tag("x", "a")
        self.log.tag("x", "b")

        self.log.clear("x")

        assert self.log.has_tag("x") is False
        assert self.log.entry_count("x") == 0

    def test_only_on_error_discards_clean_flow(self):
        self.log.tag("auth", "start")
        self.log.tag("auth", "done", level=Level.INFO)

        assert self.log.export("auth", only_on_error=True) is None
        assert self.log.entry_count("auth") == 0
        assert not self.log.has_tag("auth")

    def test_scenario_c_export_all_only_on_error(self):
        self.log.tag("p", "loaded", level=Level.INFO)
        self.log.tag("p", "saved", level=Level.INFO)
        self.log.tag("q", "loaded", level=Level.INFO)
        self.log.tag("q", "save failed", level=Level.ERROR)

        reports = self.log.export_all(only_on_error=True)

        assert list(reports) == ["q"]
        assert "> **Tag:** `q`" in reports["q"]
        assert "> **Entries:** 2 | **Errors:** 1" in reports["q"]
        assert self.log.entry_count("p") == 0
        assert self.log.entry_count("q") == 0
        assert self.log.tag_names() == []

    def test_export_false_discards_without_rendering(self):
        self.log.tag("auth", "fail", level=Level.CRITICAL)
        assert self.log.export("auth", export=False) is None
        assert not self.log.has_tag("auth")

    def test_export_of_absent_tag_returns_none(self):
        assert self.log.export("missing") is None

    def test_entry_count_matches_number_of_tags(self):
        for i in range(17):
            self.log.tag("loop", f"step {i}")
        assert self.log.entry_count("loop") == 17

    def test_mapping_messages_are_rendered_as_json(self):
        self.log.tag("auth", {"user_id": 123, "method": "password"}, level=Level.INFO)
        report = self.log.export("auth")
        assert '```json\n{\n  "user_id": 123,\n  "method": "password"\n}\n```' in report

    def test_level_accepts_names_and_numbers(self):
        self.log.tag("t", "a", level="warning")
        self.log.tag("t", "b", level=logging.INFO)
        assert self.log.has_errors("t")
        assert [e.level for e in self.log.registry.snapshot("t")] == [
            Level.WARNING,
            Level.INFO,
        ]

    def test_configured_default_level_is_used(self):
        log = TagLog(TagLogConfig(default_level=Level.INFO, display=False))
        log.tag("t", "a")
        assert log.registry.snapshot("t")[0].level is Level.INFO

    def test_clear_and_clear_all(self):
        self.log.tag("a", "x")
        self.log.tag("b", "y")
        self.log.clear("a")
        assert self.log.tag_names() == ["b"]
        self.log.clear_all()
        assert self.log.tag_names() == []

    def test_reset_drops_everything(self):
        self.log.tag("a", "x")
        self.log.reset()
        assert not self.log.has_tag("a")


# ---------------------------------------------------------------------------
# Call site and stack capture
# ---------------------------------------------------------------------------


class TestStackCapture:
    def setup_method(self):
        self.log = _quiet()

    def _count_extract_stack(self, monkeypatch):
        calls = []
        original = traceback.extract_stack

        def counting(*args, **kwargs):
            calls.append(1)
            return original(*args, **kwargs)

        monkeypatch.setattr(traceback, "extract_stack", counting)
        return calls

    def test_error_level_captures_stack_once(self, monkeypatch):
        calls = self._count_extract_stack(monkeypatch)
        self.log.tag("t", "fail", level=Level.ERROR)

        assert len(calls) == 1
        entry = self.log.registry.snapshot("t")[0]
        assert entry.stack_text is not None
        assert "test_error_level_captures_stack_once" in entry.stack_text
        assert "taglog/core.py" not in entry.stack_text.replace("\\", "/")
        assert entry.location.short.startswith("tests/test_core.py:")

    def test_debug_level_does_not_capture_stack(self, monkeypatch):
        calls = self._count_extract_stack(monkeypatch)
        expected_line = sys._getframe().f_lineno + 1
        self.log.tag("t", "step")

        assert calls == []
        entry = self.log.registry.snapshot("t")[0]
        assert entry.stack_text is None
        assert entry.location.short == f"tests/test_core.py:{expected_line}"

    def test_supplied_stack_text_is_used(self, monkeypatch):
        calls = self._count_extract_stack(monkeypatch)
        stack = "#0 main (package:myapp/src/auth.py:12:4)"
        self.log.tag("t", "fail", level=Level.ERROR, stack_text=stack)

        assert calls == []
        entry = self.log.registry.snapshot("t")[0]
        assert entry.stack_text == stack
        assert entry.location.short == "package:myapp/src/auth.py:12:4"

    def test_supplied_frames_are_stored_as_text(self):
        frames = [traceback.FrameSummary("/srv/app/jobs/run.py", 8, "run", lookup_line=False)]
        self.log.tag("t", "fail", level=Level.WARNING, stack_text=frames)

        entry = self.log.registry.snapshot("t")[0]
        assert entry.location.short == "jobs/run.py:8"
        assert 'File "/srv/app/jobs/run.py", line 8, in run' in entry.stack_text

    def test_formatted_stack_lines_are_accepted(self):
        """A format_stack() list is joined into stack text, never raising."""
        self.log.tag("t", "fail", level=Level.ERROR, stack_text=traceback.format_stack())

        entry = self.log.registry.snapshot("t")[0]
        assert "test_formatted_stack_lines_are_accepted" in entry.stack_text
        assert entry.location.short.startswith("tests/test_core.py:")

    def test_unrecognised_stack_sequence_does_not_raise(self):
        self.log.tag("t", "fail", level=Level.ERROR, stack_text=[1, "two", None])

        entry = self.log.registry.snapshot("t")[0]
        assert entry.stack_text == "[1, 'two', None]"
        assert entry.location.short == "unknown location"

    def test_unresolvable_stack_gives_sentinel_location(self):
        self.log.tag("t", "fail", level=Level.ERROR, stack_text="no frames here")
        assert self.log.registry.snapshot("t")[0].location.short == "unknown location"


# ---------------------------------------------------------------------------
# Display and logging
# ---------------------------------------------------------------------------


class TestDisplay:
    def test_each_event_is_displayed(self, caplog):
        log = TagLog(TagLogConfig(enabled=True))
        with caplog.at_level(logging.DEBUG, logger=core.DISPLAY_LOGGER_NAME):
            log.tag("auth", "cache warmed", level=Level.INFO)

        records = [r for r in caplog.records if r.name == core.DISPLAY_LOGGER_NAME]
        assert len(records) == 1
        assert records[0].levelno == logging.INFO
        assert records[0].getMessage().startswith("INFO: cache warmed tests/test_core.py:")

    def test_display_can_be_switched_off(self, caplog):
        log = _quiet()
        with caplog.at_level(logging.DEBUG, logger=core.DISPLAY_LOGGER_NAME):
            log.tag("auth", "hidden", level=Level.INFO)
        assert not [r for r in caplog.records if r.name == core.DISPLAY_LOGGER_NAME]

    def test_disabled_capture_still_displays(self, caplog):
        log = TagLog(TagLogConfig(enabled=False))
        with caplog.at_level(logging.DEBUG, logger=core.DISPLAY_LOGGER_NAME):
            log.tag("auth", "boom", level=Level.ERROR)

        assert not log.has_tag("auth")
        assert log.export("auth") is None
        assert any("ERROR: boom" in r.getMessage() for r in caplog.records)

    def test_untagged_shortcuts_only_display(self, caplog):
        log = TagLog(TagLogConfig(enabled=True))
        with caplog.at_level(logging.DEBUG, logger=core.DISPLAY_LOGGER_NAME):
            log.info("hello")
            log.error("failed", error="bad creds")

        messages = [r.getMessage() for r in caplog.records]
        assert messages[0].startswith("INFO: hello tests/test_core.py:")
        assert "   = error: bad creds" in messages[1]
        assert log.tag_names() == []

    def test_export_is_logged(self, caplog):
        log = _quiet()
        log.tag("auth", "start")
        log.tag("auth", "fail", level=Level.ERROR)
        with caplog.at_level(logging.INFO, logger="taglog.core"):
            log.export("auth")
        assert "Exporting tag: auth (2 entries, 1 errors)" in caplog.text


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class TestSinks:
    def test_report_is_handed_to_sink(self):
        sink = MemorySink()
        log = _quiet(sink=sink)
        log.tag("auth", "start")
        report = log.export("auth")
        assert sink.reports == [("auth", report)]

    def test_discarded_tags_do_not_reach_sink(self):
        sink = MemorySink()
        log = _quiet(sink=sink)
        log.tag("auth", "start")
        log.export("auth", only_on_error=True)
        assert sink.reports == []

    def test_failing_sink_does_not_break_export(self, caplog):
        class BrokenSink(ReportSink):
            def write(self, name, report):
                raise OSError("disk full")

        log = _quiet(sink=BrokenSink())
        log.tag("auth", "start")
        with caplog.at_level(logging.ERROR, logger="taglog.core"):
            report = log.export("auth")

        assert report is not None
        assert "Failed to write report for tag 'auth'" in caplog.text
        assert not log.has_tag("auth")


# ---------------------------------------------------------------------------
# Process-wide default instance
# ---------------------------------------------------------------------------


class TestDefaultInstance:
    def setup_method(self):
        self.sink = MemorySink()
        self.log = _quiet(sink=self.sink)
        self.previous = core.set_default(self.log)

    def teardown_method(self):
        core.set_default(self.previous)

    def test_module_functions_use_default_instance(self):
        taglog.tag("auth", "start")
        taglog.tag("auth", "fail", level=Level.ERROR, error="boom")

        assert taglog.has_tag("auth")
        assert taglog.has_errors("auth")
        assert taglog.entry_count("auth") == 2

        report = taglog.export("auth", only_on_error=True)
        assert "> **Entries:** 2 | **Errors:** 1" in report
        assert self.sink.reports[0][0] == "auth"

    def test_module_tag_resolves_to_caller(self):
        expected_line = sys._getframe().f_lineno + 1
        taglog.tag("t", "step")
        entry = self.log.registry.snapshot("t")[0]
        assert entry.location.short == f"tests/test_core.py:{expected_line}"

    def test_module_clear_reset_and_export_all(self):
        taglog.tag("a", "x")
        taglog.tag("b", "y", level=Level.ERROR)
        taglog.clear("a")
        assert taglog.export_all().keys() == {"b"}
        taglog.tag("c", "z")
        taglog.clear_all()
        assert not taglog.has_tag("c")
        taglog.tag("d", "w")
        taglog.reset()
        assert not taglog.has_tag("d")

    def test_get_default_returns_installed_instance(self):
        assert core.get_default() is self.log

    def test_set_default_none_builds_fresh_instance(self):
        core.set_default(None)
        fresh = core.get_default()
        assert isinstance(fresh, TagLog)
        assert fresh is not self.log
        assert core.get_default() is fresh


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestConcurrency:
    def test_concurrent_tagging_counts_every_event(self):
        log = _quiet()
        threads_count, per_thread = 8, 100

        def worker(index: int):
            for i in range(per_thread):
                log.tag("shared", f"{index}:{i}")
                log.tag(f"thread-{index}", i, level=Level.INFO)

        threads = [
            threading.Thread(target=worker, args=(n,)) for n in range(threads_count)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert log.entry_count("shared") == threads_count * per_thread
        for n in range(threads_count):
            messages = [e.message for e in log.registry.snapshot(f"thread-{n}")]
            assert messages == [str(i) for i in range(per_thread)]

    def test_export_during_tagging_loses_nothing(self):
        log = _quiet()
        exported = []
        done = threading.Event()

        def producer():
            for i in range(500):
                log.tag("flow", f"step {i}", level=Level.INFO)
            done.set()

        def consumer():
            while not done.is_set():
                report = log.export("flow")
                if report:
                    exported.append(report)

        threads = [threading.Thread(target=producer), threading.Thread(target=consumer)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        remaining = log.export("flow")
        if remaining:
            exported.append(remaining)
        total = sum(r.count("### ") for r in exported)
        assert total == 500


@pytest.fixture(autouse=True)
def _restore_default():
    previous = core.set_default(None)
    yield
    core.set_default(previous)
