"""Tests for iterable_emitter.logging module."""

from __future__ import annotations

import io
import logging

import pytest

from iterable_emitter.config import Settings
from iterable_emitter.logging import (
    EmitterLogger,
    LogRecord,
    LogSeverity,
    get_logger,
    setup_logging,
)
from iterable_emitter.state import StreamStats


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_returns_logger(self):
        """Test setup_logging returns the package logger."""
        result = setup_logging(stream=io.StringIO())
        assert isinstance(result, logging.Logger)
        assert result.name == "iterable_emitter"

    def test_sets_log_level(self):
        """Test setup_logging sets the log level."""
        log = setup_logging(log_level="DEBUG", stream=io.StringIO())
        assert log.level == logging.DEBUG

        log = setup_logging(log_level="warning", stream=io.StringIO())
        assert log.level == logging.WARNING

    def test_level_from_settings(self):
        log = setup_logging(Settings(log_level="ERROR"), stream=io.StringIO())
        assert log.level == logging.ERROR

    def test_no_duplicate_handlers(self):
        """Test repeated setup replaces its own handler."""
        setup_logging(stream=io.StringIO())
        log = setup_logging(stream=io.StringIO())
        stream_handlers = [h for h in log.handlers if isinstance(h, logging.StreamHandler)]
        assert len(stream_handlers) == 1

    def test_adapter_events_reach_handler(self, make_emitter, source):
        """Test adapter events are written once logging is set up."""
        stream = io.StringIO()
        setup_logging(log_level="DEBUG", stream=stream)
        emitter = make_emitter()
        source.emit("data", 1)
        output = stream.getvalue()
        assert "item_pushed" in output
        assert emitter.instance_id in output


class TestQuietByDefault:
    """Tests for the package staying silent unless configured."""

    def test_adapter_prints_nothing(self, make_emitter, source, capsys):
        emitter = make_emitter(high_water_mark=2, low_water_mark=1)
        source.emit_many([1, 2, 3])
        source.emit("error", RuntimeError("boom"))
        assert emitter.error.error
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""


class TestGetLogger:
    """Tests for get_logger function."""

    def test_package_logger(self):
        assert get_logger().name == "iterable_emitter"

    def test_child_logger(self):
        assert get_logger("buffer").name == "iterable_emitter.buffer"

    def test_already_qualified(self):
        assert get_logger("iterable_emitter.bridge").name == "iterable_emitter.bridge"

    def test_filtered_by_stdlib_level(self):
        """Test events below the stdlib level are dropped before rendering."""
        stream = io.StringIO()
        setup_logging(log_level="WARNING", stream=stream)
        log = get_logger("emitter")
        log.info("hidden", payload=1)
        log.warning("shown", payload=2)
        output = stream.getvalue()
        assert "hidden" not in output
        assert "event='shown'" in output


class TestLogSeverity:
    """Tests for LogSeverity."""

    def test_ordering(self):
        ranks = [severity.rank for severity in LogSeverity]
        assert ranks == sorted(ranks)

    def test_parse_rejects_non_string(self):
        with pytest.raises(ValueError):
            LogSeverity.parse(10)


class TestEmitterLogger:
    """Tests for EmitterLogger."""

    def test_without_sink(self):
        """Test logging without a sink is a no-op for the sink side."""
        log = EmitterLogger("id-1")
        assert not log.enabled_for(LogSeverity.ERROR)
        log.error("boom", error=RuntimeError("x"))

    def test_threshold_filters_records(self):
        """Test only records at or above the minimum severity reach the sink."""
        records: list[LogRecord] = []
        log = EmitterLogger("id-1", sink=records.append, min_severity=LogSeverity.WARN)
        log.debug("d")
        log.info("i")
        log.warn("w")
        log.error("e")
        assert [r.severity for r in records] == [LogSeverity.WARN, LogSeverity.ERROR]
        assert [r.message for r in records] == ["w", "e"]

    def test_record_shape(self):
        """Test record fields."""
        records: list[LogRecord] = []
        error = RuntimeError("bad")
        log = EmitterLogger("id-7", sink=records.append)
        log.error("rejected", error=error, payload={"event": "error"})
        record = records[0]
        assert record.instance_id == "id-7"
        assert record.error is error
        assert record.payload == {"event": "error"}
        assert record.stats is None
        assert record.timestamp.tzinfo is not None

    def test_debug_records_carry_stats(self):
        """Test DEBUG records include a stats snapshot."""
        records: list[LogRecord] = []
        log = EmitterLogger(
            "id-1",
            sink=records.append,
            min_severity=LogSeverity.DEBUG,
            stats_provider=lambda: StreamStats(length=3),
        )
        log.debug("pushed", 1)
        log.info("info")
        assert records[0].stats == StreamStats(length=3)
        assert records[1].stats is None

    def test_payload_is_copied(self):
        """Test later mutation of a payload does not change the record."""
        records: list[LogRecord] = []
        log = EmitterLogger("id-1", sink=records.append, min_severity=LogSeverity.INFO)
        payload = {"items": [1, 2]}
        log.info("snapshot", payload)
        payload["items"].append(3)
        assert records[0].payload == {"items": [1, 2]}
