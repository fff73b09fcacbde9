from datetime import datetime

import pytest

from procman.logcollection.config import ProcessLogConfig, default_process_log_config
from procman.logcollection.types import (
    EnhancedLogEntry,
    LogEntry,
    LogLevel,
    LogMetadata,
    LogOutputWriter,
    ProcessLogStatus,
    RawLogEntry,
    StreamType,
    StructuredLogEntry,
    SystemLogStatus,
)


@pytest.mark.parametrize(
    "level, name",
    [
        (LogLevel.DEBUG, "debug"),
        (LogLevel.INFO, "info"),
        (LogLevel.WARN, "warn"),
        (LogLevel.ERROR, "error"),
    ],
)
def test_log_level_names(level, name):
    assert str(level) == name


def test_log_levels_are_ordered():
    levels = sorted([LogLevel(3), LogLevel(0), LogLevel(2), LogLevel(1)])
    assert levels == [LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARN, LogLevel.ERROR]
    assert [str(LogLevel(i)) for i in range(4)] == ["debug", "info", "warn", "error"]
    with pytest.raises(ValueError):
        LogLevel(4)


def test_stream_type_values():
    assert StreamType("stdout") is StreamType.STDOUT
    assert str(StreamType.STDERR) == "stderr"


def test_log_entry_defaults_are_independent():
    now = datetime(2025, 1, 20)
    a = LogEntry(now, "m", "p", StreamType.STDOUT, raw="m")
    b = LogEntry(now, "m", "p", StreamType.STDOUT, raw="m")
    a.fields["x"] = 1
    assert b.fields == {}
    assert a.level == ""
    assert a.raw == a.message


def test_metadata_and_raw_entry_hold_values():
    now = datetime(2025, 1, 20)
    meta = LogMetadata(now, "p", StreamType.STDERR, line_num=3)
    raw = RawLogEntry(meta.process_id, meta.stream, "line", meta.timestamp)
    assert (raw.process_id, raw.stream, raw.timestamp) == ("p", StreamType.STDERR, now)
    assert meta.line_num == 3


def test_enhanced_entry_without_structured_part():
    now = datetime(2025, 1, 20)
    entry = EnhancedLogEntry(RawLogEntry("p", StreamType.STDOUT, "l", now))
    assert entry.structured is None
    assert entry.enhanced == {}
    entry.structured = StructuredLogEntry(now, level="info", message="l")
    assert entry.structured.fields == {}


def test_process_log_status_defaults():
    status = ProcessLogStatus("p")
    assert status.lines_processed == 0 and status.bytes_processed == 0
    assert status.errors == []
    assert status.config == ProcessLogConfig()
    configured = ProcessLogStatus("p", config=default_process_log_config())
    assert configured.config.capture_stdout is True


def test_system_log_status_defaults():
    status = SystemLogStatus()
    assert status.active is False
    assert status.managed_processes == {}
    status.output_targets.append("StdoutWriter")
    assert SystemLogStatus().output_targets == []


def test_output_writer_protocol_recognises_implementations():
    class Collecting:
        def __init__(self):
            self.entries = []

        def write(self, entry):
            self.entries.append(entry)

        def flush(self):
            pass

        def close(self):
            pass

    class Incomplete:
        def write(self, entry):
            pass

    writer = Collecting()
    assert isinstance(writer, LogOutputWriter)
    assert not isinstance(Incomplete(), LogOutputWriter)
    entry = LogEntry(datetime(2025, 1, 20), "m", "p", StreamType.STDOUT)
    writer.write(entry)
    assert writer.entries == [entry]