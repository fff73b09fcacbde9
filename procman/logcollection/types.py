"""Core log collection types: levels, streams, entries, status and interfaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Protocol, runtime_checkable

from procman.logcollection.config import ProcessLogConfig

if TYPE_CHECKING:
    from procman.logcollection.fields import LogField


class LogLevel(IntEnum):
    """Logging levels in increasing severity."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3

    def __str__(self) -> str:
        return self.name.lower()


class StreamType(str, Enum):
    """The standard stream a log line came from."""

    STDOUT = "stdout"
    STDERR = "stderr"

    def __str__(self) -> str:
        return self.value


@runtime_checkable
class StructuredLogger(Protocol):
    """Printf-style and structured logging with chainable context."""

    def debug(self, msg: str, *args: Any) -> None: ...

    def info(self, msg: str, *args: Any) -> None: ...

    def warn(self, msg: str, *args: Any) -> None: ...

    def error(self, msg: str, *args: Any) -> None: ...

    def log_with_context(
        self,
        ctx: Optional[Mapping[str, Any]],
        level: LogLevel,
        msg: str,
        *fields: "LogField",
    ) -> None: ...

    def log_with_fields(self, level: LogLevel, msg: str, *fields: "LogField") -> None: ...

    def with_fields(self, *fields: "LogField") -> "StructuredLogger": ...

    def with_error(self, err: BaseException) -> "StructuredLogger": ...

    def with_process(self, process_id: str) -> "StructuredLogger": ...

    def with_context(self, ctx: Optional[Mapping[str, Any]]) -> "StructuredLogger": ...


@runtime_checkable
class LogOutputWriter(Protocol):
    """A destination that log entries are written to."""

    def write(self, entry: "LogEntry") -> None: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


@dataclass
class LogEntry:
    """A processed log entry ready for output."""

    timestamp: datetime
    message: str
    process_id: str
    stream: StreamType
    raw: str = ""
    level: str = ""
    fields: dict[str, Any] = field(default_factory=dict)
    enhanced: dict[str, Any] = field(default_factory=dict)


@dataclass
class LogMetadata:
    """Context about where and when a log line was read."""

    timestamp: datetime
    process_id: str
    stream: StreamType
    line_num: int = 0


@dataclass
class RawLogEntry:
    """An unprocessed log line from a process."""

    process_id: str
    stream: StreamType
    line: str
    timestamp: datetime


@dataclass
class StructuredLogEntry:
    """Structured content parsed out of a log line."""

    timestamp: datetime
    level: str = ""
    message: str = ""
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class EnhancedLogEntry:
    """A raw entry, its parsed form if any, and added metadata."""

    raw: RawLogEntry
    structured: Optional[StructuredLogEntry] = None
    enhanced: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProcessLogStatus:
    """Log collection status of one managed process."""

    process_id: str
    active: bool = False
    lines_processed: int = 0
    bytes_processed: int = 0
    last_activity: Optional[datetime] = None
    errors: list[str] = field(default_factory=list)
    config: ProcessLogConfig = field(default_factory=ProcessLogConfig)


@dataclass
class SystemLogStatus:
    """Overall status of the log collection system."""

    active: bool = False
    processes_active: int = 0
    total_processes: int = 0
    total_lines: int = 0
    total_bytes: int = 0
    start_time: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    managed_processes: dict[str, ProcessLogStatus] = field(default_factory=dict)
    output_targets: list[str] = field(default_factory=list)