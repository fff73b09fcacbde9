"""Collects log lines from managed process streams and writes them to outputs."""

from __future__ import annotations

import os
import sys
import threading
import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import IO, Any, Iterable, Optional, Protocol, TextIO

from procman.domain_errors import (
    ErrorCollection,
    conflict_error,
    internal_error,
    not_found_error,
    validation_error,
)
from procman.logcollection.config import (
    LogCollectionConfig,
    OutputTargetConfig,
    ProcessLogConfig,
)
from procman.logcollection.fields import (
    bool_field,
    duration_field,
    int64_field,
    int_field,
    managed_process,
    str_field,
)
from procman.logcollection.types import (
    LogEntry,
    LogMetadata,
    LogOutputWriter,
    ProcessLogStatus,
    RawLogEntry,
    StreamType,
    StructuredLogger,
    SystemLogStatus,
)

_MAX_RECORDED_ERRORS = 10
_PROCESS_ID_PLACEHOLDER = "{process_id}"


def _now() -> datetime:
    return datetime.now().astimezone()


def _rfc3339(timestamp: datetime) -> str:
    if timestamp.tzinfo is None:
        timestamp = timestamp.astimezone()
    text = timestamp.isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def _format_entry(entry: LogEntry) -> str:
    return (
        f"[{_rfc3339(entry.timestamp)}][{entry.process_id}]"
        f"[{StreamType(entry.stream).value}] {entry.message}\n"
    )


class LogOutputTarget(Protocol):
    """A destination that can produce a writer for forwarded log entries."""

    def get_type(self) -> str: ...

    def create_writer(self) -> LogOutputWriter: ...


@dataclass
class PathResolver:
    """Turns relative log path templates into absolute paths."""

    log_directory: Path = field(default_factory=lambda: Path.home() / ".procman" / "logs")
    process_log_directory: Optional[Path] = None

    def __post_init__(self) -> None:
        self.log_directory = Path(self.log_directory).absolute()
        if self.process_log_directory is None:
            self.process_log_directory = self.log_directory / "managed_processes"
        self.process_log_directory = Path(self.process_log_directory).absolute()

    def generate_log_file_path(self, template: str) -> str:
        return str(self.log_directory / template)

    def generate_process_log_file_path(self, template: str, process_id: str) -> str:
        name = template.replace(_PROCESS_ID_PLACEHOLDER, process_id)
        assert self.process_log_directory is not None
        return str(self.process_log_directory / name)


class StdoutWriter:
    """Writes log entries as plain lines to standard output."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def write(self, entry: LogEntry) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        with self._lock:
            stream.write(_format_entry(entry))

    def flush(self) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        with self._lock:
            stream.flush()

    def close(self) -> None:
        """Flush pending output; standard output itself stays open."""
        self.flush()


class FileWriter:
    """Appends log entries to a file, creating its directory on first write."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._file: IO[str] | None = None
        self._lock = threading.Lock()

    def _ensure_open(self) -> IO[str]:
        if self._file is not None:
            return self._file
        directory = os.path.dirname(self.path) or "."
        try:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise OSError(f"failed to create log directory {directory}: {exc}") from exc
        try:
            self._file = open(self.path, "a", encoding="utf-8")
        except OSError as exc:
            raise OSError(f"failed to open log file {self.path}: {exc}") from exc
        return self._file

    def write(self, entry: LogEntry) -> None:
        with self._lock:
            try:
                handle = self._ensure_open()
            except OSError as exc:
                raise OSError(f"failed to open log file: {exc}") from exc
            try:
                handle.write(_format_entry(entry))
            except OSError as exc:
                raise OSError(f"failed to write log entry: {exc}") from exc

    def flush(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.flush()

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                try:
                    self._file.flush()
                finally:
                    self._file.close()
                    self._file = None


def create_output_writer(target_config: OutputTargetConfig) -> LogOutputWriter:
    """Create the writer for a target; unknown types fall back to standard output."""
    if target_config.type == "file":
        return FileWriter(target_config.path)
    return StdoutWriter()


def _decode(raw: Any) -> str:
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, (bytes, bytearray)) else raw
    if text.endswith("\n"):
        text = text[:-1]
    if text.endswith("\r"):
        text = text[:-1]
    return text


class _ProcessCollector:
    """Collects the log streams of one managed process."""

    def __init__(
        self,
        process_id: str,
        config: ProcessLogConfig,
        logger: StructuredLogger,
        service: "LogCollectionService",
    ) -> None:
        self.process_id = process_id
        self.config = config
        self._logger = logger
        self._service = service
        self._lock = threading.Lock()
        self._active = False
        self._lines = 0
        self._bytes = 0
        self._last_activity: Optional[datetime] = None
        self._errors: list[str] = []
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    def collect_from_stream(self, stream: Iterable[Any], stream_type: StreamType) -> None:
        if not self.config.enabled:
            return
        if stream_type is StreamType.STDOUT and not self.config.capture_stdout:
            return
        if stream_type is StreamType.STDERR and not self.config.capture_stderr:
            return
        thread = threading.Thread(
            target=self._read,
            args=(stream, stream_type),
            name=f"log-{self.process_id}-{stream_type.value}",
            daemon=True,
        )
        with self._lock:
            self._active = True
            self._threads.append(thread)
        thread.start()

    def collect_from_process(self, stdout: Any, stderr: Any) -> None:
        if not self.config.enabled:
            return
        errors = ErrorCollection()
        for wanted, stream, stream_type in (
            (self.config.capture_stdout, stdout, StreamType.STDOUT),
            (self.config.capture_stderr, stderr, StreamType.STDERR),
        ):
            if not wanted or stream is None:
                continue
            try:
                self.collect_from_stream(stream, stream_type)
            except Exception as exc:
                errors.add(
                    internal_error(f"{stream_type.value} collection failed", exc).with_context(
                        "process_id", self.process_id
                    )
                )
        failure = errors.to_error()
        if failure is not None:
            raise failure

    def _read(self, stream: Iterable[Any], stream_type: StreamType) -> None:
        line_num = 0
        try:
            for raw in stream:
                if self._stop.is_set():
                    return
                line_num += 1
                metadata = LogMetadata(
                    timestamp=_now(),
                    process_id=self.process_id,
                    stream=stream_type,
                    line_num=line_num,
                )
                try:
                    self.process_log_line(_decode(raw), metadata)
                except Exception as exc:
                    self._logger.with_error(exc).warn("Failed to process log line")
                    self._record_error(f"Failed to process line {line_num}: {exc}")
        except (OSError, ValueError) as exc:
            self._logger.with_error(exc).warn("Error reading from stream")
            self._record_error(f"Stream reading error: {exc}")
        with self._lock:
            self._active = False

    def process_log_line(self, line: str, metadata: LogMetadata) -> None:
        size = len(line.encode("utf-8"))
        with self._lock:
            self._lines += 1
            self._bytes += size
            self._last_activity = _now()
        self._service._record_metrics(size)

        raw = RawLogEntry(
            process_id=metadata.process_id,
            stream=StreamType(metadata.stream),
            line=line,
            timestamp=metadata.timestamp,
        )
        entry = LogEntry(
            timestamp=raw.timestamp,
            message=raw.line,
            process_id=raw.process_id,
            stream=raw.stream,
            raw=raw.line,
        )
        self._write_to_outputs(entry)

    def _write_to_outputs(self, entry: LogEntry) -> None:
        for output in list(self._service._outputs):
            try:
                output.write(entry)
            except Exception as exc:
                self._logger.with_error(exc).warn("Failed to write to global output")
                self._record_error(f"Global output write error: {exc}")

    def _record_error(self, message: str) -> None:
        with self._lock:
            self._errors.append(f"{_rfc3339(_now())}: {message}")
            del self._errors[:-_MAX_RECORDED_ERRORS]

    def wait(self, deadline: Optional[float]) -> bool:
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            thread.join(remaining)
        return not any(thread.is_alive() for thread in threads)

    def stop(self) -> None:
        self._stop.set()
        self.wait(None)
        with self._lock:
            self._active = False

    def status(self) -> ProcessLogStatus:
        with self._lock:
            return ProcessLogStatus(
                process_id=self.process_id,
                active=self._active,
                lines_processed=self._lines,
                bytes_processed=self._bytes,
                last_activity=self._last_activity,
                errors=list(self._errors),
                config=self.config,
            )


class LogCollectionService:
    """Registers managed processes and collects their output into configured targets."""

    def __init__(
        self,
        config: LogCollectionConfig,
        logger: StructuredLogger,
        path_resolver: PathResolver | None = None,
    ) -> None:
        self._config = config
        self._logger = logger
        self._paths = path_resolver if path_resolver is not None else PathResolver()
        self._processes: dict[str, _ProcessCollector] = {}
        self._outputs: list[LogOutputWriter] = []
        self._lock = threading.RLock()
        self._running = False
        self._metrics_lock = threading.Lock()
        self._total_lines = 0
        self._total_bytes = 0
        self._start_time: Optional[datetime] = None

    def resolve_output_path(self, output_config: OutputTargetConfig) -> str:
        """Resolve a relative file target against the log directory."""
        if output_config.type != "file" or os.path.isabs(output_config.path):
            return output_config.path
        return self._paths.generate_log_file_path(output_config.path)

    def resolve_process_output_path(
        self, output_config: OutputTargetConfig, process_id: str
    ) -> str:
        """Resolve a relative per-process file target, filling in the process id."""
        if output_config.type != "file" or os.path.isabs(output_config.path):
            return output_config.path
        return self._paths.generate_process_log_file_path(output_config.path, process_id)

    def start(self) -> None:
        with self._lock:
            if self._running:
                raise validation_error("log collection service already running")
            self._start_time = _now()
            try:
                self._initialize_outputs()
            except Exception as exc:
                raise internal_error("failed to initialize outputs", exc) from exc
            self._running = True
        self._logger.with_fields(
            str_field("component", "log_collection"),
            int_field("max_managed_processes", self._config.system.max_managed_processes),
        ).info("Log collection service started")

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                raise validation_error("log collection service not running")
            self._running = False
            for process_id, collector in self._processes.items():
                try:
                    collector.stop()
                except Exception as exc:
                    self._logger.with_error(exc).warn(
                        "Error stopping process collector: %s", process_id
                    )
            for output in self._outputs:
                try:
                    output.close()
                except Exception as exc:
                    self._logger.with_error(exc).warn("Error closing output writer")
            uptime = _now() - self._start_time if self._start_time else _now() - _now()
        with self._metrics_lock:
            lines, size = self._total_lines, self._total_bytes
        self._logger.with_fields(
            duration_field("uptime", uptime),
            int64_field("total_lines", lines),
            int64_field("total_bytes", size),
        ).info("Log collection service stopped")

    def register_process(self, process_id: str, process_config: ProcessLogConfig) -> None:
        with self._lock:
            if not self._running:
                raise validation_error("log collection service not running")
            if process_id in self._processes:
                raise conflict_error("process already registered").with_context(
                    "process_id", process_id
                )
            self._processes[process_id] = _ProcessCollector(
                process_id, process_config, self._logger.with_process(process_id), self
            )
        self._logger.with_fields(
            managed_process(process_id),
            bool_field("capture_stdout", process_config.capture_stdout),
            bool_field("capture_stderr", process_config.capture_stderr),
        ).info("Managed process registered for log collection")

    def unregister_process(self, process_id: str) -> None:
        with self._lock:
            collector = self._processes.get(process_id)
            if collector is None:
                raise not_found_error("process not registered").with_context(
                    "process_id", process_id
                )
            try:
                collector.stop()
            except Exception as exc:
                self._logger.with_error(exc).warn(
                    "Error stopping process collector: %s", process_id
                )
            del self._processes[process_id]
        self._logger.with_process(process_id).info(
            "Managed process unregistered from log collection"
        )

    def collect_from_stream(
        self, process_id: str, stream: Iterable[Any], stream_type: StreamType | str
    ) -> None:
        """Read lines from the stream in the background and process each one."""
        self._get_process(process_id).collect_from_stream(stream, StreamType(stream_type))

    def collect_from_process(self, process_id: str, stdout: Any, stderr: Any) -> None:
        self._get_process(process_id).collect_from_process(stdout, stderr)

    def process_log_line(self, process_id: str, line: str, metadata: LogMetadata) -> None:
        self._get_process(process_id).process_log_line(line, metadata)

    def forward_logs(self, targets: Iterable[LogOutputTarget]) -> None:
        """Add a writer for each target so that later log lines are forwarded to it.

        Raises an internal error, adding none of the writers, if any target
        fails to produce one.
        """
        writers: list[LogOutputWriter] = []
        for target in targets:
            try:
                writers.append(target.create_writer())
            except Exception as exc:
                for writer in writers:
                    try:
                        writer.close()
                    except Exception as close_exc:
                        self._logger.with_error(close_exc).warn("Error closing output writer")
                raise internal_error("failed to create forwarding writer", exc).with_context(
                    "output_type", target.get_type()
                ) from exc
        with self._lock:
            self._outputs = [*self._outputs, *writers]

    def update_configuration(self, new_config: LogCollectionConfig) -> None:
        try:
            new_config.validate()
        except ValueError as exc:
            raise validation_error("invalid configuration", exc) from exc
        with self._lock:
            self._config = new_config
        self._logger.info("Log collection configuration updated")

    def get_configuration(self) -> LogCollectionConfig:
        with self._lock:
            return self._config

    def get_process_status(self, process_id: str) -> ProcessLogStatus:
        return self._get_process(process_id).status()

    def get_system_status(self) -> SystemLogStatus:
        with self._lock:
            statuses = {pid: c.status() for pid, c in self._processes.items()}
            targets = [type(output).__name__ for output in self._outputs]
            running = self._running
            start_time = self._start_time
        with self._metrics_lock:
            lines, size = self._total_lines, self._total_bytes
        return SystemLogStatus(
            active=running,
            processes_active=sum(1 for s in statuses.values() if s.active),
            total_processes=len(statuses),
            total_lines=lines,
            total_bytes=size,
            start_time=start_time,
            last_activity=_now(),
            managed_processes=statuses,
            output_targets=targets,
        )

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait until every stream reader has finished; return False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            collectors = list(self._processes.values())
        return all([collector.wait(deadline) for collector in collectors])

    def _get_process(self, process_id: str) -> _ProcessCollector:
        with self._lock:
            collector = self._processes.get(process_id)
        if collector is None:
            raise not_found_error("process not registered").with_context("process_id", process_id)
        return collector

    def _initialize_outputs(self) -> None:
        aggregation = self._config.global_aggregation
        if not aggregation.enabled:
            return
        outputs: list[LogOutputWriter] = []
        for target in aggregation.targets:
            resolved = target
            if target.type == "file":
                resolved = replace(target, path=self.resolve_output_path(target))
            try:
                outputs.append(create_output_writer(resolved))
            except Exception as exc:
                raise internal_error("failed to create output writer", exc).with_context(
                    "output_type", target.type
                ) from exc
        self._outputs = outputs

    def _record_metrics(self, line_length: int) -> None:
        with self._metrics_lock:
            self._total_lines += 1
            self._total_bytes += line_length