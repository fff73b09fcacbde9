"""Configuration for log collection: outputs, processing, buffering and system limits."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any

_VALID_TARGET_TYPES = frozenset(
    {"file", "stdout", "stderr", "syslog", "elasticsearch", "process_manager_stdout"}
)


class AggregationMode(str, Enum):
    """How logs are aggregated."""

    DISABLED = "disabled"
    SEPARATE = "separate"
    AGGREGATE = "aggregate"
    BOTH = "both"


@dataclass
class RotationConfig:
    """Log rotation settings."""

    max_size: str = ""
    max_files: int = 0
    max_age: timedelta = field(default_factory=timedelta)


@dataclass
class AuthenticationConfig:
    """Authentication for external log targets."""

    type: str = ""
    username: str = ""
    password: str = ""
    token: str = ""
    cert_file: str = ""
    key_file: str = ""


@dataclass
class OutputTargetConfig:
    """A single log output destination."""

    type: str = ""
    path: str = ""
    format: str = ""
    prefix: str = ""
    rotation: RotationConfig = field(default_factory=RotationConfig)
    authentication: AuthenticationConfig = field(default_factory=AuthenticationConfig)
    config: dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        """Raise ValueError if the target is not usable."""
        if not self.type:
            raise ValueError("output target type cannot be empty")
        if self.type not in _VALID_TARGET_TYPES:
            raise ValueError(f"invalid output target type: {self.type}")
        if self.type == "file" and not self.path:
            raise ValueError("file output target must have path specified")


@dataclass
class SeparateOutputConfig:
    """Per-stream outputs."""

    stdout: list[OutputTargetConfig] = field(default_factory=list)
    stderr: list[OutputTargetConfig] = field(default_factory=list)


@dataclass
class OutputConfig:
    """Where the logs of one process are sent."""

    separate: SeparateOutputConfig = field(default_factory=SeparateOutputConfig)
    forwarding: list[OutputTargetConfig] = field(default_factory=list)


@dataclass
class BufferingConfig:
    """Log buffering behaviour."""

    size: str = ""
    flush_interval: timedelta = field(default_factory=timedelta)
    max_lines: int = 0


@dataclass
class FilterConfig:
    """Log filtering rules."""

    exclude_patterns: list[str] = field(default_factory=list)
    include_patterns: list[str] = field(default_factory=list)
    level_filter: str = ""


@dataclass
class ParserConfig:
    """A log parser and its settings."""

    type: str = ""
    config: dict[str, Any] = field(default_factory=dict)
    enabled: bool = False


@dataclass
class ProcessingConfig:
    """How log lines are processed."""

    parse_structured: bool = False
    add_metadata: bool = False
    filters: FilterConfig = field(default_factory=FilterConfig)
    parsers: list[ParserConfig] = field(default_factory=list)


@dataclass
class ProcessLogConfig:
    """Log collection settings for one managed process."""

    enabled: bool = False
    capture_stdout: bool = False
    capture_stderr: bool = False
    buffering: BufferingConfig = field(default_factory=BufferingConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    outputs: OutputConfig = field(default_factory=OutputConfig)

    def validate(self) -> None:
        """Raise ValueError if the settings are inconsistent."""
        if not self.enabled:
            return
        if not self.capture_stdout and not self.capture_stderr:
            raise ValueError(
                "at least one of capture_stdout or capture_stderr must be enabled"
            )
        targets = [
            *self.outputs.separate.stdout,
            *self.outputs.separate.stderr,
            *self.outputs.forwarding,
        ]
        for index, target in enumerate(targets):
            try:
                target.validate()
            except ValueError as exc:
                raise ValueError(f"output target {index}: {exc}") from exc


@dataclass
class GlobalAggregationConfig:
    """System-wide log aggregation."""

    enabled: bool = False
    targets: list[OutputTargetConfig] = field(default_factory=list)


@dataclass
class MetadataConfig:
    """Metadata added to every log entry."""

    add_process_manager_id: bool = False
    add_hostname: bool = False
    add_timestamp: bool = False
    add_sequence: bool = False
    add_line_number: bool = False


@dataclass
class EnricherConfig:
    """A log enrichment rule."""

    type: str = ""
    config: dict[str, Any] = field(default_factory=dict)
    enabled: bool = False


@dataclass
class EnhancementConfig:
    """Log enhancement settings."""

    enabled: bool = False
    parsers: list[ParserConfig] = field(default_factory=list)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    enrichers: list[EnricherConfig] = field(default_factory=list)


@dataclass
class MetricsConfig:
    """Metrics collection for the log system."""

    enabled: bool = False
    interval: timedelta = field(default_factory=timedelta)
    targets: list[str] = field(default_factory=list)


@dataclass
class SystemConfig:
    """System-level log collection settings."""

    process_directory: str = ""
    buffer_size: str = ""
    flush_interval: timedelta = field(default_factory=timedelta)
    max_managed_processes: int = 0
    metrics: MetricsConfig = field(default_factory=MetricsConfig)

    def validate(self) -> None:
        """Raise ValueError if a limit is negative."""
        if self.max_managed_processes < 0:
            raise ValueError("max_managed_processes cannot be negative")
        if self.flush_interval < timedelta(0):
            raise ValueError("flush_interval cannot be negative")


@dataclass
class LoggerBackendConfig:
    """The underlying logging backend."""

    backend: str = ""
    level: str = ""
    format: str = ""
    output: str = ""


@dataclass
class LogCollectionConfig:
    """Configuration of the whole log collection system."""

    enabled: bool = False
    global_aggregation: GlobalAggregationConfig = field(
        default_factory=GlobalAggregationConfig
    )
    enhancement: EnhancementConfig = field(default_factory=EnhancementConfig)
    default: ProcessLogConfig = field(default_factory=ProcessLogConfig)
    system: SystemConfig = field(default_factory=SystemConfig)

    def validate(self) -> None:
        """Raise ValueError if the configuration is invalid; disabled configs always pass."""
        if not self.enabled:
            return

        if self.global_aggregation.enabled:
            if not self.global_aggregation.targets:
                raise ValueError("global aggregation enabled but no targets configured")
            for index, target in enumerate(self.global_aggregation.targets):
                try:
                    target.validate()
                except ValueError as exc:
                    raise ValueError(f"global aggregation target {index}: {exc}") from exc

        try:
            self.default.validate()
        except ValueError as exc:
            raise ValueError(f"default process config: {exc}") from exc

        try:
            self.system.validate()
        except ValueError as exc:
            raise ValueError(f"system config: {exc}") from exc


def _default_stream_target(path: str) -> OutputTargetConfig:
    return OutputTargetConfig(
        type="file",
        path=path,
        format="enhanced_plain",
        rotation=RotationConfig(
            max_size="100MB",
            max_files=10,
            max_age=timedelta(days=7),
        ),
    )


def default_process_log_config() -> ProcessLogConfig:
    """Return the default settings for a managed process."""
    return ProcessLogConfig(
        enabled=True,
        capture_stdout=True,
        capture_stderr=True,
        buffering=BufferingConfig(
            size="512KB",
            flush_interval=timedelta(seconds=5),
            max_lines=1000,
        ),
        processing=ProcessingConfig(
            parse_structured=True,
            add_metadata=True,
            filters=FilterConfig(level_filter="debug"),
        ),
        outputs=OutputConfig(
            separate=SeparateOutputConfig(
                stdout=[_default_stream_target("{process_id}-stdout.log")],
                stderr=[_default_stream_target("{process_id}-stderr.log")],
            ),
        ),
    )


def default_log_collection_config() -> LogCollectionConfig:
    """Return the default log collection configuration; paths are relative templates."""
    return LogCollectionConfig(
        enabled=True,
        global_aggregation=GlobalAggregationConfig(
            enabled=True,
            targets=[
                OutputTargetConfig(
                    type="file",
                    path="aggregated.log",
                    format="enhanced_plain",
                )
            ],
        ),
        enhancement=EnhancementConfig(
            enabled=True,
            metadata=MetadataConfig(
                add_process_manager_id=True,
                add_hostname=True,
                add_timestamp=True,
                add_sequence=True,
                add_line_number=True,
            ),
        ),
        default=default_process_log_config(),
        system=SystemConfig(
            process_directory="managed_processes",
            buffer_size="1MB",
            flush_interval=timedelta(seconds=5),
            max_managed_processes=100,
            metrics=MetricsConfig(enabled=True, interval=timedelta(seconds=30)),
        ),
    )