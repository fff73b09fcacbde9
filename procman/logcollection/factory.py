"""Factories for structured loggers and an adapter for plain printf-style loggers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Protocol

from procman.logcollection.fields import (
    LogField,
    error_field,
    managed_process,
    str_field,
)
from procman.logcollection.structured import AdapterConfig, StdlibAdapter
from procman.logcollection.types import LogLevel, StructuredLogger

_DEFAULT_BACKENDS = ("zap", "")
_KNOWN_BACKENDS = frozenset({"zap", "logrus", "slog"})
_VALID_FORMATS = frozenset({"json", "console"})
_CONTEXT_KEYS = ("request_id", "user_id")


@dataclass
class LoggerConfig:
    """Settings for creating a structured logger."""

    backend: str = ""
    level: LogLevel = LogLevel.DEBUG
    format: str = ""
    output: str = ""
    caller: bool = False
    stacktrace: bool = False


def _check_backend(backend: str) -> None:
    if backend in _DEFAULT_BACKENDS:
        return
    if backend in _KNOWN_BACKENDS:
        raise ValueError(f"{backend} backend is not available")
    raise ValueError(f"unknown backend type: {backend}")


def new_structured_logger(backend_type: str, level: LogLevel) -> StructuredLogger:
    """Create a logger with default settings at the given level; raise ValueError on a bad backend."""
    _check_backend(backend_type)
    return StdlibAdapter(
        AdapterConfig(level=str(level), format="json", output="stdout", caller=True, stacktrace=True)
    )


def new_structured_logger_with_config(cfg: LoggerConfig) -> StructuredLogger:
    """Create a logger from detailed settings; raise ValueError on a bad backend."""
    _check_backend(cfg.backend)
    return StdlibAdapter(
        AdapterConfig(
            level=str(cfg.level),
            format=cfg.format,
            output=cfg.output,
            caller=cfg.caller,
            stacktrace=cfg.stacktrace,
        )
    )


def default_logger_config() -> LoggerConfig:
    return LoggerConfig(
        backend="zap",
        level=LogLevel.INFO,
        format="json",
        output="stdout",
        caller=True,
        stacktrace=True,
    )


def quick_logger(level: LogLevel) -> StructuredLogger:
    """Create a development logger; raise RuntimeError if that fails."""
    try:
        return new_structured_logger("zap", level)
    except ValueError as exc:
        raise RuntimeError(f"failed to create quick logger: {exc}") from exc


def production_logger(output_path: str) -> StructuredLogger:
    """JSON at info level, without caller information."""
    return new_structured_logger_with_config(
        LoggerConfig(
            backend="zap",
            level=LogLevel.INFO,
            format="json",
            output=output_path,
            caller=False,
            stacktrace=True,
        )
    )


def development_logger() -> StructuredLogger:
    """Console output at debug level, with caller information."""
    return new_structured_logger_with_config(
        LoggerConfig(
            backend="zap",
            level=LogLevel.DEBUG,
            format="console",
            output="stdout",
            caller=True,
            stacktrace=True,
        )
    )


def validate_logger_config(cfg: LoggerConfig) -> None:
    """Raise ValueError if backend, format or output is invalid."""
    if cfg.backend not in _KNOWN_BACKENDS:
        raise ValueError(f"invalid backend: {cfg.backend}")
    if cfg.format not in _VALID_FORMATS:
        raise ValueError(f"invalid format: {cfg.format}")
    if not cfg.output:
        raise ValueError("output cannot be empty")


class SimpleLogger(Protocol):
    def debug(self, msg: str, *args: Any) -> None: ...

    def info(self, msg: str, *args: Any) -> None: ...

    def warn(self, msg: str, *args: Any) -> None: ...

    def error(self, msg: str, *args: Any) -> None: ...


def _format_fields(fields: Iterable[LogField]) -> str:
    return "[" + " ".join(str(f) for f in fields) + "]"


class SimpleLoggerWrapper:
    """Gives a printf-style logger the structured interface.

    Fields bound with the ``with_*`` methods are appended to structured
    log lines together with the fields passed at the call.
    """

    def __init__(self, logger: SimpleLogger, fields: Iterable[LogField] = ()) -> None:
        self.logger = logger
        self._fields: tuple[LogField, ...] = tuple(fields)

    def debug(self, msg: str, *args: Any) -> None:
        self.logger.debug(msg, *args)

    def info(self, msg: str, *args: Any) -> None:
        self.logger.info(msg, *args)

    def warn(self, msg: str, *args: Any) -> None:
        self.logger.warn(msg, *args)

    def error(self, msg: str, *args: Any) -> None:
        self.logger.error(msg, *args)

    def log_with_context(
        self,
        ctx: Optional[Mapping[str, Any]],
        level: LogLevel,
        msg: str,
        *args: LogField,
    ) -> None:
        """Append the fields as "[k=v ...]" and log at the given level."""
        fields = self._fields + tuple(args)
        suffix = " " + _format_fields(fields) if fields else ""
        target = {
            LogLevel.DEBUG: self.logger.debug,
            LogLevel.INFO: self.logger.info,
            LogLevel.WARN: self.logger.warn,
            LogLevel.ERROR: self.logger.error,
        }.get(level)
        if target is not None:
            target("%s%s", msg, suffix)

    def log_with_fields(self, level: LogLevel, msg: str, *args: LogField) -> None:
        self.log_with_context(None, level, msg, *args)

    def with_fields(self, *args: LogField) -> StructuredLogger:
        """Return a wrapper that adds these fields to every structured line."""
        return SimpleLoggerWrapper(self.logger, self._fields + tuple(args))

    def with_error(self, err: BaseException) -> StructuredLogger:
        return self.with_fields(error_field(err, "error"))

    def with_process(self, process_id: str) -> StructuredLogger:
        return self.with_fields(managed_process(process_id))

    def with_context(self, ctx: Optional[Mapping[str, Any]]) -> StructuredLogger:
        """Bind string request_id and user_id values found in the context."""
        if not ctx:
            return self
        fields = [
            str_field(key, ctx[key])
            for key in _CONTEXT_KEYS
            if isinstance(ctx.get(key), str)
        ]
        if not fields:
            return self
        return self.with_fields(*fields)


def wrap_existing_logger(simple_logger: SimpleLogger) -> StructuredLogger:
    return SimpleLoggerWrapper(simple_logger)