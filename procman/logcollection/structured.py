"""A structured logger built on the standard logging module."""

from __future__ import annotations

import copy
import itertools
import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping, Optional, TextIO

from procman.logcollection.fields import (
    FieldType,
    LogField,
    error_field,
    managed_process,
    object_field,
    str_field,
)
from procman.logcollection.types import LogLevel, StructuredLogger

_LEVEL_NUMBERS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "dpanic": logging.ERROR + 1,
    "panic": logging.ERROR + 2,
    "fatal": logging.CRITICAL,
}
_LEVEL_NAMES = {number: name for name, number in _LEVEL_NUMBERS.items()}

_LOG_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}

_CONTEXT_KEYS = ("request_id", "user_id")
_logger_ids = itertools.count()


@dataclass
class AdapterConfig:
    """Settings of a structured logger."""

    level: str = "info"
    format: str = "json"
    output: str = "stdout"
    caller: bool = True
    stacktrace: bool = True


def default_adapter_config() -> AdapterConfig:
    """Return the default settings: info level, JSON to stdout, caller and stacktraces."""
    return AdapterConfig(
        level="info",
        format="json",
        output="stdout",
        caller=True,
        stacktrace=True,
    )


def parse_level(level_str: str) -> int:
    """Map a level name to a standard logging level number; raise ValueError if unknown."""
    try:
        return _LEVEL_NUMBERS[level_str]
    except KeyError:
        raise ValueError(f"invalid log level: {level_str}") from None


def _sprintf(msg: str, args: tuple[Any, ...]) -> str:
    return msg % args if args else msg


def _encode_field(field: LogField) -> tuple[str, Any]:
    value = field.value
    if field.type is FieldType.ERROR:
        if isinstance(value, BaseException):
            return "error", str(value)
        return field.key, "invalid error field"
    if field.type is FieldType.DURATION and isinstance(value, timedelta):
        return field.key, value.total_seconds()
    if field.type is FieldType.TIME and isinstance(value, datetime):
        return field.key, value.isoformat()
    return field.key, value


def _encode_fields(fields: Iterable[LogField]) -> dict[str, Any]:
    return dict(_encode_field(f) for f in fields)


class _Formatter(logging.Formatter):
    def __init__(self, config: AdapterConfig) -> None:
        super().__init__()
        self._config = config

    def format(self, record: logging.LogRecord) -> str:
        level = _LEVEL_NAMES.get(record.levelno, record.levelname.lower())
        stamp = (
            datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="seconds")
        )
        caller = f"{record.filename}:{record.lineno}" if self._config.caller else None
        fields: dict[str, Any] = getattr(record, "procman_fields", {})
        message = record.getMessage()
        stack = record.stack_info

        if self._config.format == "console":
            parts = [stamp, level]
            if caller:
                parts.append(caller)
            parts.append(message)
            if fields:
                parts.append(json.dumps(fields, default=str))
            text = "\t".join(parts)
            if stack:
                text += "\n" + stack
            return text

        document: dict[str, Any] = {"level": level, "timestamp": stamp}
        if caller:
            document["caller"] = caller
        document["msg"] = message
        document.update(fields)
        if stack:
            document["stacktrace"] = stack
        return json.dumps(document, default=str)


def _resolve_stream(output: str) -> TextIO:
    if output == "stderr":
        return sys.stderr
    # stdout, empty, and file paths all go to standard output
    return sys.stdout


class StdlibAdapter:
    """Structured logger with printf-style methods, typed fields and bound context."""

    def __init__(self, config: AdapterConfig | None = None, stream: TextIO | None = None) -> None:
        self._config = config if config is not None else default_adapter_config()
        try:
            level = parse_level(self._config.level)
        except ValueError:
            level = logging.INFO
        handler = logging.StreamHandler(
            stream if stream is not None else _resolve_stream(self._config.output)
        )
        handler.setFormatter(_Formatter(self._config))
        logger = logging.Logger(f"procman.structured.{next(_logger_ids)}")
        logger.propagate = False
        logger.addHandler(handler)
        logger.setLevel(level)
        self._logger = logger
        self._bound: dict[str, Any] = {}

    def _emit(self, level: int, msg: str, fields: Iterable[LogField]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        encoded = dict(self._bound)
        encoded.update(_encode_fields(fields))
        self._logger.log(
            level,
            msg,
            extra={"procman_fields": encoded},
            stack_info=self._config.stacktrace and level >= logging.ERROR,
            stacklevel=3,
        )

    def debug(self, msg: str, *args: Any) -> None:
        self._emit(logging.DEBUG, _sprintf(msg, args), ())

    def info(self, msg: str, *args: Any) -> None:
        self._emit(logging.INFO, _sprintf(msg, args), ())

    def warn(self, msg: str, *args: Any) -> None:
        self._emit(logging.WARNING, _sprintf(msg, args), ())

    def error(self, msg: str, *args: Any) -> None:
        self._emit(logging.ERROR, _sprintf(msg, args), ())

    def log_with_context(
        self,
        ctx: Optional[Mapping[str, Any]],
        level: LogLevel,
        msg: str,
        *args: LogField,
    ) -> None:
        """Log with fields plus request_id and user_id taken from the context."""
        fields = list(args)
        if ctx is not None:
            fields.extend(
                object_field(key, ctx[key]) for key in _CONTEXT_KEYS if ctx.get(key) is not None
            )
        self._emit(_LOG_LEVELS.get(level, logging.INFO), msg, fields)

    def log_with_fields(self, level: LogLevel, msg: str, *args: LogField) -> None:
        self._emit(_LOG_LEVELS.get(level, logging.INFO), msg, args)

    def with_fields(self, *args: LogField) -> StructuredLogger:
        """Return a logger that adds these fields to every entry."""
        derived = copy.copy(self)
        derived._bound = {**self._bound, **_encode_fields(args)}
        return derived

    def with_error(self, err: BaseException) -> StructuredLogger:
        return self.with_fields(error_field(err))

    def with_process(self, process_id: str) -> StructuredLogger:
        return self.with_fields(managed_process(process_id))

    def with_context(self, ctx: Optional[Mapping[str, Any]]) -> StructuredLogger:
        """Bind string request_id and user_id values from the context, if any."""
        if ctx is None:
            return self
        fields = [
            str_field(key, ctx[key]) for key in _CONTEXT_KEYS if isinstance(ctx.get(key), str)
        ]
        if not fields:
            return self
        return self.with_fields(*fields)

    def log_with_level(self, level: LogLevel, msg: str, fields: Iterable[LogField]) -> None:
        self._emit(_LOG_LEVELS.get(level, logging.INFO), msg, fields)

    def set_level(self, level: LogLevel) -> None:
        """Change the minimum level of this logger and every logger derived from it."""
        self._logger.setLevel(_LOG_LEVELS.get(level, logging.INFO))

    def sync(self) -> None:
        """Flush buffered output."""
        for handler in self._logger.handlers:
            handler.flush()