"""Structured log fields that do not depend on any logging backend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Any, Iterable, Mapping

from procman.logcollection.types import StreamType


class FieldType(IntEnum):
    """How a field value should be treated by a backend."""

    STRING = 0
    INT = 1
    INT64 = 2
    FLOAT64 = 3
    BOOL = 4
    DURATION = 5
    TIME = 6
    ERROR = 7
    OBJECT = 8
    ARRAY = 9

    def __str__(self) -> str:
        return _FIELD_TYPE_NAMES[self]


_FIELD_TYPE_NAMES = {
    FieldType.STRING: "string",
    FieldType.INT: "int",
    FieldType.INT64: "int64",
    FieldType.FLOAT64: "float64",
    FieldType.BOOL: "bool",
    FieldType.DURATION: "duration",
    FieldType.TIME: "time",
    FieldType.ERROR: "error",
    FieldType.OBJECT: "object",
    FieldType.ARRAY: "array",
}

_REQUIRED_VALUE_TYPES: dict[FieldType, tuple[type, str]] = {
    FieldType.ERROR: (BaseException, "error"),
    FieldType.TIME: (datetime, "datetime"),
    FieldType.DURATION: (timedelta, "timedelta"),
}


def _format_value(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class LogField:
    """A key, a value and the kind of value it holds."""

    key: str
    value: Any
    type: FieldType = FieldType.OBJECT

    def validate(self) -> None:
        """Raise ValueError if the key is empty or the value does not match the type."""
        if not self.key:
            raise ValueError("field key cannot be empty")
        if self.value is None:
            raise ValueError(f'field value cannot be nil for key "{self.key}"')
        required = _REQUIRED_VALUE_TYPES.get(self.type)
        if required is not None:
            expected, name = required
            if not isinstance(self.value, expected):
                raise ValueError(
                    f'{self.type} field "{self.key}" must have {name} value, '
                    f"got {type(self.value).__name__}"
                )

    def __str__(self) -> str:
        return f"{self.key}={_format_value(self.value)}"


def str_field(key: str, value: str) -> LogField:
    return LogField(key, value, FieldType.STRING)


def int_field(key: str, value: int) -> LogField:
    return LogField(key, value, FieldType.INT)


def int64_field(key: str, value: int) -> LogField:
    return LogField(key, value, FieldType.INT64)


def float_field(key: str, value: float) -> LogField:
    return LogField(key, value, FieldType.FLOAT64)


def bool_field(key: str, value: bool) -> LogField:
    return LogField(key, value, FieldType.BOOL)


def duration_field(key: str, value: timedelta) -> LogField:
    return LogField(key, value, FieldType.DURATION)


def time_field(key: str, value: datetime) -> LogField:
    return LogField(key, value, FieldType.TIME)


def error_field(err: BaseException, key: str = "error") -> LogField:
    """An error field; the key is "error" unless another is given."""
    return LogField(key, err, FieldType.ERROR)


def object_field(key: str, value: Any) -> LogField:
    return LogField(key, value, FieldType.OBJECT)


def array_field(key: str, value: Any) -> LogField:
    return LogField(key, value, FieldType.ARRAY)


def managed_process(process_id: str) -> LogField:
    return str_field("process_id", process_id)


def stream(stream_type: StreamType | str) -> LogField:
    return str_field("stream", StreamType(stream_type).value)


def component(name: str) -> LogField:
    return str_field("component", name)


def operation(name: str) -> LogField:
    return str_field("operation", name)


def request_id(value: str) -> LogField:
    return str_field("request_id", value)


def pid(value: int) -> LogField:
    return int_field("pid", value)


def to_map(fields: Iterable[LogField]) -> dict[str, Any]:
    """Map each key to its value; later fields win on duplicate keys."""
    return {f.key: f.value for f in fields}


def _infer_field(key: str, value: Any) -> LogField:
    if isinstance(value, str):
        return str_field(key, value)
    if isinstance(value, bool):
        return bool_field(key, value)
    if isinstance(value, int):
        return int_field(key, value)
    if isinstance(value, float):
        return float_field(key, value)
    if isinstance(value, timedelta):
        return duration_field(key, value)
    if isinstance(value, datetime):
        return time_field(key, value)
    if isinstance(value, BaseException):
        return error_field(value, key)
    return object_field(key, value)


def from_map(mapping: Mapping[str, Any]) -> list[LogField]:
    """Build fields from a mapping, inferring each field type from its value."""
    return [_infer_field(key, value) for key, value in mapping.items()]


class Fields(list):
    """A list of fields with chainable adders."""

    def add(self, field: LogField) -> "Fields":
        self.append(field)
        return self

    def add_string(self, key: str, value: str) -> "Fields":
        return self.add(str_field(key, value))

    def add_int(self, key: str, value: int) -> "Fields":
        return self.add(int_field(key, value))

    def add_error(self, err: BaseException) -> "Fields":
        return self.add(error_field(err))

    def add_managed_process(self, process_id: str) -> "Fields":
        return self.add(managed_process(process_id))

    def to_list(self) -> list[LogField]:
        return list(self)