"""Typed domain errors and aggregation of several errors into one."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Iterator


class ErrorType(str, Enum):
    """Category of a domain error."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PROCESS = "process"
    DISCOVERY = "discovery"
    HEALTH_CHECK = "health_check"
    TIMEOUT = "timeout"
    PERMISSION = "permission"
    IO = "io"
    NETWORK = "network"
    INTERNAL = "internal"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


def _format_context(context: dict[str, Any]) -> str:
    items = sorted(context.items(), key=lambda item: str(item[0]))
    return "map[" + " ".join(f"{key}:{value}" for key, value in items) + "]"


class DomainError(Exception):
    """An error with a category, a message, an optional cause and context."""

    def __init__(
        self,
        error_type: ErrorType | str,
        message: str,
        cause: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.type = ErrorType(error_type)
        self.message = message
        self.cause = cause
        self.context: dict[str, Any] = dict(context) if context else {}
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        context = _format_context(self.context)
        if self.cause is not None:
            return f"{self.type.value}: {self.message}: {self.cause}: {context}"
        return f"{self.type.value}: {self.message}: {context}"

    def __repr__(self) -> str:
        return f"DomainError({self.type.value!r}, {self.message!r})"

    def with_context(self, key: str, value: Any) -> "DomainError":
        """Attach a context value and return the same error."""
        self.context[key] = value
        return self


def validation_error(message: str, cause: BaseException | None = None) -> DomainError:
    return DomainError(ErrorType.VALIDATION, message, cause)


def not_found_error(message: str, cause: BaseException | None = None) -> DomainError:
    return DomainError(ErrorType.NOT_FOUND, message, cause)


def conflict_error(message: str, cause: BaseException | None = None) -> DomainError:
    return DomainError(ErrorType.CONFLICT, message, cause)


def process_error(message: str, cause: BaseException | None = None) -> DomainError:
    return DomainError(ErrorType.PROCESS, message, cause)


def discovery_error(message: str, cause: BaseException | None = None) -> DomainError:
    return DomainError(ErrorType.DISCOVERY, message, cause)


def health_check_error(message: str, cause: BaseException | None = None) -> DomainError:
    return DomainError(ErrorType.HEALTH_CHECK, message, cause)


def timeout_error(message: str, cause: BaseException | None = None) -> DomainError:
    return DomainError(ErrorType.TIMEOUT, message, cause)


def permission_error(message: str, cause: BaseException | None = None) -> DomainError:
    return DomainError(ErrorType.PERMISSION, message, cause)


def io_error(message: str, cause: BaseException | None = None) -> DomainError:
    return DomainError(ErrorType.IO, message, cause)


def network_error(message: str, cause: BaseException | None = None) -> DomainError:
    return DomainError(ErrorType.NETWORK, message, cause)


def internal_error(message: str, cause: BaseException | None = None) -> DomainError:
    return DomainError(ErrorType.INTERNAL, message, cause)


def cancelled_error(message: str, cause: BaseException | None = None) -> DomainError:
    return DomainError(ErrorType.CANCELLED, message, cause)


def _chain(err: BaseException | None) -> Iterator[BaseException]:
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        err = err.cause if isinstance(err, DomainError) else err.__cause__


def is_error_type(err: BaseException | None, error_type: ErrorType | str) -> bool:
    """Tell whether the first domain error in the cause chain has the given type."""
    wanted = ErrorType(error_type)
    first = next((e for e in _chain(err) if isinstance(e, DomainError)), None)
    return first is not None and first.type is wanted


def is_validation_error(err: BaseException | None) -> bool:
    return is_error_type(err, ErrorType.VALIDATION)


def is_not_found_error(err: BaseException | None) -> bool:
    return is_error_type(err, ErrorType.NOT_FOUND)


def is_conflict_error(err: BaseException | None) -> bool:
    return is_error_type(err, ErrorType.CONFLICT)


def is_process_error(err: BaseException | None) -> bool:
    return is_error_type(err, ErrorType.PROCESS)


def is_discovery_error(err: BaseException | None) -> bool:
    return is_error_type(err, ErrorType.DISCOVERY)


def is_health_check_error(err: BaseException | None) -> bool:
    return is_error_type(err, ErrorType.HEALTH_CHECK)


def is_timeout_error(err: BaseException | None) -> bool:
    return is_error_type(err, ErrorType.TIMEOUT)


def is_permission_error(err: BaseException | None) -> bool:
    return is_error_type(err, ErrorType.PERMISSION)


def is_io_error(err: BaseException | None) -> bool:
    return is_error_type(err, ErrorType.IO)


def is_network_error(err: BaseException | None) -> bool:
    return is_error_type(err, ErrorType.NETWORK)


def is_internal_error(err: BaseException | None) -> bool:
    return is_error_type(err, ErrorType.INTERNAL)


def is_cancelled_error(err: BaseException | None) -> bool:
    return is_error_type(err, ErrorType.CANCELLED)


class ErrorCollection(Exception):
    """Collects errors from a bulk operation."""

    def __init__(self, errors: Iterable[BaseException] | None = None) -> None:
        super().__init__()
        self.errors: list[BaseException] = [e for e in (errors or ()) if e is not None]

    def __str__(self) -> str:
        if not self.errors:
            return "no errors"
        if len(self.errors) == 1:
            return str(self.errors[0])
        return f"{len(self.errors)} errors occurred: {self.errors[0]}"

    def add(self, err: BaseException | None) -> None:
        """Record an error; None is ignored."""
        if err is not None:
            self.errors.append(err)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_error(self) -> "ErrorCollection | None":
        """Return the collection itself if it holds errors, otherwise None."""
        return self if self.has_errors() else None