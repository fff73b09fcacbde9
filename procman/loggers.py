"""A prefixing logger that forwards to user-supplied functions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

DEBUG = 0
INFO = 1
WARN = 2
ERROR = 3

LevelFunc = Callable[..., None]
MessageFunc = Callable[..., None]


@dataclass(frozen=True)
class LogFuncs:
    """Target functions; a level-aware function takes precedence over the rest."""

    log_level: Optional[LevelFunc] = None
    debug: Optional[MessageFunc] = None
    info: Optional[MessageFunc] = None
    warn: Optional[MessageFunc] = None
    error: Optional[MessageFunc] = None


class Logger:
    """Adds a prefix to every message and dispatches it to the configured functions."""

    def __init__(self, prefix: str = "", funcs: LogFuncs | None = None) -> None:
        self.prefix = prefix
        self.funcs = funcs if funcs is not None else LogFuncs()

    def log(self, level: int, msg: str, *args: Any) -> None:
        if self.prefix:
            msg = self.prefix + msg
        if self.funcs.log_level is not None:
            self.funcs.log_level(level, msg, *args)
            return
        target = {
            DEBUG: self.funcs.debug,
            INFO: self.funcs.info,
            WARN: self.funcs.warn,
            ERROR: self.funcs.error,
        }.get(level)
        if target is not None:
            target(msg, *args)

    def debug(self, msg: str, *args: Any) -> None:
        self.log(DEBUG, msg, *args)

    def info(self, msg: str, *args: Any) -> None:
        self.log(INFO, msg, *args)

    def warn(self, msg: str, *args: Any) -> None:
        self.log(WARN, msg, *args)

    def error(self, msg: str, *args: Any) -> None:
        self.log(ERROR, msg, *args)


def null_logger() -> Logger:
    """Return a logger that discards every message."""
    return Logger("", LogFuncs())