"""A printf-style logger that writes timestamped lines to a stream."""

from __future__ import annotations

import sys
from datetime import datetime
from typing import Any, Iterable, TextIO


class StdSprintfLogger:
    """Formats messages with %-style arguments and a key/value prefix."""

    def __init__(self, parts: Iterable[str] = (), stream: TextIO | None = None) -> None:
        self.parts: tuple[str, ...] = tuple(parts)
        self.prefix = ", ".join(self.parts)
        self._stream = stream

    def level(self) -> str:
        return "debug"

    def format(self, msg: str, *args: Any) -> str:
        """Return the message as it would be written, without timestamp."""
        text = msg % args if args else msg
        if self.prefix:
            text = f"{self.prefix} , {text}"
        return text

    def _emit(self, msg: str, *args: Any) -> None:
        text = self.format(msg, *args)
        if not text.endswith("\n"):
            text += "\n"
        stamp = datetime.now().strftime("%Y/%m/%d %H:%M:%S")
        stream = self._stream if self._stream is not None else sys.stderr
        stream.write(f"{stamp} {text}")

    def debug(self, msg: str, *args: Any) -> None:
        self._emit(msg, *args)

    def info(self, msg: str, *args: Any) -> None:
        self._emit(msg, *args)

    def warn(self, msg: str, *args: Any) -> None:
        self._emit(msg, *args)

    def error(self, msg: str, *args: Any) -> None:
        self._emit(msg, *args)

    def with_(self, *args: Any) -> "StdSprintfLogger":
        """Return a logger whose prefix also holds the given key/value pairs."""
        parts = list(self.parts)
        values = iter(args)
        for key in values:
            value = next(values, "(nil)")
            parts.append(f"{key}: {value}")
        return StdSprintfLogger(parts, self._stream)