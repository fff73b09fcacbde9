"""Lifecycle states, categorised errors and diagnostics for process control."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ProcessState(str, Enum):
    """Current lifecycle state of a controlled process."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    TERMINATING = "terminating"
    FAILED_START = "failed_start"


class ErrorCategory(str, Enum):
    """Category of a process control error."""

    EXECUTABLE_NOT_FOUND = "executable_not_found"
    PERMISSION_DENIED = "permission_denied"
    RESOURCE_LIMIT = "resource_limit"
    NETWORK_ISSUE = "network_issue"
    TIMEOUT = "timeout"
    PROCESS_CRASH = "process_crash"
    UNKNOWN = "unknown"


@dataclass
class ProcessError:
    """A categorised record of a process control failure."""

    category: ErrorCategory
    details: str
    underlying: Optional[BaseException] = None
    timestamp: datetime = field(default_factory=datetime.now)
    recoverable: bool = False


@dataclass
class ProcessDiagnostics:
    """Detailed status information about a controlled process."""

    state: ProcessState
    last_error: Optional[ProcessError] = None
    process_id: int = 0
    start_time: Optional[datetime] = None
    executable_path: str = ""
    executable_exists: bool = False
    failure_count: int = 0
    last_attempt_time: Optional[datetime] = None