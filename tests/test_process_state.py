from datetime import datetime

import pytest

from procman.process_state import ErrorCategory, ProcessDiagnostics, ProcessError, ProcessState


@pytest.mark.parametrize(
    "value, member",
    [
        ("idle", ProcessState.IDLE),
        ("starting", ProcessState.STARTING),
        ("running", ProcessState.RUNNING),
        ("stopping", ProcessState.STOPPING),
        ("terminating", ProcessState.TERMINATING),
        ("failed_start", ProcessState.FAILED_START),
    ],
)
def test_state_round_trip(value, member):
    assert ProcessState(value) is member
    assert member.value == value


def test_unknown_state_rejected():
    with pytest.raises(ValueError):
        ProcessState("unknown")


def test_error_category_values():
    assert ErrorCategory("executable_not_found") is ErrorCategory.EXECUTABLE_NOT_FOUND
    assert ErrorCategory.PROCESS_CRASH.value == "process_crash"


def test_process_error_timestamp_and_defaults():
    before = datetime.now()
    cause = OSError("no such file")
    err = ProcessError(ErrorCategory.EXECUTABLE_NOT_FOUND, "missing binary", cause)
    after = datetime.now()
    assert before <= err.timestamp <= after
    assert err.underlying is cause
    assert err.recoverable is False


def test_diagnostics_hold_error():
    err = ProcessError(ErrorCategory.TIMEOUT, "slow start", recoverable=True)
    diag = ProcessDiagnostics(ProcessState.FAILED_START, last_error=err, failure_count=2)
    assert diag.state is ProcessState.FAILED_START
    assert diag.last_error.recoverable is True
    assert diag.failure_count == 2
    assert diag.start_time is None
    assert diag.process_id == 0