from dataclasses import replace
from datetime import timedelta

import pytest

from procman.restart import (
    ContextAwareRestartConfig,
    RestartConfig,
    RestartContext,
    RestartPolicy,
    RestartTriggerType,
    validate_context_aware_restart_config,
    validate_restart_config,
)


def _good():
    return RestartConfig(max_retries=3, retry_delay=timedelta(seconds=10), backoff_rate=2.0)


def test_policy_values_round_trip():
    assert RestartPolicy("on-failure") is RestartPolicy.ON_FAILURE
    assert RestartPolicy.UNLESS_STOPPED.value == "unless-stopped"
    assert RestartTriggerType("resource_violation") is RestartTriggerType.RESOURCE_VIOLATION


def test_restart_context_defaults():
    ctx = RestartContext(RestartTriggerType.MANUAL, message="by operator")
    assert ctx.trigger_type is RestartTriggerType.MANUAL
    assert ctx.severity == ""
    assert ctx.message == "by operator"


def test_negative_max_retries():
    validate_restart_config(_good())
    with pytest.raises(ValueError, match="max_retries cannot be negative: -1"):
        validate_restart_config(replace(_good(), max_retries=-1))


def test_negative_retry_delay():
    with pytest.raises(ValueError, match="retry_delay cannot be negative"):
        validate_restart_config(replace(_good(), retry_delay=timedelta(seconds=-1)))


@pytest.mark.parametrize("rate", [0.0, -1.5])
def test_backoff_must_be_positive(rate):
    with pytest.raises(ValueError, match="backoff_rate must be positive"):
        validate_restart_config(replace(_good(), backoff_rate=rate))


def test_zero_value_default_is_invalid():
    with pytest.raises(ValueError, match="invalid default restart config"):
        validate_context_aware_restart_config(ContextAwareRestartConfig())


def test_overrides_are_checked():
    good = ContextAwareRestartConfig(default=_good(), health_failures=_good())
    validate_context_aware_restart_config(good)
    with pytest.raises(ValueError, match="invalid health_failures restart config"):
        validate_context_aware_restart_config(
            replace(good, health_failures=replace(_good(), max_retries=-2))
        )
    with pytest.raises(ValueError, match="invalid resource_violations restart config"):
        validate_context_aware_restart_config(
            replace(good, resource_violations=replace(_good(), backoff_rate=0.0))
        )


@pytest.mark.parametrize(
    "name", ["startup_grace_period", "sustained_violation_time", "spike_tolerance_time"]
)
def test_negative_durations(name):
    cfg = replace(ContextAwareRestartConfig(default=_good()), **{name: timedelta(seconds=-5)})
    with pytest.raises(ValueError, match=f"{name} cannot be negative"):
        validate_context_aware_restart_config(cfg)


def test_multipliers_must_be_positive():
    base = ContextAwareRestartConfig(default=_good())
    with pytest.raises(ValueError, match="severity multiplier for 'critical'"):
        validate_context_aware_restart_config(
            replace(base, severity_multipliers={"warning": 1.0, "critical": 0.0})
        )
    with pytest.raises(ValueError, match="process profile multiplier for 'batch'"):
        validate_context_aware_restart_config(
            replace(base, process_profile_multipliers={"batch": -1.0})
        )