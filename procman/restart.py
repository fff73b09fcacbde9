"""Restart policies and context-aware restart configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Optional


class RestartPolicy(str, Enum):
    """When a process should be restarted."""

    NEVER = "never"
    ON_FAILURE = "on-failure"
    ALWAYS = "always"
    UNLESS_STOPPED = "unless-stopped"


class RestartTriggerType(str, Enum):
    """What triggered a restart request."""

    HEALTH_FAILURE = "health_failure"
    RESOURCE_VIOLATION = "resource_violation"
    MANUAL = "manual"


@dataclass
class RestartContext:
    """Why a restart was requested."""

    trigger_type: RestartTriggerType
    severity: str = ""
    process_profile_type: str = ""
    violation_type: str = ""
    message: str = ""


@dataclass
class RestartConfig:
    """Retry mechanics: how many attempts, delay and exponential backoff."""

    max_retries: int = 0
    retry_delay: timedelta = field(default_factory=timedelta)
    backoff_rate: float = 0.0


@dataclass
class ContextAwareRestartConfig:
    """Restart configuration that varies with the trigger, severity and profile."""

    default: RestartConfig = field(default_factory=RestartConfig)
    health_failures: Optional[RestartConfig] = None
    resource_violations: Optional[RestartConfig] = None
    severity_multipliers: dict[str, float] = field(default_factory=dict)
    process_profile_multipliers: dict[str, float] = field(default_factory=dict)
    startup_grace_period: timedelta = field(default_factory=timedelta)
    sustained_violation_time: timedelta = field(default_factory=timedelta)
    spike_tolerance_time: timedelta = field(default_factory=timedelta)


def _duration(value: timedelta) -> str:
    return f"{value.total_seconds():g}s"


def validate_restart_config(config: RestartConfig) -> None:
    """Raise ValueError if the retry settings are out of range."""
    if config.max_retries < 0:
        raise ValueError(f"max_retries cannot be negative: {config.max_retries}")
    if config.retry_delay < timedelta(0):
        raise ValueError(f"retry_delay cannot be negative: {_duration(config.retry_delay)}")
    if config.backoff_rate <= 0:
        raise ValueError(f"backoff_rate must be positive: {config.backoff_rate:f}")


def _validate_nested(config: RestartConfig, name: str) -> None:
    try:
        validate_restart_config(config)
    except ValueError as exc:
        raise ValueError(f"invalid {name} restart config: {exc}") from exc


def validate_context_aware_restart_config(config: ContextAwareRestartConfig) -> None:
    """Raise ValueError if any part of the configuration is invalid."""
    _validate_nested(config.default, "default")
    if config.health_failures is not None:
        _validate_nested(config.health_failures, "health_failures")
    if config.resource_violations is not None:
        _validate_nested(config.resource_violations, "resource_violations")

    for name in ("startup_grace_period", "sustained_violation_time", "spike_tolerance_time"):
        value: timedelta = getattr(config, name)
        if value < timedelta(0):
            raise ValueError(f"{name} cannot be negative: {_duration(value)}")

    for severity, multiplier in config.severity_multipliers.items():
        if multiplier <= 0:
            raise ValueError(
                f"severity multiplier for '{severity}' must be positive: {multiplier:f}"
            )
    for profile, multiplier in config.process_profile_multipliers.items():
        if multiplier <= 0:
            raise ValueError(
                f"process profile multiplier for '{profile}' must be positive: {multiplier:f}"
            )