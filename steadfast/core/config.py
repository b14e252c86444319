"""
Configuration module for steadfast resilience strategies.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from datetime import timedelta
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union
from dataclasses import dataclass, field

from ..circuit import CircuitBreakerConfig
from ..errors import ConfigurationError
from ..resilience import RetryConfig, TimeoutConfig
from ..util.config import (
    DEFAULT_ENV_PREFIX, expand_config_variables, get_config_value, load_config_file, to_timedelta,
)


def _duration(value: Any, field_name: str) -> timedelta:
    try:
        return to_timedelta(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid duration for {field_name}: {e}", field=field_name, value=value) from e


def _number(value: Any, cast_type: type, field_name: str) -> Any:
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid value for {field_name}: {value!r}", field=field_name, value=value)
    try:
        return cast_type(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {field_name}: {e}", field=field_name, value=value) from e


def _section(data: Dict[str, Any], key: str) -> Any:
    value = data.get(key)
    return {} if value is None else value


@dataclass
class RetryOptions:
    """Retry strategy settings"""
    max_attempts: int = 3
    initial_delay: timedelta = field(default_factory=lambda: timedelta(seconds=1))
    backoff_factor: float = 2.0

    def to_config(self, retry_predicate: Optional[Callable[[Exception], bool]] = None) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            backoff_factor=self.backoff_factor,
            retry_predicate=retry_predicate,
        )


@dataclass
class CircuitBreakerOptions:
    """Circuit breaker strategy settings"""
    failure_threshold: int = 5
    duration_of_break: timedelta = field(default_factory=lambda: timedelta(seconds=30))

    def to_config(self) -> CircuitBreakerConfig:
        return CircuitBreakerConfig(
            failure_threshold=self.failure_threshold,
            duration_of_break=self.duration_of_break,
        )


@dataclass
class TimeoutOptions:
    """Timeout strategy settings"""
    timeout: timedelta = field(default_factory=lambda: timedelta(seconds=30))

    def to_config(self) -> TimeoutConfig:
        return TimeoutConfig(timeout=self.timeout)


@dataclass
class ResilienceOptions:
    """Settings for every resilience strategy"""
    retry: RetryOptions = field(default_factory=RetryOptions)
    circuit_breaker: CircuitBreakerOptions = field(default_factory=CircuitBreakerOptions)
    timeout: TimeoutOptions = field(default_factory=TimeoutOptions)

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX) -> "ResilienceOptions":
        """Create options from environment variables"""
        defaults = cls()
        return cls(
            retry=RetryOptions(
                max_attempts=get_config_value(
                    "retry_max_attempts", defaults.retry.max_attempts, int, prefix),
                initial_delay=get_config_value(
                    "retry_initial_delay", defaults.retry.initial_delay, timedelta, prefix),
                backoff_factor=get_config_value(
                    "retry_backoff_factor", defaults.retry.backoff_factor, float, prefix),
            ),
            circuit_breaker=CircuitBreakerOptions(
                failure_threshold=get_config_value(
                    "circuit_failure_threshold", defaults.circuit_breaker.failure_threshold, int, prefix),
                duration_of_break=get_config_value(
                    "circuit_duration_of_break", defaults.circuit_breaker.duration_of_break, timedelta, prefix),
            ),
            timeout=TimeoutOptions(
                timeout=get_config_value("timeout", defaults.timeout.timeout, timedelta, prefix),
            ),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResilienceOptions":
        """
        Create options from a nested dictionary.

        Missing sections and keys keep their defaults; durations may be
        timedeltas, duration strings or numbers of seconds.
        """
        options = cls()
        retry = _section(data, 'retry')
        circuit = _section(data, 'circuit_breaker')
        timeout = _section(data, 'timeout')

        for name, section in (('retry', retry), ('circuit_breaker', circuit)):
            if not isinstance(section, dict):
                raise ConfigurationError(f"Section {name} must be a mapping", field=name, value=section)

        if 'max_attempts' in retry:
            options.retry.max_attempts = _number(retry['max_attempts'], int, 'retry.max_attempts')
        if 'initial_delay' in retry:
            options.retry.initial_delay = _duration(retry['initial_delay'], 'retry.initial_delay')
        if 'backoff_factor' in retry:
            options.retry.backoff_factor = _number(retry['backoff_factor'], float, 'retry.backoff_factor')

        if 'failure_threshold' in circuit:
            options.circuit_breaker.failure_threshold = _number(
                circuit['failure_threshold'], int, 'circuit_breaker.failure_threshold')
        if 'duration_of_break' in circuit:
            options.circuit_breaker.duration_of_break = _duration(
                circuit['duration_of_break'], 'circuit_breaker.duration_of_break')

        if isinstance(timeout, dict):
            if 'timeout' in timeout:
                options.timeout.timeout = _duration(timeout['timeout'], 'timeout.timeout')
        else:
            options.timeout.timeout = _duration(timeout, 'timeout')

        return options

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> "ResilienceOptions":
        """Create options from a JSON or YAML file; ${VAR} values are expanded"""
        return cls.from_dict(expand_config_variables(load_config_file(file_path)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'retry': {
                'max_attempts': self.retry.max_attempts,
                'initial_delay': self.retry.initial_delay.total_seconds(),
                'backoff_factor': self.retry.backoff_factor,
            },
            'circuit_breaker': {
                'failure_threshold': self.circuit_breaker.failure_threshold,
                'duration_of_break': self.circuit_breaker.duration_of_break.total_seconds(),
            },
            'timeout': {
                'timeout': self.timeout.timeout.total_seconds(),
            },
        }

    def validate(self) -> bool:
        """Validate the options"""
        self.retry.to_config()
        self.circuit_breaker.to_config()
        self.timeout.to_config()
        return True
