"""
steadfast Python Package

Composable resilience strategies for asynchronous operations:
retry, circuit breaker, timeout and their composition.
"""

__version__ = "0.1.0"
__author__ = "Mauricio Fernandez"
__email__ = "mauricio.fernandez@siemens.com"

from .cancellation import CancellationToken, CancellationTokenSource
from .circuit import CircuitBreakerConfig, CircuitBreakerStrategy, CircuitState
from .core.config import ResilienceOptions
from .core.factory import create_default_strategy
from .errors import (
    ResilienceError,
    RetryExhaustedError,
    CircuitOpenError,
    ResilienceTimeoutError,
    OperationCanceledError,
    ConfigurationError,
)
from .resilience import (
    ResilienceStrategy,
    RetryConfig,
    RetryStrategy,
    TimeoutConfig,
    TimeoutStrategy,
    CompositeResilienceStrategy,
    is_transient_failure,
)

__all__ = [
    "CancellationToken",
    "CancellationTokenSource",
    "ResilienceStrategy",
    "RetryConfig",
    "RetryStrategy",
    "CircuitBreakerConfig",
    "CircuitBreakerStrategy",
    "CircuitState",
    "TimeoutConfig",
    "TimeoutStrategy",
    "CompositeResilienceStrategy",
    "is_transient_failure",
    "ResilienceOptions",
    "create_default_strategy",
    "ResilienceError",
    "RetryExhaustedError",
    "CircuitOpenError",
    "ResilienceTimeoutError",
    "OperationCanceledError",
    "ConfigurationError",
]
