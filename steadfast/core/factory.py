"""
Factory functions building strategies from ResilienceOptions.
"""

import logging
from typing import Callable, Iterable, Optional

from ..circuit import CircuitBreakerStrategy, StateTransition
from ..metrics import ResilienceMetrics
from ..resilience import (
    CompositeResilienceStrategy, ResilienceStrategy, RetryStrategy, TimeoutStrategy,
)
from .config import ResilienceOptions

logger = logging.getLogger(__name__)


def create_retry_strategy(
    options: Optional[ResilienceOptions] = None,
    retry_predicate: Optional[Callable[[Exception], bool]] = None,
    metrics: Optional[ResilienceMetrics] = None,
    name: str = "retry",
) -> RetryStrategy:
    """Create a retry strategy from options."""
    options = options or ResilienceOptions()
    return RetryStrategy(options.retry.to_config(retry_predicate), name=name, metrics=metrics)


def create_circuit_breaker_strategy(
    options: Optional[ResilienceOptions] = None,
    on_state_change: Optional[Callable[[StateTransition], None]] = None,
    metrics: Optional[ResilienceMetrics] = None,
    name: str = "circuit-breaker",
) -> CircuitBreakerStrategy:
    """Create a circuit breaker strategy from options."""
    options = options or ResilienceOptions()
    return CircuitBreakerStrategy(
        options.circuit_breaker.to_config(),
        name=name,
        on_state_change=on_state_change,
        metrics=metrics,
    )


def create_timeout_strategy(
    options: Optional[ResilienceOptions] = None,
    metrics: Optional[ResilienceMetrics] = None,
    name: str = "timeout",
) -> TimeoutStrategy:
    """Create a timeout strategy from options."""
    options = options or ResilienceOptions()
    return TimeoutStrategy(options.timeout.to_config(), name=name, metrics=metrics)


def create_composite_strategy(strategies: Iterable[ResilienceStrategy],
                              name: str = "composite") -> CompositeResilienceStrategy:
    """Combine strategies; the first one is the innermost."""
    return CompositeResilienceStrategy(strategies, name=name)


def create_default_strategy(
    options: Optional[ResilienceOptions] = None,
    metrics: Optional[ResilienceMetrics] = None,
    retry_predicate: Optional[Callable[[Exception], bool]] = None,
) -> CompositeResilienceStrategy:
    """
    Create the standard timeout, retry and circuit breaker combination.

    Each attempt is bounded by the timeout, timed-out attempts are retried,
    and the circuit breaker outermost records whole retry sequences.
    """
    options = options or ResilienceOptions()
    options.validate()

    strategy = create_composite_strategy([
        create_timeout_strategy(options, metrics=metrics),
        create_retry_strategy(options, retry_predicate=retry_predicate, metrics=metrics),
        create_circuit_breaker_strategy(options, metrics=metrics),
    ], name="default")

    logger.debug(f"Default resilience strategy created with options {options.to_dict()}")
    return strategy
