# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Package circuit provides the circuit breaker resilience strategy.

This package implements the circuit breaker pattern to prevent cascading failures:
- Circuit breaker state management (closed, open, half-open)
- Consecutive failure threshold monitoring
- Lazy recovery through a single probe call
- State change callbacks and transition history
- Statistics snapshots
"""

from .circuit import (
    # Core circuit breaker
    CircuitBreakerStrategy,
    CircuitBreakerConfig,

    # State management
    CircuitState,
    StateTransition,

    # Statistics
    CircuitStats,
)

__all__ = [
    # Core circuit breaker
    'CircuitBreakerStrategy',
    'CircuitBreakerConfig',

    # State management
    'CircuitState',
    'StateTransition',

    # Statistics
    'CircuitStats',
]
