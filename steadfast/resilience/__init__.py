# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Package resilience provides the resilience strategy contract and its strategies.

This package implements:
- The ResilienceStrategy contract (execute and execute_void)
- Retry with exponential backoff
- Timeout racing an operation against a deadline
- Composite strategies nesting other strategies in a fixed order
- Transient failure classification

The circuit breaker lives in the steadfast.circuit package.
"""

from .strategy import (
    ResilienceStrategy,
    Operation,
    VoidOperation,
)

from .classifier import (
    is_transient_failure,
    TRANSIENT_EXCEPTION_TYPES,
    TRANSIENT_MESSAGE_PATTERNS,
)

from .retry import (
    RetryConfig,
    RetryStrategy,
)

from .timeout import (
    TimeoutConfig,
    TimeoutStrategy,
)

from .composite import (
    CompositeResilienceStrategy,
)

__all__ = [
    # Contract
    'ResilienceStrategy',
    'Operation',
    'VoidOperation',

    # Classification
    'is_transient_failure',
    'TRANSIENT_EXCEPTION_TYPES',
    'TRANSIENT_MESSAGE_PATTERNS',

    # Retry
    'RetryConfig',
    'RetryStrategy',

    # Timeout
    'TimeoutConfig',
    'TimeoutStrategy',

    # Composition
    'CompositeResilienceStrategy',
]
