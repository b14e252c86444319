# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Package core provides configuration and construction of steadfast strategies.
"""

from .config import (
    ResilienceOptions,
    RetryOptions,
    CircuitBreakerOptions,
    TimeoutOptions,
)

from .factory import (
    create_retry_strategy,
    create_circuit_breaker_strategy,
    create_timeout_strategy,
    create_composite_strategy,
    create_default_strategy,
)

__all__ = [
    'ResilienceOptions',
    'RetryOptions',
    'CircuitBreakerOptions',
    'TimeoutOptions',
    'create_retry_strategy',
    'create_circuit_breaker_strategy',
    'create_timeout_strategy',
    'create_composite_strategy',
    'create_default_strategy',
]
