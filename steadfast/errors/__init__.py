# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Package errors provides the closed set of error kinds raised by steadfast strategies.

Error kinds:
- RetryExhaustedError: every attempt failed with a retryable exception
- CircuitOpenError: the circuit breaker rejected the call without running it
- ResilienceTimeoutError: the deadline passed before the operation completed
- OperationCanceledError: the caller cancelled the operation
- ConfigurationError: a strategy or option was constructed with invalid values

Any other exception raised by an operation is never wrapped by this package.
"""

from .errors import (
    ErrorCode,
    ResilienceError,
    RetryExhaustedError,
    CircuitOpenError,
    ResilienceTimeoutError,
    OperationCanceledError,
    ConfigurationError,
)

__all__ = [
    'ErrorCode',
    'ResilienceError',
    'RetryExhaustedError',
    'CircuitOpenError',
    'ResilienceTimeoutError',
    'OperationCanceledError',
    'ConfigurationError',
]
