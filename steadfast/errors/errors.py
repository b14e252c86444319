"""
Error types and error codes for steadfast resilience strategies.
Provides a structured, closed error hierarchy callers can match on.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes used across steadfast."""
    RETRY_EXHAUSTED = "retry_exhausted"
    CIRCUIT_OPEN = "circuit_open"
    TIMEOUT = "timeout"
    OPERATION_CANCELED = "operation_canceled"
    CONFIGURATION_ERROR = "configuration_error"

    def __str__(self) -> str:
        return self.value


class ResilienceError(Exception):
    """Base exception for all errors raised by a resilience strategy."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            'error': self.error_code.value,
            'message': self.message,
            'details': self.details
        }

        if self.cause:
            result['cause'] = f"{type(self.cause).__name__}: {self.cause}"

        return result

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"


class RetryExhaustedError(ResilienceError):
    """Raised when all retry attempts failed with retryable exceptions."""

    def __init__(self, message: str, attempts: int, last_exception: Exception):
        super().__init__(
            message,
            ErrorCode.RETRY_EXHAUSTED,
            {'attempts': attempts},
            cause=last_exception
        )
        self.attempts = attempts
        self.last_exception = last_exception


class CircuitOpenError(ResilienceError):
    """Raised when the circuit breaker rejects a call while open."""

    def __init__(self, circuit_name: str, open_until: datetime, retry_after: timedelta,
                 message: Optional[str] = None):
        default_message = (
            f"Circuit '{circuit_name}' is open and is not allowing calls "
            f"until {open_until.isoformat()}"
        )
        super().__init__(
            message or default_message,
            ErrorCode.CIRCUIT_OPEN,
            {
                'circuit_name': circuit_name,
                'open_until': open_until.isoformat(),
                'retry_after_seconds': retry_after.total_seconds(),
            }
        )
        self.circuit_name = circuit_name
        self.open_until = open_until
        self.retry_after = retry_after


class ResilienceTimeoutError(ResilienceError, TimeoutError):
    """Raised when an operation does not complete before its deadline."""

    def __init__(self, timeout: timedelta, message: Optional[str] = None):
        milliseconds = timeout.total_seconds() * 1000
        super().__init__(
            message or f"Operation timed out after {milliseconds:g}ms",
            ErrorCode.TIMEOUT,
            {'timeout_ms': milliseconds}
        )
        self.timeout = timeout


class OperationCanceledError(ResilienceError):
    """Raised when the caller's cancellation token was cancelled."""

    def __init__(self, message: str = "The operation was canceled", token: Any = None):
        super().__init__(message, ErrorCode.OPERATION_CANCELED)
        self.token = token


class ConfigurationError(ResilienceError, ValueError):
    """Raised when a strategy or option is given an invalid value."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None
    ):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR)
        self.field = field
        self.value = value

        if field:
            self.details['field'] = field
        if value is not None:
            self.details['value'] = str(value)
