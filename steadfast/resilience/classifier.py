"""
Transient failure classification used as the default retry predicate.
"""

import asyncio
from typing import Tuple, Type

import aiohttp

from ..errors import ConfigurationError, OperationCanceledError

# OSError covers I/O failures, including ConnectionError and socket errors.
TRANSIENT_EXCEPTION_TYPES: Tuple[Type[BaseException], ...] = (
    TimeoutError,
    asyncio.TimeoutError,
    OSError,
    aiohttp.ClientError,
)

TRANSIENT_MESSAGE_PATTERNS: Tuple[str, ...] = (
    "timeout",
    "temporarily unavailable",
)


def is_transient_failure(exception: BaseException) -> bool:
    """
    Check whether an exception is likely to succeed if retried.

    Timeouts, I/O errors, HTTP client errors and exceptions whose message
    mentions a timeout or temporary unavailability are transient. Caller
    cancellation and invalid configuration never are.
    """
    if isinstance(exception, (OperationCanceledError, ConfigurationError)):
        return False

    if isinstance(exception, TRANSIENT_EXCEPTION_TYPES):
        return True

    message = str(exception).lower()
    return any(pattern in message for pattern in TRANSIENT_MESSAGE_PATTERNS)
