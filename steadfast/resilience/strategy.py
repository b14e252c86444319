"""
The resilience strategy contract shared by every strategy.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..cancellation import CancellationToken
from ..errors import ConfigurationError

T = TypeVar('T')

Operation = Callable[[CancellationToken], Awaitable[T]]
VoidOperation = Callable[[CancellationToken], Awaitable[None]]


class ResilienceStrategy(ABC):
    """
    Executes an asynchronous operation with a resilience policy applied.

    An operation is any callable that takes a CancellationToken and returns
    an awaitable. The strategy may invoke it zero or more times.
    """

    def __init__(self, name: str):
        self._name = name

    @property
    def name(self) -> str:
        """Get strategy name."""
        return self._name

    @abstractmethod
    async def execute(self, operation: Operation[T],
                      cancellation_token: Optional[CancellationToken] = None) -> T:
        """Execute the operation with the policy applied and return its result."""

    async def execute_void(self, operation: VoidOperation,
                           cancellation_token: Optional[CancellationToken] = None) -> None:
        """Execute an operation that produces no value."""
        await self.execute(operation, cancellation_token)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r})"


def ensure_operation(operation: Any) -> None:
    """Reject anything that cannot be invoked as an operation."""
    if operation is None or not callable(operation):
        raise ConfigurationError("operation must be a callable", field="operation", value=operation)


def ensure_token(cancellation_token: Optional[CancellationToken]) -> CancellationToken:
    """Replace a missing token with one that is never cancelled."""
    return cancellation_token if cancellation_token is not None else CancellationToken.none()
