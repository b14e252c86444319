"""
Timeout strategy that races an operation against a deadline.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from ..cancellation import CancellationToken, CancellationTokenSource
from ..errors import ConfigurationError, OperationCanceledError, ResilienceTimeoutError
from ..metrics import ResilienceMetrics
from .strategy import Operation, ResilienceStrategy, T, ensure_operation, ensure_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeoutConfig:
    """Timeout configuration."""
    timeout: timedelta = field(default_factory=lambda: timedelta(seconds=30))

    def __post_init__(self):
        if not isinstance(self.timeout, timedelta) or self.timeout <= timedelta(0):
            raise ConfigurationError("timeout must be greater than zero", field="timeout", value=self.timeout)


def _retrieve_outcome(task: asyncio.Future) -> None:
    # An abandoned operation may still fail later; mark its exception as seen.
    if not task.cancelled():
        task.exception()


class TimeoutStrategy(ResilienceStrategy):
    """
    Bounds each call to an operation by a deadline.

    The operation receives a token linked to both the caller's token and the
    deadline. Whichever finishes first decides the outcome: the operation's
    own result or exception, a ResilienceTimeoutError when the deadline
    fires, or an OperationCanceledError when the caller cancels.
    """

    def __init__(self, config: Optional[TimeoutConfig] = None, *, name: str = "timeout",
                 metrics: Optional[ResilienceMetrics] = None):
        super().__init__(name)
        self.config = config or TimeoutConfig()
        self._metrics = metrics

    @property
    def timeout(self) -> timedelta:
        return self.config.timeout

    def _timed_out(self) -> ResilienceTimeoutError:
        logger.warning(f"'{self.name}' operation timed out after {self.timeout.total_seconds() * 1000:g}ms")
        if self._metrics:
            self._metrics.record_timeout(self.name)
        return ResilienceTimeoutError(self.timeout)

    async def execute(self, operation: Operation[T],
                      cancellation_token: Optional[CancellationToken] = None) -> T:
        """Execute operation with timeout."""
        ensure_operation(operation)
        token = ensure_token(cancellation_token)
        token.raise_if_cancellation_requested()

        timeout_seconds = self.timeout.total_seconds()
        logger.debug(f"'{self.name}' executing operation with timeout of {timeout_seconds * 1000:g}ms")

        with CancellationTokenSource() as deadline, \
                CancellationTokenSource.create_linked(token, deadline.token) as linked:
            deadline.cancel_after(timeout_seconds)

            operation_task = asyncio.ensure_future(operation(linked.token))
            deadline_task = asyncio.ensure_future(deadline.token.wait())
            racers = {operation_task, deadline_task}

            caller_task = None
            if token.can_be_canceled:
                caller_task = asyncio.ensure_future(token.wait())
                racers.add(caller_task)

            try:
                done, _ = await asyncio.wait(racers, return_when=asyncio.FIRST_COMPLETED)
            finally:
                deadline_task.cancel()
                if caller_task is not None:
                    caller_task.cancel()
                if not operation_task.done():
                    linked.cancel()
                    operation_task.cancel()
                    operation_task.add_done_callback(_retrieve_outcome)

            if operation_task in done:
                try:
                    return operation_task.result()
                except OperationCanceledError as e:
                    if deadline.is_cancellation_requested and not token.is_cancellation_requested:
                        raise self._timed_out() from e
                    raise

            if token.is_cancellation_requested:
                raise OperationCanceledError(token=token)

            raise self._timed_out()
