"""
Retry strategy with exponential backoff.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, List, Optional

from ..cancellation import CancellationToken
from ..errors import ConfigurationError, OperationCanceledError, RetryExhaustedError
from ..metrics import ResilienceMetrics
from .classifier import is_transient_failure
from .strategy import Operation, ResilienceStrategy, T, ensure_operation, ensure_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration."""
    max_attempts: int = 3
    initial_delay: timedelta = field(default_factory=lambda: timedelta(seconds=1))
    backoff_factor: float = 2.0
    retry_predicate: Optional[Callable[[Exception], bool]] = None

    def __post_init__(self):
        if (isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int)
                or self.max_attempts <= 0):
            raise ConfigurationError("max_attempts must be > 0", field="max_attempts", value=self.max_attempts)
        if not isinstance(self.initial_delay, timedelta) or self.initial_delay <= timedelta(0):
            raise ConfigurationError("initial_delay must be > 0", field="initial_delay", value=self.initial_delay)
        if (isinstance(self.backoff_factor, bool) or not isinstance(self.backoff_factor, (int, float))
                or self.backoff_factor <= 1.0):
            raise ConfigurationError("backoff_factor must be > 1.0", field="backoff_factor", value=self.backoff_factor)

    @property
    def total_attempts(self) -> int:
        """Initial attempt plus every retry."""
        return self.max_attempts + 1


class RetryStrategy(ResilienceStrategy):
    """
    Retries an operation after transient failures, waiting longer each time.

    The operation runs at most max_attempts + 1 times. Between attempts the
    strategy waits, starting at initial_delay and multiplying by
    backoff_factor after each wait. Exceptions the predicate rejects are
    raised immediately; when every attempt fails with a retryable exception a
    RetryExhaustedError wrapping the last one is raised.
    """

    def __init__(self, config: Optional[RetryConfig] = None, *, name: str = "retry",
                 metrics: Optional[ResilienceMetrics] = None):
        super().__init__(name)
        self.config = config or RetryConfig()
        self._metrics = metrics

    def compute_delays(self) -> List[timedelta]:
        """Get the waits that precede each retry, in order."""
        delays = []
        delay = self.config.initial_delay.total_seconds()
        for _ in range(self.config.max_attempts):
            delays.append(timedelta(seconds=delay))
            delay *= self.config.backoff_factor
        return delays

    def _should_retry(self, exception: Exception) -> bool:
        if isinstance(exception, OperationCanceledError):
            return False
        if self.config.retry_predicate is not None:
            return self.config.retry_predicate(exception)
        return is_transient_failure(exception)

    async def execute(self, operation: Operation[T],
                      cancellation_token: Optional[CancellationToken] = None) -> T:
        """Execute operation with retry logic."""
        ensure_operation(operation)
        token = ensure_token(cancellation_token)

        max_attempts = self.config.max_attempts
        delay = self.config.initial_delay.total_seconds()
        last_exception: Optional[Exception] = None

        for attempt in range(max_attempts + 1):
            token.raise_if_cancellation_requested()

            if attempt > 0:
                logger.debug(f"'{self.name}' retry attempt {attempt} of {max_attempts}")

            try:
                return await operation(token)

            except Exception as e:
                if not self._should_retry(e):
                    raise

                last_exception = e

                if attempt == max_attempts:
                    logger.warning(f"'{self.name}' attempt {attempt + 1} failed: {e}")
                    break

                logger.warning(
                    f"'{self.name}' attempt {attempt + 1} failed: {e}. "
                    f"Retrying in {delay * 1000:.0f}ms ({attempt + 1} of {max_attempts} retries)"
                )
                if self._metrics:
                    self._metrics.record_retry(self.name)

                await token.sleep(delay)
                delay *= self.config.backoff_factor

        logger.error(f"'{self.name}' operation failed after {max_attempts} retry attempts: {last_exception}")
        if self._metrics:
            self._metrics.record_retry_exhausted(self.name)

        raise RetryExhaustedError(
            f"Operation failed after {max_attempts} retry attempts",
            attempts=max_attempts + 1,
            last_exception=last_exception
        ) from last_exception
