"""
Composite strategy that nests several strategies into one execution chain.
"""

import logging
from typing import Iterable, Optional, Tuple

from ..cancellation import CancellationToken
from ..errors import ConfigurationError
from .strategy import (
    Operation, ResilienceStrategy, T, VoidOperation, ensure_operation, ensure_token,
)

logger = logging.getLogger(__name__)


def _wrap(strategy: ResilienceStrategy, inner: Operation) -> Operation:
    async def wrapped(token: CancellationToken):
        return await strategy.execute(inner, token)
    return wrapped


def _wrap_void(strategy: ResilienceStrategy, inner: VoidOperation) -> VoidOperation:
    async def wrapped(token: CancellationToken) -> None:
        await strategy.execute_void(inner, token)
    return wrapped


class CompositeResilienceStrategy(ResilienceStrategy):
    """
    Combines strategies so their policies apply together.

    The first strategy is the innermost: it is handed the real operation.
    Every following strategy wraps the chain built so far, so the last
    strategy is the outermost and produces the overall result. With
    [timeout, retry, circuit_breaker] each attempt is time-bounded, retries
    run over timed attempts and the breaker counts whole retry sequences.
    With [retry, timeout] one timeout budget covers the entire retry sequence.
    """

    def __init__(self, strategies: Iterable[ResilienceStrategy], *, name: str = "composite"):
        super().__init__(name)
        if strategies is None:
            raise ConfigurationError("strategies must not be None", field="strategies")

        self._strategies: Tuple[ResilienceStrategy, ...] = tuple(strategies)
        if not self._strategies:
            raise ConfigurationError("At least one resilience strategy must be provided", field="strategies")

        for strategy in self._strategies:
            if not isinstance(strategy, ResilienceStrategy):
                raise ConfigurationError(
                    f"{type(strategy).__name__} is not a resilience strategy",
                    field="strategies",
                    value=strategy
                )

        logger.debug(
            f"Composite '{self.name}' built from (innermost first): "
            f"{', '.join(s.name for s in self._strategies)}"
        )

    @property
    def strategies(self) -> Tuple[ResilienceStrategy, ...]:
        """Get the strategies, innermost first."""
        return self._strategies

    async def execute(self, operation: Operation[T],
                      cancellation_token: Optional[CancellationToken] = None) -> T:
        ensure_operation(operation)
        token = ensure_token(cancellation_token)

        *inner, outermost = self._strategies
        chain = operation
        for strategy in inner:
            chain = _wrap(strategy, chain)

        return await outermost.execute(chain, token)

    async def execute_void(self, operation: VoidOperation,
                           cancellation_token: Optional[CancellationToken] = None) -> None:
        ensure_operation(operation)
        token = ensure_token(cancellation_token)

        *inner, outermost = self._strategies
        chain = operation
        for strategy in inner:
            chain = _wrap_void(strategy, chain)

        await outermost.execute_void(chain, token)
