"""
Tests for composing resilience strategies.
"""

import asyncio
from datetime import timedelta

import pytest

from steadfast.cancellation import CancellationTokenSource
from steadfast.circuit import CircuitBreakerConfig, CircuitBreakerStrategy, CircuitState
from steadfast.errors import (
    CircuitOpenError, ConfigurationError, OperationCanceledError,
    ResilienceTimeoutError, RetryExhaustedError,
)
from steadfast.resilience import (
    CompositeResilienceStrategy, ResilienceStrategy, RetryConfig, RetryStrategy,
    TimeoutConfig, TimeoutStrategy,
)

from .conftest import CallCounter


class TransformStrategy(ResilienceStrategy):
    """Strategy that transforms the inner result and records what it was given."""

    def __init__(self, name, transform, log):
        super().__init__(name)
        self.transform = transform
        self.log = log
        self.received = []

    async def execute(self, operation, cancellation_token=None):
        self.received.append(operation)
        self.log.append(f"{self.name}:enter")
        result = await operation(cancellation_token)
        self.log.append(f"{self.name}:exit")
        return self.transform(result)


def retry(max_attempts=2, delay_ms=1, **kwargs):
    return RetryStrategy(RetryConfig(max_attempts=max_attempts,
                                     initial_delay=timedelta(milliseconds=delay_ms)), **kwargs)


def timeout(ms):
    return TimeoutStrategy(TimeoutConfig(timeout=timedelta(milliseconds=ms)))


def breaker(threshold=1, break_ms=10_000):
    return CircuitBreakerStrategy(CircuitBreakerConfig(
        failure_threshold=threshold, duration_of_break=timedelta(milliseconds=break_ms)))


class TestCompositeConstruction:
    """Test composite construction rules."""

    def test_none_rejected(self):
        """Test a missing strategy list is a configuration error."""
        with pytest.raises(ConfigurationError):
            CompositeResilienceStrategy(None)

    def test_empty_rejected(self):
        """Test an empty strategy list is a configuration error."""
        with pytest.raises(ConfigurationError):
            CompositeResilienceStrategy([])

    def test_non_strategy_rejected(self):
        """Test every element must be a strategy."""
        with pytest.raises(ConfigurationError):
            CompositeResilienceStrategy([retry(), "timeout"])

    def test_strategies_exposed_in_order(self):
        """Test strategies are kept innermost first."""
        strategies = [timeout(100), retry(), breaker()]
        composite = CompositeResilienceStrategy(iter(strategies))

        assert composite.strategies == tuple(strategies)
        assert composite.name == "composite"


class TestCompositeOrdering:
    """Test the first strategy is the innermost."""

    @pytest.mark.asyncio
    async def test_first_strategy_is_innermost(self):
        """Test doubling then adding one turns 10 into 21."""
        log = []
        doubler = TransformStrategy("A", lambda x: x * 2, log)
        adder = TransformStrategy("B", lambda x: x + 1, log)
        composite = CompositeResilienceStrategy([doubler, adder])

        async def operation(token):
            return 10

        assert await composite.execute(operation) == 21
        assert doubler.received == [operation]
        assert adder.received[0] is not operation
        assert log == ["B:enter", "A:enter", "A:exit", "B:exit"]

    @pytest.mark.asyncio
    async def test_reversed_order(self):
        """Test adding one then doubling turns 10 into 22."""
        log = []
        composite = CompositeResilienceStrategy([
            TransformStrategy("B", lambda x: x + 1, log),
            TransformStrategy("A", lambda x: x * 2, log),
        ])

        async def operation(token):
            return 10

        assert await composite.execute(operation) == 22

    @pytest.mark.asyncio
    async def test_single_strategy(self):
        """Test a single-element composite behaves like the strategy itself."""
        log = []
        composite = CompositeResilienceStrategy([TransformStrategy("A", lambda x: x * 2, log)])

        async def operation(token):
            return 4

        assert await composite.execute(operation) == 8

    @pytest.mark.asyncio
    async def test_execute_void_order(self):
        """Test the void variant nests in the same order."""
        log = []
        composite = CompositeResilienceStrategy([
            TransformStrategy("A", lambda x: x, log),
            TransformStrategy("B", lambda x: x, log),
        ])

        async def operation(token):
            log.append("op")

        assert await composite.execute_void(operation) is None
        assert log == ["B:enter", "A:enter", "op", "A:exit", "B:exit"]


class TestCompositeBehavior:
    """Test real strategies working together."""

    @pytest.mark.asyncio
    async def test_success_invokes_once(self):
        """Test a succeeding operation runs once through every strategy."""
        composite = CompositeResilienceStrategy([timeout(1000), retry(), breaker()])
        operation = CallCounter()

        assert await composite.execute(operation) == 42
        assert operation.calls == 1

    @pytest.mark.asyncio
    async def test_retry_inside_breaker(self):
        """Test the breaker sees one failure per exhausted retry sequence."""
        circuit = breaker(threshold=2)
        composite = CompositeResilienceStrategy([retry(max_attempts=2), circuit])
        operation = CallCounter(failures=100)

        with pytest.raises(RetryExhaustedError):
            await composite.execute(operation)

        assert operation.calls == 3
        assert circuit.failure_count == 1

    @pytest.mark.asyncio
    async def test_breaker_rejects_without_invoking(self):
        """Test an open breaker short-circuits the whole chain."""
        circuit = breaker(threshold=1)
        composite = CompositeResilienceStrategy([retry(max_attempts=1), circuit])

        with pytest.raises(RetryExhaustedError):
            await composite.execute(CallCounter(failures=100))

        operation = CallCounter()
        with pytest.raises(CircuitOpenError):
            await composite.execute(operation)
        assert operation.calls == 0

    @pytest.mark.asyncio
    async def test_timeout_per_attempt(self):
        """Test timeout innermost bounds each attempt and retry recovers."""
        calls = 0

        async def operation(token):
            nonlocal calls
            calls += 1
            if calls == 1:
                await asyncio.sleep(5)
            return "second attempt"

        composite = CompositeResilienceStrategy([timeout(50), retry(max_attempts=2)])

        assert await composite.execute(operation) == "second attempt"
        assert calls == 2

    @pytest.mark.asyncio
    async def test_timeout_covers_whole_retry_sequence(self):
        """Test timeout outermost bounds the entire retry sequence."""
        operation = CallCounter(failures=100)
        composite = CompositeResilienceStrategy([retry(max_attempts=5, delay_ms=100), timeout(50)])

        with pytest.raises(ResilienceTimeoutError):
            await composite.execute(operation)

        assert operation.calls == 1

    @pytest.mark.asyncio
    async def test_timeout_counted_by_breaker(self):
        """Test a timed-out call is a breaker failure."""
        circuit = breaker(threshold=1)
        composite = CompositeResilienceStrategy([timeout(20), circuit])

        async def operation(token):
            await asyncio.sleep(5)

        with pytest.raises(ResilienceTimeoutError):
            await composite.execute(operation)

        assert circuit.stats.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        """Test a cancelled token stops the chain before the operation runs."""
        composite = CompositeResilienceStrategy([timeout(1000), retry(), breaker()])
        source = CancellationTokenSource()
        source.cancel()
        operation = CallCounter()

        with pytest.raises(OperationCanceledError):
            await composite.execute(operation, source.token)

        assert operation.calls == 0

    @pytest.mark.asyncio
    async def test_rejects_non_callable_operation(self):
        """Test a missing operation is a configuration error."""
        composite = CompositeResilienceStrategy([retry()])

        with pytest.raises(ConfigurationError):
            await composite.execute(None)
