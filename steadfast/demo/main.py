"""
steadfast Demo Application

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

This demo shows the resilience strategies applied to a simulated flaky
dependency, including:
- Retry recovering from transient failures
- Circuit breaker opening, rejecting and recovering
- Timeout bounding a slow call
- Caller cancellation
- The default timeout / retry / circuit breaker composition
- Prometheus metrics exposition
"""

import asyncio
import logging
import sys
from datetime import timedelta

from steadfast.cancellation import CancellationToken, CancellationTokenSource
from steadfast.circuit import CircuitBreakerConfig, CircuitBreakerStrategy
from steadfast.core import CircuitBreakerOptions, ResilienceOptions, RetryOptions, TimeoutOptions
from steadfast.core.factory import create_default_strategy
from steadfast.errors import (
    CircuitOpenError, OperationCanceledError, ResilienceTimeoutError, RetryExhaustedError,
)
from steadfast.metrics import ResilienceMetrics
from steadfast.resilience import RetryConfig, RetryStrategy, TimeoutConfig, TimeoutStrategy


class FlakyService:
    """Simulated dependency that fails a set number of times before succeeding."""

    def __init__(self, failures: int, latency: float = 0.0):
        self.failures = failures
        self.latency = latency
        self.calls = 0

    async def fetch(self, token: CancellationToken) -> str:
        self.calls += 1
        if self.latency:
            await token.sleep(self.latency)
        if self.calls <= self.failures:
            raise ConnectionError(f"service temporarily unavailable (call {self.calls})")
        return f"payload from call {self.calls}"


async def run_demo() -> int:
    """Main demo function"""
    print("steadfast Demo Application")
    print("=" * 50)
    print()

    metrics = ResilienceMetrics()

    print("Step 1: Retry with exponential backoff")
    print("-" * 40)

    retry = RetryStrategy(
        RetryConfig(max_attempts=3, initial_delay=timedelta(milliseconds=50)),
        name="demo-retry",
        metrics=metrics,
    )
    service = FlakyService(failures=2)
    result = await retry.execute(service.fetch)
    print(f"✓ {result} after {service.calls} calls")
    print(f"  - Planned delays: {[f'{d.total_seconds() * 1000:.0f}ms' for d in retry.compute_delays()]}")

    always_down = FlakyService(failures=100)
    try:
        await retry.execute(always_down.fetch)
    except RetryExhaustedError as e:
        print(f"✓ Gave up after {e.attempts} attempts: {e.last_exception}")
    print()

    print("Step 2: Circuit breaker")
    print("-" * 40)

    breaker = CircuitBreakerStrategy(
        CircuitBreakerConfig(failure_threshold=2, duration_of_break=timedelta(milliseconds=200)),
        name="demo-circuit",
        on_state_change=lambda t: print(f"  - {t.from_state.value} -> {t.to_state.value}: {t.reason}"),
        metrics=metrics,
    )
    down = FlakyService(failures=2)
    for _ in range(2):
        try:
            await breaker.execute(down.fetch)
        except ConnectionError as e:
            print(f"  - Call failed: {e}")

    try:
        await breaker.execute(down.fetch)
    except CircuitOpenError as e:
        print(f"✓ Rejected without calling the service (retry after {e.retry_after.total_seconds():.2f}s)")

    await asyncio.sleep(0.25)
    result = await breaker.execute(down.fetch)
    print(f"✓ Probe call succeeded: {result}; state is {breaker.state.value}")
    print()

    print("Step 3: Timeout")
    print("-" * 40)

    timeout = TimeoutStrategy(TimeoutConfig(timeout=timedelta(milliseconds=100)), name="demo-timeout",
                              metrics=metrics)
    slow = FlakyService(failures=0, latency=1.0)
    try:
        await timeout.execute(slow.fetch)
    except ResilienceTimeoutError as e:
        print(f"✓ {e.message}")

    with CancellationTokenSource() as source:
        source.cancel_after(0.05)
        try:
            await timeout.execute(slow.fetch, source.token)
        except OperationCanceledError:
            print("✓ Caller cancellation reported as cancellation, not as a timeout")
    print()

    print("Step 4: Default composition (timeout -> retry -> circuit breaker)")
    print("-" * 40)

    options = ResilienceOptions(
        retry=RetryOptions(max_attempts=3, initial_delay=timedelta(milliseconds=20)),
        circuit_breaker=CircuitBreakerOptions(failure_threshold=3, duration_of_break=timedelta(seconds=1)),
        timeout=TimeoutOptions(timeout=timedelta(milliseconds=200)),
    )
    strategy = create_default_strategy(options, metrics=metrics)
    service = FlakyService(failures=1, latency=0.01)
    result = await strategy.execute(service.fetch)
    print(f"✓ {result} after {service.calls} calls")
    print()

    print("Step 5: Metrics")
    print("-" * 40)
    for line in metrics.export().decode("utf-8").splitlines():
        if line and not line.startswith("#"):
            print(f"  {line}")
    print()

    print("Demo completed successfully!")
    return 0


def main() -> int:
    """Console entry point"""
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    try:
        return asyncio.run(run_demo())
    except KeyboardInterrupt:
        print("\nDemo interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
