"""
Shared fixtures for steadfast tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from steadfast.metrics import ResilienceMetrics


class FakeClock:
    """Manually advanced UTC clock for circuit breaker tests."""

    def __init__(self):
        self.now = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class CallCounter:
    """Operation factory that records how often it was invoked."""

    def __init__(self, failures=0, exception_factory=None, result=42):
        self.calls = 0
        self.failures = failures
        self.exception_factory = exception_factory or (lambda n: TimeoutError(f"failure {n}"))
        self.result = result
        self.tokens = []

    async def __call__(self, token):
        self.calls += 1
        self.tokens.append(token)
        if self.calls <= self.failures:
            raise self.exception_factory(self.calls)
        return self.result


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def metrics():
    return ResilienceMetrics()
