"""
Tests for error types, failure classification and metrics export.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import aiohttp
import pytest
from prometheus_client import CollectorRegistry

from steadfast.errors import (
    CircuitOpenError, ConfigurationError, ErrorCode, OperationCanceledError,
    ResilienceError, ResilienceTimeoutError, RetryExhaustedError,
)
from steadfast.metrics import ResilienceMetrics
from steadfast.resilience import is_transient_failure


class TestErrors:
    """Test the error hierarchy."""

    def test_all_errors_share_base(self):
        """Test every error kind derives from ResilienceError."""
        errors = [
            RetryExhaustedError("failed", 3, ValueError("x")),
            CircuitOpenError("c", datetime.now(timezone.utc), timedelta(seconds=1)),
            ResilienceTimeoutError(timedelta(seconds=1)),
            OperationCanceledError(),
            ConfigurationError("bad"),
        ]

        assert all(isinstance(e, ResilienceError) for e in errors)
        assert [e.error_code for e in errors] == [
            ErrorCode.RETRY_EXHAUSTED, ErrorCode.CIRCUIT_OPEN, ErrorCode.TIMEOUT,
            ErrorCode.OPERATION_CANCELED, ErrorCode.CONFIGURATION_ERROR,
        ]

    def test_builtin_compatibility(self):
        """Test timeout and configuration errors match builtin exceptions."""
        assert isinstance(ResilienceTimeoutError(timedelta(seconds=1)), TimeoutError)
        assert isinstance(ConfigurationError("bad"), ValueError)

    def test_to_dict(self):
        """Test dictionary representation includes details and cause."""
        error = RetryExhaustedError("Operation failed after 2 retry attempts", 3, OSError("reset"))

        data = error.to_dict()

        assert data == {
            'error': 'retry_exhausted',
            'message': "Operation failed after 2 retry attempts",
            'details': {'attempts': 3},
            'cause': "OSError: reset",
        }
        assert str(error) == "retry_exhausted: Operation failed after 2 retry attempts"

    def test_circuit_open_details(self):
        """Test circuit open errors describe when calls resume."""
        open_until = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

        error = CircuitOpenError("payments", open_until, timedelta(seconds=2.5))

        assert "payments" in error.message
        assert error.details['open_until'] == open_until.isoformat()
        assert error.details['retry_after_seconds'] == 2.5

    def test_configuration_error_details(self):
        """Test configuration errors record the offending field."""
        error = ConfigurationError("must be > 0", field="max_attempts", value=0)

        assert error.details == {'field': 'max_attempts', 'value': '0'}


class TestTransientClassification:
    """Test the default retry predicate."""

    @pytest.mark.parametrize("exception", [
        TimeoutError(),
        asyncio.TimeoutError(),
        ConnectionRefusedError(),
        OSError("disk"),
        aiohttp.ClientConnectionError("refused"),
        aiohttp.ServerDisconnectedError(),
        ResilienceTimeoutError(timedelta(seconds=1)),
        RuntimeError("Request Timeout"),
        Exception("service temporarily unavailable"),
    ])
    def test_transient(self, exception):
        """Test transient exception types and messages."""
        assert is_transient_failure(exception)

    @pytest.mark.parametrize("exception", [
        ValueError("bad input"),
        KeyError("missing"),
        RuntimeError("boom"),
        OperationCanceledError(),
        ConfigurationError("timeout must be greater than zero"),
        RetryExhaustedError("failed", 2, TimeoutError()),
    ])
    def test_not_transient(self, exception):
        """Test permanent failures and cancellation are not retried."""
        assert not is_transient_failure(exception)


class TestMetricsExport:
    """Test Prometheus exposition."""

    def test_export_contains_metrics(self):
        """Test recorded values appear in the text format."""
        metrics = ResilienceMetrics(namespace="svc")
        metrics.record_retry("api")
        metrics.record_circuit_transition("api", "closed", "open")

        text = metrics.export().decode("utf-8")

        assert 'svc_retry_attempts_total{strategy="api"} 1.0' in text
        assert 'svc_circuit_state{strategy="api"} 2.0' in text

    def test_shared_registry(self):
        """Test a caller-supplied registry receives the metrics."""
        registry = CollectorRegistry()
        metrics = ResilienceMetrics(registry=registry)

        metrics.record_timeout("db")

        assert registry.get_sample_value('steadfast_timeouts_total', {'strategy': 'db'}) == 1
        assert metrics.get_sample_value('retry_exhausted_total', {'strategy': 'db'}) is None
