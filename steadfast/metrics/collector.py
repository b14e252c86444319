"""
Prometheus metrics integration for steadfast.

This module provides in-process Prometheus metrics for resilience strategies:
retry attempts, exhausted retries, timeouts, circuit rejections and circuit
state transitions. Metrics are held in memory only.
"""

import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

logger = logging.getLogger(__name__)

# Gauge values for circuit_state
CIRCUIT_STATE_VALUES = {
    'closed': 0,
    'half_open': 1,
    'open': 2,
}


class ResilienceMetrics:
    """Metrics collector shared by resilience strategies."""

    def __init__(self, registry: Optional[CollectorRegistry] = None, namespace: str = "steadfast"):
        """
        Initialize metrics collector.

        Args:
            registry: Prometheus registry; a private one is created when omitted
            namespace: Metric name prefix
        """
        self.registry = registry or CollectorRegistry()
        self.namespace = namespace

        self.retry_attempts = Counter(
            'retry_attempts_total',
            'Total number of retries performed after a transient failure',
            ['strategy'],
            namespace=namespace,
            registry=self.registry
        )

        self.retry_exhausted = Counter(
            'retry_exhausted_total',
            'Total number of operations that failed on every attempt',
            ['strategy'],
            namespace=namespace,
            registry=self.registry
        )

        self.timeouts = Counter(
            'timeouts_total',
            'Total number of operations that exceeded their deadline',
            ['strategy'],
            namespace=namespace,
            registry=self.registry
        )

        self.circuit_rejections = Counter(
            'circuit_rejections_total',
            'Total number of calls rejected by an open circuit',
            ['strategy'],
            namespace=namespace,
            registry=self.registry
        )

        self.circuit_transitions = Counter(
            'circuit_transitions_total',
            'Total number of circuit state transitions',
            ['strategy', 'from_state', 'to_state'],
            namespace=namespace,
            registry=self.registry
        )

        self.circuit_state = Gauge(
            'circuit_state',
            'Current circuit state (0 closed, 1 half-open, 2 open)',
            ['strategy'],
            namespace=namespace,
            registry=self.registry
        )

        logger.debug(f"Resilience metrics initialized with namespace '{namespace}'")

    def record_retry(self, strategy: str) -> None:
        self.retry_attempts.labels(strategy=strategy).inc()

    def record_retry_exhausted(self, strategy: str) -> None:
        self.retry_exhausted.labels(strategy=strategy).inc()

    def record_timeout(self, strategy: str) -> None:
        self.timeouts.labels(strategy=strategy).inc()

    def record_circuit_rejection(self, strategy: str) -> None:
        self.circuit_rejections.labels(strategy=strategy).inc()

    def record_circuit_transition(self, strategy: str, from_state: str, to_state: str) -> None:
        """Count a transition and move the state gauge to the new state."""
        self.circuit_transitions.labels(
            strategy=strategy, from_state=from_state, to_state=to_state
        ).inc()
        self.record_circuit_state(strategy, to_state)

    def record_circuit_state(self, strategy: str, state: str) -> None:
        self.circuit_state.labels(strategy=strategy).set(CIRCUIT_STATE_VALUES[state])

    def get_sample_value(self, name: str, labels: Optional[dict] = None) -> Optional[float]:
        """Read a single sample, e.g. get_sample_value('retry_attempts_total', {...})."""
        return self.registry.get_sample_value(f"{self.namespace}_{name}", labels or {})

    def export(self) -> bytes:
        """Render all metrics in the Prometheus text exposition format."""
        return generate_latest(self.registry)
