"""
Circuit breaker strategy for preventing repeated calls to a failing dependency.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..cancellation import CancellationToken
from ..errors import CircuitOpenError, ConfigurationError, OperationCanceledError
from ..metrics import ResilienceMetrics
from ..resilience.strategy import Operation, ResilienceStrategy, T, ensure_operation, ensure_token

logger = logging.getLogger(__name__)

# Bounded in-memory transition history
MAX_TRANSITIONS = 100


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"        # Normal operation, calls pass through
    OPEN = "open"            # Failure mode, calls rejected
    HALF_OPEN = "half_open"  # Break elapsed, one probe call allowed


@dataclass
class StateTransition:
    """Circuit breaker state transition."""
    from_state: CircuitState
    to_state: CircuitState
    timestamp: datetime
    reason: str
    failure_count: int = 0


@dataclass
class CircuitStats:
    """Circuit breaker statistics."""
    name: str
    state: CircuitState
    failure_count: int = 0
    failure_threshold: int = 0
    last_failure_time: Optional[datetime] = None
    open_until: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'name': self.name,
            'state': self.state.value,
            'failure_count': self.failure_count,
            'failure_threshold': self.failure_threshold,
            'last_failure_time': self.last_failure_time.isoformat() if self.last_failure_time else None,
            'open_until': self.open_until.isoformat() if self.open_until else None,
        }


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Circuit breaker configuration."""
    failure_threshold: int = 5
    duration_of_break: timedelta = field(default_factory=lambda: timedelta(seconds=30))

    def __post_init__(self):
        if (isinstance(self.failure_threshold, bool) or not isinstance(self.failure_threshold, int)
                or self.failure_threshold <= 0):
            raise ConfigurationError(
                "failure_threshold must be > 0", field="failure_threshold", value=self.failure_threshold
            )
        if not isinstance(self.duration_of_break, timedelta) or self.duration_of_break <= timedelta(0):
            raise ConfigurationError(
                "duration_of_break must be > 0", field="duration_of_break", value=self.duration_of_break
            )


class CircuitBreakerStrategy(ResilienceStrategy):
    """
    Circuit breaker implementation to prevent cascading failures.

    States:
    - CLOSED: calls pass through; consecutive failures are counted and the
      circuit opens when failure_threshold is reached
    - OPEN: calls are rejected with CircuitOpenError without running the
      operation until duration_of_break has elapsed
    - HALF_OPEN: a single call is let through as a probe while other calls
      are rejected; success closes the circuit, failure opens it again

    The entry check and the outcome bookkeeping each take the lock; the
    operation itself runs without holding it.
    """

    def __init__(
        self,
        config: Optional[CircuitBreakerConfig] = None,
        *,
        name: str = "circuit-breaker",
        on_state_change: Optional[Callable[[StateTransition], None]] = None,
        metrics: Optional[ResilienceMetrics] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(name)
        self.config = config or CircuitBreakerConfig()
        self._on_state_change = on_state_change
        self._metrics = metrics
        self._clock = clock or utc_now

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[datetime] = None
        self._open_until: Optional[datetime] = None
        self._transitions: List[StateTransition] = []
        self._probe_in_flight = False
        self._lock = threading.Lock()

        if self._metrics:
            self._metrics.record_circuit_state(self.name, CircuitState.CLOSED.value)

        logger.info(
            f"Circuit breaker '{self.name}' initialized "
            f"(threshold={self.config.failure_threshold}, break={self.config.duration_of_break})"
        )

    @property
    def state(self) -> CircuitState:
        """
        Get current state.

        Reports HALF_OPEN once the break has elapsed even though the
        transition itself only happens on the next call. Advisory only under
        concurrent access.
        """
        with self._lock:
            if self._state == CircuitState.OPEN and self._break_elapsed():
                return CircuitState.HALF_OPEN
            return self._state

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    @property
    def last_failure_time(self) -> Optional[datetime]:
        with self._lock:
            return self._last_failure_time

    @property
    def open_until(self) -> Optional[datetime]:
        with self._lock:
            return self._open_until

    @property
    def stats(self) -> CircuitStats:
        """Get current statistics."""
        with self._lock:
            return CircuitStats(
                name=self.name,
                state=self._state,
                failure_count=self._failure_count,
                failure_threshold=self.config.failure_threshold,
                last_failure_time=self._last_failure_time,
                open_until=self._open_until,
            )

    def get_transitions(self) -> List[StateTransition]:
        """Get state transition history."""
        with self._lock:
            return self._transitions.copy()

    def reset(self) -> None:
        """Reset circuit breaker to closed state."""
        with self._lock:
            self._probe_in_flight = False
            old_state = self._state
            self._failure_count = 0
            self._open_until = None
            transition = self._transition(old_state, CircuitState.CLOSED, "Manual reset")

        logger.info(f"Circuit breaker '{self.name}' manually reset")
        self._notify(transition)

    async def execute(self, operation: Operation[T],
                      cancellation_token: Optional[CancellationToken] = None) -> T:
        """Execute operation with circuit breaker protection."""
        ensure_operation(operation)
        token = ensure_token(cancellation_token)

        is_probe = self._ensure_circuit_allows_operation()

        try:
            result = await operation(token)
        except OperationCanceledError as e:
            # Caller cancellation is not a dependency failure
            if token.is_cancellation_requested:
                self._release_probe(is_probe)
            else:
                self._on_failure(e)
            raise
        except Exception as e:
            self._on_failure(e)
            raise
        except BaseException:
            self._release_probe(is_probe)
            raise

        self._on_success()
        return result

    def _break_elapsed(self) -> bool:
        return self._open_until is not None and self._clock() >= self._open_until

    def _ensure_circuit_allows_operation(self) -> bool:
        """
        Reject the call when open, moving to half-open once the break elapsed.

        Returns True when the call is the half-open probe.
        """
        transition = None
        is_probe = False

        with self._lock:
            if self._state == CircuitState.OPEN:
                if not self._break_elapsed():
                    open_until = self._open_until
                    retry_after = max(open_until - self._clock(), timedelta(0))
                    logger.warning(
                        f"Circuit breaker '{self.name}' is open, operation rejected. "
                        f"Circuit will remain open until {open_until.isoformat()}"
                    )
                    if self._metrics:
                        self._metrics.record_circuit_rejection(self.name)
                    raise CircuitOpenError(self.name, open_until, retry_after)

                transition = self._transition(
                    CircuitState.OPEN, CircuitState.HALF_OPEN, "Break duration elapsed, allowing probe call"
                )
                self._probe_in_flight = is_probe = True
                logger.info(f"Circuit breaker '{self.name}' half-opened: allowing probe call")

            elif self._state == CircuitState.HALF_OPEN:
                if self._probe_in_flight:
                    logger.warning(
                        f"Circuit breaker '{self.name}' is half-open with a probe call in flight, operation rejected"
                    )
                    if self._metrics:
                        self._metrics.record_circuit_rejection(self.name)
                    raise CircuitOpenError(
                        self.name, self._open_until or self._clock(), timedelta(0),
                        message=f"Circuit '{self.name}' is half-open and a probe call is in flight"
                    )

                self._probe_in_flight = is_probe = True
                logger.debug(f"Circuit breaker '{self.name}' is half-open, allowing probe call")

            else:
                logger.debug(f"Circuit breaker '{self.name}' is closed, allowing operation")

        self._notify(transition)
        return is_probe

    def _release_probe(self, is_probe: bool) -> None:
        """Let the next half-open call probe when this probe ended without an outcome."""
        if not is_probe:
            return
        with self._lock:
            self._probe_in_flight = False

    def _on_success(self) -> None:
        """Handle successful execution."""
        transition = None

        with self._lock:
            self._probe_in_flight = False
            if self._state == CircuitState.HALF_OPEN:
                self._failure_count = 0
                self._open_until = None
                transition = self._transition(
                    CircuitState.HALF_OPEN, CircuitState.CLOSED, "Probe call succeeded"
                )
                logger.info(f"Circuit breaker '{self.name}' closed: probe call succeeded")

            elif self._state == CircuitState.CLOSED:
                self._failure_count = 0

        self._notify(transition)

    def _on_failure(self, exception: BaseException) -> None:
        """Handle failed execution."""
        transition = None

        with self._lock:
            self._probe_in_flight = False
            now = self._clock()
            self._last_failure_time = now

            if self._state == CircuitState.HALF_OPEN:
                self._open_until = now + self.config.duration_of_break
                transition = self._transition(
                    CircuitState.HALF_OPEN, CircuitState.OPEN, f"Probe call failed: {exception}"
                )
                logger.warning(
                    f"Circuit breaker '{self.name}' re-opened until {self._open_until.isoformat()}: "
                    f"probe call failed: {exception}"
                )

            elif self._state == CircuitState.CLOSED:
                self._failure_count += 1

                if self._failure_count >= self.config.failure_threshold:
                    self._open_until = now + self.config.duration_of_break
                    transition = self._transition(
                        CircuitState.CLOSED, CircuitState.OPEN,
                        f"Failure threshold reached ({self._failure_count} failures)"
                    )
                    logger.warning(
                        f"Circuit breaker '{self.name}' opened until {self._open_until.isoformat()}: "
                        f"failure threshold reached ({self._failure_count}/{self.config.failure_threshold})"
                    )
                else:
                    logger.warning(
                        f"Circuit breaker '{self.name}' recorded failure "
                        f"{self._failure_count}/{self.config.failure_threshold}: {exception}"
                    )

            else:
                # Opened by a concurrent call while this one was running
                logger.debug(f"Circuit breaker '{self.name}' recorded failure while open: {exception}")

        self._notify(transition)

    def _transition(self, from_state: CircuitState, to_state: CircuitState, reason: str) -> StateTransition:
        """Move to a new state and record the transition. Must be called with the lock held."""
        self._state = to_state
        transition = StateTransition(
            from_state=from_state,
            to_state=to_state,
            timestamp=self._clock(),
            reason=reason,
            failure_count=self._failure_count,
        )

        self._transitions.append(transition)
        if len(self._transitions) > MAX_TRANSITIONS:
            self._transitions = self._transitions[-MAX_TRANSITIONS // 2:]

        if self._metrics:
            self._metrics.record_circuit_transition(self.name, from_state.value, to_state.value)

        return transition

    def _notify(self, transition: Optional[StateTransition]) -> None:
        """Call the state change callback outside the lock."""
        if transition is None or not self._on_state_change:
            return
        try:
            self._on_state_change(transition)
        except Exception as e:
            logger.error(f"State change callback failed: {e}")
