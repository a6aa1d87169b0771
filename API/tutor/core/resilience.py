"""Circuit breakers guarding the Ollama generate and embedding endpoints."""
import time
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock

from tutor.core.settings import settings


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """
    Opens after `failure_threshold` consecutive failures and rejects calls until
    `recovery_timeout_seconds` have passed; then one trial call decides whether to close again.
    """

    name: str
    failure_threshold: int = 4
    recovery_timeout_seconds: float = 30.0
    state: CircuitState = field(default=CircuitState.CLOSED)
    failure_count: int = field(default=0)
    opened_at: float = field(default=0.0)
    trial_in_flight: bool = field(default=False)
    _lock: Lock = field(default_factory=Lock)

    def seconds_until_trial(self) -> float:
        if self.state != CircuitState.OPEN:
            return 0.0
        return max(0.0, self.recovery_timeout_seconds - (time.monotonic() - self.opened_at))

    def can_execute(self) -> bool:
        with self._lock:
            if self.state == CircuitState.CLOSED:
                return True
            if self.state == CircuitState.OPEN and self.seconds_until_trial() == 0.0:
                self.state = CircuitState.HALF_OPEN
                self.trial_in_flight = False
            if self.state == CircuitState.HALF_OPEN and not self.trial_in_flight:
                self.trial_in_flight = True
                return True
            return False

    def record_success(self) -> None:
        with self._lock:
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            self.trial_in_flight = False

    def record_failure(self) -> None:
        with self._lock:
            self.failure_count += 1
            if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
                self.state = CircuitState.OPEN
                self.opened_at = time.monotonic()
                self.trial_in_flight = False

    def status(self) -> dict:
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "retry_in_seconds": round(self.seconds_until_trial(), 1),
        }


_registry: dict[str, CircuitBreaker] = {}
_registry_lock = Lock()


def get_breaker(name: str) -> CircuitBreaker:
    with _registry_lock:
        if name not in _registry:
            _registry[name] = CircuitBreaker(
                name=name,
                failure_threshold=settings.breaker_failure_threshold,
                recovery_timeout_seconds=settings.breaker_recovery_seconds,
            )
        return _registry[name]


def get_breakers_status() -> dict[str, dict]:
    with _registry_lock:
        breakers = list(_registry.values())
    return {breaker.name: breaker.status() for breaker in breakers}


def reset_breakers() -> None:
    with _registry_lock:
        _registry.clear()
