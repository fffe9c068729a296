"""Metrics collection for retrieval orchestration."""

from dataclasses import dataclass, field
from typing import ClassVar

from sessionfetch.errors.models import ErrorKind


@dataclass
class RetrievalMetrics:
    """Process-wide counters for retrieval runs.

    Singleton class. Counters are observational only and never feed back
    into orchestration decisions.
    """

    retrieve_total: int = 0
    retrieve_success_total: int = 0
    retrieve_failures_total: dict[str, int] = field(default_factory=dict)
    strategy_attempts_total: dict[str, int] = field(default_factory=dict)
    retry_total: int = 0
    escalation_total: int = 0
    bootstrap_success_total: int = 0
    bootstrap_failure_total: int = 0
    duration_ms_total: float = 0.0

    _instance: ClassVar["RetrievalMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "RetrievalMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_attempt(self, strategy_name: str) -> None:
        """Record one strategy attempt."""
        self.strategy_attempts_total[strategy_name] = (
            self.strategy_attempts_total.get(strategy_name, 0) + 1
        )

    def record_retry(self) -> None:
        """Record a retry of the same strategy."""
        self.retry_total += 1

    def record_escalation(self) -> None:
        """Record a move to the next strategy."""
        self.escalation_total += 1

    def record_bootstrap(self, *, succeeded: bool) -> None:
        """Record a session bootstrap outcome."""
        if succeeded:
            self.bootstrap_success_total += 1
        else:
            self.bootstrap_failure_total += 1

    def record_outcome(self, error_kind: ErrorKind | None, duration_ms: float) -> None:
        """Record the end of a retrieval run.

        Args:
            error_kind: Kind of the classified error, or None on success.
            duration_ms: Duration of the run in milliseconds.
        """
        self.retrieve_total += 1
        self.duration_ms_total += duration_ms
        if error_kind is None:
            self.retrieve_success_total += 1
        else:
            key = error_kind.value
            self.retrieve_failures_total[key] = (
                self.retrieve_failures_total.get(key, 0) + 1
            )

    def to_dict(self) -> dict[str, int | float | dict[str, int]]:
        """Convert metrics to dictionary."""
        return {
            "retrieve_total": self.retrieve_total,
            "retrieve_success_total": self.retrieve_success_total,
            "retrieve_failures_total": dict(self.retrieve_failures_total),
            "strategy_attempts_total": dict(self.strategy_attempts_total),
            "retry_total": self.retry_total,
            "escalation_total": self.escalation_total,
            "bootstrap_success_total": self.bootstrap_success_total,
            "bootstrap_failure_total": self.bootstrap_failure_total,
            "duration_ms_total": self.duration_ms_total,
        }

    @property
    def avg_duration_ms(self) -> float:
        """Calculate average run duration in milliseconds."""
        if self.retrieve_total == 0:
            return 0.0
        return self.duration_ms_total / self.retrieve_total
