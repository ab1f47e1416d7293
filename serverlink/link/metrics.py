"""Metrics collection for link polling."""

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock


# Module-level singleton state
_metrics_instance: "LinkMetrics | None" = None
_metrics_lock: Lock = Lock()

OUTCOME_ONLINE = "ONLINE"


@dataclass
class LinkMetrics:
    """Thread-safe metrics for poll loops and wait calls.

    Tracks classified statuses, retries, terminal outcomes and wait
    durations. Use get_instance() for singleton access.
    """

    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    statuses_total: Counter[str] = field(default_factory=Counter)
    outcomes_total: Counter[str] = field(default_factory=Counter)
    retries_total: int = 0
    waits_total: int = 0
    waits_failed: int = 0
    wait_duration_ms_total: float = 0.0

    @classmethod
    def get_instance(cls) -> "LinkMetrics":
        """Get the singleton instance (thread-safe).

        Returns:
            The shared LinkMetrics instance.
        """
        global _metrics_instance  # noqa: PLW0603
        if _metrics_instance is None:
            with _metrics_lock:
                if _metrics_instance is None:
                    _metrics_instance = cls()
        return _metrics_instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (for testing)."""
        global _metrics_instance  # noqa: PLW0603
        with _metrics_lock:
            _metrics_instance = None

    def record_status(self, status: str) -> None:
        """Record a classified probe status.

        Args:
            status: Status value, or a failure class for transport errors.
        """
        with self._lock:
            self.statuses_total[status] += 1

    def record_retry(self) -> None:
        """Record a scheduled retry."""
        with self._lock:
            self.retries_total += 1

    def record_outcome(self, outcome: str) -> None:
        """Record a host's terminal outcome.

        Args:
            outcome: OUTCOME_ONLINE or a link error kind value.
        """
        with self._lock:
            self.outcomes_total[outcome] += 1

    def record_wait(self, *, succeeded: bool, duration_ms: float) -> None:
        """Record a completed wait call.

        Args:
            succeeded: Whether every host reported online.
            duration_ms: Wall time of the call in milliseconds.
        """
        with self._lock:
            self.waits_total += 1
            if not succeeded:
                self.waits_failed += 1
            self.wait_duration_ms_total += duration_ms

    def to_dict(self) -> dict[str, int | float | dict[str, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        with self._lock:
            return {
                "statuses_total": dict(self.statuses_total),
                "outcomes_total": dict(self.outcomes_total),
                "retries_total": self.retries_total,
                "waits_total": self.waits_total,
                "waits_failed": self.waits_failed,
                "wait_duration_ms_total": self.wait_duration_ms_total,
            }
