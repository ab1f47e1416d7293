"""Metrics collection for the probe layer."""

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock

from serverlink.fetch.models import FetchErrorClass


# Module-level singleton state
_metrics_instance: "FetchMetrics | None" = None
_metrics_lock: Lock = Lock()


@dataclass
class FetchMetrics:
    """Thread-safe metrics for probe operations.

    Tracks probe counts by response code, override usage, transport
    failures and timing. Use get_instance() for singleton access.
    """

    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    probes_by_status_code: Counter[int] = field(default_factory=Counter)
    failures_by_error_class: Counter[str] = field(default_factory=Counter)
    probe_count: int = 0
    override_count: int = 0
    override_fallback_count: int = 0
    duration_ms_total: float = 0.0

    @classmethod
    def get_instance(cls) -> "FetchMetrics":
        """Get the singleton instance (thread-safe).

        Returns:
            The shared FetchMetrics instance.
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

    def record_response(self, status_code: int, duration_ms: float) -> None:
        """Record a network probe that produced a response.

        Args:
            status_code: HTTP status code.
            duration_ms: Probe duration in milliseconds.
        """
        with self._lock:
            self.probes_by_status_code[status_code] += 1
            self.probe_count += 1
            self.duration_ms_total += duration_ms

    def record_failure(self, error_class: FetchErrorClass, duration_ms: float) -> None:
        """Record a probe that produced no usable response.

        Args:
            error_class: Classification of the failure.
            duration_ms: Probe duration in milliseconds.
        """
        with self._lock:
            self.failures_by_error_class[error_class.value] += 1
            self.probe_count += 1
            self.duration_ms_total += duration_ms

    def record_override(self, *, fell_back: bool) -> None:
        """Record a call to a fetch override.

        Args:
            fell_back: Whether the override yielded no value.
        """
        with self._lock:
            self.override_count += 1
            if fell_back:
                self.override_fallback_count += 1

    @property
    def avg_duration_ms(self) -> float:
        """Calculate average probe duration.

        Returns:
            Average duration in milliseconds.
        """
        if self.probe_count == 0:
            return 0.0
        return self.duration_ms_total / self.probe_count

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        with self._lock:
            return {
                "probes_by_status_code": dict(self.probes_by_status_code),
                "failures_by_error_class": dict(self.failures_by_error_class),
                "probe_count": self.probe_count,
                "override_count": self.override_count,
                "override_fallback_count": self.override_fallback_count,
                "duration_ms_total": self.duration_ms_total,
                "avg_duration_ms": self.avg_duration_ms,
            }
