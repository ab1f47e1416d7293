"""Per-host retry loop driven by explicit attempt decisions."""

import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from serverlink.fetch.client import StatusFetcher
from serverlink.fetch.models import FetchError, FetchErrorClass, RetryConfig
from serverlink.fetch.redact import redact_url_credentials
from serverlink.link.classifier import classify_result
from serverlink.link.constants import (
    COMPONENT_POLLER,
    MSG_LINK_ERROR,
    MSG_LINK_INVALID,
    MSG_LINK_NOT_READY,
    MSG_LINK_UNREACHABLE,
)
from serverlink.link.errors import LinkError, LinkErrorKind
from serverlink.link.metrics import OUTCOME_ONLINE, LinkMetrics
from serverlink.link.models import Status
from serverlink.link.state_machine import LinkState, LinkStateMachine


logger = structlog.get_logger()


@dataclass(frozen=True)
class Continue:
    """Schedule the next attempt after a delay."""

    delay_ms: int


@dataclass(frozen=True)
class Succeed:
    """The host is ready."""

    status: Status


@dataclass(frozen=True)
class Fail:
    """The host's loop ends without readiness."""

    kind: LinkErrorKind
    attempts: int
    message: str
    cause: FetchError | None = None


AttemptDecision = Continue | Succeed | Fail


def decide(
    status: Status | None,
    error: FetchError | None,
    attempt: int,
    retry: RetryConfig,
) -> AttemptDecision:
    """Decide what follows an attempt.

    Args:
        status: Classified status, None for a transport failure.
        error: Probe error, if any.
        attempt: Number of the attempt that just finished (1-indexed).
        retry: Retry budget and backoff policy.

    Returns:
        Continue, Succeed or Fail.
    """
    if status is None:
        return _decide_transport_failure(error, attempt, retry)

    if status == Status.ONLINE:
        return Succeed(status)

    if status.is_retryable:
        if retry.is_exhausted(attempt):
            return Fail(LinkErrorKind.LINK_NOT_READY, attempt, MSG_LINK_NOT_READY)
        return Continue(retry.get_delay_ms(attempt))

    if status == Status.ERROR:
        return Fail(LinkErrorKind.LINK_ERROR, attempt, MSG_LINK_ERROR)

    return Fail(LinkErrorKind.LINK_INVALID, attempt, MSG_LINK_INVALID, cause=error)


def _decide_transport_failure(
    error: FetchError | None,
    attempt: int,
    retry: RetryConfig,
) -> AttemptDecision:
    """Decide what follows an attempt that produced no response."""
    if error is None or error.error_class.is_transient:
        if retry.is_exhausted(attempt):
            detail = f": {error.message}" if error else ""
            return Fail(
                LinkErrorKind.LINK_NOT_READY,
                attempt,
                f"{MSG_LINK_UNREACHABLE}{detail}",
                cause=error,
            )
        return Continue(retry.get_delay_ms(attempt))

    if error.error_class == FetchErrorClass.UNKNOWN:
        return Fail(
            LinkErrorKind.LINK_ERROR,
            attempt,
            f"{MSG_LINK_ERROR}: {error.message}",
            cause=error,
        )

    return Fail(
        LinkErrorKind.LINK_INVALID,
        attempt,
        f"{MSG_LINK_INVALID}: {error.message}",
        cause=error,
    )


@dataclass
class PollResult:
    """Terminal result of one host's poll loop."""

    host: str
    index: int
    outcome: Status | LinkError
    attempts: int
    state: LinkState
    last_status: Status | None = None
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        """Check if the host reported online."""
        return self.outcome == Status.ONLINE


class LinkPoller:
    """Drives one host's retry state machine to a terminal state.

    Each attempt probes, classifies, records the latest-known status and
    then acts on an explicit decision. The attempt counter and status
    slot are private to this poller.
    """

    def __init__(  # noqa: PLR0913
        self,
        host: str,
        index: int,
        fetcher: StatusFetcher,
        retry: RetryConfig,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the poller.

        Args:
            host: Host to poll.
            index: Position of the host in the wait call.
            fetcher: Probe strategy shared by the wait call.
            retry: Retry budget and backoff policy.
            sleep: Blocking sleep in seconds (injectable for tests).
        """
        self._host = host
        self._index = index
        self._fetcher = fetcher
        self._retry = retry
        self._sleep = sleep
        self._last_status: Status | None = None
        self._machine = LinkStateMachine(redact_url_credentials(host), index)
        self._metrics = LinkMetrics.get_instance()
        self._log = logger.bind(
            component=COMPONENT_POLLER,
            host=redact_url_credentials(host),
            index=index,
        )

    @property
    def last_status(self) -> Status | None:
        """Get the latest-known status for the host."""
        return self._last_status

    def run(self) -> PollResult:
        """Poll until the host settles.

        Returns:
            PollResult with ONLINE or the LinkError that ended the loop.
        """
        start_time_ns = time.perf_counter_ns()

        while True:
            attempt = self._machine.attempt
            result = self._fetcher.fetch(self._host, self._index, attempt)
            status = classify_result(result)
            self._record(status, result.error)

            decision = decide(status, result.error, attempt, self._retry)

            if isinstance(decision, Continue):
                self._machine.to_retrying()
                self._metrics.record_retry()
                self._log.info(
                    "retry_scheduled",
                    attempt=attempt,
                    status=status.value if status else None,
                    error_class=(
                        result.error.error_class.value if result.error else None
                    ),
                    delay_ms=decision.delay_ms,
                    max_attempts=self._retry.max_attempts,
                )
                self._sleep(decision.delay_ms / 1000.0)
                self._machine.to_probing()
                continue

            duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
            return self._settle(decision, attempt, duration_ms)

    def _record(self, status: Status | None, error: FetchError | None) -> None:
        """Update the latest-known status slot for this attempt."""
        if status is not None:
            self._last_status = status
            self._metrics.record_status(status.value)
            return

        if error is not None:
            self._metrics.record_status(error.error_class.value)
            if error.error_class.is_transient:
                self._last_status = Status.OFFLINE

    def _settle(
        self,
        decision: Succeed | Fail,
        attempt: int,
        duration_ms: float,
    ) -> PollResult:
        """Move to a terminal state and build the result."""
        if isinstance(decision, Succeed):
            self._machine.to_succeeded()
            self._metrics.record_outcome(OUTCOME_ONLINE)
            self._log.info(
                "link_settled",
                outcome=OUTCOME_ONLINE,
                attempts=attempt,
                duration_ms=round(duration_ms, 2),
            )
            return PollResult(
                host=self._host,
                index=self._index,
                outcome=decision.status,
                attempts=attempt,
                state=self._machine.state,
                last_status=self._last_status,
                duration_ms=duration_ms,
            )

        if decision.kind == LinkErrorKind.LINK_NOT_READY:
            self._machine.to_failed_exhausted()
        else:
            self._machine.to_failed_fatal()

        error = LinkError(
            kind=decision.kind,
            message=decision.message,
            attempts_used=decision.attempts,
            host=self._host,
            last_status=self._last_status,
            cause=decision.cause,
        )
        self._metrics.record_outcome(decision.kind.value)
        self._log.warning(
            "link_settled",
            outcome=decision.kind.value,
            attempts=attempt,
            last_status=self._last_status.value if self._last_status else None,
            error_message=decision.message,
            duration_ms=round(duration_ms, 2),
        )
        return PollResult(
            host=self._host,
            index=self._index,
            outcome=error,
            attempts=attempt,
            state=self._machine.state,
            last_status=self._last_status,
            duration_ms=duration_ms,
        )
