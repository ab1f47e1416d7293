"""Unit tests for attempt decisions and the per-host poll loop."""

from collections.abc import Sequence

import pytest

from serverlink.fetch.client import StatusFetcher
from serverlink.fetch.models import (
    FetchError,
    FetchErrorClass,
    FetchResult,
    RetryConfig,
)
from serverlink.link.errors import LinkError, LinkErrorKind
from serverlink.link.metrics import LinkMetrics
from serverlink.link.models import Status
from serverlink.link.poller import Continue, Fail, LinkPoller, Succeed, decide
from serverlink.link.state_machine import LinkState


def _error(error_class: FetchErrorClass) -> FetchError:
    return FetchError(error_class=error_class, message=f"{error_class.value} happened")


class _ScriptedFetcher(StatusFetcher):
    """Fetcher replaying one result per attempt."""

    def __init__(self, results: Sequence[FetchResult]) -> None:
        super().__init__()
        self._results = list(results)
        self.attempts: list[int] = []

    def fetch(self, host: str, index: int, attempt: int) -> FetchResult:
        self.attempts.append(attempt)
        return self._results[min(attempt, len(self._results)) - 1]


def _bodies(*bodies: str) -> list[FetchResult]:
    return [FetchResult.from_body(body) for body in bodies]


class TestDecide:
    """Tests for the pure attempt decision."""

    @pytest.fixture
    def retry(self) -> RetryConfig:
        """Create a three-attempt retry configuration."""
        return RetryConfig(max_attempts=3, min_delay_ms=100, max_delay_ms=1000)

    def test_online_succeeds(self, retry: RetryConfig) -> None:
        """Online ends the loop successfully."""
        assert decide(Status.ONLINE, None, 1, retry) == Succeed(Status.ONLINE)

    @pytest.mark.parametrize("status", [Status.OFFLINE, Status.STARTING])
    def test_retryable_continues_with_backoff(
        self, status: Status, retry: RetryConfig
    ) -> None:
        """Offline and starting schedule another attempt."""
        assert decide(status, None, 1, retry) == Continue(100)
        assert decide(status, None, 2, retry) == Continue(200)

    @pytest.mark.parametrize("status", [Status.OFFLINE, Status.STARTING])
    def test_retryable_exhausted(self, status: Status, retry: RetryConfig) -> None:
        """A retryable status on the last attempt fails not-ready."""
        decision = decide(status, None, 3, retry)

        assert isinstance(decision, Fail)
        assert decision.kind == LinkErrorKind.LINK_NOT_READY
        assert decision.attempts == 3

    def test_invalid_is_fatal(self, retry: RetryConfig) -> None:
        """Invalid fails immediately regardless of remaining budget."""
        decision = decide(Status.INVALID, None, 1, retry)

        assert isinstance(decision, Fail)
        assert decision.kind == LinkErrorKind.LINK_INVALID
        assert decision.attempts == 1

    def test_error_is_fatal(self, retry: RetryConfig) -> None:
        """Error fails immediately regardless of remaining budget."""
        decision = decide(Status.ERROR, None, 1, retry)

        assert isinstance(decision, Fail)
        assert decision.kind == LinkErrorKind.LINK_ERROR

    @pytest.mark.parametrize(
        "error_class",
        [
            FetchErrorClass.NETWORK_TIMEOUT,
            FetchErrorClass.CONNECTION_ERROR,
            FetchErrorClass.PROTOCOL_ERROR,
        ],
    )
    def test_transient_failure_retried(
        self, error_class: FetchErrorClass, retry: RetryConfig
    ) -> None:
        """Transient transport failures retry like offline."""
        assert decide(None, _error(error_class), 1, retry) == Continue(100)

    def test_transient_failure_exhausted_keeps_cause(self, retry: RetryConfig) -> None:
        """An exhausted transport failure carries the underlying error."""
        error = _error(FetchErrorClass.CONNECTION_ERROR)

        decision = decide(None, error, 3, retry)

        assert isinstance(decision, Fail)
        assert decision.kind == LinkErrorKind.LINK_NOT_READY
        assert decision.cause == error
        assert "CONNECTION_ERROR happened" in decision.message

    def test_invalid_url_is_fatal(self, retry: RetryConfig) -> None:
        """Unprobeable URLs fail invalid without retry."""
        decision = decide(None, _error(FetchErrorClass.INVALID_URL), 1, retry)

        assert isinstance(decision, Fail)
        assert decision.kind == LinkErrorKind.LINK_INVALID

    def test_unknown_failure_is_fatal(self, retry: RetryConfig) -> None:
        """Unclassified failures fail with error kind without retry."""
        decision = decide(None, _error(FetchErrorClass.UNKNOWN), 1, retry)

        assert isinstance(decision, Fail)
        assert decision.kind == LinkErrorKind.LINK_ERROR

    def test_decide_is_pure(self, retry: RetryConfig) -> None:
        """Identical inputs give identical decisions."""
        assert decide(Status.STARTING, None, 2, retry) == decide(
            Status.STARTING, None, 2, retry
        )


class TestLinkPoller:
    """Tests for LinkPoller."""

    @pytest.fixture(autouse=True)
    def reset_metrics(self) -> None:
        """Reset link metrics before each test."""
        LinkMetrics.reset()

    def _poll(
        self,
        results: Sequence[FetchResult],
        retry: RetryConfig,
    ) -> tuple[_ScriptedFetcher, list[float], LinkPoller]:
        fetcher = _ScriptedFetcher(results)
        sleeps: list[float] = []
        poller = LinkPoller("a.test", 0, fetcher, retry, sleep=sleeps.append)
        return fetcher, sleeps, poller

    def test_online_first_probe(self) -> None:
        """Online on attempt 1 settles after exactly one probe."""
        fetcher, sleeps, poller = self._poll(_bodies("online"), RetryConfig())

        result = poller.run()

        assert result.outcome == Status.ONLINE
        assert result.succeeded is True
        assert result.attempts == 1
        assert result.state == LinkState.SUCCEEDED
        assert fetcher.attempts == [1]
        assert sleeps == []

    def test_starting_then_online(self) -> None:
        """Starting then online succeeds on attempt 2 after one backoff."""
        retry = RetryConfig(max_attempts=2, min_delay_ms=500, max_delay_ms=500)
        fetcher, sleeps, poller = self._poll(_bodies("starting", "online"), retry)

        result = poller.run()

        assert result.outcome == Status.ONLINE
        assert fetcher.attempts == [1, 2]
        assert sleeps == [0.5]

    def test_starting_exhausts_single_attempt(self) -> None:
        """Starting with one attempt fails not-ready after one probe."""
        retry = RetryConfig(max_attempts=1)
        fetcher, sleeps, poller = self._poll(_bodies("starting", "online"), retry)

        result = poller.run()

        assert isinstance(result.outcome, LinkError)
        assert result.outcome.kind == LinkErrorKind.LINK_NOT_READY
        assert result.outcome.attempts_used == 1
        assert result.outcome.last_status == Status.STARTING
        assert result.state == LinkState.FAILED_EXHAUSTED
        assert fetcher.attempts == [1]
        assert sleeps == []

    def test_error_never_retried(self) -> None:
        """Error on attempt 1 fails fatally even with budget left."""
        fetcher, _, poller = self._poll(_bodies("error", "online"), RetryConfig())

        result = poller.run()

        assert isinstance(result.outcome, LinkError)
        assert result.outcome.kind == LinkErrorKind.LINK_ERROR
        assert result.outcome.attempts_used == 1
        assert result.state == LinkState.FAILED_FATAL
        assert fetcher.attempts == [1]

    def test_invalid_after_retries_keeps_attempt_count(self) -> None:
        """An invalid response ends the loop at its own attempt."""
        retry = RetryConfig(max_attempts=5, min_delay_ms=0)
        fetcher, _, poller = self._poll(_bodies("offline", "bogus"), retry)

        result = poller.run()

        assert isinstance(result.outcome, LinkError)
        assert result.outcome.kind == LinkErrorKind.LINK_INVALID
        assert result.outcome.attempts_used == 2
        assert result.last_status == Status.INVALID
        assert fetcher.attempts == [1, 2]

    def test_backoff_grows_exponentially(self) -> None:
        """Delays between attempts follow the backoff policy."""
        retry = RetryConfig(
            max_attempts=4, min_delay_ms=100, max_delay_ms=300, backoff_factor=2.0
        )
        _, sleeps, poller = self._poll(_bodies("offline"), retry)

        result = poller.run()

        assert isinstance(result.outcome, LinkError)
        assert result.outcome.attempts_used == 4
        assert sleeps == [0.1, 0.2, 0.3]

    def test_transport_failure_retried_then_online(self) -> None:
        """Transient transport failures are retried."""
        results = [
            FetchResult.from_error(FetchErrorClass.CONNECTION_ERROR, "refused"),
            FetchResult.from_body("online"),
        ]
        fetcher, _, poller = self._poll(results, RetryConfig(min_delay_ms=0))

        result = poller.run()

        assert result.outcome == Status.ONLINE
        assert fetcher.attempts == [1, 2]

    def test_transport_failure_exhausted(self) -> None:
        """Exhausted transport failures report offline with their cause."""
        results = [FetchResult.from_error(FetchErrorClass.NETWORK_TIMEOUT, "slow")]
        _, _, poller = self._poll(results, RetryConfig(max_attempts=2, min_delay_ms=0))

        result = poller.run()

        assert isinstance(result.outcome, LinkError)
        assert result.outcome.kind == LinkErrorKind.LINK_NOT_READY
        assert result.outcome.attempts_used == 2
        assert result.outcome.last_status == Status.OFFLINE
        assert result.outcome.cause is not None
        assert result.outcome.cause.error_class == FetchErrorClass.NETWORK_TIMEOUT

    def test_metrics_recorded(self) -> None:
        """Statuses, retries and outcomes are counted."""
        retry = RetryConfig(max_attempts=3, min_delay_ms=0)
        _, _, poller = self._poll(_bodies("starting", "starting", "online"), retry)

        poller.run()

        metrics = LinkMetrics.get_instance()
        assert metrics.statuses_total == {"starting": 2, "online": 1}
        assert metrics.retries_total == 2
        assert metrics.outcomes_total == {"ONLINE": 1}
