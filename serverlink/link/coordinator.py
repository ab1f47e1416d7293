"""Wait coordinator with concurrent per-host polling and aggregation."""

import contextvars
import time
import uuid
from collections.abc import Callable, Sequence
from concurrent.futures import ALL_COMPLETED, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import cast

import httpx
import structlog

from serverlink.fetch.client import StatusFetcher
from serverlink.fetch.config import FetchConfig
from serverlink.fetch.constants import DEFAULT_STATUS_PATH
from serverlink.fetch.models import FetchContext
from serverlink.fetch.redact import redact_url_credentials
from serverlink.link.classifier import classify_best_effort
from serverlink.link.constants import COMPONENT_COORDINATOR, MSG_LINK_ERROR
from serverlink.link.errors import LinkError, LinkErrorKind, LinksNotReadyError
from serverlink.link.metrics import LinkMetrics
from serverlink.link.models import Status, WaitOptions
from serverlink.link.poller import LinkPoller, PollResult
from serverlink.link.state_machine import LinkState


logger = structlog.get_logger()


class WaitCoordinator:
    """Runs one poller per host and aggregates their outcomes.

    Provides:
    - One worker per host, so backoff delays never serialize across hosts
    - All-settle join: no poller is cancelled because another failed
    - Positional results, one per host in input order
    - Failure isolation (an unexpected poller crash fails only its host)
    """

    def __init__(
        self,
        options: WaitOptions | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the coordinator.

        Args:
            options: Wait configuration (path, retry, probe, override).
            transport: Optional httpx transport (used by tests).
            sleep: Blocking sleep in seconds (injectable for tests).
        """
        self._options = options or WaitOptions()
        self._transport = transport
        self._sleep = sleep
        self._metrics = LinkMetrics.get_instance()

    @property
    def options(self) -> WaitOptions:
        """Get the wait configuration."""
        return self._options

    def wait(self, hosts: str | Sequence[str]) -> Status | list[Status]:
        """Block until every host reports online.

        Args:
            hosts: One host (single mode) or a sequence of hosts.

        Returns:
            ONLINE in single mode, else a list of ONLINE per host.

        Raises:
            LinkError: In single mode, when the host did not come online.
            LinksNotReadyError: In multi mode, when any host did not.
            ValueError: If the host sequence is empty.
        """
        single = isinstance(hosts, str)
        host_list = [cast(str, hosts)] if single else list(hosts)

        results = self.run(host_list)
        outcomes = [r.outcome for r in results]
        failures = [o for o in outcomes if isinstance(o, LinkError)]

        if not failures:
            statuses = cast(list[Status], outcomes)
            return statuses[0] if single else statuses

        if single:
            raise failures[0]
        raise LinksNotReadyError(host_list, outcomes)

    def run(self, hosts: Sequence[str]) -> list[PollResult]:
        """Poll every host concurrently and join once all have settled.

        Args:
            hosts: Hosts in input order.

        Returns:
            One PollResult per host, in input order.

        Raises:
            ValueError: If no hosts are given.
            TypeError: If a host is not a string.
        """
        host_list = list(hosts)
        if not host_list:
            msg = "At least one host is required"
            raise ValueError(msg)
        for host in host_list:
            if not isinstance(host, str):
                msg = f"Host must be a string, got {type(host).__name__}"
                raise TypeError(msg)

        wait_id = uuid.uuid4().hex[:12]
        start_time_ns = time.perf_counter_ns()

        with structlog.contextvars.bound_contextvars(wait_id=wait_id):
            log = logger.bind(component=COMPONENT_COORDINATOR)
            log.info(
                "wait_started",
                host_count=len(host_list),
                path=self._options.path,
                max_attempts=self._options.retry.max_attempts,
                override=self._options.fetch_override is not None,
            )

            fetcher = StatusFetcher(
                path=self._options.path,
                config=self._options.fetch,
                override=self._options.fetch_override,
                context=FetchContext(
                    hosts=tuple(host_list),
                    path=self._options.path,
                    options=self._options.retry,
                ),
                transport=self._transport,
            )

            with ThreadPoolExecutor(
                max_workers=len(host_list),
                thread_name_prefix="serverlink",
            ) as executor:
                futures = [
                    executor.submit(
                        contextvars.copy_context().run,
                        self._poll,
                        fetcher,
                        host,
                        index,
                    )
                    for index, host in enumerate(host_list)
                ]
                wait_futures(futures, return_when=ALL_COMPLETED)

            results = [
                self._collect(future, host, index, log)
                for index, (future, host) in enumerate(
                    zip(futures, host_list, strict=True)
                )
            ]

            duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
            ready = sum(1 for r in results if r.succeeded)
            self._metrics.record_wait(
                succeeded=ready == len(results), duration_ms=duration_ms
            )
            log.info(
                "wait_complete",
                hosts_ready=ready,
                hosts_failed=len(results) - ready,
                duration_ms=round(duration_ms, 2),
            )

        return results

    def _poll(self, fetcher: StatusFetcher, host: str, index: int) -> PollResult:
        """Run one host's poller to completion."""
        poller = LinkPoller(
            host=host,
            index=index,
            fetcher=fetcher,
            retry=self._options.retry,
            sleep=self._sleep,
        )
        return poller.run()

    def _collect(
        self,
        future: "Future[PollResult]",
        host: str,
        index: int,
        log: structlog.stdlib.BoundLogger,
    ) -> PollResult:
        """Read one settled future, isolating unexpected poller failures."""
        try:
            return future.result()
        except Exception as e:  # noqa: BLE001
            log.error(
                "poller_execution_error",
                host=redact_url_credentials(host),
                index=index,
                error=str(e),
            )
            return PollResult(
                host=host,
                index=index,
                outcome=LinkError(
                    kind=LinkErrorKind.LINK_ERROR,
                    message=f"{MSG_LINK_ERROR}: execution error: {e}",
                    attempts_used=0,
                    host=host,
                ),
                attempts=0,
                state=LinkState.FAILED_FATAL,
            )


def wait(
    hosts: str | Sequence[str],
    options: WaitOptions | None = None,
) -> Status | list[Status]:
    """Block until one or more remote links report online.

    Args:
        hosts: One host (single mode) or a sequence of hosts.
        options: Wait configuration; defaults apply when omitted.

    Returns:
        ONLINE in single mode, else a list of ONLINE per host.

    Raises:
        LinkError: In single mode, when the host did not come online.
        LinksNotReadyError: In multi mode, carrying every host's outcome.
    """
    return WaitCoordinator(options).wait(hosts)


def get(
    host: str,
    path: str = DEFAULT_STATUS_PATH,
    config: FetchConfig | None = None,
    transport: httpx.BaseTransport | None = None,
) -> Status:
    """Read a host's status with one best-effort probe.

    Never retries and never raises: an unreachable host or an HTTP error
    response reads as OFFLINE.

    Args:
        host: Host to probe.
        path: Status endpoint path.
        config: Probe configuration.
        transport: Optional httpx transport (used by tests).

    Returns:
        The host's classified status.
    """
    fetcher = StatusFetcher(path=path, config=config, transport=transport)
    status = classify_best_effort(fetcher.probe(host))
    logger.bind(component=COMPONENT_COORDINATOR).debug(
        "status_read",
        host=redact_url_credentials(host),
        status=status.value,
    )
    return status
