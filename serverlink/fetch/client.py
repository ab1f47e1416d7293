"""Status probe client with override strategies and failure capture."""

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable
from concurrent.futures import Future
from enum import Enum
from io import BytesIO

import httpx
import structlog

from serverlink.fetch.config import FetchConfig
from serverlink.fetch.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_SCHEME,
    DEFAULT_STATUS_PATH,
)
from serverlink.fetch.metrics import FetchMetrics
from serverlink.fetch.models import (
    FetchContext,
    FetchError,
    FetchErrorClass,
    FetchResult,
    ResponseSizeExceededError,
)
from serverlink.fetch.redact import redact_url_credentials


logger = structlog.get_logger()

# (host, index, attempt, *, context) -> status | FetchResult | None | deferred
FetchOverride = Callable[..., object]


def build_probe_url(host: str, path: str = DEFAULT_STATUS_PATH) -> str:
    """Build the status URL for a host.

    Hosts without a scheme (``localhost:9000``) are probed over http.

    Args:
        host: Host address, with or without scheme.
        path: Status endpoint path.

    Returns:
        Absolute URL to probe.
    """
    base = host if "://" in host else f"{DEFAULT_SCHEME}://{host}"
    if path and not path.startswith("/"):
        path = f"/{path}"
    return f"{base.rstrip('/')}{path}"


def classify_exception(error: BaseException) -> FetchError:
    """Map an exception raised during a probe to a typed error.

    Args:
        error: Exception raised by the transport or an override.

    Returns:
        FetchError with the matching classification.
    """
    if isinstance(error, httpx.TimeoutException | TimeoutError):
        return FetchError(
            error_class=FetchErrorClass.NETWORK_TIMEOUT,
            message=f"Request timed out: {error}",
        )
    if isinstance(error, httpx.InvalidURL | httpx.UnsupportedProtocol):
        return FetchError(
            error_class=FetchErrorClass.INVALID_URL,
            message=f"Invalid URL: {error}",
        )
    if isinstance(error, httpx.NetworkError | ConnectionError):
        return FetchError(
            error_class=FetchErrorClass.CONNECTION_ERROR,
            message=f"Connection failed: {error}",
        )
    if isinstance(error, httpx.TransportError | OSError):
        return FetchError(
            error_class=FetchErrorClass.PROTOCOL_ERROR,
            message=f"Transport error: {error}",
        )
    return FetchError(
        error_class=FetchErrorClass.UNKNOWN,
        message=f"Unexpected error: {type(error).__name__}: {error}",
    )


async def _await_value(awaitable: Awaitable[object]) -> object:
    return await awaitable


def resolve_deferred(value: object) -> object:
    """Resolve a literal or deferred override value.

    Futures are waited on and awaitables are run to completion on a
    private event loop, so literal and deferred values are handled
    uniformly. Must not be called from a thread running an event loop.

    Args:
        value: Literal value, Future or awaitable.

    Returns:
        The resolved literal value.
    """
    while True:
        if isinstance(value, Future):
            value = value.result()
        elif inspect.isawaitable(value):
            value = asyncio.run(_await_value(value))
        else:
            return value


def to_fetch_result(value: object) -> FetchResult:
    """Normalize a resolved override value into a FetchResult.

    Args:
        value: FetchResult, Status or status string.

    Returns:
        FetchResult for the classifier.
    """
    if isinstance(value, FetchResult):
        return value
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return FetchResult.from_body(value)
    return FetchResult.from_error(
        FetchErrorClass.UNKNOWN,
        f"Unsupported override result type: {type(value).__name__}",
    )


class StatusFetcher:
    """Performs single status probes against hosts.

    Provides:
    - Default network probe (one httpx GET to host + path)
    - Optional per-call override strategy, advisory per attempt
    - Uniform handling of literal and deferred override values
    - Transport failures captured as typed errors, never raised
    - Metrics collection
    """

    def __init__(
        self,
        path: str = DEFAULT_STATUS_PATH,
        config: FetchConfig | None = None,
        override: FetchOverride | None = None,
        context: FetchContext | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the status fetcher.

        Args:
            path: Status endpoint path.
            config: Probe configuration.
            override: Optional strategy consulted before the network probe.
            context: Read-only context handed to the override.
            transport: Optional httpx transport (used by tests).
        """
        self._path = path
        self._config = config or FetchConfig()
        self._override = override
        self._context = context
        self._transport = transport
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="fetch", path=path)

    @property
    def path(self) -> str:
        """Get the status endpoint path."""
        return self._path

    def fetch(self, host: str, index: int, attempt: int) -> FetchResult:
        """Perform one probe for an attempt.

        The override, when present, is consulted first. If it yields no
        value the default network probe runs for this same attempt.

        Args:
            host: Host to probe.
            index: Position of the host in the wait call.
            attempt: Attempt number (1-indexed).

        Returns:
            FetchResult with the response or the captured failure.
        """
        if self._override is not None:
            result = self._call_override(host, index, attempt)
            if result is not None:
                return result
            self._log.debug(
                "override_fallback",
                host=redact_url_credentials(host),
                index=index,
                attempt=attempt,
            )
        return self.probe(host)

    def probe(self, host: str) -> FetchResult:
        """Issue one network GET to the host's status endpoint.

        Args:
            host: Host to probe.

        Returns:
            FetchResult with the response or the captured failure.
        """
        url = build_probe_url(host, self._path)
        start_time_ns = time.perf_counter_ns()

        result = self._execute_single(url)

        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        if result.error is None and result.status_code is not None:
            self._metrics.record_response(result.status_code, duration_ms)
        elif result.error is not None:
            self._metrics.record_failure(result.error.error_class, duration_ms)

        self._log.debug(
            "probe_complete",
            url=redact_url_credentials(url),
            status_code=result.status_code,
            bytes=len(result.body),
            duration_ms=round(duration_ms, 2),
            error_class=result.error.error_class.value if result.error else None,
        )
        return result

    def _call_override(self, host: str, index: int, attempt: int) -> FetchResult | None:
        """Consult the override strategy for one attempt.

        Args:
            host: Host to probe.
            index: Position of the host in the wait call.
            attempt: Attempt number (1-indexed).

        Returns:
            FetchResult, or None if the override yielded no value.
        """
        if self._override is None:
            return None
        try:
            value = resolve_deferred(
                self._override(host, index, attempt, context=self._context)
            )
        except Exception as e:  # noqa: BLE001
            self._metrics.record_override(fell_back=False)
            return FetchResult(error=classify_exception(e))

        self._metrics.record_override(fell_back=value is None)
        if value is None:
            return None
        return to_fetch_result(value)

    def _execute_single(self, url: str) -> FetchResult:
        """Execute a single HTTP request.

        Args:
            url: URL to fetch.

        Returns:
            FetchResult from the request.
        """
        try:
            with (
                httpx.Client(
                    timeout=self._config.timeout_seconds,
                    follow_redirects=self._config.follow_redirects,
                    transport=self._transport,
                ) as client,
                client.stream(
                    "GET", url, headers=self._config.build_headers()
                ) as response,
            ):
                try:
                    body = self._read_body_with_limit(response)
                except ResponseSizeExceededError as e:
                    return FetchResult(
                        url=url,
                        status_code=response.status_code,
                        error=FetchError(
                            error_class=FetchErrorClass.RESPONSE_SIZE_EXCEEDED,
                            message=str(e),
                            status_code=response.status_code,
                        ),
                    )
                return FetchResult(
                    url=url,
                    status_code=response.status_code,
                    body=body,
                )

        except Exception as e:  # noqa: BLE001
            return FetchResult(url=url, error=classify_exception(e))

    def _read_body_with_limit(self, response: httpx.Response) -> str:
        """Read response body text with size limit.

        Args:
            response: Streaming HTTP response.

        Returns:
            Response body text.

        Raises:
            ResponseSizeExceededError: If size limit exceeded.
        """
        buffer = BytesIO()
        total_read = 0
        max_size = self._config.max_response_size_bytes

        for chunk in response.iter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
            total_read += len(chunk)
            if total_read > max_size:
                msg = (
                    f"Response size exceeded limit of {max_size} bytes "
                    f"(read {total_read} bytes)"
                )
                raise ResponseSizeExceededError(msg)
            buffer.write(chunk)

        return buffer.getvalue().decode(response.encoding or "utf-8", errors="replace")
