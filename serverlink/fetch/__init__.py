"""Status probe layer with override strategies and failure capture.

This module provides single-shot status probes with:
- Default httpx GET against host + path
- Per-attempt advisory override strategies (literal or deferred values)
- Typed transport failures with an explicit transient/fatal boundary
- Exponential backoff configuration for callers that retry
- Metrics collection for observability
"""

from serverlink.fetch.client import (
    FetchOverride,
    StatusFetcher,
    build_probe_url,
    classify_exception,
    resolve_deferred,
)
from serverlink.fetch.config import FetchConfig
from serverlink.fetch.constants import (
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_STATUS_PATH,
    DEFAULT_TIMEOUT_SECONDS,
    HTTP_STATUS_OK,
)
from serverlink.fetch.metrics import FetchMetrics
from serverlink.fetch.models import (
    FetchContext,
    FetchError,
    FetchErrorClass,
    FetchResult,
    ResponseSizeExceededError,
    RetryConfig,
)
from serverlink.fetch.redact import redact_url_credentials


__all__ = [
    # Client
    "StatusFetcher",
    "FetchOverride",
    "build_probe_url",
    "classify_exception",
    "resolve_deferred",
    # Config
    "FetchConfig",
    # Models
    "FetchContext",
    "FetchResult",
    "FetchError",
    "FetchErrorClass",
    "RetryConfig",
    "ResponseSizeExceededError",
    # Constants
    "DEFAULT_STATUS_PATH",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_MAX_RESPONSE_SIZE_BYTES",
    "HTTP_STATUS_OK",
    # Metrics
    "FetchMetrics",
    # Redaction
    "redact_url_credentials",
]
