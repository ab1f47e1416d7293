"""Declare and await server link readiness over HTTP.

A process advertises its status (offline, starting, online, error) with
a LinkStatusHolder and StatusResponder; dependents block on wait() until
one or more links report online, with bounded per-host retries.
"""

__version__ = "0.1.0"

from serverlink.fetch import FetchConfig, FetchContext, FetchResult, RetryConfig
from serverlink.link import (
    InvalidStatusError,
    LinkError,
    LinkErrorKind,
    LinksNotReadyError,
    LinkStatusHolder,
    ServerLinkError,
    Status,
    StatusResponder,
    WaitCoordinator,
    WaitOptions,
    get,
    wait,
)


__all__ = [
    "__version__",
    "wait",
    "get",
    "WaitCoordinator",
    "WaitOptions",
    "RetryConfig",
    "FetchConfig",
    "FetchContext",
    "FetchResult",
    "Status",
    "LinkStatusHolder",
    "StatusResponder",
    "ServerLinkError",
    "LinkError",
    "LinkErrorKind",
    "LinksNotReadyError",
    "InvalidStatusError",
]
