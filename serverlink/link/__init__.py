"""Link readiness polling, aggregation and status advertising.

This module provides:
- Status classification of raw probe responses
- Per-host retry state machines driven by explicit decisions
- Concurrent multi-host waits with all-settle aggregation
- A status holder and its HTTP responder
"""

from serverlink.link.classifier import classify, classify_best_effort, classify_result
from serverlink.link.coordinator import WaitCoordinator, get, wait
from serverlink.link.errors import (
    InvalidStatusError,
    LinkError,
    LinkErrorKind,
    LinksNotReadyError,
    ServerLinkError,
    format_links_message,
)
from serverlink.link.holder import LinkStatusHolder, StatusResponder, coerce_status
from serverlink.link.metrics import LinkMetrics
from serverlink.link.models import (
    RECOGNIZED_STATUS_VALUES,
    RETRYABLE_STATUSES,
    Status,
    WaitOptions,
)
from serverlink.link.poller import (
    AttemptDecision,
    Continue,
    Fail,
    LinkPoller,
    PollResult,
    Succeed,
    decide,
)
from serverlink.link.state_machine import (
    LinkState,
    LinkStateMachine,
    LinkStateTransitionError,
)


__all__ = [
    # Operations
    "wait",
    "get",
    "WaitCoordinator",
    "LinkPoller",
    "decide",
    "classify",
    "classify_result",
    "classify_best_effort",
    # Models
    "Status",
    "WaitOptions",
    "PollResult",
    "AttemptDecision",
    "Continue",
    "Succeed",
    "Fail",
    "RECOGNIZED_STATUS_VALUES",
    "RETRYABLE_STATUSES",
    # Errors
    "ServerLinkError",
    "LinkError",
    "LinkErrorKind",
    "LinksNotReadyError",
    "InvalidStatusError",
    "format_links_message",
    # State machine
    "LinkState",
    "LinkStateMachine",
    "LinkStateTransitionError",
    # Holder
    "LinkStatusHolder",
    "StatusResponder",
    "coerce_status",
    # Metrics
    "LinkMetrics",
]
