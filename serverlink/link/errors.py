"""Error types for link polling."""

from collections.abc import Sequence
from enum import Enum

from serverlink.fetch.models import FetchError
from serverlink.link.constants import MSG_INVALID_STATUS, MSG_LINKS_NOT_READY
from serverlink.link.models import Status


class LinkErrorKind(str, Enum):
    """Classification of link failures.

    - LINK_NOT_READY: Retryable status persisted until the budget ran out
    - LINK_INVALID: Unrecognized response, never retried
    - LINK_ERROR: Remote reported error, never retried
    - LINKS_NOT_READY: Multi-host summary
    """

    LINK_NOT_READY = "LINKNOTREADY"
    LINK_INVALID = "LINKINVALID"
    LINK_ERROR = "LINKERROR"
    LINKS_NOT_READY = "LINKSNOTREADY"


class ServerLinkError(Exception):
    """Base exception for serverlink errors."""


class InvalidStatusError(ServerLinkError, ValueError):
    """Raised when a value is not one of the recognized statuses."""

    def __init__(self, value: object) -> None:
        """Initialize the error.

        Args:
            value: The rejected value.
        """
        self.value = value
        super().__init__(f"{MSG_INVALID_STATUS}: {value!r}")


class LinkError(ServerLinkError):
    """Terminal failure of one host's poll loop.

    Provides structured error information for logging and aggregation.
    """

    def __init__(  # noqa: PLR0913
        self,
        kind: LinkErrorKind,
        message: str,
        attempts_used: int,
        host: str | None = None,
        last_status: Status | None = None,
        cause: FetchError | None = None,
    ) -> None:
        """Initialize the link error.

        Args:
            kind: Classification of the failure.
            message: Human-readable error message.
            attempts_used: Number of probes made for the host.
            host: Host that failed.
            last_status: Last classified status observed, if any.
            cause: Transport failure behind the error, if any.
        """
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.attempts_used = attempts_used
        self.host = host
        self.last_status = last_status
        self.cause = cause

    @property
    def code(self) -> str:
        """Get the machine-readable error code."""
        return self.kind.value

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "kind": self.kind.value,
            "message": self.message,
            "attempts_used": self.attempts_used,
            "host": self.host,
            "last_status": self.last_status.value if self.last_status else None,
            "cause": self.cause.error_class.value if self.cause else None,
        }


class LinksNotReadyError(ServerLinkError):
    """Aggregate failure of a multi-host wait.

    Carries every host's outcome in input order, successes included,
    so callers can tell partial readiness from total failure.
    """

    kind = LinkErrorKind.LINKS_NOT_READY

    def __init__(
        self,
        hosts: Sequence[str],
        outcomes: Sequence[Status | LinkError],
    ) -> None:
        """Initialize the aggregate error.

        Args:
            hosts: Hosts in input order.
            outcomes: Outcome per host, same order and length as hosts.
        """
        self.hosts = list(hosts)
        self.outcomes = list(outcomes)
        self.message = format_links_message(self.hosts, self.outcomes)
        super().__init__(self.message)

    @property
    def code(self) -> str:
        """Get the machine-readable error code."""
        return self.kind.value

    @property
    def failures(self) -> list[LinkError]:
        """Get the failed outcomes in input order."""
        return [o for o in self.outcomes if isinstance(o, LinkError)]

    @property
    def ready_count(self) -> int:
        """Get the number of hosts that reported online."""
        return sum(1 for o in self.outcomes if o == Status.ONLINE)

    def to_dict(self) -> dict[str, object]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "kind": self.kind.value,
            "message": self.message,
            "ready_count": self.ready_count,
            "outcomes": [
                o.to_dict() if isinstance(o, LinkError) else o.value
                for o in self.outcomes
            ],
        }


def format_links_message(
    hosts: Sequence[str],
    outcomes: Sequence[Status | LinkError],
) -> str:
    """Format the aggregate summary line.

    Args:
        hosts: Hosts in input order.
        outcomes: Outcome per host.

    Returns:
        Message listing ``<host> - <message-or-status>`` per host.
    """
    parts = [
        f"{host} - {o.message if isinstance(o, LinkError) else o.value}"
        for host, o in zip(hosts, outcomes, strict=True)
    ]
    return f"{MSG_LINKS_NOT_READY} [{', '.join(parts)}]"
