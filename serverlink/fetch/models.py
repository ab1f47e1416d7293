"""Data models for the probe layer."""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

from serverlink.fetch.constants import HTTP_STATUS_OK


class FetchErrorClass(str, Enum):
    """Classification of probe failures for retry decisions.

    - NETWORK_TIMEOUT: Request timed out
    - CONNECTION_ERROR: Could not establish or keep a connection
    - PROTOCOL_ERROR: Peer broke the HTTP exchange
    - INVALID_URL: Host or path cannot form a probeable URL
    - RESPONSE_SIZE_EXCEEDED: Response exceeded max size limit
    - UNKNOWN: Unclassified error
    """

    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    INVALID_URL = "INVALID_URL"
    RESPONSE_SIZE_EXCEEDED = "RESPONSE_SIZE_EXCEEDED"
    UNKNOWN = "UNKNOWN"

    @property
    def is_transient(self) -> bool:
        """Check if a failure of this class may clear up on its own."""
        return self in _TRANSIENT_CLASSES


_TRANSIENT_CLASSES = frozenset(
    {
        FetchErrorClass.NETWORK_TIMEOUT,
        FetchErrorClass.CONNECTION_ERROR,
        FetchErrorClass.PROTOCOL_ERROR,
    }
)


class FetchError(BaseModel):
    """Typed error from a probe.

    Provides structured information about what went wrong during a probe,
    enabling retry decisions and error reporting.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    error_class: FetchErrorClass = Field(description="Classification of the error")
    message: Annotated[str, Field(min_length=1, description="Human-readable message")]
    status_code: int | None = Field(
        default=None, description="HTTP status code if available"
    )


class FetchResult(BaseModel):
    """Raw result of one probe.

    Carries either the transport response (status code and body text)
    or the error that prevented one.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(default="", description="Probed URL, empty for overrides")
    status_code: int | None = Field(
        default=None, ge=100, le=599, description="HTTP status code"
    )
    body: str = Field(default="", description="Response body text")
    error: FetchError | None = Field(
        default=None, description="Error details if the probe failed"
    )

    @classmethod
    def from_body(cls, body: str, url: str = "") -> "FetchResult":
        """Build a successful result carrying only a body.

        Args:
            body: Status text reported for the host.
            url: Optional URL the body belongs to.

        Returns:
            FetchResult with the canonical success code.
        """
        return cls(url=url, status_code=HTTP_STATUS_OK, body=body)

    @classmethod
    def from_error(
        cls,
        error_class: FetchErrorClass,
        message: str,
        url: str = "",
    ) -> "FetchResult":
        """Build a result for a probe that produced no response.

        Args:
            error_class: Classification of the failure.
            message: Human-readable message.
            url: Probed URL.

        Returns:
            FetchResult carrying the error.
        """
        return cls(
            url=url,
            error=FetchError(error_class=error_class, message=message),
        )


class ResponseSizeExceededError(Exception):
    """Raised when response size exceeds the configured limit."""


class RetryConfig(BaseModel):
    """Configuration for one host's attempt cadence and ceiling.

    Uses exponential backoff between attempts:
    delay(n) = min(max_delay_ms, min_delay_ms * backoff_factor ^ (n - 1))
    where n is the 1-indexed number of the attempt that just finished.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: Annotated[int, Field(ge=1, le=100)] = 5
    min_delay_ms: Annotated[int, Field(ge=0, le=600000)] = 1000
    max_delay_ms: Annotated[int, Field(ge=0, le=3600000)] = 30000
    backoff_factor: Annotated[float, Field(ge=1.0, le=10.0)] = 2.0

    @model_validator(mode="after")
    def validate_delay_bounds(self) -> "RetryConfig":
        """Ensure the delay ceiling is not below the floor."""
        if self.max_delay_ms < self.min_delay_ms:
            msg = (
                f"max_delay_ms ({self.max_delay_ms}) must be >= "
                f"min_delay_ms ({self.min_delay_ms})"
            )
            raise ValueError(msg)
        return self

    def get_delay_ms(self, attempt: int) -> int:
        """Calculate delay before the attempt following ``attempt``.

        Args:
            attempt: Number of the attempt that just finished (1-indexed).

        Returns:
            Delay in milliseconds.
        """
        exponent = max(attempt, 1) - 1
        delay = self.min_delay_ms * (self.backoff_factor**exponent)
        return int(min(delay, self.max_delay_ms))

    def is_exhausted(self, attempt: int) -> bool:
        """Check if no attempts remain after ``attempt``.

        Args:
            attempt: Number of the attempt that just finished (1-indexed).

        Returns:
            True if the attempt budget is used up.
        """
        return attempt >= self.max_attempts


class FetchContext(BaseModel):
    """Read-only context handed to a fetch override on every call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    hosts: tuple[str, ...]
    path: str
    options: RetryConfig
