"""Data models for link polling."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from serverlink.fetch.client import FetchOverride
from serverlink.fetch.config import FetchConfig
from serverlink.fetch.constants import DEFAULT_STATUS_PATH
from serverlink.fetch.models import RetryConfig


class Status(str, Enum):
    """Canonical link health value.

    - OFFLINE: Remote is not serving yet
    - STARTING: Remote is booting
    - ONLINE: Remote is ready
    - ERROR: Remote reports an unrecoverable failure
    - INVALID: Unrecognized or malformed probe result (caller side only)
    """

    OFFLINE = "offline"
    STARTING = "starting"
    ONLINE = "online"
    ERROR = "error"
    INVALID = "invalid"

    @property
    def is_retryable(self) -> bool:
        """Check if this status warrants another attempt."""
        return self in RETRYABLE_STATUSES


RECOGNIZED_STATUS_VALUES = frozenset(status.value for status in Status)
RETRYABLE_STATUSES = frozenset({Status.OFFLINE, Status.STARTING})


class WaitOptions(BaseModel):
    """Configuration for one wait call.

    Carries every optional parameter by name: the status path, the retry
    budget, the probe settings and an optional fetch override.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(
        default=DEFAULT_STATUS_PATH, min_length=1, description="Status endpoint path"
    )
    retry: RetryConfig = Field(default_factory=RetryConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    fetch_override: FetchOverride | None = Field(
        default=None,
        description=(
            "Strategy called as (host, index, attempt, context=...) on a worker"
            " thread. Awaitable results run on a private event loop per call,"
            " so they must not use resources bound to the caller's loop;"
            " a different-loop error ends that host with LINKERROR."
        ),
    )

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Ensure the path is absolute."""
        if not v.startswith("/"):
            msg = f"Status path must start with '/': {v!r}"
            raise ValueError(msg)
        return v
