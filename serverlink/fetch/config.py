"""Configuration models for the probe layer."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from serverlink.fetch.constants import (
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)


class FetchConfig(BaseModel):
    """Configuration for network probes.

    Applies to every default probe issued during a wait or get call.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        DEFAULT_USER_AGENT
    )
    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    max_response_size_bytes: Annotated[int, Field(ge=16, le=10 * 1024 * 1024)] = (
        DEFAULT_MAX_RESPONSE_SIZE_BYTES
    )
    follow_redirects: bool = Field(
        default=False,
        description="Follow redirects from the status endpoint",
    )

    def build_headers(self) -> dict[str, str]:
        """Build request headers for a probe.

        Returns:
            Headers dictionary.
        """
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/plain, */*",
        }
