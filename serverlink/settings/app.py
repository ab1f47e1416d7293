"""Application settings powered by Pydantic BaseSettings."""

from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from serverlink.fetch.config import FetchConfig
from serverlink.fetch.constants import DEFAULT_STATUS_PATH, DEFAULT_TIMEOUT_SECONDS
from serverlink.fetch.models import RetryConfig
from serverlink.link.models import WaitOptions


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SERVERLINK_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    path: str = DEFAULT_STATUS_PATH
    max_attempts: Annotated[int, Field(ge=1, le=100)] = 5
    min_delay_ms: Annotated[int, Field(ge=0)] = 1000
    max_delay_ms: Annotated[int, Field(ge=0)] = 30000
    backoff_factor: Annotated[float, Field(ge=1.0, le=10.0)] = 2.0
    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    log_level: str = "INFO"
    log_json: bool = False

    def retry_config(self) -> RetryConfig:
        """Build the retry configuration from settings."""
        return RetryConfig(
            max_attempts=self.max_attempts,
            min_delay_ms=self.min_delay_ms,
            max_delay_ms=self.max_delay_ms,
            backoff_factor=self.backoff_factor,
        )

    def wait_options(self) -> WaitOptions:
        """Build wait options from settings."""
        return WaitOptions(
            path=self.path,
            retry=self.retry_config(),
            fetch=FetchConfig(timeout_seconds=self.timeout_seconds),
        )


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
