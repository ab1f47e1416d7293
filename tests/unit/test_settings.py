"""Unit tests for environment settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from serverlink.fetch.models import RetryConfig
from serverlink.settings import AppSettings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run without any SERVERLINK_ variables or .env file."""
    monkeypatch.chdir(tmp_path)
    for name in [
        "SERVERLINK_PATH",
        "SERVERLINK_MAX_ATTEMPTS",
        "SERVERLINK_MIN_DELAY_MS",
        "SERVERLINK_MAX_DELAY_MS",
        "SERVERLINK_BACKOFF_FACTOR",
        "SERVERLINK_TIMEOUT_SECONDS",
        "SERVERLINK_LOG_LEVEL",
        "SERVERLINK_LOG_JSON",
    ]:
        monkeypatch.delenv(name, raising=False)


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self) -> None:
        settings = AppSettings()

        assert settings.path == "/serverlink"
        assert settings.retry_config() == RetryConfig()
        assert settings.log_level == "INFO"
        assert settings.log_json is False

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SERVERLINK_PATH", "/health")
        monkeypatch.setenv("SERVERLINK_MAX_ATTEMPTS", "8")
        monkeypatch.setenv("SERVERLINK_MIN_DELAY_MS", "250")
        monkeypatch.setenv("SERVERLINK_LOG_JSON", "true")

        settings = AppSettings()

        assert settings.path == "/health"
        assert settings.retry_config().max_attempts == 8
        assert settings.retry_config().min_delay_ms == 250
        assert settings.log_json is True

    def test_reads_dotenv(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("SERVERLINK_TIMEOUT_SECONDS=2.5\n")

        settings = AppSettings()

        assert settings.wait_options().fetch.timeout_seconds == 2.5

    def test_rejects_out_of_range(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SERVERLINK_MAX_ATTEMPTS", "0")

        with pytest.raises(ValidationError):
            AppSettings()

    def test_wait_options(self) -> None:
        options = AppSettings(path="/ready", max_attempts=2).wait_options()

        assert options.path == "/ready"
        assert options.retry.max_attempts == 2
        assert options.fetch_override is None
