"""Tests for settings loading and validation."""

import pytest

from slot_aggregator.config import (
    AppSettings,
    SettingsLoadError,
    config_load_database_url,
    config_load_poll_client_settings,
    config_load_settings,
)

_REQUIRED_ENVIRONMENT = {
    "PROVIDER_API_TOKEN": "token",
    "PROVIDER_MODEL": "owner/model",
    "STORAGE_BUCKET_NAME": "bucket",
}


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Run each test from an empty directory so no developer `.env` leaks in."""

    monkeypatch.chdir(tmp_path)
    for variable_name in (*_REQUIRED_ENVIRONMENT, "LOG_LEVEL", "DATABASE_URL", "RECORD_MAX_SLOT_COUNT"):
        monkeypatch.delenv(variable_name, raising=False)


def test_config_load_settings_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Load required values from environment and normalize log level.

    Returns:
        None: Assertions validate loaded settings.

    Raises:
        AssertionError: Raised when environment values are not applied.
    """

    for variable_name, value in _REQUIRED_ENVIRONMENT.items():
        monkeypatch.setenv(variable_name, value)
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    monkeypatch.setenv("RECORD_MAX_SLOT_COUNT", "12")

    settings = config_load_settings()

    assert settings.provider_model == "owner/model"
    assert settings.log_level == "DEBUG"
    assert settings.record_max_slot_count == 12
    assert settings.owner_header_required is False


def test_config_load_settings_wraps_missing_values() -> None:
    """Raise SettingsLoadError when required provider and storage values are missing."""

    with pytest.raises(SettingsLoadError, match="Startup configuration validation failed"):
        config_load_settings()


@pytest.mark.parametrize("provider_model", ["model-only", "/name", "owner/", "a/b/c"])
def test_config_rejects_model_identifier_without_owner_and_name(provider_model: str) -> None:
    """Reject model identifiers that are not `owner/name`."""

    with pytest.raises(ValueError):
        AppSettings(provider_api_token="token", provider_model=provider_model, storage_bucket_name="bucket")


def test_config_rejects_inverted_backoff_and_jitter_bounds() -> None:
    """Reject a backoff cap below its base and a jitter max below its min."""

    with pytest.raises(ValueError):
        AppSettings(
            provider_api_token="token",
            provider_model="owner/model",
            storage_bucket_name="bucket",
            provider_backoff_base_seconds=5.0,
            provider_backoff_max_seconds=1.0,
        )
    with pytest.raises(ValueError):
        AppSettings(
            provider_api_token="token",
            provider_model="owner/model",
            storage_bucket_name="bucket",
            provider_jitter_min_multiplier=1.5,
            provider_jitter_max_multiplier=1.0,
        )


def test_config_load_database_url_does_not_require_provider_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Load the migration URL without provider or storage credentials."""

    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://user:pw@db:5432/slots")

    assert config_load_database_url() == "postgresql+psycopg://user:pw@db:5432/slots"


def test_config_load_poll_client_settings_uses_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    """Read poll client values from `POLL_CLIENT_` variables."""

    monkeypatch.setenv("POLL_CLIENT_BASE_URL", "http://slots.test")
    monkeypatch.setenv("POLL_CLIENT_MAX_ATTEMPTS", "7")

    settings = config_load_poll_client_settings()

    assert settings.base_url == "http://slots.test"
    assert settings.max_attempts == 7
    assert settings.interval_seconds == 5.0
