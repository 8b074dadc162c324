"""Tests for configuration loading and validation."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from release_notifier.config import ConfigError, Settings, get_settings

CONFIG_YAML = """
github:
  repositories:
    - acme/widget
    - acme/gadget
llm:
  provider: anthropic
  model: claude-sonnet-4-20250514
telegram:
  chat_id: -100123
schedule:
  cron: "0 * * * *"
  timezone: Europe/Berlin
output:
  language: en
paths:
  state_file: /tmp/release-notifier/state.yaml
"""


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "GITHUB_TOKEN", "LLM_API_KEY", "TELEGRAM_BOT_TOKEN", "LLM_PROVIDER", "LLM_MODEL",
        "LLM_BASE_URL", "TELEGRAM_CHAT_ID", "TIMEZONE", "TARGET_LANGUAGE", "CRON", "REPOSITORIES",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def valid_settings() -> Settings:
    settings = Settings()
    settings.github.repositories = ["acme/widget"]
    return settings


def test_get_settings_from_yaml(clean_env: pytest.MonkeyPatch) -> None:
    """Test YAML sections and secrets from environment."""
    clean_env.setenv("LLM_API_KEY", "ant-key")
    clean_env.setenv("TELEGRAM_BOT_TOKEN", "123:abc")

    with TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yaml"
        config_path.write_text(CONFIG_YAML, encoding="utf-8")

        settings = get_settings(config_path)

    assert settings.repositories == ["acme/widget", "acme/gadget"]
    assert settings.llm.provider == "anthropic"
    assert settings.llm_api_key == "ant-key"
    assert settings.telegram_bot_token == "123:abc"
    assert settings.telegram.chat_id == "-100123"
    assert settings.timezone == "Europe/Berlin"
    assert settings.language == "en"
    assert settings.state_file == Path("/tmp/release-notifier/state.yaml")
    assert settings.github_token is None
    settings.validate()


def test_missing_config_uses_defaults(clean_env: pytest.MonkeyPatch) -> None:
    """Test defaults when no file exists."""
    settings = get_settings(Path("/nonexistent/config.yaml"))

    assert settings.llm.temperature == 0.0
    assert settings.telegram.max_message_length == 4096
    assert settings.telegram.max_attempts == 3
    assert settings.language == "zh-CN"


def test_env_overrides(clean_env: pytest.MonkeyPatch) -> None:
    """Test environment variables override YAML values."""
    clean_env.setenv("LLM_PROVIDER", "google")
    clean_env.setenv("TIMEZONE", "UTC")
    clean_env.setenv("REPOSITORIES", "a/b, c/d ,")

    settings = get_settings(Path("/nonexistent/config.yaml"))

    assert settings.llm.provider == "google"
    assert settings.timezone == "UTC"
    assert settings.repositories == ["a/b", "c/d"]


def test_validate_rejects_bad_cron() -> None:
    """Test an invalid schedule aborts startup."""
    settings = valid_settings()
    settings.schedule.cron = "every five minutes"

    with pytest.raises(ConfigError, match="cron"):
        settings.validate()


def test_validate_rejects_bad_timezone() -> None:
    """Test an unknown time zone aborts startup."""
    settings = valid_settings()
    settings.schedule.timezone = "Mars/Olympus_Mons"

    with pytest.raises(ConfigError, match="time zone"):
        settings.validate()


def test_validate_rejects_bad_repository() -> None:
    """Test repositories must look like owner/name."""
    settings = valid_settings()
    settings.github.repositories = ["not-a-repo"]

    with pytest.raises(ConfigError, match="owner/name"):
        settings.validate()


def test_validate_rejects_empty_repositories() -> None:
    """Test at least one repository is required."""
    with pytest.raises(ConfigError, match="No repositories"):
        Settings().validate()


def test_validate_rejects_unknown_provider() -> None:
    """Test the provider must be one of the known backends."""
    settings = valid_settings()
    settings.llm.provider = "llama-box"

    with pytest.raises(ConfigError, match="provider"):
        settings.validate()
