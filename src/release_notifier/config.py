"""Configuration management."""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from croniter import croniter

_REPO_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")

LLM_PROVIDERS = ("openai", "openai-responses", "anthropic", "google")


class ConfigError(ValueError):
    """Configuration that guarantees a broken run."""


@dataclass
class GitHubConfig:
    """Release source settings."""
    repositories: list[str] = field(default_factory=list)
    api_base: str = "https://api.github.com"
    timeout: float = 30.0


@dataclass
class LLMConfig:
    """Language-generation backend settings."""
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    base_url: Optional[str] = None
    temperature: float = 0.0
    max_tokens: int = 4096
    timeout: float = 60.0
    max_retries: int = 3
    initial_retry_delay: float = 2.0


@dataclass
class TelegramConfig:
    """Delivery channel settings."""
    chat_id: str = ""
    api_base: str = "https://api.telegram.org"
    max_message_length: int = 4096
    timeout: float = 30.0
    max_attempts: int = 3
    initial_retry_delay: float = 1.0
    chunk_delay: float = 0.5


@dataclass
class ScheduleConfig:
    """When cycles fire."""
    cron: str = "*/30 * * * *"
    timezone: str = "Asia/Shanghai"
    run_on_start: bool = True


@dataclass
class OutputConfig:
    """Rendering settings."""
    language: str = "zh-CN"


@dataclass
class PathsConfig:
    """Path settings."""
    state_file: Path = Path("data/state.yaml")


@dataclass
class Settings:
    """Application settings."""

    # Secrets (from environment only)
    github_token: Optional[str] = None
    llm_api_key: str = ""
    telegram_bot_token: str = ""

    # Config sections
    github: GitHubConfig = field(default_factory=GitHubConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)

    @property
    def repositories(self) -> list[str]:
        return self.github.repositories

    @property
    def timezone(self) -> str:
        return self.schedule.timezone

    @property
    def language(self) -> str:
        return self.output.language

    @property
    def state_file(self) -> Path:
        return self.paths.state_file

    def validate(self) -> None:
        """Reject settings that cannot produce a working run.

        Raises:
            ConfigError: On the first problem found
        """
        if not self.github.repositories:
            raise ConfigError("No repositories configured (github.repositories)")

        for repo in self.github.repositories:
            if not _REPO_PATTERN.match(repo):
                raise ConfigError(f"Repository must be 'owner/name', got {repo!r}")

        if not croniter.is_valid(self.schedule.cron):
            raise ConfigError(f"Invalid cron expression: {self.schedule.cron!r}")

        try:
            ZoneInfo(self.schedule.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"Invalid time zone: {self.schedule.timezone!r}") from e

        if self.llm.provider not in LLM_PROVIDERS:
            raise ConfigError(
                f"Unknown LLM provider {self.llm.provider!r}, expected one of {', '.join(LLM_PROVIDERS)}"
            )

        if self.telegram.max_message_length <= 0:
            raise ConfigError("telegram.max_message_length must be positive")


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    config = load_config(config_path)

    settings = Settings(
        github_token=os.getenv("GITHUB_TOKEN") or None,
        llm_api_key=os.getenv("LLM_API_KEY", ""),
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
    )

    # Apply YAML config
    if "github" in config:
        for key, value in config["github"].items():
            setattr(settings.github, key, value)

    if "llm" in config:
        for key, value in config["llm"].items():
            setattr(settings.llm, key, value)

    if "telegram" in config:
        for key, value in config["telegram"].items():
            setattr(settings.telegram, key, value)

    if "schedule" in config:
        for key, value in config["schedule"].items():
            setattr(settings.schedule, key, value)

    if "output" in config:
        for key, value in config["output"].items():
            setattr(settings.output, key, value)

    if "paths" in config:
        for key, value in config["paths"].items():
            setattr(settings.paths, key, Path(value))

    # Environment overrides
    _apply_env(settings)

    settings.telegram.chat_id = str(settings.telegram.chat_id)
    return settings


def _apply_env(settings: Settings) -> None:
    """Let environment variables override non-secret YAML values."""
    overrides = {
        "LLM_PROVIDER": (settings.llm, "provider"),
        "LLM_MODEL": (settings.llm, "model"),
        "LLM_BASE_URL": (settings.llm, "base_url"),
        "TELEGRAM_CHAT_ID": (settings.telegram, "chat_id"),
        "TIMEZONE": (settings.schedule, "timezone"),
        "TARGET_LANGUAGE": (settings.output, "language"),
        "CRON": (settings.schedule, "cron"),
    }
    for env_name, (section, attr) in overrides.items():
        value = os.getenv(env_name)
        if value:
            setattr(section, attr, value)

    repos = os.getenv("REPOSITORIES")
    if repos:
        settings.github.repositories = [r.strip() for r in repos.split(",") if r.strip()]
