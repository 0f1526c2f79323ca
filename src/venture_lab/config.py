"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _env_int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if not raw:
        return default
    return int(raw)


@dataclass(frozen=True)
class AppConfig:
    env: str = field(default_factory=lambda: _env("APP_ENV", "development"))
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))

    @property
    def is_development(self) -> bool:
        return self.env == "development"


@dataclass(frozen=True)
class CosmosConfig:
    endpoint: str = field(default_factory=lambda: _env("COSMOS_ENDPOINT"))
    key: str = field(default_factory=lambda: _env("COSMOS_KEY"))
    database: str = field(default_factory=lambda: _env("COSMOS_DATABASE", "venture-lab"))

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.key)


@dataclass(frozen=True)
class OpenAIConfig:
    endpoint: str = field(default_factory=lambda: _env("AZURE_OPENAI_ENDPOINT"))
    deployment: str = field(default_factory=lambda: _env("AZURE_OPENAI_DEPLOYMENT"))
    api_key: str = field(default_factory=lambda: _env("AZURE_OPENAI_API_KEY"))

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.deployment)


@dataclass(frozen=True)
class GitHubConfig:
    token: str = field(default_factory=lambda: _env("GITHUB_TOKEN"))
    repository: str = field(default_factory=lambda: _env("GITHUB_REPOSITORY"))
    branch: str = field(default_factory=lambda: _env("GITHUB_BRANCH", "main"))
    content_dir: str = field(default_factory=lambda: _env("GITHUB_CONTENT_DIR", "content"))
    api_url: str = field(default_factory=lambda: _env("GITHUB_API_URL", "https://api.github.com"))
    site_url: str = field(default_factory=lambda: _env("SITE_URL"))

    @property
    def is_configured(self) -> bool:
        return bool(self.token and self.repository)


@dataclass(frozen=True)
class PipelineConfig:
    """Limits shared by every long-running pipeline.

    The default time budget leaves a 30 second margin under a 300 second
    request ceiling so a step in flight can finish before the platform kills
    the invocation.
    """

    time_budget_seconds: int = field(
        default_factory=lambda: _env_int("PIPELINE_TIME_BUDGET_SECONDS", 270)
    )
    max_resumes: int = field(default_factory=lambda: _env_int("PIPELINE_MAX_RESUMES", 5))
    stale_after_seconds: int = field(
        default_factory=lambda: _env_int("PIPELINE_STALE_AFTER_SECONDS", 900)
    )
    critic_concurrency: int = field(default_factory=lambda: _env_int("CRITIC_CONCURRENCY", 2))


@dataclass(frozen=True)
class MonitorConfig:
    connection_string: str = field(
        default_factory=lambda: _env("APPLICATIONINSIGHTS_CONNECTION_STRING")
    )


@dataclass(frozen=True)
class Settings:
    app: AppConfig = field(default_factory=AppConfig)
    cosmos: CosmosConfig = field(default_factory=CosmosConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)


def load_settings() -> Settings:
    """Load settings, reading a local ``.env`` file first when one exists."""
    load_dotenv()
    return Settings()
