"""Service configuration for the webhook and the agents it drives."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LOCKFILE_PATTERNS = [
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    "npm-shrinkwrap.json",
    "*.lock",
]


class ServiceConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    review_label: str = Field(default="agent-review-pr")
    test_generation_label: str = Field(default="agent-generate-tests")
    test_root: str = Field(default="__tests__")
    max_content_chars: int = Field(default=32_000)
    lockfile_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_LOCKFILE_PATTERNS))
    ui_page_root: str = Field(default="app/")
    ui_excluded_roots: list[str] = Field(default_factory=lambda: ["app/api/"])
    github_webhook_secret: Optional[str] = Field(default=None)
    log_level: str = Field(default="INFO")


service_config = ServiceConfig()
