"""Model configuration: provider, model name and credentials.

Reads the process environment first, then the .env file.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODELS = {
    "openai": "o1",
    "anthropic": "claude-3-5-sonnet-latest",
    "openrouter": "openai/gpt-4o-mini",
}


class AgentConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    llm_provider: Literal["openai", "anthropic", "openrouter"] = Field(default="openai")
    llm_model: Optional[str] = Field(default=None)
    openai_api_key: Optional[str] = Field(default=None)
    anthropic_api_key: Optional[str] = Field(default=None)
    openrouter_api_key: Optional[str] = Field(default=None)
    llm_max_tokens: int = Field(default=15000)
    llm_timeout: float = Field(default=180.0)
    enable_logfire: bool = Field(default=False)
    logfire_token: Optional[str] = Field(default=None)

    @property
    def model_name(self) -> str:
        return self.llm_model or DEFAULT_MODELS[self.llm_provider]

    @property
    def model_id(self) -> str:
        """pydantic-ai model identifier, e.g. ``openai:o1``."""
        return f"{self.llm_provider}:{self.model_name}"

    @property
    def api_key(self) -> Optional[str]:
        return getattr(self, f"{self.llm_provider}_api_key")


config = AgentConfig()
