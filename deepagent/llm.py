"""Model capability and its pydantic-ai implementation."""

import logging
import os
from typing import Optional, Protocol, TypeVar, Union

from pydantic import BaseModel
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from deepagent.config import AgentConfig, config as default_config

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class ModelConfigurationError(RuntimeError):
    """The configured provider cannot be used (usually a missing API key)."""


class ModelClient(Protocol):
    async def generate_text(self, prompt: str) -> str: ...

    async def generate_structured(self, prompt: str, schema: type[SchemaT]) -> SchemaT:
        """Return ``schema`` validated from the model output, raising when it does not validate."""
        ...


class PydanticAIModelClient:
    """
    Free-text and schema-constrained generation through pydantic-ai agents.

    ``model`` overrides the configured provider; tests pass a pydantic-ai
    ``TestModel`` here.
    """

    def __init__(
        self,
        agent_config: Optional[AgentConfig] = None,
        model: Optional[Union[Model, str]] = None,
    ):
        self.config = agent_config or default_config
        if model is None:
            api_key = self.config.api_key
            if not api_key:
                raise ModelConfigurationError(
                    f"Missing {self.config.llm_provider.upper()}_API_KEY for {self.config.llm_provider} usage."
                )
            # pydantic-ai providers read their key from the process env
            os.environ.setdefault(f"{self.config.llm_provider.upper()}_API_KEY", api_key)
            model = self.config.model_id
        self.model = model
        self._settings = ModelSettings(
            max_tokens=self.config.llm_max_tokens,
            timeout=self.config.llm_timeout,
        )
        self._text_agent: Optional[Agent] = None
        self._structured_agents: dict[type, Agent] = {}

    def _instrument(self, agent: Agent) -> None:
        if not (self.config.enable_logfire and self.config.logfire_token):
            return
        try:
            import logfire

            logfire.configure(token=self.config.logfire_token)
            logfire.instrument_pydantic_ai(agent)
        except ImportError:
            logger.warning("ENABLE_LOGFIRE is set but logfire is not installed")

    def _get_text_agent(self) -> Agent:
        if self._text_agent is None:
            self._text_agent = Agent(
                self.model,
                output_type=str,
                model_settings=self._settings,
                name="text_generator",
            )
            self._instrument(self._text_agent)
        return self._text_agent

    def _get_structured_agent(self, schema: type[SchemaT]) -> Agent:
        if schema not in self._structured_agents:
            agent = Agent(
                self.model,
                output_type=schema,
                model_settings=self._settings,
                name=f"{schema.__name__.lower()}_generator",
            )
            self._instrument(agent)
            self._structured_agents[schema] = agent
        return self._structured_agents[schema]

    async def generate_text(self, prompt: str) -> str:
        result = await self._get_text_agent().run(prompt)
        return result.output

    async def generate_structured(self, prompt: str, schema: type[SchemaT]) -> SchemaT:
        result = await self._get_structured_agent(schema).run(prompt)
        return result.output
