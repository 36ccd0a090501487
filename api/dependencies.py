"""
FastAPI dependency providers.

The clients are handed to the router as zero-argument providers so that a
misconfigured client fails inside the request handler (and is reported in the
webhook acknowledgement) and is only built when an agent actually runs.
"""
from functools import lru_cache
from typing import Callable

from api.config import ServiceConfig, service_config
from common.github_client import GitHubClient
from common.repository_host import RepositoryHost
from deepagent.llm import ModelClient, PydanticAIModelClient


@lru_cache(maxsize=1)
def _github_client() -> GitHubClient:
    return GitHubClient()


@lru_cache(maxsize=1)
def _model_client() -> PydanticAIModelClient:
    return PydanticAIModelClient()


def get_service_config() -> ServiceConfig:
    return service_config


def get_repository_host_provider() -> Callable[[], RepositoryHost]:
    """Provider of the GitHub client, built from GH_* settings on first use."""
    return _github_client


def get_model_client_provider() -> Callable[[], ModelClient]:
    """Provider of the model client, built from LLM_* settings on first use."""
    return _model_client
