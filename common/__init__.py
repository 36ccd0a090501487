"""
Shared building blocks for the PR agents: the repository host capability,
its GitHub implementation and the pull request data model.
"""

from .github_client import GitHubClient, GitHubConfig
from .repository_host import RepositoryHost, RepositoryHostError

__all__ = ["GitHubClient", "GitHubConfig", "RepositoryHost", "RepositoryHostError"]
