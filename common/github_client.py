"""
GitHub client for the PR agents.

Implements the ``RepositoryHost`` capability on top of PyGithub using GitHub App
authentication. PyGithub is synchronous, so every call runs in a worker thread.
"""
import asyncio
import datetime
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar

from github import Auth, Github, GithubException, GithubIntegration
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.pr_models import ContentMetadata, DirectoryEntry, PullRequestFile
from common.repository_host import RepositoryHostError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GitHubAuthError(RepositoryHostError):
    """GitHub App credentials are missing or rejected."""


class GitHubConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    app_id: Optional[str] = Field(default=None)
    private_key: Optional[str] = Field(default=None)
    private_key_path: Optional[str] = Field(default=None)
    installation_id: Optional[int] = Field(default=None)


class GitHubClient:
    """
    GitHub API client using GitHub App authentication via PyGithub.

    Provides async interface wrapping PyGithub's synchronous methods.
    """

    def __init__(self, config: Optional[GitHubConfig] = None):
        """
        Initialize GitHub client.

        Args:
            config: App credentials (defaults to GH_* environment variables)
        """
        config = config or GitHubConfig()

        if not config.app_id:
            raise GitHubAuthError("GitHub App ID not provided (GH_APP_ID)")
        try:
            self.app_id = int(config.app_id)
        except ValueError:
            raise GitHubAuthError(f"GitHub App ID must be an integer, got: {config.app_id}")

        private_key = config.private_key
        if not private_key and config.private_key_path:
            private_key = Path(config.private_key_path).read_text()
        if not private_key:
            raise GitHubAuthError("GitHub private key not provided (GH_PRIVATE_KEY or GH_PRIVATE_KEY_PATH)")
        # Keys pasted into a single-line env var usually carry literal "\n"
        self.private_key = private_key.replace("\\n", "\n")

        self.installation_id = config.installation_id
        self._app_auth = Auth.AppAuth(self.app_id, self.private_key)
        self._github_cache: Dict[str, Dict[str, Any]] = {}
        # PyGithub calls run on worker threads; one token mint per cache miss
        self._cache_lock = threading.Lock()

    def _get_github_instance(self, owner: str, repo: str) -> Github:
        """
        Get authenticated Github instance for a specific repository.

        With a configured installation id a single installation auth is used
        (PyGithub refreshes its token). Otherwise the installation is looked up
        per repository and the resulting token cached until shortly before expiry.
        """
        with self._cache_lock:
            if self.installation_id is not None:
                cache_key = "__installation__"
                if cache_key not in self._github_cache:
                    auth = self._app_auth.get_installation_auth(self.installation_id)
                    self._github_cache[cache_key] = {"github": Github(auth=auth), "expires_at": None}
                return self._github_cache[cache_key]["github"]

            cache_key = f"{owner}/{repo}"
            cache_entry = self._github_cache.get(cache_key)
            if cache_entry:
                token_expires_at = cache_entry.get("expires_at")
                if token_expires_at:
                    now = datetime.datetime.now(datetime.timezone.utc)
                    buffer = datetime.timedelta(minutes=5)
                    if now < (token_expires_at - buffer):
                        return cache_entry["github"]

            integration = GithubIntegration(auth=self._app_auth)
            installation = integration.get_repo_installation(owner, repo)
            token = integration.get_access_token(installation.id)

            github = Github(auth=Auth.Token(token.token))
            self._github_cache[cache_key] = {"github": github, "expires_at": token.expires_at}
            return github

    async def _call(self, description: str, fn: Callable[[], T]) -> T:
        """Run a PyGithub call in a thread, translating its exceptions."""
        try:
            return await asyncio.to_thread(fn)
        except GithubException as exc:
            raise RepositoryHostError(f"GitHub API error while {description}: {exc.data}", status=exc.status) from exc

    def _repository(self, owner: str, repo: str):
        return self._get_github_instance(owner, repo).get_repo(f"{owner}/{repo}")

    async def list_changed_files(self, owner: str, repo: str, pull_number: int) -> list[PullRequestFile]:
        def _get_files():
            pr = self._repository(owner, repo).get_pull(pull_number)
            return [
                PullRequestFile(
                    filename=f.filename,
                    patch=f.patch or "",
                    status=f.status,
                    additions=f.additions,
                    deletions=f.deletions,
                )
                for f in pr.get_files()
            ]

        return await self._call(f"listing files of {owner}/{repo}#{pull_number}", _get_files)

    async def list_commits(self, owner: str, repo: str, pull_number: int) -> list[str]:
        def _get_commits():
            pr = self._repository(owner, repo).get_pull(pull_number)
            return [c.commit.message for c in pr.get_commits()]

        return await self._call(f"listing commits of {owner}/{repo}#{pull_number}", _get_commits)

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str) -> Optional[str]:
        def _get_content():
            contents = self._repository(owner, repo).get_contents(path, ref=ref)
            if isinstance(contents, list):
                # A directory, not a file
                return None
            if contents.encoding != "base64":
                # Blobs over 1 MB come back without inline content
                raise RepositoryHostError(f"{path}@{ref} has no inline content (encoding={contents.encoding})")
            try:
                return contents.decoded_content.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise RepositoryHostError(f"{path}@{ref} is not UTF-8 text") from exc

        try:
            return await self._call(f"reading {path}@{ref}", _get_content)
        except RepositoryHostError as exc:
            if exc.is_not_found:
                logger.info("File %s not found at ref %s", path, ref)
                return None
            raise

    async def get_content_metadata(self, owner: str, repo: str, path: str, ref: str) -> Optional[ContentMetadata]:
        def _get_metadata():
            contents = self._repository(owner, repo).get_contents(path, ref=ref)
            if isinstance(contents, list):
                return None
            return ContentMetadata(path=contents.path, sha=contents.sha)

        try:
            return await self._call(f"reading metadata of {path}@{ref}", _get_metadata)
        except RepositoryHostError as exc:
            if exc.is_not_found:
                return None
            raise

    async def create_or_update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        branch: str,
        message: str,
        sha: Optional[str] = None,
    ) -> None:
        def _write():
            repository = self._repository(owner, repo)
            if sha:
                repository.update_file(path, message, content, sha, branch=branch)
            else:
                repository.create_file(path, message, content, branch=branch)

        await self._call(f"writing {path} on {branch}", _write)

    async def delete_file(self, owner: str, repo: str, path: str, branch: str, message: str, sha: str) -> None:
        def _delete():
            self._repository(owner, repo).delete_file(path, message, sha, branch=branch)

        await self._call(f"deleting {path} on {branch}", _delete)

    async def create_comment(self, owner: str, repo: str, pull_number: int, body: str) -> int:
        """Post a comment on a pull request (via issue comments API) and return its id."""

        def _post():
            issue = self._repository(owner, repo).get_issue(pull_number)
            return issue.create_comment(body).id

        return await self._call(f"commenting on {owner}/{repo}#{pull_number}", _post)

    async def update_comment(self, owner: str, repo: str, comment_id: int, body: str) -> None:
        def _edit():
            github = self._get_github_instance(owner, repo)
            github.requester.requestJsonAndCheck(
                "PATCH",
                f"/repos/{owner}/{repo}/issues/comments/{comment_id}",
                input={"body": body},
            )

        await self._call(f"updating comment {comment_id}", _edit)

    async def remove_label(self, owner: str, repo: str, issue_number: int, label: str) -> None:
        def _remove():
            self._repository(owner, repo).get_issue(issue_number).remove_from_labels(label)

        try:
            await self._call(f"removing label {label}", _remove)
        except RepositoryHostError as exc:
            if exc.is_not_found:
                logger.info("Label %s already absent on %s/%s#%s", label, owner, repo, issue_number)
                return
            raise

    async def list_directory(self, owner: str, repo: str, path: str, ref: str) -> Optional[list[DirectoryEntry]]:
        def _list():
            contents = self._repository(owner, repo).get_contents(path, ref=ref)
            if not isinstance(contents, list):
                contents = [contents]
            return [
                DirectoryEntry(path=item.path, type=item.type)
                for item in contents
                if item.type in ("file", "dir")
            ]

        try:
            return await self._call(f"listing {path}@{ref}", _list)
        except RepositoryHostError as exc:
            if exc.is_not_found:
                return None
            raise
