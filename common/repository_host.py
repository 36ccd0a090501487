"""
Repository host capability.

The agents only ever talk to the source-control host through this protocol,
so tests can swap in an in-memory host and production uses ``GitHubClient``.
"""

from typing import Optional, Protocol

from common.pr_models import ContentMetadata, DirectoryEntry, PullRequestFile


class RepositoryHostError(Exception):
    """A host API call failed. ``status`` is the HTTP status when known."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class RepositoryHost(Protocol):
    async def list_changed_files(
        self, owner: str, repo: str, pull_number: int
    ) -> list[PullRequestFile]: ...

    async def list_commits(self, owner: str, repo: str, pull_number: int) -> list[str]:
        """Commit messages of the pull request, oldest first."""
        ...

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str
    ) -> Optional[str]:
        """
        File text at ``ref``, or ``None`` when the path does not exist.

        Content that is not inline UTF-8 text (binary blobs, files too large
        for the contents API) raises ``RepositoryHostError``.
        """
        ...

    async def get_content_metadata(
        self, owner: str, repo: str, path: str, ref: str
    ) -> Optional[ContentMetadata]: ...

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
        """Create ``path`` when ``sha`` is None, otherwise update the blob ``sha``."""
        ...

    async def delete_file(
        self, owner: str, repo: str, path: str, branch: str, message: str, sha: str
    ) -> None: ...

    async def create_comment(self, owner: str, repo: str, pull_number: int, body: str) -> int: ...

    async def update_comment(self, owner: str, repo: str, comment_id: int, body: str) -> None: ...

    async def remove_label(self, owner: str, repo: str, issue_number: int, label: str) -> None:
        """Remove ``label``; a label that is already absent is not an error."""
        ...

    async def list_directory(
        self, owner: str, repo: str, path: str, ref: str
    ) -> Optional[list[DirectoryEntry]]:
        """Entries of a directory, or ``None`` when it does not exist."""
        ...
