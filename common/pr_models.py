"""Pydantic models describing a pull request as the agents see it."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PullRequestFile(BaseModel):
    """A changed file exactly as the repository host reports it."""

    filename: str
    patch: str = ""
    status: str
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)


class ContentMetadata(BaseModel):
    """Blob metadata needed to update or delete a file on a branch."""

    path: str
    sha: str


class DirectoryEntry(BaseModel):
    path: str
    type: Literal["file", "dir"]


class ChangedFile(BaseModel):
    """
    One changed file plus, when it is small enough, its content at the head ref.

    ``content`` is present iff ``excluded`` is false; the prompt builders rely
    on this to print an explicit marker for files the model is not shown.
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    patch: str = ""
    status: str
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    content: Optional[str] = None
    excluded: bool = False

    @model_validator(mode="after")
    def check_content_matches_excluded(self) -> "ChangedFile":
        if self.excluded and self.content is not None:
            raise ValueError(f"{self.filename}: excluded file must not carry content")
        if not self.excluded and self.content is None:
            raise ValueError(f"{self.filename}: included file must carry content")
        return self


class ExistingTestFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    content: str


class PullRequestContext(BaseModel):
    """Snapshot of a pull request, built once per webhook delivery."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    pull_number: int
    head_ref: str
    base_ref: str
    title: str
    changed_files: list[ChangedFile] = Field(default_factory=list)
    commit_messages: list[str] = Field(default_factory=list)

    @property
    def repo_id(self) -> str:
        return f"{self.owner}/{self.repo}"


class PullRequestContextWithTests(PullRequestContext):
    """Context for the test generator: adds the repository's existing tests."""

    existing_test_files: list[ExistingTestFile] = Field(default_factory=list)
    skipped_test_paths: list[str] = Field(
        default_factory=list,
        description="Test subtrees that could not be read and were left out",
    )
