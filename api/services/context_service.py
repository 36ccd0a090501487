"""
Pull Request Context Builder
============================
Turns a raw ``pull_request`` webhook payload into the context the agents prompt with:
  1. Validate the payload and pull out repository coordinates
  2. List changed files and fetch their head content concurrently (size-bounded)
  3. List commit messages
  4. (test generation only) Walk the test root and collect existing tests
"""

import asyncio
import logging
from typing import Any, Optional

import pathspec
from pydantic import ValidationError

from api.config import ServiceConfig, service_config
from api.models.schemas import PullRequestEventPayload
from common.pr_models import (
    ChangedFile,
    ExistingTestFile,
    PullRequestContext,
    PullRequestContextWithTests,
    PullRequestFile,
)
from common.repository_host import RepositoryHost, RepositoryHostError

logger = logging.getLogger(__name__)


class MalformedPayloadError(ValueError):
    """The webhook payload lacks fields needed to identify the pull request."""


def parse_payload(payload: Any) -> PullRequestEventPayload:
    try:
        return PullRequestEventPayload.model_validate(payload)
    except ValidationError as exc:
        missing = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise MalformedPayloadError(f"Malformed pull_request payload: {missing}") from exc


class PullRequestContextBuilder:
    def __init__(self, host: RepositoryHost, config: Optional[ServiceConfig] = None):
        self.host = host
        self.config = config or service_config
        self._lockfiles = pathspec.PathSpec.from_lines("gitwildmatch", self.config.lockfile_patterns)

    def is_lockfile(self, filename: str) -> bool:
        return self._lockfiles.match_file(filename)

    async def _load_changed_file(
        self, owner: str, repo: str, head_ref: str, file: PullRequestFile
    ) -> ChangedFile:
        fields = file.model_dump()

        if file.status == "removed" or self.is_lockfile(file.filename):
            return ChangedFile(**fields, content=None, excluded=True)

        try:
            content = await self.host.get_file_content(owner, repo, file.filename, head_ref)
        except Exception as exc:
            logger.warning("Could not fetch %s@%s, excluding it from the prompt: %s", file.filename, head_ref, exc)
            content = None

        if content is None:
            return ChangedFile(**fields, content=None, excluded=True)

        if len(content) > self.config.max_content_chars:
            logger.info(
                "Excluding %s from the prompt (%d chars > %d)",
                file.filename, len(content), self.config.max_content_chars,
            )
            return ChangedFile(**fields, content=None, excluded=True)

        return ChangedFile(**fields, content=content, excluded=False)

    async def build(self, payload: Any) -> PullRequestContext:
        """Build the base context used by the review agent."""
        event = parse_payload(payload)
        owner = event.repository.owner.login
        repo = event.repository.name
        pull_number = event.pull_request.number
        head_ref = event.pull_request.head.ref

        files = await self.host.list_changed_files(owner, repo, pull_number)
        changed_files = await asyncio.gather(
            *(self._load_changed_file(owner, repo, head_ref, f) for f in files)
        )
        commit_messages = await self.host.list_commits(owner, repo, pull_number)

        excluded = sum(1 for f in changed_files if f.excluded)
        logger.info(
            "Built context for %s/%s#%s: %d files (%d excluded), %d commits",
            owner, repo, pull_number, len(changed_files), excluded, len(commit_messages),
        )

        return PullRequestContext(
            owner=owner,
            repo=repo,
            pull_number=pull_number,
            head_ref=head_ref,
            base_ref=event.pull_request.base.ref,
            title=event.pull_request.title,
            changed_files=list(changed_files),
            commit_messages=commit_messages,
        )

    async def collect_test_files(
        self, owner: str, repo: str, ref: str
    ) -> tuple[list[ExistingTestFile], list[str]]:
        """
        Walk the test root and return (test files, skipped subtrees).

        A missing root is not an error. Any other failure while listing a
        directory or reading a file is logged and that path is skipped; the
        rest of the walk continues.
        """
        results: list[ExistingTestFile] = []
        skipped: list[str] = []
        pending = [self.config.test_root]

        while pending:
            dir_path = pending.pop(0)
            try:
                entries = await self.host.list_directory(owner, repo, dir_path, ref)
            except RepositoryHostError as exc:
                logger.error("Error listing %s@%s, skipping subtree: %s", dir_path, ref, exc)
                skipped.append(dir_path)
                continue

            if entries is None:
                logger.info("No %s folder found, skipping.", dir_path)
                continue

            for entry in entries:
                if entry.type == "dir":
                    pending.append(entry.path)
                    continue
                try:
                    content = await self.host.get_file_content(owner, repo, entry.path, ref)
                except Exception as exc:
                    logger.error("Error reading test file %s@%s: %s", entry.path, ref, exc)
                    skipped.append(entry.path)
                    continue
                if content:
                    results.append(ExistingTestFile(filename=entry.path, content=content))

        return results, skipped

    async def build_with_tests(self, payload: Any) -> PullRequestContextWithTests:
        """Build the extended context used by the test generation agent."""
        base = await self.build(payload)
        existing, skipped = await self.collect_test_files(base.owner, base.repo, base.head_ref)
        logger.info(
            "Collected %d existing test files for %s (%d paths skipped)",
            len(existing), base.repo_id, len(skipped),
        )
        return PullRequestContextWithTests(
            **base.model_dump(),
            existing_test_files=existing,
            skipped_test_paths=skipped,
        )
