import asyncio
import datetime
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from github import GithubException

from api.config import ServiceConfig
from api.services.context_service import PullRequestContextBuilder
from common.github_client import GitHubAuthError, GitHubClient, GitHubConfig
from common.repository_host import RepositoryHostError
from tests.fakes import make_payload


@pytest.fixture
def repository() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(monkeypatch, repository) -> GitHubClient:
    github_client = GitHubClient(GitHubConfig(app_id="123", private_key="-----BEGIN KEY-----\\nabc", installation_id=42))
    monkeypatch.setattr(github_client, "_repository", lambda owner, repo: repository)
    return github_client


def _not_found() -> GithubException:
    return GithubException(404, {"message": "Not Found"}, None)


def test_missing_app_id_is_rejected():
    with pytest.raises(GitHubAuthError, match="GH_APP_ID"):
        GitHubClient(GitHubConfig(app_id=None, private_key="key"))


def test_missing_private_key_is_rejected():
    with pytest.raises(GitHubAuthError, match="private key"):
        GitHubClient(GitHubConfig(app_id="1", private_key=None, private_key_path=None))


def test_escaped_newlines_in_private_key_are_restored(client):
    assert client.private_key == "-----BEGIN KEY-----\nabc"


async def test_list_changed_files_maps_pull_files(client, repository):
    repository.get_pull.return_value.get_files.return_value = [
        SimpleNamespace(filename="a.ts", patch=None, status="added", additions=3, deletions=0),
    ]

    (changed,) = await client.list_changed_files("acme", "webapp", 7)

    assert changed.filename == "a.ts"
    assert changed.patch == ""
    assert changed.status == "added"
    repository.get_pull.assert_called_once_with(7)


async def test_get_file_content_decodes_blob(client, repository):
    repository.get_contents.return_value = SimpleNamespace(encoding="base64", decoded_content="héllo".encode("utf-8"))

    assert await client.get_file_content("acme", "webapp", "a.ts", "main") == "héllo"
    repository.get_contents.assert_called_once_with("a.ts", ref="main")


async def test_missing_file_returns_none(client, repository):
    repository.get_contents.side_effect = _not_found()

    assert await client.get_file_content("acme", "webapp", "a.ts", "main") is None
    assert await client.get_content_metadata("acme", "webapp", "a.ts", "main") is None
    assert await client.list_directory("acme", "webapp", "__tests__", "main") is None


async def test_other_errors_carry_status(client, repository):
    repository.get_contents.side_effect = GithubException(502, {"message": "Bad Gateway"}, None)

    with pytest.raises(RepositoryHostError) as excinfo:
        await client.get_file_content("acme", "webapp", "a.ts", "main")

    assert excinfo.value.status == 502


async def test_list_directory_keeps_files_and_dirs(client, repository):
    repository.get_contents.return_value = [
        SimpleNamespace(path="__tests__/unit", type="dir"),
        SimpleNamespace(path="__tests__/a.test.ts", type="file"),
        SimpleNamespace(path="__tests__/link", type="symlink"),
    ]

    entries = await client.list_directory("acme", "webapp", "__tests__", "main")

    assert [(e.path, e.type) for e in entries] == [("__tests__/unit", "dir"), ("__tests__/a.test.ts", "file")]


async def test_create_or_update_picks_call_by_sha(client, repository):
    await client.create_or_update_file("acme", "webapp", "t.test.ts", "x", "feat", "Add/Update tests: t.test.ts")
    await client.create_or_update_file("acme", "webapp", "t.test.ts", "y", "feat", "msg", sha="abc")

    repository.create_file.assert_called_once_with("t.test.ts", "Add/Update tests: t.test.ts", "x", branch="feat")
    repository.update_file.assert_called_once_with("t.test.ts", "msg", "y", "abc", branch="feat")


async def test_create_comment_returns_id(client, repository):
    repository.get_issue.return_value.create_comment.return_value = SimpleNamespace(id=991)

    assert await client.create_comment("acme", "webapp", 7, "hi") == 991


async def test_remove_absent_label_is_not_an_error(client, repository):
    repository.get_issue.return_value.remove_from_labels.side_effect = _not_found()

    await client.remove_label("acme", "webapp", 7, "agent-review-pr")


async def test_update_comment_patches_issue_comment(client, monkeypatch):
    github = MagicMock()
    monkeypatch.setattr(client, "_get_github_instance", lambda owner, repo: github)

    await client.update_comment("acme", "webapp", 991, "done")

    github.requester.requestJsonAndCheck.assert_called_once_with(
        "PATCH", "/repos/acme/webapp/issues/comments/991", input={"body": "done"}
    )


# ── Non-text content ─────────────────────────────────────────────────────────

PNG_BLOB = SimpleNamespace(encoding="base64", decoded_content=b"\x89PNG\r\n\x1a\n\x00\x00")
# The contents API omits inline content for blobs over 1 MB
LARGE_BLOB = SimpleNamespace(encoding="none", content="")


@pytest.mark.parametrize("blob", [PNG_BLOB, LARGE_BLOB], ids=["binary", "too-large"])
async def test_unreadable_content_raises_host_error(client, repository, blob):
    repository.get_contents.return_value = blob

    with pytest.raises(RepositoryHostError) as excinfo:
        await client.get_file_content("acme", "webapp", "public/logo.png", "main")

    assert not excinfo.value.is_not_found


@pytest.mark.parametrize("blob", [PNG_BLOB, LARGE_BLOB], ids=["binary", "too-large"])
async def test_unreadable_changed_file_is_excluded_from_context(client, repository, blob):
    repository.get_pull.return_value.get_files.return_value = [
        SimpleNamespace(filename="public/logo.png", patch=None, status="added", additions=0, deletions=0),
        SimpleNamespace(filename="lib/greet.ts", patch="+x", status="modified", additions=1, deletions=0),
    ]
    repository.get_pull.return_value.get_commits.return_value = []
    text_blob = SimpleNamespace(encoding="base64", decoded_content=b"export const greet = 1")
    repository.get_contents.side_effect = lambda path, ref: blob if path == "public/logo.png" else text_blob

    context = await PullRequestContextBuilder(client, ServiceConfig()).build(make_payload())

    logo, greet = context.changed_files
    assert logo.excluded and logo.content is None
    assert greet.content == "export const greet = 1"


@pytest.mark.parametrize("blob", [PNG_BLOB, LARGE_BLOB], ids=["binary", "too-large"])
async def test_unreadable_test_file_is_skipped_in_walk(client, repository, blob):
    listings = {
        "__tests__": [
            SimpleNamespace(path="__tests__/fixtures", type="dir"),
            SimpleNamespace(path="__tests__/a.test.ts", type="file"),
        ],
        "__tests__/fixtures": [SimpleNamespace(path="__tests__/fixtures/logo.png", type="file")],
        "__tests__/a.test.ts": SimpleNamespace(encoding="base64", decoded_content=b"it('a')"),
        "__tests__/fixtures/logo.png": blob,
    }
    repository.get_contents.side_effect = lambda path, ref: listings[path]

    existing, skipped = await PullRequestContextBuilder(client, ServiceConfig()).collect_test_files(
        "acme", "webapp", "main"
    )

    assert [f.filename for f in existing] == ["__tests__/a.test.ts"]
    assert skipped == ["__tests__/fixtures/logo.png"]


# ── Token cache ──────────────────────────────────────────────────────────────

async def test_concurrent_lookups_mint_a_single_installation_token(monkeypatch):
    integration = MagicMock()
    integration.get_repo_installation.return_value = SimpleNamespace(id=42)
    integration.get_access_token.return_value = SimpleNamespace(
        token="ghs_token",
        expires_at=datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours=1),
    )
    monkeypatch.setattr("common.github_client.GithubIntegration", lambda auth: integration)
    monkeypatch.setattr("common.github_client.Github", MagicMock())
    github_client = GitHubClient(GitHubConfig(app_id="123", private_key="key", installation_id=None))

    instances = await asyncio.gather(
        *(asyncio.to_thread(github_client._get_github_instance, "acme", "webapp") for _ in range(8))
    )

    assert integration.get_access_token.call_count == 1
    assert all(instance is instances[0] for instance in instances)
