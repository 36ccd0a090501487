"""Placeholder comments and trigger-label cleanup shared by both agents."""

import logging

from common.repository_host import RepositoryHost, RepositoryHostError

logger = logging.getLogger(__name__)


async def create_placeholder_comment(
    host: RepositoryHost, owner: str, repo: str, pull_number: int, message: str
) -> int:
    """Post an "in progress" comment and return its id, the handle for later updates."""
    comment_id = await host.create_comment(owner, repo, pull_number, message)
    logger.info("Created placeholder comment %s on %s/%s#%s", comment_id, owner, repo, pull_number)
    return comment_id


async def remove_trigger_label(
    host: RepositoryHost, owner: str, repo: str, issue_number: int, label: str
) -> None:
    """Remove the label that triggered an agent. Never raises."""
    try:
        await host.remove_label(owner, repo, issue_number, label)
    except RepositoryHostError as exc:
        if exc.is_not_found:
            return
        logger.error("Error removing label %s: %s", label, exc)
    except Exception as exc:
        logger.error("Error removing label %s: %s", label, exc, exc_info=exc)
