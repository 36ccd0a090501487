"""
PR Review Service
=================
Runs the review agent for one pull request:
  1. Post a placeholder comment
  2. Prompt the model for an XML review and parse it
  3. Replace the placeholder with the rendered review
  4. Remove the review label

Once the placeholder exists the PR always ends up with either the review or a
failure notice in that comment.
"""

import logging
from typing import Optional

from api.config import ServiceConfig, service_config
from api.services.comment_service import create_placeholder_comment, remove_trigger_label
from api.utils.comment_formatter import REVIEW_FAILED, REVIEW_IN_PROGRESS, format_review_comment
from common.pr_models import PullRequestContext
from common.repository_host import RepositoryHost
from deepagent.agent.review_pipeline import run_review
from deepagent.llm import ModelClient

logger = logging.getLogger(__name__)


async def execute_pr_review(
    context: PullRequestContext,
    host: RepositoryHost,
    model: ModelClient,
    config: Optional[ServiceConfig] = None,
) -> None:
    config = config or service_config
    owner, repo, pull_number = context.owner, context.repo, context.pull_number
    comment_id: Optional[int] = None

    try:
        logger.info(f"Starting review agent for {owner}/{repo}#{pull_number}")
        comment_id = await create_placeholder_comment(host, owner, repo, pull_number, REVIEW_IN_PROGRESS)

        review = await run_review(context, model)
        await host.update_comment(owner, repo, comment_id, format_review_comment(review))
        logger.info(f"Posted review comment on {owner}/{repo}#{pull_number}")

        await remove_trigger_label(host, owner, repo, pull_number, config.review_label)
    except Exception as exc:
        logger.error(f"Review agent failed for {owner}/{repo}#{pull_number}: {exc}", exc_info=exc)
        if comment_id is not None:
            try:
                await host.update_comment(owner, repo, comment_id, REVIEW_FAILED)
            except Exception as update_exc:
                logger.error(f"Could not report review failure on comment {comment_id}: {update_exc}")
