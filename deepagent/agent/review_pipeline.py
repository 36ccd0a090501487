"""PR review pipeline: prompt the model for an XML review and parse it."""

import logging

from common.pr_models import PullRequestContext
from deepagent.llm import ModelClient
from deepagent.models.agent_schemas import ReviewResult
from deepagent.parsing import parse_review
from deepagent.prompts import build_review_prompt

logger = logging.getLogger(__name__)

REVIEW_UNAVAILABLE_SUMMARY = "We were unable to analyze the code due to an internal error."


async def run_review(context: PullRequestContext, model: ModelClient) -> ReviewResult:
    """Generate and parse a review. Model failures degrade to a canned result."""

    logger.info(f"Starting review for {context.repo_id}#{context.pull_number}")
    prompt = build_review_prompt(context)

    try:
        text = await model.generate_text(prompt)
    except Exception as exc:
        logger.error(f"Reviewer model call failed: {exc}", exc_info=exc)
        return ReviewResult(summary=REVIEW_UNAVAILABLE_SUMMARY, error=str(exc))

    logger.debug("AI response (code review):\n%s", text)

    review = parse_review(text)
    logger.info(
        f"Review parsed: {len(review.file_analyses)} file analyses, "
        f"{len(review.overall_suggestions)} suggestions"
    )
    return review
