
import hashlib
import hmac
import json
import logging
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.config import ServiceConfig
from api.dependencies import get_model_client_provider, get_repository_host_provider, get_service_config
from api.models.schemas import WebhookAck
from api.services.context_service import MalformedPayloadError, PullRequestContextBuilder
from api.services.review_service import execute_pr_review
from api.services.test_generation_service import execute_test_generation
from common.repository_host import RepositoryHost
from deepagent.llm import ModelClient

logger = logging.getLogger(__name__)

router = APIRouter()


def verify_signature(secret: str, body: bytes, signature_header: Optional[str]) -> bool:
    """Check GitHub's ``X-Hub-Signature-256`` header against the raw body."""
    if not signature_header or not signature_header.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature_header.split("=", 1)[1])


async def dispatch_event(
    event_type: str,
    payload: Any,
    host_provider: Callable[[], RepositoryHost],
    model_provider: Callable[[], ModelClient],
    config: ServiceConfig,
) -> list[str]:
    """
    Route one webhook delivery to the agents it triggers.

    - pull_request / opened                          → review
    - pull_request / labeled with the review label   → review
    - pull_request / labeled with the tests label    → test generation
    - anything else                                  → no-op

    Returns the names of the agents that ran.
    """
    if event_type != "pull_request":
        return []
    if not isinstance(payload, dict):
        raise MalformedPayloadError("Webhook payload must be a JSON object")

    action = payload.get("action")
    label_name = (payload.get("label") or {}).get("name")

    run_review = action == "opened" or (action == "labeled" and label_name == config.review_label)
    run_tests = action == "labeled" and label_name == config.test_generation_label
    if not (run_review or run_tests):
        return []

    host = host_provider()
    model = model_provider()
    builder = PullRequestContextBuilder(host, config)
    ran: list[str] = []

    if run_review:
        context = await builder.build(payload)
        await execute_pr_review(context, host, model, config)
        ran.append("review")

    if run_tests:
        context = await builder.build_with_tests(payload)
        await execute_test_generation(context, host, model, config)
        ran.append("tests")

    return ran


@router.post("/github-webhook")
async def github_webhook(
    request: Request,
    config: ServiceConfig = Depends(get_service_config),
    host_provider: Callable[[], RepositoryHost] = Depends(get_repository_host_provider),
    model_provider: Callable[[], ModelClient] = Depends(get_model_client_provider),
):
    """
    Receive GitHub ``pull_request`` webhooks and run the PR agents inline.

    The response only acknowledges the delivery; agent outcomes are reported
    in PR comments.
    """
    try:
        raw_body = await request.body()
        if config.github_webhook_secret and not verify_signature(
            config.github_webhook_secret, raw_body, request.headers.get("X-Hub-Signature-256")
        ):
            logger.warning("Rejected webhook with invalid signature")
            return JSONResponse({"error": "Invalid webhook signature"}, status_code=401)

        payload = json.loads(raw_body)
        event_type = request.headers.get("X-GitHub-Event", "")
        logger.info(f"Received GitHub webhook: {event_type} / {payload.get('action') if isinstance(payload, dict) else None}")

        ran = await dispatch_event(event_type, payload, host_provider, model_provider, config)
        if ran:
            logger.info(f"Webhook handled by: {', '.join(ran)}")
        return WebhookAck()
    except Exception as exc:
        logger.error(f"Error in webhook route: {exc}", exc_info=exc)
        return JSONResponse({"error": str(exc)}, status_code=500)
