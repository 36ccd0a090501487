from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Owner(_Payload):
    login: str


class Repository(_Payload):
    name: str
    owner: Owner


class BranchRef(_Payload):
    ref: str


class PullRequest(_Payload):
    number: int
    title: str
    head: BranchRef
    base: BranchRef


class Label(_Payload):
    name: str


class PullRequestEventPayload(_Payload):
    """The fields of a ``pull_request`` webhook delivery the agents rely on."""

    action: Optional[str] = None
    repository: Repository
    pull_request: PullRequest
    label: Optional[Label] = None


class WebhookAck(BaseModel):
    """Acknowledgement returned to the webhook sender."""

    message: str = Field(default="OK")
