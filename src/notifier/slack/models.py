"""Notification data models passed from handlers to formatters.

Each model carries exactly what one formatter renders. The models use Pydantic
for validation, consistent with the configuration and webhook models.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from src.notifier.constants import JobStatus


class SlackUserProperty(str, Enum):
    """Property of a matched Slack member returned by the name resolver.

    Attributes:
        ID: The member id, used for ``<@id>`` mentions.
        REAL_NAME: The display name (real name when no display name is set).
    """

    ID = "id"
    REAL_NAME = "realName"


class Recipient(BaseModel):
    """A GitHub user to be mentioned, with the Slack id once resolved."""

    github_username: str = Field(..., min_length=1)
    slack_id: Optional[str] = None

    @property
    def mention(self) -> str:
        return f"<@{self.slack_id or self.github_username}>"


class CommentNotification(BaseModel):
    """Data for code review comments and pull request page comments.

    Either ``mentions`` (several recipients in one channel) or
    ``target_slack_id`` (a single recipient) selects who gets mentioned.
    """

    pr_url: str
    pr_title: str
    comment_url: str
    comment_body: str = ""
    code_snippet: Optional[str] = None
    author_username: str
    author_slack_name: str
    target_username: Optional[str] = None
    target_slack_id: Optional[str] = None
    mentions: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)


class ReviewNotification(BaseModel):
    """Data for approvals and review requests."""

    pr_url: str
    pr_title: str
    author_slack_name: str
    target_slack_id: str
    comment_url: Optional[str] = None
    comment_body: str = ""


class ScheduledReviewNotification(BaseModel):
    """One pull request in the scheduled review digest."""

    pr_url: str
    pr_title: str
    author_username: str
    reviewers: str = ""


class DeploymentNotification(BaseModel):
    status: str
    ec2_name: str
    image_tag: str
    ref: str
    sha: str
    trigger_slack_id: str
    repo_name: str
    repo_url: str
    duration: str
    workflow_name: str
    workflow_url: str

    @property
    def is_success(self) -> bool:
        return self.status == JobStatus.SUCCESS.value


class BuildNotification(BaseModel):
    status: str
    branch_name: str
    image_tag: Optional[str] = None
    sha: str
    trigger_slack_id: str
    repo_name: str
    repo_url: str
    duration: str
    workflow_name: str
    workflow_url: str
    job_names: List[str] = Field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return self.status == JobStatus.SUCCESS.value
