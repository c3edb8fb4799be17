"""GitHub webhook payload models for the notifier.

Only the fragments of each payload the handlers read are modelled; unknown
keys are ignored. Comment events are classified once, when parsed, into
either a code review comment (left on the diff) or a pull request page
comment (left on the conversation tab).
"""

from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Fragment(BaseModel):
    model_config = ConfigDict(extra="ignore")


class GitHubUser(_Fragment):
    login: str = Field(..., min_length=1)


class Repository(_Fragment):
    """The ``repository`` object present on every event."""

    name: str = Field(..., min_length=1)
    full_name: str = ""
    html_url: str = ""
    owner: Optional[GitHubUser] = None

    @property
    def owner_login(self) -> str:
        if self.owner is not None:
            return self.owner.login
        return self.full_name.split("/", 1)[0]


class PullRequestRef(_Fragment):
    number: int = Field(..., gt=0)
    title: str = ""
    html_url: str = ""
    user: GitHubUser
    draft: bool = False
    requested_reviewers: List[GitHubUser] = Field(default_factory=list)


class IssueRef(_Fragment):
    """The ``issue`` object of an issue comment event on a pull request."""

    number: int = Field(..., gt=0)
    title: str = ""
    html_url: str = ""


class Comment(_Fragment):
    id: int
    body: Optional[str] = ""
    html_url: str = ""
    user: GitHubUser
    diff_hunk: Optional[str] = None
    in_reply_to_id: Optional[int] = None

    @property
    def author(self) -> str:
        return self.user.login


class Review(_Fragment):
    body: Optional[str] = ""
    html_url: str = ""
    state: Optional[str] = None
    user: GitHubUser


class CommentKind(str, Enum):
    """Where on a pull request a comment was left.

    Attributes:
        CODE_REVIEW: On a line of the diff (``pull_request_review_comment``).
        PR_PAGE: On the conversation tab (``issue_comment``).
    """

    CODE_REVIEW = "code_review"
    PR_PAGE = "pr_page"


class CodeReviewCommentEvent(_Fragment):
    kind: Literal[CommentKind.CODE_REVIEW] = CommentKind.CODE_REVIEW
    repository: Repository
    pull_request: PullRequestRef
    comment: Comment

    @property
    def is_reply(self) -> bool:
        return self.comment.in_reply_to_id is not None

    @property
    def thread_root_id(self) -> int:
        return self.comment.in_reply_to_id or self.comment.id


class PRPageCommentEvent(_Fragment):
    kind: Literal[CommentKind.PR_PAGE] = CommentKind.PR_PAGE
    repository: Repository
    issue: IssueRef
    comment: Comment

    @property
    def pr_url(self) -> str:
        return f"https://github.com/{self.repository.full_name}/pull/{self.issue.number}"


CommentEvent = Union[CodeReviewCommentEvent, PRPageCommentEvent]


class ReviewEvent(_Fragment):
    """A submitted review (``pull_request_review``)."""

    repository: Repository
    pull_request: PullRequestRef
    review: Review


class ReviewRequestedEvent(_Fragment):
    """A review request, or a review asking for changes.

    ``review_requested`` events carry ``requested_reviewer``; ``changes
    requested`` reviews carry ``review`` instead.
    """

    repository: Repository
    pull_request: PullRequestRef
    requested_reviewer: Optional[GitHubUser] = None
    review: Optional[Review] = None

    @property
    def reviewer_login(self) -> Optional[str]:
        if self.requested_reviewer is not None:
            return self.requested_reviewer.login
        if self.review is not None:
            return self.review.user.login
        return None


class RepositoryEvent(_Fragment):
    """Any event where only the repository is needed (schedule, deploy, ci)."""

    repository: Repository
