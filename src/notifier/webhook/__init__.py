"""GitHub webhook payload parsing for the notifier.

Payloads come from the event file the Actions runner writes; they are not
received over HTTP and carry no signature to verify.
"""

from .models import (
    CodeReviewCommentEvent,
    CommentEvent,
    CommentKind,
    PRPageCommentEvent,
    Repository,
    RepositoryEvent,
    ReviewEvent,
    ReviewRequestedEvent,
)
from .parser import (
    parse_comment_event,
    parse_repository_event,
    parse_review_event,
    parse_review_requested_event,
    validate_payload,
)

__all__ = [
    "CodeReviewCommentEvent",
    "CommentEvent",
    "CommentKind",
    "PRPageCommentEvent",
    "Repository",
    "RepositoryEvent",
    "ReviewEvent",
    "ReviewRequestedEvent",
    "parse_comment_event",
    "parse_repository_event",
    "parse_review_event",
    "parse_review_requested_event",
    "validate_payload",
]
