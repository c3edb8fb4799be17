"""Webhook payload parsing.

Turns the raw event payload read from GITHUB_EVENT_PATH into the typed
events of ``models``. Malformed payloads raise PayloadValidationError before
any API call is made.

Comment payload structure (pull_request_review_comment):
{
  "comment": {"id": 1, "body": "...", "diff_hunk": "...", "in_reply_to_id": 0,
              "user": {"login": "reviewer"}, "html_url": "..."},
  "pull_request": {"number": 7, "title": "...", "user": {"login": "author"}},
  "repository": {"name": "repo", "full_name": "org/repo", "owner": {...}}
}

Comment payload structure (issue_comment on a pull request):
{
  "comment": {"id": 2, "body": "...", "issue_url": "...", "user": {...}},
  "issue": {"number": 7, "title": "..."},
  "repository": {...}
}
"""

import logging
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from src.notifier.errors import PayloadValidationError
from src.notifier.webhook.models import (
    CodeReviewCommentEvent,
    CommentEvent,
    CommentKind,
    PRPageCommentEvent,
    RepositoryEvent,
    ReviewEvent,
    ReviewRequestedEvent,
)

logger = logging.getLogger(__name__)

EventT = TypeVar("EventT", bound=BaseModel)


def validate_payload(payload: Any) -> Dict[str, Any]:
    """Check the minimal structure shared by every event.

    Raises:
        PayloadValidationError: If the payload is not an object or has no
            repository.
    """
    if not isinstance(payload, dict):
        raise PayloadValidationError(
            f"Invalid payload: expected object, got {type(payload).__name__}"
        )
    if not isinstance(payload.get("repository"), dict):
        raise PayloadValidationError(
            "Missing or invalid 'repository' field in payload",
            payload={"keys": sorted(payload)},
        )
    return payload


def _parse(model: Type[EventT], payload: Dict[str, Any]) -> EventT:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        logger.warning(
            "Payload failed validation",
            extra={"event": model.__name__, "fields": fields},
        )
        raise PayloadValidationError(
            f"Invalid {model.__name__} payload: {', '.join(fields)}",
            payload={"fields": fields},
            cause=e,
        ) from e


def classify_comment(payload: Dict[str, Any]) -> CommentKind:
    """Decide whether a comment was left on the diff or on the PR page."""
    comment = payload.get("comment")
    if not isinstance(comment, dict):
        raise PayloadValidationError("Missing or invalid 'comment' field in payload")
    if "issue_url" in comment or "issue" in payload:
        return CommentKind.PR_PAGE
    if "pull_request" in payload:
        return CommentKind.CODE_REVIEW
    raise PayloadValidationError(
        "Comment payload has neither 'pull_request' nor 'issue'",
        payload={"keys": sorted(payload)},
    )


def parse_comment_event(payload: Any) -> CommentEvent:
    payload = validate_payload(payload)
    kind = classify_comment(payload)
    if kind is CommentKind.PR_PAGE:
        event: CommentEvent = _parse(PRPageCommentEvent, payload)
    else:
        event = _parse(CodeReviewCommentEvent, payload)
    logger.info(
        "Parsed comment event",
        extra={"kind": kind.value, "comment_id": event.comment.id},
    )
    return event


def parse_review_event(payload: Any) -> ReviewEvent:
    return _parse(ReviewEvent, validate_payload(payload))


def parse_review_requested_event(payload: Any) -> ReviewRequestedEvent:
    event = _parse(ReviewRequestedEvent, validate_payload(payload))
    if event.reviewer_login is None:
        raise PayloadValidationError(
            "Review request payload has neither 'requested_reviewer' nor 'review'"
        )
    return event


def parse_repository_event(payload: Any) -> RepositoryEvent:
    return _parse(RepositoryEvent, validate_payload(payload))
