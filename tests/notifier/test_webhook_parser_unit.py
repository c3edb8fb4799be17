"""Unit tests for webhook payload parsing."""

import pytest

from factories import make_pull_request, make_repository
from src.notifier.errors import PayloadValidationError
from src.notifier.webhook import (
    CodeReviewCommentEvent,
    CommentKind,
    PRPageCommentEvent,
    parse_comment_event,
    parse_repository_event,
    parse_review_event,
    parse_review_requested_event,
    validate_payload,
)
from src.notifier.webhook.parser import classify_comment


def _code_comment_payload(**comment):
    body = {
        "id": 11,
        "body": "nit",
        "html_url": "https://github.com/aitrics/widgets/pull/7#discussion_r11",
        "user": {"login": "bob"},
        "diff_hunk": "@@ -1 +1 @@",
    }
    body.update(comment)
    return {
        "repository": make_repository(),
        "pull_request": make_pull_request(),
        "comment": body,
    }


def _pr_page_payload():
    return {
        "repository": make_repository(),
        "issue": {"number": 7, "title": "Add widgets"},
        "comment": {
            "id": 22,
            "body": "ping",
            "issue_url": "https://api.github.com/repos/aitrics/widgets/issues/7",
            "html_url": "https://github.com/aitrics/widgets/pull/7#issuecomment-22",
            "user": {"login": "bob"},
        },
    }


class TestValidatePayload:
    @pytest.mark.parametrize("payload", [None, [], "text", 3])
    def test_rejects_non_objects(self, payload):
        with pytest.raises(PayloadValidationError):
            validate_payload(payload)

    @pytest.mark.parametrize("payload", [{}, {"repository": None}, {"repository": "widgets"}])
    def test_requires_repository_object(self, payload):
        with pytest.raises(PayloadValidationError) as exc_info:
            validate_payload(payload)

        assert exc_info.value.code == "PAYLOAD_VALIDATION_ERROR"

    def test_returns_payload(self):
        payload = {"repository": make_repository()}

        assert validate_payload(payload) is payload


class TestCommentEvents:
    def test_classifies_code_review_comment(self):
        assert classify_comment(_code_comment_payload()) is CommentKind.CODE_REVIEW

    def test_classifies_pr_page_comment(self):
        assert classify_comment(_pr_page_payload()) is CommentKind.PR_PAGE

    def test_issue_url_wins_over_pull_request(self):
        payload = _code_comment_payload(issue_url="https://api.github.com/x")

        assert classify_comment(payload) is CommentKind.PR_PAGE

    def test_comment_without_target_is_rejected(self):
        payload = {"repository": make_repository(), "comment": {"id": 1}}

        with pytest.raises(PayloadValidationError):
            classify_comment(payload)

    def test_missing_comment_is_rejected(self):
        with pytest.raises(PayloadValidationError):
            parse_comment_event({"repository": make_repository()})

    def test_parses_code_review_comment(self):
        event = parse_comment_event(_code_comment_payload(in_reply_to_id=5))

        assert isinstance(event, CodeReviewCommentEvent)
        assert event.comment.author == "bob"
        assert event.pull_request.user.login == "alice"
        assert event.is_reply
        assert event.thread_root_id == 5

    def test_top_level_comment_is_its_own_thread_root(self):
        event = parse_comment_event(_code_comment_payload())

        assert not event.is_reply
        assert event.thread_root_id == 11

    def test_parses_pr_page_comment(self):
        event = parse_comment_event(_pr_page_payload())

        assert isinstance(event, PRPageCommentEvent)
        assert event.pr_url == "https://github.com/aitrics/widgets/pull/7"

    def test_unknown_fields_are_ignored(self):
        payload = _code_comment_payload()
        payload["sender"] = {"login": "bob", "type": "User"}

        assert parse_comment_event(payload).comment.id == 11

    def test_invalid_comment_lists_failing_fields(self):
        payload = _code_comment_payload()
        del payload["comment"]["user"]

        with pytest.raises(PayloadValidationError) as exc_info:
            parse_comment_event(payload)

        assert "comment.user" in exc_info.value.details["payload"]["fields"]


class TestReviewEvents:
    def test_parses_review(self):
        payload = {
            "repository": make_repository(),
            "pull_request": make_pull_request(),
            "review": {"body": "LGTM", "state": "approved", "user": {"login": "bob"}},
        }

        event = parse_review_event(payload)

        assert event.review.user.login == "bob"
        assert event.review.body == "LGTM"

    def test_review_request_uses_requested_reviewer(self):
        payload = {
            "repository": make_repository(),
            "pull_request": make_pull_request(),
            "requested_reviewer": {"login": "carol"},
        }

        assert parse_review_requested_event(payload).reviewer_login == "carol"

    def test_changes_requested_uses_review_author(self):
        payload = {
            "repository": make_repository(),
            "pull_request": make_pull_request(),
            "review": {"state": "changes_requested", "user": {"login": "dave"}},
        }

        assert parse_review_requested_event(payload).reviewer_login == "dave"

    def test_review_request_without_reviewer_is_rejected(self):
        payload = {"repository": make_repository(), "pull_request": make_pull_request()}

        with pytest.raises(PayloadValidationError):
            parse_review_requested_event(payload)

    def test_repository_event(self):
        event = parse_repository_event({"repository": make_repository("api")})

        assert event.repository.name == "api"
        assert event.repository.owner_login == "aitrics"

    def test_owner_falls_back_to_full_name(self):
        event = parse_repository_event({"repository": {"name": "api", "full_name": "acme/api"}})

        assert event.repository.owner_login == "acme"
