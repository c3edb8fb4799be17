"""Review notifications: approvals, review requests and the scheduled digest."""

import asyncio
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple

from src.notifier.config import ActionContext
from src.notifier.constants import ReviewState
from src.notifier.errors import NotificationError
from src.notifier.handlers.base import BaseEventHandler, unique_logins
from src.notifier.slack.formatter import (
    format_approval,
    format_review_request,
    format_scheduled_review,
)
from src.notifier.slack.models import (
    ReviewNotification,
    ScheduledReviewNotification,
    SlackUserProperty,
)
from src.notifier.webhook.parser import (
    parse_repository_event,
    parse_review_event,
    parse_review_requested_event,
)

logger = logging.getLogger(__name__)


class ApproveHandler(BaseEventHandler):
    """Tells the pull request author their PR was approved."""

    async def process(self, context: ActionContext) -> None:
        event = parse_review_event(context.payload)
        pr_author = event.pull_request.user.login
        reviewer = event.review.user.login

        target_id, reviewer_name, channel = await asyncio.gather(
            self.resolver.resolve(pr_author, SlackUserProperty.ID),
            self.resolver.resolve(reviewer, SlackUserProperty.REAL_NAME),
            self.router.select_channel(pr_author),
        )

        data = ReviewNotification(
            pr_url=event.pull_request.html_url,
            pr_title=event.pull_request.title,
            author_slack_name=reviewer_name or reviewer,
            target_slack_id=target_id or pr_author,
            comment_url=event.review.html_url,
            comment_body=event.review.body or "",
        )
        await self.send(format_approval(data, channel))
        logger.info(
            "Sent approval notification",
            extra={"pr_author": pr_author, "reviewer": reviewer, "channel": channel},
        )


class ReviewRequestHandler(BaseEventHandler):
    """Tells a reviewer their review was requested.

    Also used for ``changes_requested``, where the mentioned user is the
    review's author.
    """

    async def process(self, context: ActionContext) -> None:
        event = parse_review_requested_event(context.payload)
        pr_author = event.pull_request.user.login
        reviewer = event.reviewer_login

        target_id, author_name, channel = await asyncio.gather(
            self.resolver.resolve(reviewer, SlackUserProperty.ID),
            self.resolver.resolve(pr_author, SlackUserProperty.REAL_NAME),
            self.router.select_channel(reviewer),
        )

        data = ReviewNotification(
            pr_url=event.pull_request.html_url,
            pr_title=event.pull_request.title,
            author_slack_name=author_name or pr_author,
            target_slack_id=target_id or reviewer,
        )
        await self.send(format_review_request(data, channel))
        logger.info(
            "Sent review request notification",
            extra={"reviewer": reviewer, "pr_author": pr_author, "channel": channel},
        )


def format_reviewer_statuses(statuses: Dict[str, str]) -> str:
    """Render ``{slack_id: state}`` as ``<@id> (STATE), ...``."""
    return ", ".join(f"<@{slack_id}> ({state})" for slack_id, state in statuses.items())


class ScheduleHandler(BaseEventHandler):
    """Posts the open, non-draft pull requests with their reviewer statuses.

    Each pull request goes to its author's team channel; pull requests by
    authors outside every routed team are not posted. All sends are attempted;
    failures are logged one by one and the run fails once every send has
    settled.
    """

    async def process(self, context: ActionContext) -> None:
        event = parse_repository_event(context.payload)
        owner = event.repository.owner_login
        repo = event.repository.name

        pull_requests = await self.github_client.list_open_pull_requests(owner, repo)
        ready = [pr for pr in pull_requests if not pr.get("draft")]
        logger.info(
            "Collected open pull requests",
            extra={"open": len(pull_requests), "ready": len(ready)},
        )
        if not ready:
            return

        details = await asyncio.gather(
            *(self.describe_pull_request(owner, repo, pr) for pr in ready)
        )
        grouped = self.group_by_team(details)

        jobs: List[Tuple[str, str]] = []
        sends = []
        for team_slug, entries in grouped.items():
            channel = self.router.channel_for_team(team_slug)
            for notification in entries:
                jobs.append((notification.pr_url, channel))
                sends.append(self.send(format_scheduled_review(notification, channel)))

        results = await asyncio.gather(*sends, return_exceptions=True)
        failures = [
            (job, result)
            for job, result in zip(jobs, results)
            if isinstance(result, Exception)
        ]
        for (pr_url, channel), error in failures:
            logger.error(
                "Failed to send scheduled review notification",
                extra={"pr_url": pr_url, "channel": channel, "error": str(error)},
            )

        if failures:
            raise NotificationError(
                f"{len(failures)} of {len(sends)} scheduled review notifications failed",
                details={"failed": [pr_url for (pr_url, _), _ in failures]},
                cause=failures[0][1],
            )
        logger.info("Sent scheduled review notifications", extra={"count": len(sends)})

    async def describe_pull_request(
        self, owner: str, repo: str, pull_request: Dict[str, Any]
    ) -> Tuple[Optional[str], ScheduledReviewNotification]:
        author = pull_request["user"]["login"]
        statuses, team_slug = await asyncio.gather(
            self.reviewer_statuses(owner, repo, pull_request["number"]),
            self.router.find_team_slug(author),
        )
        return team_slug, ScheduledReviewNotification(
            pr_url=pull_request["html_url"],
            pr_title=pull_request["title"],
            author_username=author,
            reviewers=format_reviewer_statuses(statuses),
        )

    async def reviewer_statuses(
        self, owner: str, repo: str, number: int
    ) -> Dict[str, str]:
        """Map each reviewer's Slack id to their latest review state.

        Submitted reviews are applied in order so the last one wins; requested
        reviewers with no review yet are awaiting.
        """
        reviews, pull_request = await asyncio.gather(
            self.github_client.list_reviews(owner, repo, number),
            self.github_client.get_pull_request(owner, repo, number),
        )
        submitted = [r["user"]["login"] for r in reviews if r.get("user")]
        requested = [
            r["login"] for r in pull_request.get("requested_reviewers") or []
        ]
        ids = await self.resolver.resolve_many(
            unique_logins([*submitted, *requested]), SlackUserProperty.ID
        )

        statuses: Dict[str, str] = {}
        for review in reviews:
            if not review.get("user"):
                continue
            login = review["user"]["login"]
            statuses[ids.get(login, login)] = (
                review.get("state") or ReviewState.COMMENTED.value
            )
        for login in requested:
            statuses.setdefault(ids.get(login, login), ReviewState.AWAITING.value)
        return statuses

    def group_by_team(
        self,
        details: List[Tuple[Optional[str], ScheduledReviewNotification]],
    ) -> "OrderedDict[str, List[ScheduledReviewNotification]]":
        """Group pull requests by team in routing order.

        Pull requests whose author is in no routed team are dropped.
        """
        grouped: "OrderedDict[str, List[ScheduledReviewNotification]]" = OrderedDict(
            (slug, []) for slug in self.router.team_slugs
        )
        for team_slug, notification in details:
            if team_slug not in grouped:
                logger.info(
                    "Skipping pull request without a routed team",
                    extra={
                        "pr_url": notification.pr_url,
                        "author": notification.author_username,
                    },
                )
                continue
            grouped[team_slug].append(notification)
        return OrderedDict((k, v) for k, v in grouped.items() if v)
