"""Comment notifications.

Code review comments notify the people in the comment's thread: the pull
request author by default, the original commenter for a reply, plus anyone
else who wrote in the thread. Pull request page comments notify the
reviewers and the pull request author. The commenter is never notified.

Recipients are grouped by routed channel and each channel gets one message.
"""

import asyncio
import logging
from typing import List, Optional

from src.notifier.config import ActionContext
from src.notifier.errors import NotificationError
from src.notifier.handlers.base import BaseEventHandler, mention_list, unique_logins
from src.notifier.slack.formatter import format_code_comment, format_pr_page_comment
from src.notifier.slack.models import CommentNotification, Recipient, SlackUserProperty
from src.notifier.text import convert_comment_mentions, process_comment_images
from src.notifier.webhook.models import (
    CodeReviewCommentEvent,
    CommentKind,
    PRPageCommentEvent,
)
from src.notifier.webhook.parser import parse_comment_event

logger = logging.getLogger(__name__)


class CommentEventHandler(BaseEventHandler):
    """Handles the ``comment`` action."""

    async def process(self, context: ActionContext) -> None:
        event = parse_comment_event(context.payload)
        if event.kind is CommentKind.PR_PAGE:
            await self.handle_pr_page_comment(event)
        else:
            await self.handle_code_comment(event)

    # ---------------------------------------------------------------------
    # Code review comments
    # ---------------------------------------------------------------------
    async def handle_code_comment(self, event: CodeReviewCommentEvent) -> None:
        target = await self.reply_target(event)
        recipients = await self.code_comment_recipients(event, target)
        if not recipients:
            logger.info(
                "No recipients for code comment",
                extra={"comment_id": event.comment.id},
            )
            return

        base = await self.prepare_comment_data(
            event.comment.author,
            event.comment.body or "",
            pr_url=event.pull_request.html_url,
            pr_title=event.pull_request.title,
            comment_url=event.comment.html_url,
            code_snippet=event.comment.diff_hunk,
        )

        if len(recipients) == 1:
            recipient = recipients[0]
            channel = await self.router.select_channel(recipient.github_username)
            data = base.model_copy(
                update={
                    "target_username": recipient.github_username,
                    "target_slack_id": recipient.slack_id,
                }
            )
            await self.send(format_code_comment(data, channel))
            logger.info(
                "Sent code comment notification",
                extra={"recipient": recipient.github_username, "channel": channel},
            )
            return

        groups = await self.group_by_channel(recipients)
        await asyncio.gather(
            *(
                self.send(
                    format_code_comment(
                        base.model_copy(update={"mentions": mention_list(members)}),
                        channel,
                    )
                )
                for channel, members in groups.items()
            )
        )
        logger.info(
            "Sent code comment notifications",
            extra={"channels": len(groups), "recipients": len(recipients)},
        )

    async def reply_target(self, event: CodeReviewCommentEvent) -> str:
        """Return who a code comment is addressed to.

        A reply is addressed to the author of the comment it replies to,
        unless that is the replier; everything else goes to the PR author.
        """
        pr_author = event.pull_request.user.login
        if not event.is_reply:
            return pr_author

        try:
            original = await self.github_client.get_review_comment_author(
                event.repository.owner_login,
                event.repository.name,
                event.comment.in_reply_to_id,
            )
        except NotificationError as e:
            logger.error(
                "Failed to fetch replied-to comment author",
                extra={"in_reply_to_id": event.comment.in_reply_to_id, "error": str(e)},
            )
            return pr_author

        if original and original != event.comment.author:
            return original
        return pr_author

    async def thread_participants(self, event: CodeReviewCommentEvent) -> List[str]:
        """Logins of everyone who wrote in the comment's thread, in order."""
        root = event.thread_root_id
        try:
            comments = await self.github_client.list_review_comments(
                event.repository.owner_login,
                event.repository.name,
                event.pull_request.number,
            )
        except NotificationError as e:
            logger.error(
                "Failed to fetch comment thread participants",
                extra={"pr_number": event.pull_request.number, "error": str(e)},
            )
            return []

        return unique_logins(
            [
                c["user"]["login"]
                for c in comments
                if (c.get("id") == root or c.get("in_reply_to_id") == root)
                and c.get("user")
            ]
        )

    async def code_comment_recipients(
        self, event: CodeReviewCommentEvent, target: str
    ) -> List[Recipient]:
        participants = await self.thread_participants(event)
        logins = unique_logins([target, *participants], exclude=[event.comment.author])
        return await self.resolver.with_slack_ids(
            [Recipient(github_username=login) for login in logins]
        )

    # ---------------------------------------------------------------------
    # Pull request page comments
    # ---------------------------------------------------------------------
    async def handle_pr_page_comment(self, event: PRPageCommentEvent) -> None:
        owner = event.repository.owner_login
        repo = event.repository.name
        number = event.issue.number
        commenter = event.comment.author

        pull_request, reviews = await asyncio.gather(
            self.github_client.get_pull_request(owner, repo, number),
            self.github_client.list_reviews(owner, repo, number),
        )
        pr_author = pull_request["user"]["login"]
        reviewers = [r["login"] for r in pull_request.get("requested_reviewers") or []]
        reviewers += [r["user"]["login"] for r in reviews if r.get("user")]

        candidates = reviewers if commenter == pr_author else [pr_author, *reviewers]
        logins = unique_logins(candidates, exclude=[commenter])
        if not logins:
            logger.info(
                "No recipients for pull request comment",
                extra={"comment_id": event.comment.id},
            )
            return

        recipients = await self.resolver.with_slack_ids(
            [Recipient(github_username=login) for login in logins]
        )
        base, groups = await asyncio.gather(
            self.prepare_comment_data(
                commenter,
                event.comment.body or "",
                pr_url=event.pr_url,
                pr_title=pull_request.get("title") or event.issue.title,
                comment_url=event.comment.html_url,
            ),
            self.group_by_channel(recipients),
        )

        await asyncio.gather(
            *(
                self.send(
                    format_pr_page_comment(
                        base.model_copy(update={"mentions": mention_list(members)}),
                        channel,
                    )
                )
                for channel, members in groups.items()
            )
        )
        logger.info(
            "Sent pull request comment notifications",
            extra={"channels": len(groups), "recipients": len(recipients)},
        )

    # ---------------------------------------------------------------------
    # Shared
    # ---------------------------------------------------------------------
    async def convert_mentions(self, body: str) -> str:
        try:
            return await convert_comment_mentions(
                body,
                lambda logins: self.resolver.resolve_many(logins, SlackUserProperty.ID),
            )
        except NotificationError as e:
            logger.error("Failed to convert comment mentions", extra={"error": str(e)})
            return body

    async def prepare_comment_data(
        self,
        author: str,
        body: str,
        pr_url: str,
        pr_title: str,
        comment_url: str,
        code_snippet: Optional[str] = None,
    ) -> CommentNotification:
        author_name, converted = await asyncio.gather(
            self.resolver.resolve(author, SlackUserProperty.REAL_NAME),
            self.convert_mentions(body),
        )
        images = process_comment_images(converted)
        return CommentNotification(
            pr_url=pr_url,
            pr_title=pr_title,
            comment_url=comment_url,
            comment_body=images.text,
            code_snippet=code_snippet,
            author_username=author,
            author_slack_name=author_name or author,
            image_urls=images.image_urls,
        )
