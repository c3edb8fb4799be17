"""Slack message formatting.

Every function here is pure: it takes a notification model and a channel id
and returns a ``chat.postMessage`` payload of the form::

    {"channel": ..., "text": ..., "attachments": [...], "mrkdwn": True}
"""

from typing import Any, Dict, List, Optional

from src.notifier.constants import Icon, MessageColor, Template
from src.notifier.slack.models import (
    BuildNotification,
    CommentNotification,
    DeploymentNotification,
    ReviewNotification,
    ScheduledReviewNotification,
)
from src.notifier.text import create_image_attachments

SlackMessage = Dict[str, Any]
SlackAttachment = Dict[str, Any]


# -------------------------------------------------------------------------
# Building blocks
# -------------------------------------------------------------------------
def create_message(
    channel: str,
    text: str,
    attachments: Optional[List[SlackAttachment]] = None,
) -> SlackMessage:
    return {
        "channel": channel,
        "text": text,
        "attachments": list(attachments or []),
        "mrkdwn": True,
    }


def create_field(title: str, value: str, short: bool = False) -> Dict[str, Any]:
    return {"title": title, "value": value, "short": short}


def create_attachment(
    color: str,
    text: str = "",
    fields: Optional[List[Dict[str, Any]]] = None,
) -> SlackAttachment:
    return {"color": color, "text": text, "fields": list(fields or [])}


def _pr_link(pr_url: str, pr_title: str) -> str:
    return f"*<{pr_url}|{pr_title}>*"


def _comment_mentions(data: CommentNotification) -> str:
    if data.mentions:
        return data.mentions
    if data.target_slack_id:
        return f"<@{data.target_slack_id}>"
    return ""


def _commit_link(repo_url: str, sha: str) -> str:
    return f"<{repo_url}/commit/{sha}|{sha[:7]}>"


def _author_mention(slack_id: str) -> str:
    return f"<@{slack_id}>" if slack_id else "N/A"


def _status_parts(is_success: bool):
    if is_success:
        return MessageColor.SUCCESS.value, Icon.SUCCESS.value, "Succeeded"
    return MessageColor.DANGER.value, Icon.FAILURE.value, "Failed"


# -------------------------------------------------------------------------
# Review flow messages
# -------------------------------------------------------------------------
def format_code_comment(data: CommentNotification, channel: str) -> SlackMessage:
    """Format a comment left on a line of the diff.

    The attachment shows the diff hunk (when present), the comment body and a
    link to the comment. Uploaded images follow as separate attachments.
    """
    code_block = f"```{data.code_snippet}```\n" if data.code_snippet else ""
    attachment_text = (
        f"{code_block}\n{Template.COMMENT_CONTENT}\n{data.comment_body}\n\n"
        f"<{data.comment_url}|{Template.VIEW_COMMENT}>\n\n"
    )
    text = (
        f"{_pr_link(data.pr_url, data.pr_title)}\n"
        f"{Icon.COMMENT.value} *{data.author_slack_name}* {Template.CODE_COMMENT} "
        f"{_comment_mentions(data)}:\n"
    )
    attachments = [create_attachment(MessageColor.SUCCESS.value, attachment_text)]
    attachments.extend(create_image_attachments(data.image_urls))
    return create_message(channel, text, attachments)


def format_pr_page_comment(data: CommentNotification, channel: str) -> SlackMessage:
    """Format a comment left on the pull request conversation page."""
    attachment_text = (
        f"{Template.COMMENT_CONTENT}\n{data.comment_body}\n\n"
        f"<{data.comment_url}|{Template.VIEW_COMMENT}>"
    )
    text = (
        f"{_pr_link(data.pr_url, data.pr_title)}\n"
        f"{Icon.PR_COMMENT.value} *{data.author_slack_name}* {Template.PR_COMMENT} "
        f"{_comment_mentions(data)}"
    )
    attachments = [create_attachment(MessageColor.SUCCESS.value, attachment_text)]
    attachments.extend(create_image_attachments(data.image_urls))
    return create_message(channel, text, attachments)


def format_approval(data: ReviewNotification, channel: str) -> SlackMessage:
    attachment_text = f"{data.comment_body}\n\n<{data.comment_url}|{Template.VIEW_COMMENT}>."
    text = (
        f"{_pr_link(data.pr_url, data.pr_title)}\n"
        f"{Icon.APPROVE.value} *{data.author_slack_name}* {Template.APPROVE} "
        f"<@{data.target_slack_id}>:\n"
    )
    return create_message(
        channel, text, [create_attachment(MessageColor.SUCCESS.value, attachment_text)]
    )


def format_review_request(data: ReviewNotification, channel: str) -> SlackMessage:
    attachment_text = f"\n<{data.pr_url}|{Template.VIEW_PR}>."
    text = (
        f"{_pr_link(data.pr_url, data.pr_title)}\n"
        f"{Icon.REVIEW_REQUEST.value} *{data.author_slack_name}* "
        f"{Template.REVIEW_REQUEST} <@{data.target_slack_id}>:\n"
    )
    return create_message(
        channel, text, [create_attachment(MessageColor.SUCCESS.value, attachment_text)]
    )


def format_scheduled_review(
    data: ScheduledReviewNotification, channel: str
) -> SlackMessage:
    """Format one entry of the scheduled digest with its reviewer statuses."""
    attachment_text = f"\n<{data.pr_url}|{Template.VIEW_PR}>."
    text = (
        f"{_pr_link(data.pr_url, data.pr_title)} "
        f"{Template.SCHEDULE_REVIEW} {data.reviewers}\n"
    )
    return create_message(
        channel, text, [create_attachment(MessageColor.SUCCESS.value, attachment_text)]
    )


# -------------------------------------------------------------------------
# Workflow result messages
# -------------------------------------------------------------------------
def format_deployment(data: DeploymentNotification, channel: str) -> SlackMessage:
    """Format a deploy result: green on success, red otherwise."""
    color, icon, status_text = _status_parts(data.is_success)

    fields = [
        create_field(Template.DEPLOY_INFO, "", False),
        create_field(Template.REPOSITORY, f"<{data.repo_url}|{data.repo_name}>", True),
        create_field(Template.DEPLOY_SERVER, f"https://{data.ec2_name}", True),
        create_field(Template.AUTHOR, _author_mention(data.trigger_slack_id), True),
        create_field(Template.COMMIT, _commit_link(data.repo_url, data.sha), True),
        create_field(Template.IMAGE_TAG, data.image_tag, True),
        create_field(Template.RUN_TIME, data.duration, True),
        create_field(
            Template.WORKFLOW, f"<{data.workflow_url}|{data.workflow_name}>", True
        ),
        create_field(Template.REF, data.ref, True),
    ]

    text = f"{icon}*{status_text}* {Template.DEPLOY_NOTIFICATION}"
    return create_message(channel, text, [create_attachment(color, "", fields)])


def format_build(data: BuildNotification, channel: str) -> SlackMessage:
    """Format a build result.

    Failed builds list their jobs, one per line in backticks. The image tag
    field is omitted when no image was built.
    """
    color, icon, status_text = _status_parts(data.is_success)

    fields = [create_field(Template.BUILD_INFO, "", False)]
    if not data.is_success and data.job_names:
        jobs = "\n".join(f"`{job}`" for job in data.job_names)
        fields.append(create_field(Template.FAILED_JOBS, jobs, False))

    fields.extend(
        [
            create_field(
                Template.REPOSITORY, f"<{data.repo_url}|{data.repo_name}>", True
            ),
            create_field(Template.BRANCH, data.branch_name or "N/A", True),
            create_field(Template.AUTHOR, _author_mention(data.trigger_slack_id), True),
            create_field(Template.COMMIT, _commit_link(data.repo_url, data.sha), True),
        ]
    )
    if data.image_tag:
        fields.append(create_field(Template.IMAGE_TAG, data.image_tag, True))
    fields.extend(
        [
            create_field(Template.RUN_TIME, data.duration, True),
            create_field(
                Template.WORKFLOW, f"<{data.workflow_url}|{data.workflow_name}>", True
            ),
        ]
    )

    text = f"{icon}*{status_text}* {Template.BUILD_NOTIFICATION}"
    return create_message(channel, text, [create_attachment(color, "", fields)])


__all__ = [
    "create_attachment",
    "create_field",
    "create_image_attachments",
    "create_message",
    "format_approval",
    "format_build",
    "format_code_comment",
    "format_deployment",
    "format_pr_page_comment",
    "format_review_request",
    "format_scheduled_review",
]
