"""Static values shared across the notifier.

Action types, review states, job statuses, Slack colors/icons/templates and
the default team-to-channel routing table. Organization specific values here
are only defaults; config.py lets every one of them be overridden from the
environment.
"""

from enum import Enum
from typing import Dict, List


class ActionType(str, Enum):
    """Value of the ACTION_TYPE input selecting the notification flow."""

    SCHEDULE = "schedule"
    APPROVE = "approve"
    COMMENT = "comment"
    REVIEW_REQUESTED = "review_requested"
    CHANGES_REQUESTED = "changes_requested"
    DEPLOY = "deploy"
    CI = "ci"


class ReviewState(str, Enum):
    """Reviewer status shown in the scheduled digest."""

    AWAITING = "AWAITING"
    COMMENTED = "COMMENTED"
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    DISMISSED = "DISMISSED"


class JobStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"


# -------------------------------------------------------------------------
# GitHub defaults
# -------------------------------------------------------------------------
DEFAULT_ORGANIZATION = "aitrics"

# Order matters: the first team containing a login wins.
DEFAULT_TEAM_SLUGS: List[str] = ["SE", "Platform-frontend", "Platform-backend"]

# -------------------------------------------------------------------------
# Slack defaults
# -------------------------------------------------------------------------
DEFAULT_TEAM_CHANNELS: Dict[str, str] = {
    "SE": "C06CS5Q4L8G",
    "Platform-frontend": "C06B5J3KD8F",
    "Platform-backend": "C06C8TLTURE",
}
DEFAULT_CHANNEL = "C06CMAY8066"
DEPLOY_CHANNEL = "C06CMU2S6JY"

# Slack members that must never be picked by the name resolver.
DEFAULT_SKIP_USERS: List[str] = ["john (이주호)"]

# Prefix on organization-owned GitHub logins that never appears in Slack names.
DEFAULT_BOT_PREFIX = "aitrics-"

SLACK_USER_PAGE_SIZE = 200


class MessageColor(str, Enum):
    SUCCESS = "good"
    DANGER = "danger"
    WARNING = "warning"
    INFO = "#439FE0"


class Icon(str, Enum):
    COMMENT = ":pencil:"
    PR_COMMENT = ":speech_balloon:"
    APPROVE = ":white_check_mark:"
    REVIEW_REQUEST = ":eyes:"
    SUCCESS = ":white_check_mark:"
    FAILURE = ":x:"


IMAGE_ATTACHMENT_COLOR = "#36a64f"


class Template:
    """Message fragments used by the formatters."""

    CODE_COMMENT = "left a comment!"
    PR_COMMENT = "left a comment!"
    APPROVE = "approved the pull request!"
    REVIEW_REQUEST = "requested a review!"
    SCHEDULE_REVIEW = "is waiting for review."

    COMMENT_CONTENT = "*Comment:*"
    VIEW_COMMENT = "View comment"
    VIEW_PR = "View pull request"
    ATTACHED_IMAGE = "Attached image"

    DEPLOY_INFO = "Deploy Info"
    BUILD_INFO = "Build Info"
    FAILED_JOBS = "Failed Jobs"
    REPOSITORY = "Repository"
    DEPLOY_SERVER = "Deploy Server"
    AUTHOR = "Author"
    COMMIT = "Commit"
    IMAGE_TAG = "Image Tag"
    RUN_TIME = "Run Time"
    WORKFLOW = "Workflow"
    REF = "Ref"
    BRANCH = "Branch"

    DEPLOY_NOTIFICATION = "*GitHub Actions Deploy Notification*"
    BUILD_NOTIFICATION = "*GitHub Actions Build Notification*"
