"""Deploy and build result notifications.

Both read the current workflow run for its name, URL, start time and actor,
and post to the deploy channel.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from src.notifier.config import ActionContext
from src.notifier.errors import ConfigurationError
from src.notifier.handlers.base import BaseEventHandler
from src.notifier.slack.formatter import format_build, format_deployment
from src.notifier.slack.models import (
    BuildNotification,
    DeploymentNotification,
    SlackUserProperty,
)
from src.notifier.text import duration_minutes, format_duration
from src.notifier.webhook.models import Repository
from src.notifier.webhook.parser import parse_repository_event

logger = logging.getLogger(__name__)

BRANCH_REF_PREFIX = "refs/heads/"


def branch_from_ref(ref: str) -> str:
    if ref.startswith(BRANCH_REF_PREFIX):
        return ref[len(BRANCH_REF_PREFIX):]
    return ref


def split_job_names(job_name: str) -> List[str]:
    """Split the comma separated JOB_NAME input, dropping blanks."""
    return [name.strip() for name in (job_name or "").split(",") if name.strip()]


class WorkflowRunHandler(BaseEventHandler):
    """Common lookups for notifications about the running workflow."""

    async def workflow_run(
        self, context: ActionContext
    ) -> Tuple[Repository, Dict[str, Any], str, str]:
        """Return the repository, workflow run, trigger Slack id and run time.

        Raises:
            ConfigurationError: If GITHUB_RUN_ID is not set.
            GitHubAPIError: If the workflow run cannot be read.
        """
        if not context.run_id:
            raise ConfigurationError(
                "GITHUB_RUN_ID is not set", missing_fields=["GITHUB_RUN_ID"]
            )

        repository = parse_repository_event(context.payload).repository
        run = await self.github_client.get_workflow_run(
            repository.owner_login, repository.name, context.run_id
        )
        actor = (run.get("actor") or {}).get("login", "")

        now = datetime.now(timezone.utc).isoformat()
        started = run.get("run_started_at") or run.get("created_at") or now
        trigger_id = await self.resolver.resolve(actor, SlackUserProperty.ID)

        return (
            repository,
            run,
            trigger_id or actor,
            format_duration(duration_minutes(started, now)),
        )


class DeployHandler(WorkflowRunHandler):
    """Handles the ``deploy`` action."""

    async def process(self, context: ActionContext) -> None:
        repository, run, trigger_id, duration = await self.workflow_run(context)

        data = DeploymentNotification(
            status=self.settings.job_status,
            ec2_name=self.settings.ec2_name,
            image_tag=self.settings.image_tag,
            ref=context.ref,
            sha=context.sha,
            trigger_slack_id=trigger_id,
            repo_name=repository.name,
            repo_url=repository.html_url,
            duration=duration,
            workflow_name=run.get("name", ""),
            workflow_url=run.get("html_url", ""),
        )
        await self.send(format_deployment(data, self.settings.deploy_channel))
        logger.info(
            "Sent deploy notification",
            extra={"ec2_name": data.ec2_name, "status": data.status},
        )


class BuildHandler(WorkflowRunHandler):
    """Handles the ``ci`` action."""

    async def process(self, context: ActionContext) -> None:
        repository, run, trigger_id, duration = await self.workflow_run(context)

        data = BuildNotification(
            status=self.settings.job_status,
            branch_name=self.settings.branch_name or branch_from_ref(context.ref),
            image_tag=self.settings.image_tag or None,
            sha=context.sha,
            trigger_slack_id=trigger_id,
            repo_name=repository.name,
            repo_url=repository.html_url,
            duration=duration,
            workflow_name=run.get("name", ""),
            workflow_url=run.get("html_url", ""),
            job_names=split_job_names(self.settings.job_name),
        )
        await self.send(format_build(data, self.settings.deploy_channel))
        logger.info(
            "Sent build notification",
            extra={"branch": data.branch_name, "status": data.status},
        )
