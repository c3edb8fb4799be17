"""Entry point for the notifier GitHub Action.

Run as ``python -m src.notifier.main`` from an Actions step. Reads the action
inputs and the event payload, posts the notification for ACTION_TYPE and
exits non-zero if anything failed.
"""

import asyncio
import logging
import sys
from typing import Optional

from src.notifier.config import (
    ActionContext,
    NotifierSettings,
    get_settings,
    load_action_context,
)
from src.notifier.errors import NotificationError
from src.notifier.github.client import GitHubClient
from src.notifier.handlers.factory import EventHandlerFactory
from src.notifier.slack.client import SlackClient

logger = logging.getLogger(__name__)


def _redact_secret(value: str, visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters."""
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )


def _log_configuration(settings: NotifierSettings) -> None:
    """Log configuration values with secrets redacted."""
    logger.info("Notifier configuration:")
    logger.info(f"  Action Type: {settings.action_type.value}")
    logger.info(f"  Slack Token: {_redact_secret(settings.slack_token)}")
    logger.info(f"  GitHub Token: {_redact_secret(settings.github_token)}")
    logger.info(f"  GitHub Base URL: {settings.github_base_url}")
    logger.info(f"  Organization: {settings.organization}")
    logger.info(f"  Team Slugs: {', '.join(settings.team_slugs)}")
    logger.info(f"  Default Channel: {settings.default_channel}")
    logger.info(f"  Deploy Channel: {settings.deploy_channel}")
    logger.info(f"  Request Timeout: {settings.request_timeout}")


async def run(
    settings: NotifierSettings,
    context: ActionContext,
    github_client: Optional[GitHubClient] = None,
    slack_client: Optional[SlackClient] = None,
) -> None:
    """Dispatch one event, closing the GitHub client when done.

    Raises:
        NotificationError: If the notification could not be delivered.
    """
    github_client = github_client or GitHubClient(
        token=settings.github_token,
        base_url=settings.github_base_url,
        timeout=settings.request_timeout,
    )
    slack_client = slack_client or SlackClient.from_token(
        settings.slack_token, timeout=settings.request_timeout
    )

    async with github_client:
        factory = EventHandlerFactory(settings, github_client, slack_client)
        await factory.handle_event(settings.action_type, context)


def main() -> int:
    """Run the action and return the process exit code."""
    configure_logging()
    try:
        settings = get_settings()
        configure_logging(settings.log_level)
        _log_configuration(settings)
        context = load_action_context()
        asyncio.run(run(settings, context))
    except NotificationError as e:
        logger.error(f"Notification failed: {e.message}", extra={"error": e.to_dict()})
        return 1

    logger.info("Notification sent")
    return 0


if __name__ == "__main__":
    sys.exit(main())
