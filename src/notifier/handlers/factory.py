"""Dispatch from ACTION_TYPE to the handler running that flow."""

import logging
from typing import Dict, Optional, Union

from src.notifier.config import ActionContext, NotifierSettings
from src.notifier.constants import ActionType
from src.notifier.errors import ConfigurationError
from src.notifier.github.client import GitHubClient
from src.notifier.handlers.base import BaseEventHandler
from src.notifier.handlers.comment import CommentEventHandler
from src.notifier.handlers.deployment import BuildHandler, DeployHandler
from src.notifier.handlers.review import (
    ApproveHandler,
    ReviewRequestHandler,
    ScheduleHandler,
)
from src.notifier.slack.client import SlackClient
from src.notifier.slack.resolver import SlackUserResolver
from src.notifier.slack.router import ChannelRouter

logger = logging.getLogger(__name__)


class EventHandlerFactory:
    """Builds every handler around one shared resolver and router.

    Sharing them means the Slack member list and each team's membership are
    fetched at most once per run, whichever handler asks first.
    """

    def __init__(
        self,
        settings: NotifierSettings,
        github_client: GitHubClient,
        slack_client: SlackClient,
    ):
        self.settings = settings
        self.resolver = SlackUserResolver(
            slack_client,
            github_client,
            skip_users=settings.skip_users,
            bot_prefix=settings.bot_prefix,
        )
        self.router = ChannelRouter(
            github_client,
            organization=settings.organization,
            team_slugs=settings.team_slugs,
            team_channels=settings.team_channels,
            default_channel=settings.default_channel,
        )

        deps = (settings, github_client, slack_client, self.resolver, self.router)
        review_request = ReviewRequestHandler(*deps)
        self.handlers: Dict[ActionType, BaseEventHandler] = {
            ActionType.COMMENT: CommentEventHandler(*deps),
            ActionType.APPROVE: ApproveHandler(*deps),
            ActionType.REVIEW_REQUESTED: review_request,
            ActionType.CHANGES_REQUESTED: review_request,
            ActionType.SCHEDULE: ScheduleHandler(*deps),
            ActionType.DEPLOY: DeployHandler(*deps),
            ActionType.CI: BuildHandler(*deps),
        }

    def get_handler(
        self, action_type: Union[ActionType, str]
    ) -> Optional[BaseEventHandler]:
        try:
            return self.handlers.get(ActionType(action_type))
        except ValueError:
            return None

    async def handle_event(
        self, action_type: Union[ActionType, str], context: ActionContext
    ) -> None:
        """Run the handler registered for ``action_type``.

        Raises:
            ConfigurationError: If no handler exists for the action type.
        """
        handler = self.get_handler(action_type)
        if handler is None:
            logger.error("No handler for action type", extra={"action_type": str(action_type)})
            raise ConfigurationError(
                f"Unknown action type: {action_type}",
                missing_fields=["ACTION_TYPE"],
            )
        await handler.handle(context)
