"""Shared plumbing for the event handlers.

Each handler runs one linear pipeline: parse the payload, resolve the people
involved to Slack users and channels, build the notification, format it and
post it. BaseEventHandler holds the collaborators every pipeline needs and
wraps ``process`` with payload validation and failure logging.
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Sequence

from src.notifier.config import ActionContext, NotifierSettings
from src.notifier.errors import NotificationError
from src.notifier.github.client import GitHubClient
from src.notifier.slack.client import SlackClient
from src.notifier.slack.models import Recipient
from src.notifier.slack.resolver import SlackUserResolver
from src.notifier.slack.router import ChannelRouter
from src.notifier.webhook.parser import validate_payload

logger = logging.getLogger(__name__)


class BaseEventHandler:
    """Base class for one notification flow.

    Attributes:
        settings: Validated action inputs.
        github_client: GitHub REST client.
        slack_client: Slack Web API client.
        resolver: GitHub login to Slack user resolver, shared across handlers.
        router: GitHub login to Slack channel router, shared across handlers.
    """

    def __init__(
        self,
        settings: NotifierSettings,
        github_client: GitHubClient,
        slack_client: SlackClient,
        resolver: SlackUserResolver,
        router: ChannelRouter,
    ):
        self.settings = settings
        self.github_client = github_client
        self.slack_client = slack_client
        self.resolver = resolver
        self.router = router

    @property
    def name(self) -> str:
        return type(self).__name__

    async def handle(self, context: ActionContext) -> None:
        """Validate the payload and run the pipeline.

        Raises:
            PayloadValidationError: If the payload is malformed.
            NotificationError: If any lookup or the Slack post fails.
        """
        validate_payload(context.payload)
        logger.info("Handling event", extra={"handler": self.name})
        try:
            await self.process(context)
        except NotificationError as e:
            logger.error(
                "Event handling failed",
                extra={"handler": self.name, "error": e.to_dict()},
            )
            raise
        logger.info("Event handled", extra={"handler": self.name})

    async def process(self, context: ActionContext) -> None:
        raise NotImplementedError

    async def send(self, message: Dict[str, Any]) -> Dict[str, Any]:
        return await self.slack_client.post_message(message)

    async def group_by_channel(
        self, recipients: Sequence[Recipient]
    ) -> "OrderedDict[str, List[Recipient]]":
        """Group recipients by their routed channel, keeping recipient order."""
        channels = await asyncio.gather(
            *(self.router.select_channel(r.github_username) for r in recipients)
        )
        groups: "OrderedDict[str, List[Recipient]]" = OrderedDict()
        for recipient, channel in zip(recipients, channels):
            groups.setdefault(channel, []).append(recipient)
        return groups


def unique_logins(logins: Sequence[str], exclude: Sequence[str] = ()) -> List[str]:
    """Drop empty and excluded logins and duplicates, keeping first occurrence."""
    excluded = set(exclude)
    return [
        login
        for login in dict.fromkeys(logins)
        if login and login not in excluded
    ]


def mention_list(recipients: Sequence[Recipient]) -> str:
    return ", ".join(r.mention for r in recipients)
