"""Slack side of the notifier: API client, user resolution, channel routing
and message formatting."""

from src.notifier.slack.client import SlackClient
from src.notifier.slack.resolver import SlackUserResolver
from src.notifier.slack.router import ChannelRouter

__all__ = [
    "ChannelRouter",
    "SlackClient",
    "SlackUserResolver",
]
