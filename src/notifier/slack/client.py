"""Slack Web API access for the notifier.

Thin async wrapper over slack_sdk's AsyncWebClient covering the two calls the
notifier makes: ``users.list`` (member directory for name resolution) and
``chat.postMessage``. Failures are logged and raised as SlackAPIError.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

from src.notifier.constants import SLACK_USER_PAGE_SIZE
from src.notifier.errors import SlackAPIError

logger = logging.getLogger(__name__)


def _slack_error_code(error: Exception) -> Optional[str]:
    if isinstance(error, SlackApiError) and error.response is not None:
        return error.response.get("error")
    return None


class SlackClient:
    """Slack Web API client used to list members and post messages.

    Attributes:
        web_client: The underlying slack_sdk AsyncWebClient.
    """

    def __init__(self, web_client: AsyncWebClient):
        self.web_client = web_client

    @classmethod
    def from_token(cls, token: str, timeout: float = 30.0) -> "SlackClient":
        """Build a client authenticated with a bot or user token."""
        return cls(AsyncWebClient(token=token, timeout=int(timeout)))

    async def list_members(self) -> List[Dict[str, Any]]:
        """Return every workspace member, following ``users.list`` cursors.

        Raises:
            SlackAPIError: If any page request fails.
        """
        members: List[Dict[str, Any]] = []
        cursor: Optional[str] = None

        try:
            while True:
                response = await self.web_client.users_list(
                    cursor=cursor, limit=SLACK_USER_PAGE_SIZE
                )
                members.extend(response.get("members") or [])
                cursor = (response.get("response_metadata") or {}).get("next_cursor")
                if not cursor:
                    break
        except (SlackClientError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(
                "Failed to fetch Slack users",
                extra={"error": str(e), "fetched": len(members)},
            )
            raise SlackAPIError(
                "Failed to fetch Slack users",
                error=_slack_error_code(e),
                cause=e,
            ) from e

        logger.debug("Fetched Slack users", extra={"count": len(members)})
        return members

    async def post_message(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Post a ``chat.postMessage`` payload built by the formatters.

        Args:
            message: Dict with channel, text, attachments and mrkdwn.

        Returns:
            The Slack API response data.

        Raises:
            SlackAPIError: If Slack rejects the message or the call fails.
        """
        channel = message.get("channel")
        logger.debug("Sending Slack message", extra={"channel": channel})

        try:
            response = await self.web_client.chat_postMessage(**message)
        except (SlackClientError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(
                "Failed to send Slack message",
                extra={"channel": channel, "error": str(e)},
            )
            raise SlackAPIError(
                "Failed to send Slack message",
                error=_slack_error_code(e),
                details={"channel": channel},
                cause=e,
            ) from e

        logger.info(
            "Slack message sent",
            extra={"channel": channel, "ts": response.get("ts")},
        )
        return response.data if hasattr(response, "data") else dict(response)
