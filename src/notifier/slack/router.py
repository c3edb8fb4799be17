"""Team based Slack channel routing.

A GitHub login is routed to the channel of the first configured team (in
configuration order) whose membership contains it. Memberships are fetched
once per team for the lifetime of the router.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Set

from src.notifier.cache import CoalescingCache
from src.notifier.errors import GitHubAPIError
from src.notifier.github.client import GitHubClient

logger = logging.getLogger(__name__)


class TeamMembershipCache:
    """Team slug to member logins, loaded lazily from GitHub.

    Concurrent lookups of the same team share one request. A team whose
    membership cannot be fetched is cached as empty so the failure is logged
    once and routing falls through to the next team.
    """

    def __init__(self, github_client: GitHubClient, organization: str):
        self.github_client = github_client
        self.organization = organization
        self._cache: CoalescingCache[str, Set[str]] = CoalescingCache(self._load)

    async def _load(self, team_slug: str) -> Set[str]:
        try:
            members = await self.github_client.list_team_members(
                self.organization, team_slug
            )
        except GitHubAPIError as e:
            logger.error(
                "Failed to fetch team members",
                extra={
                    "org": self.organization,
                    "team_slug": team_slug,
                    "error": str(e),
                },
            )
            return set()
        return {m["login"] for m in members if m.get("login")}

    async def members(self, team_slug: str) -> Set[str]:
        return await self._cache.get(team_slug)


class ChannelRouter:
    """Maps GitHub logins to Slack channel ids.

    Attributes:
        team_slugs: Teams checked in priority order.
        team_channels: Team slug to Slack channel id.
        default_channel: Channel for logins outside every routed team.
    """

    def __init__(
        self,
        github_client: GitHubClient,
        organization: str,
        team_slugs: Iterable[str],
        team_channels: Dict[str, str],
        default_channel: str,
    ):
        self.team_slugs: List[str] = list(team_slugs)
        self.team_channels = dict(team_channels)
        self.default_channel = default_channel
        self.teams = TeamMembershipCache(github_client, organization)

    async def find_team_slug(self, login: Optional[str]) -> Optional[str]:
        """Return the first team, in priority order, that contains ``login``."""
        if not login:
            return None

        memberships = await asyncio.gather(
            *(self.teams.members(slug) for slug in self.team_slugs)
        )
        for slug, members in zip(self.team_slugs, memberships):
            if login in members:
                return slug
        return None

    def channel_for_team(self, team_slug: Optional[str]) -> str:
        if team_slug is None:
            return self.default_channel
        return self.team_channels.get(team_slug, self.default_channel)

    async def select_channel(self, login: Optional[str]) -> str:
        """Return the Slack channel id for a GitHub login."""
        team_slug = await self.find_team_slug(login)
        channel = self.channel_for_team(team_slug)
        logger.debug(
            "Selected Slack channel",
            extra={"login": login, "team_slug": team_slug, "channel": channel},
        )
        return channel
