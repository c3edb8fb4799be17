"""GitHub login to Slack member resolution.

GitHub and Slack share no identifier, so a login is matched heuristically:
the GitHub profile name (or the login itself) is cleaned and looked up as a
substring of each Slack member's real name and display name.

Matching rules:
- Deleted Slack accounts never match.
- Names on the skip-list never match, whether they appear in the GitHub name
  being searched or on a Slack member.
- The cleaned search string is lowercased, has the organization bot prefix
  removed and keeps only ASCII letters. An empty result never matches.
- The first member in directory order wins.
"""

import asyncio
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from src.notifier.cache import CoalescingCache
from src.notifier.constants import DEFAULT_BOT_PREFIX, DEFAULT_SKIP_USERS
from src.notifier.errors import GitHubAPIError
from src.notifier.github.client import GitHubClient
from src.notifier.slack.client import SlackClient
from src.notifier.slack.models import Recipient, SlackUserProperty

logger = logging.getLogger(__name__)

_NON_LETTERS = re.compile(r"[^a-z]")


def clean_name(name: str, bot_prefix: str = DEFAULT_BOT_PREFIX) -> str:
    """Normalize a GitHub name for matching against Slack names.

    Args:
        name: GitHub profile name or login.
        bot_prefix: Organization prefix to strip (case-insensitive).

    Returns:
        The lowercased name without the prefix and without any
        characters other than ASCII letters.
    """
    lowered = name.lower()
    prefix = bot_prefix.lower()
    if prefix and lowered.startswith(prefix):
        lowered = lowered[len(prefix):]
    return _NON_LETTERS.sub("", lowered)


def is_skipped(name: Optional[str], skip_users: Iterable[str]) -> bool:
    """True when ``name`` contains any skip-list entry, ignoring case."""
    if not name:
        return False
    lowered = name.lower()
    return any(skip.lower() in lowered for skip in skip_users if skip)


def _member_names(member: Dict[str, Any]) -> List[str]:
    profile = member.get("profile") or {}
    return [n for n in (member.get("real_name"), profile.get("display_name")) if n]


def member_property(member: Dict[str, Any], prop: SlackUserProperty) -> str:
    """Extract the requested property from a Slack member."""
    if prop is SlackUserProperty.ID:
        return member["id"]
    profile = member.get("profile") or {}
    return profile.get("display_name") or member.get("real_name") or member["id"]


def find_member(
    members: Sequence[Dict[str, Any]],
    search_name: str,
    skip_users: Iterable[str] = DEFAULT_SKIP_USERS,
    bot_prefix: str = DEFAULT_BOT_PREFIX,
) -> Optional[Dict[str, Any]]:
    """Find the first active Slack member whose name contains ``search_name``.

    Args:
        members: Slack members as returned by ``users.list``.
        search_name: GitHub profile name or login.
        skip_users: Names that must never be matched.
        bot_prefix: Organization prefix stripped before matching.

    Returns:
        The matching member, or None.
    """
    skip_users = list(skip_users)
    if is_skipped(search_name, skip_users):
        logger.debug("Search name is on the skip-list", extra={"search_name": search_name})
        return None

    cleaned = clean_name(search_name, bot_prefix)
    if not cleaned:
        return None

    for member in members:
        if member.get("deleted"):
            continue
        names = _member_names(member)
        if any(is_skipped(n, skip_users) for n in names):
            continue
        if any(cleaned in n.lower() for n in names):
            return member
    return None


class SlackUserResolver:
    """Resolves GitHub logins to Slack member ids or display names.

    The Slack member directory is fetched once per resolver and GitHub
    profile names once per login; concurrent first lookups share one request.

    Attributes:
        slack_client: Client used for ``users.list``.
        github_client: Client used to read GitHub profile names.
        skip_users: Names never matched.
        bot_prefix: Organization prefix stripped from names before matching.
    """

    def __init__(
        self,
        slack_client: SlackClient,
        github_client: GitHubClient,
        skip_users: Optional[Iterable[str]] = None,
        bot_prefix: str = DEFAULT_BOT_PREFIX,
    ):
        self.slack_client = slack_client
        self.github_client = github_client
        self.skip_users = list(DEFAULT_SKIP_USERS if skip_users is None else skip_users)
        self.bot_prefix = bot_prefix
        self._members: CoalescingCache[str, List[Dict[str, Any]]] = CoalescingCache(
            lambda _key: self.slack_client.list_members()
        )
        self._display_names: CoalescingCache[str, str] = CoalescingCache(
            self._fetch_display_name
        )

    async def get_members(self) -> List[Dict[str, Any]]:
        """Return the cached Slack member directory."""
        return await self._members.get("members")

    async def _fetch_display_name(self, login: str) -> str:
        try:
            return await self.github_client.get_user_display_name(login)
        except GitHubAPIError as e:
            logger.error(
                "Failed to fetch GitHub profile name, matching on login",
                extra={"login": login, "error": str(e)},
            )
            return login

    async def resolve(
        self,
        login: Optional[str],
        prop: Union[SlackUserProperty, str],
    ) -> Optional[str]:
        """Resolve a GitHub login to a Slack property.

        Args:
            login: GitHub login.
            prop: ``id`` or ``realName``.

        Returns:
            The matched member's property, the login itself when nothing
            matches, or None for an empty login or unknown property.

        Raises:
            SlackAPIError: If the Slack member directory cannot be fetched.
        """
        if not login:
            logger.error("Cannot resolve Slack user for an empty GitHub login")
            return None

        try:
            prop = SlackUserProperty(prop)
        except ValueError:
            logger.error(
                "Invalid Slack user property",
                extra={"property": prop, "allowed": [p.value for p in SlackUserProperty]},
            )
            return None

        members, display_name = await asyncio.gather(
            self.get_members(),
            self._display_names.get(login),
        )

        member = find_member(members, display_name, self.skip_users, self.bot_prefix)
        if member is None:
            logger.info(
                "No Slack user matched",
                extra={"login": login, "display_name": display_name},
            )
            return login

        value = member_property(member, prop)
        logger.debug(
            "Resolved Slack user",
            extra={"login": login, "slack_id": member.get("id"), "property": prop.value},
        )
        return value

    async def resolve_many(
        self,
        logins: Iterable[str],
        prop: Union[SlackUserProperty, str],
    ) -> Dict[str, str]:
        """Resolve several logins concurrently.

        Returns:
            Mapping of login to resolved value. Empty logins are dropped.
        """
        unique = list(dict.fromkeys(login for login in logins if login))
        values = await asyncio.gather(*(self.resolve(login, prop) for login in unique))
        return {
            login: value if value is not None else login
            for login, value in zip(unique, values)
        }

    async def with_slack_ids(self, recipients: Sequence[Recipient]) -> List[Recipient]:
        """Return copies of ``recipients`` with ``slack_id`` filled in."""
        ids = await self.resolve_many(
            (r.github_username for r in recipients), SlackUserProperty.ID
        )
        return [
            r.model_copy(update={"slack_id": ids.get(r.github_username, r.github_username)})
            for r in recipients
        ]
