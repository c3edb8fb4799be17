"""Unit and property tests for team based channel routing."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from hypothesis import given, strategies as st

from factories import DEFAULT_CHANNEL, TEAM_CHANNELS, run_async
from src.notifier.errors import GitHubAPIError
from src.notifier.slack.router import ChannelRouter

TEAMS = {
    "SE": ["alice", "dave"],
    "Platform-frontend": ["bob", "dave"],
    "Platform-backend": ["carol"],
}


def _router(teams=None, team_channels=None) -> ChannelRouter:
    teams = TEAMS if teams is None else teams
    github_client = MagicMock()

    async def list_team_members(org, slug):
        await asyncio.sleep(0)
        if isinstance(teams.get(slug), Exception):
            raise teams[slug]
        return [{"login": login} for login in teams.get(slug, [])]

    github_client.list_team_members = AsyncMock(side_effect=list_team_members)
    return ChannelRouter(
        github_client,
        organization="aitrics",
        team_slugs=list(TEAM_CHANNELS),
        team_channels=TEAM_CHANNELS if team_channels is None else team_channels,
        default_channel=DEFAULT_CHANNEL,
    )


def test_routes_to_team_channel():
    router = _router()

    assert run_async(router.select_channel("carol")) == "C-BE"


def test_first_team_in_order_wins():
    router = _router()

    assert run_async(router.find_team_slug("dave")) == "SE"
    assert run_async(router.select_channel("dave")) == "C-SE"


def test_unknown_login_goes_to_default_channel():
    router = _router()

    assert run_async(router.select_channel("zed")) == DEFAULT_CHANNEL


def test_empty_login_goes_to_default_without_lookups():
    router = _router()

    assert run_async(router.select_channel("")) == DEFAULT_CHANNEL
    assert run_async(router.select_channel(None)) == DEFAULT_CHANNEL
    router.teams.github_client.list_team_members.assert_not_awaited()


def test_team_without_channel_goes_to_default():
    router = _router(team_channels={"SE": "C-SE"})

    assert run_async(router.select_channel("bob")) == DEFAULT_CHANNEL


def test_failed_team_fetch_is_cached_as_empty():
    teams = dict(TEAMS, SE=GitHubAPIError("forbidden", status_code=403))
    router = _router(teams=teams)

    async def scenario():
        return [await router.select_channel("alice"), await router.select_channel("dave")]

    assert run_async(scenario()) == [DEFAULT_CHANNEL, "C-FE"]
    slugs = [c.args[1] for c in router.teams.github_client.list_team_members.await_args_list]
    assert slugs.count("SE") == 1


@given(
    logins=st.lists(
        st.sampled_from(["alice", "bob", "carol", "dave", "zed", "yan"]),
        min_size=1,
        max_size=25,
    )
)
def test_concurrent_lookups_fetch_each_team_once(logins):
    """Property: N concurrent lookups across K teams issue at most K fetches."""
    router = _router()

    async def scenario():
        return await asyncio.gather(*(router.select_channel(login) for login in logins))

    channels = run_async(scenario())

    assert router.teams.github_client.list_team_members.await_count <= len(TEAM_CHANNELS)
    fetched = [c.args[1] for c in router.teams.github_client.list_team_members.await_args_list]
    assert sorted(fetched) == sorted(TEAM_CHANNELS)
    for login, channel in zip(logins, channels):
        team = next((slug for slug in TEAM_CHANNELS if login in TEAMS[slug]), None)
        assert channel == (TEAM_CHANNELS[team] if team else DEFAULT_CHANNEL)
