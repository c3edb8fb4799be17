"""Unit tests for SlackClient with a mocked AsyncWebClient."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from slack_sdk.errors import SlackApiError

from factories import make_member, run_async
from src.notifier.errors import SlackAPIError
from src.notifier.slack.client import SlackClient


def _web_client() -> MagicMock:
    web_client = MagicMock()
    web_client.users_list = AsyncMock()
    web_client.chat_postMessage = AsyncMock()
    return web_client


def test_list_members_follows_cursor():
    web_client = _web_client()
    web_client.users_list.side_effect = [
        {"members": [make_member("U1")], "response_metadata": {"next_cursor": "abc"}},
        {"members": [make_member("U2")], "response_metadata": {"next_cursor": ""}},
    ]

    members = run_async(SlackClient(web_client).list_members())

    assert [m["id"] for m in members] == ["U1", "U2"]
    assert web_client.users_list.await_count == 2
    assert web_client.users_list.await_args_list[1].kwargs["cursor"] == "abc"


def test_list_members_wraps_slack_errors():
    web_client = _web_client()
    web_client.users_list.side_effect = SlackApiError(
        "invalid_auth", {"ok": False, "error": "invalid_auth"}
    )

    with pytest.raises(SlackAPIError) as exc_info:
        run_async(SlackClient(web_client).list_members())

    assert exc_info.value.error == "invalid_auth"


def test_post_message_passes_payload_through():
    web_client = _web_client()
    web_client.chat_postMessage.return_value = {"ok": True, "ts": "123.456"}
    message = {"channel": "C1", "text": "hi", "attachments": [], "mrkdwn": True}

    response = run_async(SlackClient(web_client).post_message(message))

    web_client.chat_postMessage.assert_awaited_once_with(**message)
    assert response["ts"] == "123.456"


def test_post_message_wraps_failures_with_channel():
    web_client = _web_client()
    web_client.chat_postMessage.side_effect = SlackApiError(
        "channel_not_found", {"ok": False, "error": "channel_not_found"}
    )

    with pytest.raises(SlackAPIError) as exc_info:
        run_async(SlackClient(web_client).post_message({"channel": "C404", "text": "x"}))

    assert exc_info.value.error == "channel_not_found"
    assert exc_info.value.details["channel"] == "C404"
