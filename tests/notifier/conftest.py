"""Fixtures shared by the notifier tests."""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from factories import make_settings
from src.notifier.config import NotifierSettings


@pytest.fixture(autouse=True)
def _clear_action_env(monkeypatch):
    """Keep INPUT_* variables of the surrounding runner out of the settings."""
    for key in list(os.environ):
        if key.startswith(("INPUT_", "GITHUB_")):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings() -> NotifierSettings:
    return make_settings()


@pytest.fixture
def github_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def slack_client() -> MagicMock:
    client = MagicMock()
    client.post_message = AsyncMock(return_value={"ok": True, "ts": "1.0"})
    client.list_members = AsyncMock(return_value=[])
    return client
