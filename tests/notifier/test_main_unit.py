"""Unit tests for the action entry point."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from factories import GITHUB_TOKEN, SLACK_TOKEN, make_context, make_repository, make_settings, run_async
from src.notifier import main as main_module
from src.notifier.errors import SlackAPIError


@pytest.fixture
def action_env(monkeypatch, tmp_path):
    event_path = tmp_path / "event.json"
    event_path.write_text(json.dumps({"repository": make_repository()}), encoding="utf-8")
    monkeypatch.setenv("INPUT_SLACK_TOKEN", SLACK_TOKEN)
    monkeypatch.setenv("INPUT_GITHUB_TOKEN", GITHUB_TOKEN)
    monkeypatch.setenv("INPUT_ACTION_TYPE", "schedule")
    monkeypatch.setenv("GITHUB_EVENT_PATH", str(event_path))
    monkeypatch.setenv("GITHUB_RUN_ID", "42")
    # basicConfig(force=True) would remove pytest's capture handlers.
    monkeypatch.setattr(main_module, "configure_logging", lambda level="INFO": None)
    return event_path


class TestRedactSecret:
    def test_keeps_prefix(self):
        assert main_module._redact_secret("xoxb-secret") == "xoxb*******"

    def test_short_values_fully_masked(self):
        assert main_module._redact_secret("abc") == "***"


class TestMain:
    def test_success_returns_zero(self, action_env):
        with patch.object(main_module, "run", new=AsyncMock()) as run:
            assert main_module.main() == 0

        settings, context = run.await_args.args
        assert settings.action_type.value == "schedule"
        assert context.payload["repository"]["name"] == "widgets"
        assert context.run_id == "42"

    def test_notification_failure_returns_one(self, action_env):
        failing = AsyncMock(side_effect=SlackAPIError("down", error="fatal_error"))

        with patch.object(main_module, "run", new=failing):
            assert main_module.main() == 1

    def test_missing_inputs_return_one(self, monkeypatch):
        monkeypatch.setattr(main_module, "configure_logging", lambda level="INFO": None)

        assert main_module.main() == 1

    def test_missing_action_inputs_return_one(self, action_env, monkeypatch):
        monkeypatch.setenv("INPUT_ACTION_TYPE", "deploy")
        run = AsyncMock()

        with patch.object(main_module, "run", new=run):
            assert main_module.main() == 1

        run.assert_not_awaited()

    def test_missing_event_file_returns_one(self, action_env, monkeypatch):
        monkeypatch.setenv("GITHUB_EVENT_PATH", str(action_env.parent / "missing.json"))

        assert main_module.main() == 1


class TestRun:
    def test_dispatches_and_closes_github_client(self):
        settings = make_settings(action_type="approve")
        context = make_context({"repository": make_repository()})
        github_client = AsyncMock()
        slack_client = MagicMock()

        with patch.object(main_module, "EventHandlerFactory") as factory_cls:
            factory_cls.return_value.handle_event = AsyncMock()
            run_async(main_module.run(settings, context, github_client, slack_client))

        factory_cls.assert_called_once_with(settings, github_client, slack_client)
        factory_cls.return_value.handle_event.assert_awaited_once_with(
            settings.action_type, context
        )
        github_client.__aexit__.assert_awaited_once()

    def test_client_closed_when_handler_fails(self):
        settings = make_settings(action_type="approve")
        github_client = AsyncMock()

        with patch.object(main_module, "EventHandlerFactory") as factory_cls:
            factory_cls.return_value.handle_event = AsyncMock(side_effect=SlackAPIError("down"))
            with pytest.raises(SlackAPIError):
                run_async(
                    main_module.run(
                        settings,
                        make_context({"repository": make_repository()}),
                        github_client,
                        MagicMock(),
                    )
                )

        github_client.__aexit__.assert_awaited_once()
