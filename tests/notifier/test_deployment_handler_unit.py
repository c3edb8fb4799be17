"""Unit tests for deploy and build result notifications."""

import re
from datetime import datetime, timedelta, timezone

import pytest

from factories import (
    DEPLOY_CHANNEL,
    FakeResolver,
    FakeRouter,
    make_context,
    make_repository,
    make_settings,
    run_async,
)
from src.notifier.errors import ConfigurationError, GitHubAPIError
from src.notifier.handlers.deployment import (
    BuildHandler,
    DeployHandler,
    branch_from_ref,
    split_job_names,
)

RUN_URL = "https://github.com/aitrics/widgets/actions/runs/42"


def _run(started_minutes_ago: float = 3.5, actor: str = "alice"):
    started = datetime.now(timezone.utc) - timedelta(minutes=started_minutes_ago)
    return {
        "id": 42,
        "name": "Deploy",
        "html_url": RUN_URL,
        "actor": {"login": actor},
        "run_started_at": started.strftime("%Y-%m-%dT%H:%M:%SZ"),
    }


def _context(run_id="42", ref="refs/heads/main"):
    return make_context(
        {"repository": make_repository()},
        run_id=run_id,
        ref=ref,
        sha="0123456789abcdef",
    )


def _make(handler_cls, github_client, slack_client, **settings):
    return handler_cls(
        make_settings(**settings),
        github_client,
        slack_client,
        FakeResolver({"alice": "UA"}),
        FakeRouter(),
    )


def _fields(message):
    return {f["title"]: f["value"] for f in message["attachments"][0]["fields"]}


class TestDeployHandler:
    def test_posts_deploy_result_to_deploy_channel(self, github_client, slack_client):
        github_client.get_workflow_run.return_value = _run()
        handler = _make(
            DeployHandler,
            github_client,
            slack_client,
            action_type="deploy",
            ec2_name="api.example.com",
            image_tag="v1.2.3",
            job_status="success",
        )

        run_async(handler.handle(_context()))

        message = slack_client.post_message.await_args.args[0]
        fields = _fields(message)
        assert message["channel"] == DEPLOY_CHANNEL
        assert message["attachments"][0]["color"] == "good"
        assert fields["Author"] == "<@UA>"
        assert fields["Deploy Server"] == "https://api.example.com"
        assert fields["Image Tag"] == "v1.2.3"
        assert fields["Ref"] == "refs/heads/main"
        assert fields["Workflow"] == f"<{RUN_URL}|Deploy>"
        assert re.fullmatch(r"\d+m \d+s", fields["Run Time"])
        github_client.get_workflow_run.assert_awaited_once_with("aitrics", "widgets", "42")

    def test_failed_deploy_is_red(self, github_client, slack_client):
        github_client.get_workflow_run.return_value = _run()
        handler = _make(
            DeployHandler,
            github_client,
            slack_client,
            action_type="deploy",
            ec2_name="api.example.com",
            image_tag="v1.2.3",
            job_status="failure",
        )

        run_async(handler.handle(_context()))

        message = slack_client.post_message.await_args.args[0]
        assert message["attachments"][0]["color"] == "danger"
        assert "Failed" in message["text"]

    def test_missing_run_id_is_a_configuration_error(self, github_client, slack_client):
        handler = _make(DeployHandler, github_client, slack_client, action_type="deploy")

        with pytest.raises(ConfigurationError) as exc_info:
            run_async(handler.handle(_context(run_id=None)))

        assert exc_info.value.missing_fields == ["GITHUB_RUN_ID"]
        github_client.get_workflow_run.assert_not_awaited()
        slack_client.post_message.assert_not_awaited()

    def test_workflow_run_failure_propagates(self, github_client, slack_client):
        github_client.get_workflow_run.side_effect = GitHubAPIError("nope", status_code=404)
        handler = _make(DeployHandler, github_client, slack_client, action_type="deploy")

        with pytest.raises(GitHubAPIError):
            run_async(handler.handle(_context()))

        slack_client.post_message.assert_not_awaited()

    def test_unmatched_actor_is_mentioned_by_login(self, github_client, slack_client):
        github_client.get_workflow_run.return_value = _run(actor="zed")
        handler = _make(
            DeployHandler,
            github_client,
            slack_client,
            action_type="deploy",
            job_status="success",
        )

        run_async(handler.handle(_context()))

        fields = _fields(slack_client.post_message.await_args.args[0])
        assert fields["Author"] == "<@zed>"

    def test_run_without_actor_shows_placeholder(self, github_client, slack_client):
        run = _run()
        del run["actor"]
        github_client.get_workflow_run.return_value = run
        handler = _make(
            DeployHandler,
            github_client,
            slack_client,
            action_type="deploy",
            job_status="success",
        )

        run_async(handler.handle(_context()))

        fields = _fields(slack_client.post_message.await_args.args[0])
        assert fields["Author"] == "N/A"


class TestBuildHandler:
    def test_failed_build_lists_jobs(self, github_client, slack_client):
        github_client.get_workflow_run.return_value = _run()
        handler = _make(
            BuildHandler,
            github_client,
            slack_client,
            action_type="ci",
            branch_name="feature/x",
            image_tag="",
            job_name="lint, test,",
            job_status="failure",
        )

        run_async(handler.handle(_context()))

        message = slack_client.post_message.await_args.args[0]
        fields = _fields(message)
        assert message["channel"] == DEPLOY_CHANNEL
        assert fields["Failed Jobs"] == "`lint`\n`test`"
        assert fields["Branch"] == "feature/x"
        assert "Image Tag" not in fields

    def test_branch_falls_back_to_ref(self, github_client, slack_client):
        github_client.get_workflow_run.return_value = _run()
        handler = _make(
            BuildHandler,
            github_client,
            slack_client,
            action_type="ci",
            image_tag="v2",
            job_status="success",
        )

        run_async(handler.handle(_context(ref="refs/heads/release")))

        fields = _fields(slack_client.post_message.await_args.args[0])
        assert fields["Branch"] == "release"
        assert fields["Image Tag"] == "v2"
        assert "Failed Jobs" not in fields


@pytest.mark.parametrize(
    "ref, expected",
    [
        ("refs/heads/main", "main"),
        ("refs/heads/feature/x", "feature/x"),
        ("refs/tags/v1", "refs/tags/v1"),
        ("", ""),
    ],
)
def test_branch_from_ref(ref, expected):
    assert branch_from_ref(ref) == expected


@pytest.mark.parametrize(
    "job_name, expected",
    [
        ("lint", ["lint"]),
        ("lint, test", ["lint", "test"]),
        (" , ", []),
        ("", []),
    ],
)
def test_split_job_names(job_name, expected):
    assert split_job_names(job_name) == expected
