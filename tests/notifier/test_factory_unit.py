"""Unit tests for ACTION_TYPE dispatch."""

from unittest.mock import AsyncMock

import pytest

from factories import make_context, make_repository, run_async
from src.notifier.constants import ActionType
from src.notifier.errors import ConfigurationError
from src.notifier.handlers import (
    ApproveHandler,
    BuildHandler,
    CommentEventHandler,
    DeployHandler,
    EventHandlerFactory,
    ReviewRequestHandler,
    ScheduleHandler,
)


@pytest.fixture
def factory(settings, github_client, slack_client) -> EventHandlerFactory:
    return EventHandlerFactory(settings, github_client, slack_client)


@pytest.mark.parametrize(
    "action_type, handler_cls",
    [
        ("comment", CommentEventHandler),
        ("approve", ApproveHandler),
        ("review_requested", ReviewRequestHandler),
        ("changes_requested", ReviewRequestHandler),
        ("schedule", ScheduleHandler),
        ("deploy", DeployHandler),
        ("ci", BuildHandler),
    ],
)
def test_every_action_type_has_a_handler(factory, action_type, handler_cls):
    assert isinstance(factory.get_handler(action_type), handler_cls)


def test_changes_requested_reuses_review_request_flow(factory):
    assert factory.get_handler(ActionType.CHANGES_REQUESTED) is factory.get_handler(
        ActionType.REVIEW_REQUESTED
    )


def test_handlers_share_resolver_and_router(factory):
    handlers = list(factory.handlers.values())

    assert all(h.resolver is factory.resolver for h in handlers)
    assert all(h.router is factory.router for h in handlers)


def test_router_uses_configured_routing(factory, settings):
    assert factory.router.team_slugs == settings.team_slugs
    assert factory.router.default_channel == settings.default_channel


def test_unknown_action_type_has_no_handler(factory):
    assert factory.get_handler("merge") is None


def test_unknown_action_type_is_a_configuration_error(factory, slack_client):
    with pytest.raises(ConfigurationError) as exc_info:
        run_async(factory.handle_event("merge", make_context({"repository": make_repository()})))

    assert exc_info.value.missing_fields == ["ACTION_TYPE"]
    slack_client.post_message.assert_not_awaited()


def test_handle_event_dispatches_to_handler(factory):
    handler = factory.handlers[ActionType.APPROVE]
    handler.handle = AsyncMock()
    context = make_context({"repository": make_repository()})

    run_async(factory.handle_event("approve", context))

    handler.handle.assert_awaited_once_with(context)
