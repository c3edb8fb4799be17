"""Event handlers, one per notification flow."""

from src.notifier.handlers.base import BaseEventHandler
from src.notifier.handlers.comment import CommentEventHandler
from src.notifier.handlers.deployment import BuildHandler, DeployHandler
from src.notifier.handlers.factory import EventHandlerFactory
from src.notifier.handlers.review import (
    ApproveHandler,
    ReviewRequestHandler,
    ScheduleHandler,
)

__all__ = [
    "ApproveHandler",
    "BaseEventHandler",
    "BuildHandler",
    "CommentEventHandler",
    "DeployHandler",
    "EventHandlerFactory",
    "ReviewRequestHandler",
    "ScheduleHandler",
]
