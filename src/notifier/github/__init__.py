"""GitHub API access for the notifier.

Wraps the REST endpoints used to resolve users, teams, pull requests,
reviews and workflow runs.
"""

from src.notifier.errors import GitHubAPIError, RateLimitError
from src.notifier.github.client import GitHubClient

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "RateLimitError",
]
