"""GitHub API client for the lookups behind each notification.

This module provides an async wrapper around the GitHub REST API for:
- Resolving a login to the user's display name
- Listing organization team members (channel routing)
- Reading pull requests, reviews and review comments
- Reading workflow runs (deploy/build notifications)

Requests are made once; failures are logged and raised as GitHubAPIError.
List endpoints follow the ``Link: rel="next"`` header until exhausted.
"""

import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from src.notifier.errors import GitHubAPIError, RateLimitError


logger = logging.getLogger(__name__)

PER_PAGE = 100


class GitHubClient:
    """Async GitHub API client.

    Attributes:
        token: GitHub API token (PAT or GITHUB_TOKEN).
        base_url: Base URL for GitHub API (default: https://api.github.com).
        timeout: Request timeout in seconds.

    Example:
        >>> client = GitHubClient(token="ghp_xxx")
        >>> async with client:
        ...     name = await client.get_user_display_name("octocat")
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the GitHub client.

        Args:
            token: GitHub API token for authentication.
            base_url: Base URL for GitHub API. Use this to support
                      GitHub Enterprise Server endpoints.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._default_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "slack-notification-action/1.0",
        }

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _parse_int_header(
        self,
        headers: httpx.Headers,
        name: str,
    ) -> Optional[int]:
        value = headers.get(name)
        if value is not None:
            try:
                return int(value)
            except ValueError:
                pass
        return None

    def _raise_rate_limit(self, response: httpx.Response) -> None:
        """Raise RateLimitError with reset information from the headers.

        Raises:
            RateLimitError: Always.
        """
        reset_at = self._parse_int_header(response.headers, "x-ratelimit-reset")

        retry_after = None
        if reset_at is not None:
            retry_after = max(0, reset_at - int(time.time()))

        retry_after_header = self._parse_int_header(response.headers, "retry-after")
        if retry_after_header is not None:
            retry_after = retry_after_header

        logger.warning(
            "GitHub API rate limit exceeded",
            extra={
                "reset_at": reset_at,
                "retry_after": retry_after,
                "limit": self._parse_int_header(response.headers, "x-ratelimit-limit"),
            },
        )

        raise RateLimitError(
            message="GitHub API rate limit exceeded",
            status_code=response.status_code,
            request_url=str(response.url),
            reset_at=reset_at,
            retry_after=retry_after,
        )

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Make a single HTTP request and map failures to GitHubAPIError.

        Args:
            method: HTTP method.
            path: API path or absolute URL (pagination links).
            params: Optional query parameters.

        Returns:
            The HTTP response from GitHub.

        Raises:
            GitHubAPIError: If the request fails or returns an error status.
            RateLimitError: If rate limit is exceeded.
        """
        try:
            response = await self.client.request(
                method=method,
                url=path,
                params=params,
            )
        except httpx.HTTPError as e:
            logger.error(
                "GitHub API request failed",
                extra={"path": path, "method": method, "error": str(e)},
            )
            raise GitHubAPIError(
                message=f"GitHub API request failed: {e}",
                request_url=f"{self.base_url}{path}",
                cause=e,
            ) from e

        if response.status_code == 403:
            remaining = self._parse_int_header(
                response.headers,
                "x-ratelimit-remaining",
            )
            if remaining is not None and remaining == 0:
                self._raise_rate_limit(response)

        if response.status_code == 429:
            self._raise_rate_limit(response)

        if response.status_code >= 400:
            error_body = response.text
            logger.error(
                "GitHub API error",
                extra={
                    "status_code": response.status_code,
                    "path": path,
                    "method": method,
                    "response_body": error_body[:500],
                },
            )
            raise GitHubAPIError(
                message=f"GitHub API error: {response.status_code}",
                status_code=response.status_code,
                response_body=error_body,
                request_url=str(response.url),
            )

        return response

    async def _get_json(
        self, path: str, params: Optional[Dict[str, Any]] = None
    ) -> Any:
        response = await self._request("GET", path, params=params)
        return response.json()

    async def _get_paginated(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """GET every page of a list endpoint.

        The first request carries ``params`` with ``per_page``; following
        requests use the ``next`` link verbatim.
        """
        query = {"per_page": PER_PAGE}
        query.update(params or {})

        items: List[Dict[str, Any]] = []
        response = await self._request("GET", path, params=query)
        while True:
            items.extend(response.json())
            next_link = response.links.get("next", {}).get("url")
            if not next_link:
                return items
            response = await self._request("GET", next_link)

    async def get_user(self, username: str) -> Dict[str, Any]:
        """Get a user's public profile."""
        logger.debug("Getting GitHub user", extra={"username": username})
        return await self._get_json(f"/users/{username}")

    async def get_user_display_name(self, username: str) -> str:
        """Return the profile name of a user, or the login when unset."""
        user = await self.get_user(username)
        return user.get("name") or username

    async def list_team_members(self, org: str, team_slug: str) -> List[Dict[str, Any]]:
        """List the members of an organization team.

        Args:
            org: Organization login.
            team_slug: Team slug within the organization.

        Returns:
            List of user objects (each with a ``login``).

        Raises:
            GitHubAPIError: If the request fails.
        """
        logger.debug(
            "Listing team members",
            extra={"org": org, "team_slug": team_slug},
        )
        members = await self._get_paginated(f"/orgs/{org}/teams/{team_slug}/members")
        logger.debug(
            "Team members listed",
            extra={"org": org, "team_slug": team_slug, "count": len(members)},
        )
        return members

    async def get_pull_request(
        self, owner: str, repo: str, pr_number: int
    ) -> Dict[str, Any]:
        return await self._get_json(f"/repos/{owner}/{repo}/pulls/{pr_number}")

    async def list_open_pull_requests(
        self, owner: str, repo: str
    ) -> List[Dict[str, Any]]:
        """List all open pull requests, drafts included."""
        return await self._get_paginated(
            f"/repos/{owner}/{repo}/pulls", params={"state": "open"}
        )

    async def list_reviews(
        self, owner: str, repo: str, pr_number: int
    ) -> List[Dict[str, Any]]:
        """List submitted reviews of a pull request in chronological order."""
        return await self._get_paginated(
            f"/repos/{owner}/{repo}/pulls/{pr_number}/reviews"
        )

    async def get_review_comment(
        self, owner: str, repo: str, comment_id: int
    ) -> Dict[str, Any]:
        return await self._get_json(
            f"/repos/{owner}/{repo}/pulls/comments/{comment_id}"
        )

    async def get_review_comment_author(
        self, owner: str, repo: str, comment_id: int
    ) -> str:
        """Return the login of a review comment's author."""
        comment = await self.get_review_comment(owner, repo, comment_id)
        return comment["user"]["login"]

    async def list_review_comments(
        self, owner: str, repo: str, pr_number: int
    ) -> List[Dict[str, Any]]:
        """List all review (diff) comments of a pull request."""
        return await self._get_paginated(
            f"/repos/{owner}/{repo}/pulls/{pr_number}/comments"
        )

    async def get_workflow_run(
        self, owner: str, repo: str, run_id: str
    ) -> Dict[str, Any]:
        """Get a GitHub Actions workflow run.

        Raises:
            GitHubAPIError: If the request fails.
        """
        logger.debug(
            "Getting workflow run",
            extra={"owner": owner, "repo": repo, "run_id": run_id},
        )
        return await self._get_json(f"/repos/{owner}/{repo}/actions/runs/{run_id}")
