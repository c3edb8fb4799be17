"""Error types raised by the notifier.

Every error carries a kind from ErrorKind, a stable string code, a message,
a details dict and, when it wraps a lower level failure, the original cause.
Callers catch NotificationError to handle any notifier failure, or one of the
subclasses to handle a single category.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, Enum):
    """Category of a notifier failure.

    Attributes:
        CONFIGURATION: Missing or malformed action inputs.
        PAYLOAD_VALIDATION: Webhook payload lacks required structure.
        GITHUB_API: A GitHub REST call failed.
        SLACK_API: A Slack Web API call failed.
        NOTIFICATION: Any other notification failure.
    """

    CONFIGURATION = "CONFIGURATION_ERROR"
    PAYLOAD_VALIDATION = "PAYLOAD_VALIDATION_ERROR"
    GITHUB_API = "GITHUB_API_ERROR"
    SLACK_API = "SLACK_API_ERROR"
    NOTIFICATION = "SLACK_NOTIFICATION_ERROR"


class NotificationError(Exception):
    """Base class for all notifier errors.

    Attributes:
        kind: The error category.
        message: Human-readable error description.
        details: Structured context for logging.
        cause: The wrapped exception, if any.
        timestamp: When the error was created (UTC).
    """

    kind: ErrorKind = ErrorKind.NOTIFICATION

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        self.message = message
        self.details = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def code(self) -> str:
        return self.kind.value

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for structured logging."""
        data: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.cause is not None:
            data["cause"] = repr(self.cause)
        return data


class ConfigurationError(NotificationError):
    """Raised when action inputs are missing or invalid."""

    kind = ErrorKind.CONFIGURATION

    def __init__(
        self,
        message: str,
        missing_fields: Optional[List[str]] = None,
        cause: Optional[BaseException] = None,
    ):
        self.missing_fields = list(missing_fields or [])
        super().__init__(
            message, details={"missing_fields": self.missing_fields}, cause=cause
        )


class PayloadValidationError(NotificationError):
    """Raised when a webhook payload is malformed."""

    kind = ErrorKind.PAYLOAD_VALIDATION

    def __init__(
        self,
        message: str,
        payload: Any = None,
        cause: Optional[BaseException] = None,
    ):
        self.payload = payload
        super().__init__(message, details={"payload": payload}, cause=cause)


class GitHubAPIError(NotificationError):
    """Raised when a GitHub API request fails.

    Attributes:
        status_code: HTTP status code from the response.
        response_body: Response body from GitHub API.
        request_url: The URL that was requested.
    """

    kind = ErrorKind.GITHUB_API

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
        super().__init__(
            message,
            details={
                "status_code": status_code,
                "request_url": request_url,
            },
            cause=cause,
        )


class RateLimitError(GitHubAPIError):
    """Raised when GitHub API rate limit is exceeded.

    Attributes:
        reset_at: Unix timestamp when the rate limit resets.
        retry_after: Seconds to wait before retrying.
    """

    def __init__(
        self,
        message: str,
        reset_at: Optional[int] = None,
        retry_after: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.reset_at = reset_at
        self.retry_after = retry_after
        self.details.update({"reset_at": reset_at, "retry_after": retry_after})


class SlackAPIError(NotificationError):
    """Raised when a Slack Web API call fails.

    Attributes:
        error: The Slack error code (e.g. ``channel_not_found``), if known.
    """

    kind = ErrorKind.SLACK_API

    def __init__(
        self,
        message: str,
        error: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        self.error = error
        merged = {"error": error}
        merged.update(details or {})
        super().__init__(message, details=merged, cause=cause)
