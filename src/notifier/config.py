"""Notifier configuration using pydantic-settings.

GitHub Actions exposes action inputs to the running step as INPUT_<NAME>
environment variables, so NotifierSettings reads them with the INPUT_ prefix
(e.g. INPUT_SLACK_TOKEN). Runner context (event payload path, run id, ref,
sha) comes from the GITHUB_* variables set by the runner and is read by
RunnerSettings.

Validation happens before any network call. Every failure is surfaced as a
ConfigurationError naming the offending inputs.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.notifier.constants import (
    DEFAULT_BOT_PREFIX,
    DEFAULT_CHANNEL,
    DEFAULT_ORGANIZATION,
    DEFAULT_SKIP_USERS,
    DEFAULT_TEAM_CHANNELS,
    DEFAULT_TEAM_SLUGS,
    DEPLOY_CHANNEL,
    ActionType,
)
from src.notifier.errors import ConfigurationError

# Inputs each action type needs on top of the tokens.
ACTION_REQUIREMENTS: Dict[ActionType, List[str]] = {
    ActionType.DEPLOY: ["ec2_name", "image_tag", "job_status"],
    ActionType.CI: ["branch_name", "image_tag", "job_name", "job_status"],
}

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class NotifierSettings(BaseSettings):
    """Action inputs from environment variables.

    All environment variables are prefixed with INPUT_ (e.g., INPUT_ACTION_TYPE).

    Required fields:
    - slack_token: Slack bot/user token (xoxb- or xoxp-)
    - github_token: GitHub API token used for lookups
    - action_type: Which notification flow to run
    """

    model_config = SettingsConfigDict(
        env_prefix="INPUT_",
        case_sensitive=False,
        # Actions exports every declared input, unset ones as empty strings.
        env_ignore_empty=True,
    )

    # -------------------------------------------------------------------------
    # Credentials
    # -------------------------------------------------------------------------
    slack_token: str
    github_token: str

    # -------------------------------------------------------------------------
    # Action selection and action-specific inputs
    # -------------------------------------------------------------------------
    action_type: ActionType

    # deploy
    ec2_name: str = ""
    # deploy, ci
    image_tag: str = ""
    job_status: str = ""
    # ci
    branch_name: str = ""
    job_name: str = ""

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------
    # GitHub organization owning the teams and repositories
    organization: str = DEFAULT_ORGANIZATION

    # Ordered list of team slugs checked for channel routing
    team_slugs: List[str] = Field(default_factory=lambda: list(DEFAULT_TEAM_SLUGS))

    # Team slug -> Slack channel id
    team_channels: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_TEAM_CHANNELS)
    )

    # Channel used when a login belongs to no routed team
    default_channel: str = DEFAULT_CHANNEL

    # Channel for deploy and build results
    deploy_channel: str = DEPLOY_CHANNEL

    # -------------------------------------------------------------------------
    # Name matching
    # -------------------------------------------------------------------------
    skip_users: List[str] = Field(default_factory=lambda: list(DEFAULT_SKIP_USERS))
    bot_prefix: str = DEFAULT_BOT_PREFIX

    # -------------------------------------------------------------------------
    # Clients and logging
    # -------------------------------------------------------------------------
    github_base_url: str = "https://api.github.com"
    request_timeout: float = 30.0
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("slack_token")
    @classmethod
    def validate_slack_token(cls, v: str) -> str:
        """Validate that the Slack token is a bot or user token."""
        if not v or not v.strip():
            raise ValueError("slack_token cannot be empty")
        if not v.startswith(("xoxb-", "xoxp-")):
            raise ValueError("slack_token must start with xoxb- or xoxp-")
        return v

    @field_validator("github_token")
    @classmethod
    def validate_github_token(cls, v: str) -> str:
        """Validate that the GitHub token is present and plausibly long."""
        if not v or not v.strip():
            raise ValueError("github_token cannot be empty")
        if len(v) < 20:
            raise ValueError("github_token is too short")
        return v

    @field_validator("action_type", mode="before")
    @classmethod
    def normalize_action_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Fall back to INFO for unknown levels instead of failing the run."""
        level = v.strip().upper()
        return level if level in VALID_LOG_LEVELS else "INFO"

    def validate_action_inputs(self) -> None:
        """Check the inputs required by the selected action type.

        Raises:
            ConfigurationError: If any required input is empty.
        """
        required = ACTION_REQUIREMENTS.get(self.action_type, [])
        missing = [
            name.upper() for name in required if not getattr(self, name).strip()
        ]
        if missing:
            raise ConfigurationError(
                f"Missing inputs for {self.action_type.value} action: "
                f"{', '.join(missing)}",
                missing_fields=missing,
            )


class RunnerSettings(BaseSettings):
    """Context variables exported by the GitHub Actions runner."""

    model_config = SettingsConfigDict(
        env_prefix="GITHUB_",
        case_sensitive=False,
    )

    event_path: Optional[str] = None
    run_id: Optional[str] = None
    ref: str = ""
    sha: str = ""


class ActionContext(BaseModel):
    """Event payload plus the run metadata deploy/build notifications need."""

    payload: Dict[str, Any]
    run_id: Optional[str] = None
    ref: str = ""
    sha: str = ""


def _missing_fields(error: ValidationError) -> List[str]:
    fields = []
    for item in error.errors():
        loc = item.get("loc") or ()
        if loc:
            fields.append(str(loc[0]).upper())
    return fields


def get_settings() -> NotifierSettings:
    """Create and validate NotifierSettings from the environment.

    Returns:
        NotifierSettings: Configured settings instance.

    Raises:
        ConfigurationError: If required inputs are missing or invalid.
    """
    try:
        settings = NotifierSettings()
    except ValidationError as e:
        fields = _missing_fields(e)
        raise ConfigurationError(
            f"Invalid action configuration: {', '.join(fields) or 'unknown'}",
            missing_fields=fields,
            cause=e,
        ) from e

    settings.validate_action_inputs()
    return settings


def load_action_context(runner: Optional[RunnerSettings] = None) -> ActionContext:
    """Read the webhook payload referenced by GITHUB_EVENT_PATH.

    Raises:
        ConfigurationError: If the event file is unset, unreadable or not a
            JSON object.
    """
    runner = runner or RunnerSettings()
    if not runner.event_path:
        raise ConfigurationError(
            "GITHUB_EVENT_PATH is not set", missing_fields=["GITHUB_EVENT_PATH"]
        )

    try:
        payload = json.loads(Path(runner.event_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(
            f"Unable to read event payload from {runner.event_path}",
            missing_fields=["GITHUB_EVENT_PATH"],
            cause=e,
        ) from e

    if not isinstance(payload, dict):
        raise ConfigurationError(
            "Event payload must be a JSON object",
            missing_fields=["GITHUB_EVENT_PATH"],
        )

    return ActionContext(
        payload=payload,
        run_id=runner.run_id,
        ref=runner.ref,
        sha=runner.sha,
    )
