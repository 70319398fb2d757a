"""Typed release configuration read from the CI environment.

Every value is read once at startup into frozen dataclasses and threaded
through the release explicitly; nothing re-reads os.environ later.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .result import Err, Ok, Result

__all__ = [
    "CiSettings",
    "ConfigError",
    "ReleaseEnv",
    "SlackSettings",
    "load_release_env",
    # Environment variable names
    "ENV_SLACK_BOT_TOKEN",
    "ENV_SLACK_CHANNEL_ID",
    "ENV_SLACK_BOT_USERNAME",
    "ENV_SLACK_BOT_ICON_EMOJI",
    "ENV_CI_SERVER_URL",
    "ENV_CI_REPOSITORY",
    "ENV_CI_RUN_ID",
]

# -----------------------------------------------------------------------------
# Environment variable names
# -----------------------------------------------------------------------------

ENV_SLACK_BOT_TOKEN = "SLACK_BOT_TOKEN"
ENV_SLACK_CHANNEL_ID = "SLACK_RELEASE_CHANNEL_ID"
ENV_SLACK_BOT_USERNAME = "SLACK_BOT_USERNAME"
ENV_SLACK_BOT_ICON_EMOJI = "SLACK_BOT_ICON_EMOJI"

ENV_CI_SERVER_URL = "GITHUB_SERVER_URL"
ENV_CI_REPOSITORY = "GITHUB_REPOSITORY"
ENV_CI_RUN_ID = "GITHUB_RUN_ID"

DEFAULT_CI_SERVER_URL = "https://github.com"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when required configuration is missing or malformed."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class SlackSettings:
    """Bot credential, target channel and display identity."""

    token: str
    channel_id: str
    username: str | None = None
    icon_emoji: str | None = None


@dataclass(frozen=True, slots=True)
class CiSettings:
    """Coordinates of the CI run driving the release."""

    server_url: str = DEFAULT_CI_SERVER_URL
    repository: str = ""
    run_id: str = ""

    @property
    def workflow_url(self) -> str:
        return f"{self.server_url}/{self.repository}/actions/runs/{self.run_id}"


@dataclass(frozen=True, slots=True)
class ReleaseEnv:
    """Main configuration container.

    `slack` is None when no bot credential is configured; the release then
    runs without chat notifications.
    """

    slack: SlackSettings | None = None
    ci: CiSettings = field(default_factory=CiSettings)


def _read(environ: Mapping[str, str], key: str) -> str | None:
    value = environ.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_release_env(environ: Mapping[str, str]) -> Result[ReleaseEnv, ConfigError]:
    """Load release configuration from an environment mapping.

    Args:
        environ: Usually os.environ; tests pass plain dicts.

    Returns:
        Ok(ReleaseEnv) on success, Err(ConfigError) when only half of the
        Slack credentials are set.
    """
    token = _read(environ, ENV_SLACK_BOT_TOKEN)
    channel = _read(environ, ENV_SLACK_CHANNEL_ID)

    slack: SlackSettings | None = None
    if token and channel:
        slack = SlackSettings(
            token=token,
            channel_id=channel,
            username=_read(environ, ENV_SLACK_BOT_USERNAME),
            icon_emoji=_read(environ, ENV_SLACK_BOT_ICON_EMOJI),
        )
    elif token or channel:
        missing = ENV_SLACK_CHANNEL_ID if token else ENV_SLACK_BOT_TOKEN
        return Err(
            ConfigError(
                message=f"missing {missing}",
                hint=f"Set both {ENV_SLACK_BOT_TOKEN} and {ENV_SLACK_CHANNEL_ID}.",
            )
        )

    ci = CiSettings(
        server_url=_read(environ, ENV_CI_SERVER_URL) or DEFAULT_CI_SERVER_URL,
        repository=_read(environ, ENV_CI_REPOSITORY) or "",
        run_id=_read(environ, ENV_CI_RUN_ID) or "",
    )
    return Ok(ReleaseEnv(slack=slack, ci=ci))
